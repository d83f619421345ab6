"""
asgi.py -- ASGI entry point for the listing service.

Run with:  uvicorn asgi:app --reload
           jobboard            (console script; binds 0.0.0.0:$PORT)
"""

import uvicorn

from api.main import app
from core.config import get_settings

__all__ = ["app", "main"]


def main() -> None:
    uvicorn.run("asgi:app", host="0.0.0.0", port=get_settings().port)  # nosec B104 -- container entry point


if __name__ == "__main__":
    main()
