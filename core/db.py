"""
core/db.py -- Process-wide database handle.

Database owns the single SQLAlchemy Engine shared by every store. It is
constructed once in the API lifespan, stored on app.state, and passed to
UserStore and ListingStore explicitly -- there is no module-level engine.

The engine itself is created lazily on first use. FastAPI runs sync route
handlers in a thread pool, so two first requests can race to connect; a
double-checked threading.Lock makes initialization happen exactly once and
every caller receives the same Engine.

Layer rule: core/ is the kernel. No imports from api/, auth/, or listings/.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

logger = logging.getLogger("jobboard.db")


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


class Database:
    """Lazily connected, once-only SQLAlchemy engine holder.

    Usage:
        db = Database("sqlite:///jobboard.db")
        engine = db.engine        # connects on first access
        db.close()
    """

    def __init__(self, url: str) -> None:
        self.url = url
        self._engine: Optional[Engine] = None
        self._lock = threading.Lock()

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        return self.connect()

    def connect(self) -> Engine:
        """Return the shared Engine, creating it on the first call only."""
        engine = self._engine
        if engine is not None:
            return engine
        with self._lock:
            if self._engine is None:
                self._engine = self._create_engine()
                logger.info("Database engine created (%s)", self._engine.url.render_as_string(hide_password=True))
            return self._engine

    def _create_engine(self) -> Engine:
        connect_args: dict = {}
        if self.url.startswith("sqlite"):
            # Route handlers run in FastAPI's thread pool, so one pooled
            # connection may be used from several threads over its lifetime.
            connect_args["check_same_thread"] = False
        engine = create_engine(self.url, connect_args=connect_args)
        if self.url.startswith("sqlite"):
            event.listen(engine, "connect", _set_wal_mode)
        return engine

    def close(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
