"""auth/ -- Authentication and authorization package for the listing service.

Layer rule: auth/ imports from core/ and third-party libraries only.
It does NOT import from api/ or listings/.
api/ imports from auth/, not the other way around.
"""
