"""
Image cache service package.

Serves http.cat images keyed by a 3-digit HTTP status code from a local
directory, populating misses from the origin on demand.

Structure:
- app.main: FastAPI app, the catch-all key route, and the CLI entrypoint.
- app.keys: Cache key validation.
- app.storage: Byte store backing cached entries (one file per key).
- app.origin: HTTP client for the origin used on cache miss.
- app.caching: The coordinator deciding hit, backfill, write and delete.

Design notes:
- Importing the package performs no I/O; the cache directory is only
  touched at startup and in request handlers.
- Use the shared/ utilities for config, logging, metrics and errors.
"""
