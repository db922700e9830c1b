"""
Storage package.

Byte stores addressed by a validated cache key. Stores own the persisted
bytes; callers only read and write through the store interface. Stores
perform no locking, so concurrent writers to one key resolve as "last
completed write wins".
"""

from .file_store import FileKeyStore, KeyStore

__all__ = [
    "FileKeyStore",
    "KeyStore",
]
