# storepos/database/__init__.py
from .database import Database
from .memory import MemoryDatabase

def create_database(url: str, **kwargs):
    """Pick the persistence backend from the URL scheme"""
    if url.startswith("memory://"):
        return MemoryDatabase()
    if url.startswith(("postgres://", "postgresql://")):
        return Database(url, **kwargs)
    raise ValueError(f"Unsupported DATABASE_URL: {url}")

__all__ = ['Database', 'MemoryDatabase', 'create_database']
