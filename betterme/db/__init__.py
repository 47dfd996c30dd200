"""Storage collaborator implementations"""

from betterme.db.store import Storage
from betterme.db.memory_store import InMemoryStore

__all__ = ["Storage", "InMemoryStore"]
