"""Platform record stores."""
from .json_file import JsonFileStore
from .memory import MemoryStore, Transaction

__all__ = ["JsonFileStore", "MemoryStore", "Transaction"]
