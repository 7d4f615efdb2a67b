from .base import AggregateStore
from .controller import StorageController, StorageMode
from .json_store import JsonFileStore
from .memory_store import MemoryStore

__all__ = ["AggregateStore", "JsonFileStore", "MemoryStore", "StorageController", "StorageMode"]
