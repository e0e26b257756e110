from functools import lru_cache

from core.config import STORAGE_DRIVER
from storage.base import RegistrationStore
from storage.local import LocalRegistrationStore
from storage.memory import MemoryRegistrationStore


@lru_cache(maxsize=1)
def get_storage() -> RegistrationStore:
    if STORAGE_DRIVER == "local":
        return LocalRegistrationStore()
    if STORAGE_DRIVER == "memory":
        return MemoryRegistrationStore()
    raise ValueError(f"Unknown storage driver: {STORAGE_DRIVER}")
