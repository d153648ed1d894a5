"""
Adapters layer - Availability stores feeding the engine.
"""

from .json_store import JsonAvailabilityStore
from .memory_store import InMemoryAvailabilityStore

__all__ = ["InMemoryAvailabilityStore", "JsonAvailabilityStore"]
