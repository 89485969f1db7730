"""
Persistence of Scout observations.
"""

from .memory_store import InMemoryHazardStore
from .store import HazardStore, InsertIgnoreTransaction
from .writer import IngestionWriter

__all__ = [
    "HazardStore",
    "InsertIgnoreTransaction",
    "InMemoryHazardStore",
    "IngestionWriter",
]
