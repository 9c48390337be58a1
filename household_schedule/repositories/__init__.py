"""Read-only definition and one-off entry repositories."""

from .json_file import JsonSnapshotStore
from .memory import InMemoryDefinitionRepository, InMemoryOneOffRepository
from .protocols import DefinitionRepository, OneOffRepository

__all__ = [
    "DefinitionRepository",
    "InMemoryDefinitionRepository",
    "InMemoryOneOffRepository",
    "JsonSnapshotStore",
    "OneOffRepository",
]
