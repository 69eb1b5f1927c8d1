from .core import AssignmentEngine
from .errors import AssignmentEngineError, EngineNotLoadedError, PersistenceError, RosterSyncError
from .persistence import InMemoryPersistenceAdapter, PersistenceAdapter, StateWriter

__all__ = [
    "AssignmentEngine",
    "AssignmentEngineError",
    "EngineNotLoadedError",
    "InMemoryPersistenceAdapter",
    "PersistenceAdapter",
    "PersistenceError",
    "RosterSyncError",
    "StateWriter",
]
