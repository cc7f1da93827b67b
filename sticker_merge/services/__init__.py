from .collaborators import (
    CollaboratorError,
    CollectionNotFound,
    NormalizationError,
    OwnerHandleError,
    StickerPlatform,
    TagNotFound,
)
from .executor import CreationExecutor
from .naming import NameFinalizer, OwnerHandleCache
from .planner import ChunkPlanner
from .session_machine import SessionMachine, Transition

__all__ = [
    "CollaboratorError",
    "CollectionNotFound",
    "NormalizationError",
    "OwnerHandleError",
    "StickerPlatform",
    "TagNotFound",
    "CreationExecutor",
    "NameFinalizer",
    "OwnerHandleCache",
    "ChunkPlanner",
    "SessionMachine",
    "Transition",
]
