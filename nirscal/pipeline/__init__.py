"""Model snapshot persistence."""

from .snapshot import ModelSnapshot, load_snapshots

__all__ = [
    "ModelSnapshot",
    "load_snapshots",
]
