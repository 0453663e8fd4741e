"""Service interfaces package."""
from .storage import FaceStore

__all__ = ["FaceStore"]
