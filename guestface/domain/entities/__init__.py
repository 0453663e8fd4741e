"""Domain entities package."""
from .face import BoundingBox, DetectedFace, FaceRecord, PhotoRef

__all__ = ["BoundingBox", "DetectedFace", "FaceRecord", "PhotoRef"]
