"""Custom exceptions for the guest face service."""
from typing import Optional


class GuestFaceError(Exception):
    """Base exception for face matching and clustering operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize guest face error.

        Args:
            message: Error description
            details: Additional error context
        """
        super().__init__(message)
        self.details = details or {}


class MalformedEmbeddingError(GuestFaceError):
    """Raised when a stored or incoming face embedding fails length or type validation."""
    pass


class InvalidQueryError(GuestFaceError):
    """Raised when a caller-supplied search query is not a valid request."""
    pass


class PhotoNotFoundError(GuestFaceError):
    """Raised when a photo is not registered in the face store."""
    pass


class FaceStoreError(GuestFaceError):
    """Base exception for face store operations."""
    pass


class ServiceNotInitializedError(GuestFaceError):
    """Raised when a service is requested before the container is initialized."""
    pass
