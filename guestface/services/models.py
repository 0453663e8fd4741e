"""Service-specific models.

This module contains models used by services that are independent of the API layer.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from guestface.domain.entities.face import BoundingBox, FaceRecord


class ServiceFaceRecord(BaseModel):
    """Face record returned by the indexing service, without its embedding."""
    face_id: str = Field(..., description="Unique identifier for the face")
    photo_id: str = Field(..., description="Identifier of the owning photo")
    bounding_box: Optional[BoundingBox] = Field(None, description="Face bounding box in pixels")

    @classmethod
    def from_face(cls, face: FaceRecord) -> "ServiceFaceRecord":
        """Create a service record from a domain face record."""
        return cls(
            face_id=face.face_id,
            photo_id=face.photo_id,
            bounding_box=face.bounding_box,
        )


class ServiceIndexFacesResponse(BaseModel):
    """Result of indexing the faces detected in one photo."""
    photo_id: str = Field(..., description="Photo the faces belong to")
    face_records: List[ServiceFaceRecord] = Field(..., description="Stored face records")
    skipped_faces: int = Field(0, description="Detected faces dropped because their embedding was malformed")
    already_indexed: bool = Field(False, description="True when the photo had been indexed before")
