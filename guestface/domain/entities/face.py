"""Core face domain entities."""
from typing import Any, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from guestface.core.utils.vectors import EMBEDDING_DIM, normalize_embedding
from guestface.domain.models.storage.face import StoredFace


class BoundingBox(BaseModel):
    """Face bounding box in source image pixel coordinates."""
    x: int = Field(..., ge=0, description="Left edge of the bounding box")
    y: int = Field(..., ge=0, description="Top edge of the bounding box")
    width: int = Field(..., ge=0, description="Width of the bounding box")
    height: int = Field(..., ge=0, description="Height of the bounding box")


class PhotoRef(BaseModel):
    """Reference to a photo owned by the external gallery."""
    photo_id: str = Field(..., description="Photo identifier")
    url: Optional[str] = Field(None, description="Display URL of the photo")


class DetectedFace(BaseModel):
    """One face produced by the embedding extractor, before it is stored."""
    embedding: Any = Field(..., description="Raw face embedding as emitted by the extractor")
    bounding_box: Optional[BoundingBox] = Field(None, description="Face location in the photo")


class FaceRecord(BaseModel):
    """A validated, immutable face embedding with its provenance."""
    face_id: str = Field(..., description="Opaque face identifier")
    photo_id: str = Field(..., description="Identifier of the owning photo")
    photo_url: Optional[str] = Field(None, description="Display URL of the owning photo")
    collection_id: Optional[str] = Field(None, description="Collection (event) the photo belongs to")
    embedding: np.ndarray = Field(..., description="128-d face embedding")
    bounding_box: Optional[BoundingBox] = Field(None, description="Face location in the photo")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @field_validator("embedding")
    @classmethod
    def validate_embedding(cls, v: np.ndarray) -> np.ndarray:
        """Ensure the embedding is a one-dimensional vector of the expected size."""
        if v.shape != (EMBEDDING_DIM,):
            raise ValueError(f"embedding must have shape ({EMBEDDING_DIM},), got {v.shape}")
        return v

    @property
    def photo(self) -> PhotoRef:
        """Reference to the owning photo."""
        return PhotoRef(photo_id=self.photo_id, url=self.photo_url)

    @classmethod
    def from_stored(cls, stored: StoredFace) -> "FaceRecord":
        """Build a face record from a raw storage row.

        Args:
            stored: Row as returned by the face store

        Returns:
            FaceRecord with a validated embedding

        Raises:
            MalformedEmbeddingError: If the stored embedding cannot be used
        """
        box = None
        if None not in (stored.box_x, stored.box_y, stored.box_width, stored.box_height):
            box = BoundingBox(
                x=stored.box_x,
                y=stored.box_y,
                width=stored.box_width,
                height=stored.box_height,
            )
        return cls(
            face_id=stored.id,
            photo_id=stored.photo_id,
            photo_url=stored.photo_url,
            collection_id=stored.collection_id,
            embedding=normalize_embedding(stored.embedding),
            bounding_box=box,
        )
