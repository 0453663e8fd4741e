"""Storage-specific face models."""
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field


class StoredFace(BaseModel):
    """Face row as read back from the face store.

    The embedding is kept exactly as the store returned it, either a numeric
    list or its bracketed text serialization. It is only trusted after
    normalization.
    """
    id: str = Field(..., description="Face identifier")
    photo_id: str = Field(..., description="Identifier of the owning photo")
    embedding: Union[str, List[Any]] = Field(..., description="Raw stored face embedding")
    photo_url: Optional[str] = Field(None, description="Display URL of the owning photo")
    collection_id: Optional[str] = Field(None, description="Collection the owning photo belongs to")
    box_x: Optional[int] = Field(None, description="Left edge of the face bounding box")
    box_y: Optional[int] = Field(None, description="Top edge of the face bounding box")
    box_width: Optional[int] = Field(None, description="Width of the face bounding box")
    box_height: Optional[int] = Field(None, description="Height of the face bounding box")
