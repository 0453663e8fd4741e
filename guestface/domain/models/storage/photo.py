"""Storage-specific photo models."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class StoredPhoto(BaseModel):
    """Photo row as known to the face store."""
    photo_id: str = Field(..., description="External system photo identifier")
    collection_id: str = Field(..., description="Collection (event) the photo belongs to")
    url: str = Field(..., description="Display URL of the photo")
    is_hidden: bool = Field(False, description="Whether the photo is hidden from guest searches")
    created_at: Optional[datetime] = Field(None, description="When the photo was registered")
