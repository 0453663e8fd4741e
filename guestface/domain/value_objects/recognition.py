"""Face matching and clustering value objects."""
from typing import List, Optional

from pydantic import BaseModel, Field

from guestface.domain.entities.face import PhotoRef


class PhotoMatch(BaseModel):
    """A photo matched by a selfie search, scored by its best face."""
    photo_id: str = Field(..., description="Matched photo identifier")
    photo_url: Optional[str] = Field(None, description="Display URL of the matched photo")
    face_id: str = Field(..., description="Best-scoring face of the photo")
    similarity: float = Field(..., description="Cosine similarity between the query and the face")


class SearchResult(BaseModel):
    """Result of a selfie search within one collection."""
    collection_id: str = Field(..., description="Collection that was searched")
    matches: List[PhotoMatch] = Field(..., description="Matched photos, best first")


class GuestCluster(BaseModel):
    """Faces believed to depict the same guest within one clustering run."""
    id: str = Field(..., description="Cluster identifier, stable only within one run")
    face_count: int = Field(..., description="Number of faces in the cluster")
    photo_count: int = Field(..., description="Number of distinct photos the faces come from")
    sample_photos: List[PhotoRef] = Field(..., description="Up to three first-seen distinct photos")
    face_ids: List[str] = Field(..., description="Member face identifiers in assignment order")


class ClusteringResult(BaseModel):
    """Result of clustering every face of a collection."""
    collection_id: str = Field(..., description="Collection that was clustered")
    clusters: List[GuestCluster] = Field(..., description="Guest clusters, largest first")
    face_count: int = Field(..., description="Number of stored faces considered")
    skipped_faces: int = Field(0, description="Faces dropped because their embedding was malformed")
