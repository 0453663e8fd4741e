"""API specific face models."""
from typing import List, Optional

from pydantic import BaseModel, Field

from guestface.core.config import settings
from guestface.domain.entities.face import BoundingBox, DetectedFace, PhotoRef
from guestface.domain.models.storage.photo import StoredPhoto
from guestface.domain.value_objects.recognition import ClusteringResult, SearchResult
from guestface.services.models import ServiceIndexFacesResponse

# Cosine similarity range accepted for thresholds
MIN_THRESHOLD = -1.0
MAX_THRESHOLD = 1.0


class PhotoRegistrationRequest(BaseModel):
    """Request model for registering a collection photo."""
    photo_id: str = Field(..., description="Photo identifier", min_length=1, max_length=255)
    url: str = Field(..., description="Display URL of the photo", min_length=1)
    is_hidden: bool = Field(False, description="Hide the photo from guest searches")


class PhotoResponse(BaseModel):
    """Response model for a registered photo."""
    photo_id: str
    collection_id: str
    url: str
    is_hidden: bool

    @classmethod
    def from_stored(cls, photo: StoredPhoto) -> "PhotoResponse":
        """Convert a stored photo to the API response model."""
        return cls(
            photo_id=photo.photo_id,
            collection_id=photo.collection_id,
            url=photo.url,
            is_hidden=photo.is_hidden,
        )


class DetectedFacePayload(BaseModel):
    """One face as produced by the embedding extractor."""
    embedding: List[float] = Field(..., description="Face embedding (128 components)")
    box_x: Optional[int] = Field(None, ge=0, description="Left edge of the face in pixels")
    box_y: Optional[int] = Field(None, ge=0, description="Top edge of the face in pixels")
    box_width: Optional[int] = Field(None, ge=0, description="Face width in pixels")
    box_height: Optional[int] = Field(None, ge=0, description="Face height in pixels")

    def to_detected_face(self) -> DetectedFace:
        """Convert the payload into a domain detected face."""
        box = None
        if None not in (self.box_x, self.box_y, self.box_width, self.box_height):
            box = BoundingBox(x=self.box_x, y=self.box_y, width=self.box_width, height=self.box_height)
        return DetectedFace(embedding=self.embedding, bounding_box=box)


class FaceIndexingRequest(BaseModel):
    """Request model for the photo faces endpoint."""
    faces: List[DetectedFacePayload] = Field(
        default_factory=list,
        description="Faces detected in the photo; empty when no face was found"
    )


class FaceRecord(BaseModel):
    """API model for a single stored face."""
    face_id: str = Field(..., description="Unique identifier for the face")
    bounding_box: Optional[BoundingBox] = Field(None, description="Face bounding box in pixels")


class FaceIndexingResponse(BaseModel):
    """Response model for the photo faces endpoint."""
    photo_id: str = Field(..., description="Photo the faces belong to")
    face_records: List[FaceRecord] = Field(..., description="Stored face records")
    skipped_faces: int = Field(0, description="Faces dropped because their embedding was malformed")
    already_indexed: bool = Field(False, description="True when the photo had been indexed before")

    @classmethod
    def from_service_response(cls, service_response: ServiceIndexFacesResponse) -> "FaceIndexingResponse":
        """Convert the service layer response to the API response model."""
        return cls(
            photo_id=service_response.photo_id,
            face_records=[
                FaceRecord(face_id=record.face_id, bounding_box=record.bounding_box)
                for record in service_response.face_records
            ],
            skipped_faces=service_response.skipped_faces,
            already_indexed=service_response.already_indexed,
        )


class PhotoDeletionResponse(BaseModel):
    """Response model for photo deletion."""
    photo_id: str
    deleted_faces: int


class FaceMatchingRequest(BaseModel):
    """Request model for the selfie search endpoint."""
    embedding: List[float] = Field(..., description="Query face embedding (128 components)")
    threshold: float = Field(
        default=settings.MATCH_SIMILARITY_THRESHOLD,
        description="Similarity a face must exceed to match",
        ge=MIN_THRESHOLD, le=MAX_THRESHOLD
    )
    max_matches: int = Field(
        default=settings.DEFAULT_MATCH_COUNT,
        ge=1,
        le=settings.MAX_MATCHES,
        description=f"Maximum number of photos to return (1-{settings.MAX_MATCHES})"
    )


class PhotoMatch(BaseModel):
    """API model representing a matched photo."""
    photo_id: str = Field(..., description="Matched photo identifier")
    url: Optional[str] = Field(None, description="Display URL of the photo")
    face_id: str = Field(..., description="Best-scoring face of the photo")
    similarity: float = Field(..., description="Cosine similarity with the query")


class FaceMatchingResponse(BaseModel):
    """Response model for the selfie search endpoint."""
    collection_id: str
    matches: List[PhotoMatch]

    @classmethod
    def from_service_response(cls, service_response: SearchResult) -> "FaceMatchingResponse":
        """Convert the service layer search result to the API response model."""
        return cls(
            collection_id=service_response.collection_id,
            matches=[
                PhotoMatch(
                    photo_id=match.photo_id,
                    url=match.photo_url,
                    face_id=match.face_id,
                    similarity=match.similarity,
                )
                for match in service_response.matches
            ],
        )


class Guest(BaseModel):
    """API model for one guest cluster."""
    id: str
    face_count: int
    photo_count: int
    sample_photos: List[PhotoRef]


class GuestsResponse(BaseModel):
    """Response model for the guests endpoint."""
    collection_id: str
    guests: List[Guest]
    face_count: int
    skipped_faces: int

    @classmethod
    def from_service_response(cls, service_response: ClusteringResult) -> "GuestsResponse":
        """Convert the clustering result to the API response model."""
        return cls(
            collection_id=service_response.collection_id,
            guests=[
                Guest(
                    id=cluster.id,
                    face_count=cluster.face_count,
                    photo_count=cluster.photo_count,
                    sample_photos=cluster.sample_photos,
                )
                for cluster in service_response.clusters
            ],
            face_count=service_response.face_count,
            skipped_faces=service_response.skipped_faces,
        )
