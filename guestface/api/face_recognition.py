"""Face matching and guest clustering API endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from guestface.api.models.face import (
    MAX_THRESHOLD,
    MIN_THRESHOLD,
    FaceIndexingRequest,
    FaceIndexingResponse,
    FaceMatchingRequest,
    FaceMatchingResponse,
    GuestsResponse,
    PhotoDeletionResponse,
    PhotoRegistrationRequest,
    PhotoResponse,
)
from guestface.core.exceptions import (
    FaceStoreError,
    InvalidQueryError,
    PhotoNotFoundError,
)
from guestface.core.logging import get_logger
from guestface.infrastructure.dependencies import (
    get_face_indexing_service,
    get_face_matching_service,
    get_guest_clustering_service,
)
from guestface.services.clustering import GuestClusteringService
from guestface.services.face_indexing import FaceIndexingService
from guestface.services.face_matching import FaceMatchingService

logger = get_logger(__name__)
router = APIRouter(
    responses={
        400: {"description": "Invalid request"},
        500: {"description": "Internal server error"}
    }
)


@router.post(
    "/collections/{collection_id}/photos",
    response_model=PhotoResponse,
    summary="Register a photo",
    description="Registers a collection photo so the faces detected in it can be indexed.",
)
async def register_photo(
    collection_id: str,
    request: PhotoRegistrationRequest,
    service: FaceIndexingService = Depends(get_face_indexing_service)
) -> PhotoResponse:
    """Register a photo of a collection."""
    try:
        photo = await service.register_photo(
            collection_id=collection_id,
            photo_id=request.photo_id,
            url=request.url,
            is_hidden=request.is_hidden,
        )
        return PhotoResponse.from_stored(photo)

    except FaceStoreError as e:
        logger.error("Failed to register photo", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to store photo")


@router.post(
    "/photos/{photo_id}/faces",
    response_model=FaceIndexingResponse,
    summary="Index the faces of a photo",
    description="Stores the embeddings the face extractor produced for a registered photo.",
    responses={404: {"description": "Photo not found"}},
)
async def index_faces(
    photo_id: str,
    request: FaceIndexingRequest,
    service: FaceIndexingService = Depends(get_face_indexing_service)
) -> FaceIndexingResponse:
    """Index the faces detected in a photo.

    Raises:
        HTTPException: If the photo is unknown or storing fails
    """
    try:
        result = await service.index_faces(
            photo_id=photo_id,
            faces=[face.to_detected_face() for face in request.faces],
        )
        return FaceIndexingResponse.from_service_response(result)

    except PhotoNotFoundError as e:
        logger.warning("Photo not found", error=str(e), photo_id=photo_id)
        raise HTTPException(status_code=404, detail="Photo not found")
    except FaceStoreError as e:
        logger.error("Failed to store face embeddings", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to store face data")


@router.delete(
    "/photos/{photo_id}",
    response_model=PhotoDeletionResponse,
    summary="Delete a photo",
    description="Deletes a photo together with all of its stored faces.",
    responses={404: {"description": "Photo not found"}},
)
async def delete_photo(
    photo_id: str,
    service: FaceIndexingService = Depends(get_face_indexing_service)
) -> PhotoDeletionResponse:
    """Delete a photo and its faces."""
    try:
        deleted = await service.delete_photo(photo_id)
        return PhotoDeletionResponse(photo_id=photo_id, deleted_faces=deleted)

    except PhotoNotFoundError as e:
        logger.warning("Photo not found", error=str(e), photo_id=photo_id)
        raise HTTPException(status_code=404, detail="Photo not found")
    except FaceStoreError as e:
        logger.error("Failed to delete photo", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to delete photo")


@router.get(
    "/collections/{collection_id}/guests",
    response_model=GuestsResponse,
    summary="Group a collection's faces into guests",
    description="Clusters every stored face of the collection into distinct guests, largest first.",
)
async def list_guests(
    collection_id: str,
    threshold: Optional[float] = Query(None, ge=MIN_THRESHOLD, le=MAX_THRESHOLD),
    order_by_id: bool = Query(False, description="Visit faces by id for a reproducible grouping"),
    service: GuestClusteringService = Depends(get_guest_clustering_service)
) -> GuestsResponse:
    """Cluster the faces of a collection.

    Raises:
        HTTPException: If the faces cannot be read
    """
    try:
        result = await service.cluster_collection(
            collection_id,
            threshold=threshold,
            order_by_id=order_by_id,
        )
        return GuestsResponse.from_service_response(result)

    except FaceStoreError as e:
        logger.error("Failed to read collection faces", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to read face data")


@router.post(
    "/collections/{collection_id}/match",
    response_model=FaceMatchingResponse,
    summary="Find a guest's photos",
    description="Finds the photos of a collection showing the person of a selfie embedding.",
    responses={
        200: {
            "description": "Photos successfully matched",
            "content": {
                "application/json": {
                    "example": {
                        "collection_id": "wedding-2026",
                        "matches": [
                            {
                                "photo_id": "photo-17",
                                "url": "https://cdn.example.com/photo-17.jpg",
                                "face_id": "550e8400-e29b-41d4-a716-446655440001",
                                "similarity": 0.91,
                            }
                        ],
                    }
                }
            },
        },
    },
)
async def match_faces(
    collection_id: str,
    request: FaceMatchingRequest,
    service: FaceMatchingService = Depends(get_face_matching_service)
) -> FaceMatchingResponse:
    """Match a selfie embedding against a collection.

    The caller must only pass collections the guest is allowed to search.

    Raises:
        HTTPException: If the query is invalid or the faces cannot be read
    """
    try:
        result = await service.search_collection(
            query=request.embedding,
            collection_id=collection_id,
            threshold=request.threshold,
            max_matches=request.max_matches,
        )
        return FaceMatchingResponse.from_service_response(result)

    except InvalidQueryError as e:
        logger.warning("Rejected invalid match query", error=str(e), details=e.details)
        raise HTTPException(status_code=400, detail=str(e))
    except FaceStoreError as e:
        logger.error("Failed to search face embeddings", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to read face data")
