"""Face indexing service for storing the faces detected in event photos."""
import uuid
from typing import List

from guestface.core.exceptions import (
    FaceStoreError,
    MalformedEmbeddingError,
    PhotoNotFoundError,
)
from guestface.core.logging import get_logger
from guestface.core.utils.vectors import normalize_embedding
from guestface.domain.entities.face import DetectedFace, FaceRecord
from guestface.domain.interfaces.storage.face_store import FaceStore
from guestface.domain.models.storage.photo import StoredPhoto
from guestface.services.models import ServiceFaceRecord, ServiceIndexFacesResponse
from guestface.services.normalization import normalize_faces

logger = get_logger(__name__)


class FaceIndexingService:
    """Service for indexing the faces of photos.

    Face detection and embedding extraction happen upstream; this service takes
    the extractor's output for one photo, validates it and stores one immutable
    face record per usable face.

    Example:
        ```python
        service = FaceIndexingService(face_store)
        await service.register_photo("wedding-2026", "photo-1", "https://cdn/p1.jpg")
        result = await service.index_faces(
            photo_id="photo-1",
            faces=[DetectedFace(embedding=descriptor, bounding_box=box)],
        )
        ```
    """

    def __init__(self, face_store: FaceStore) -> None:
        """Initialize the face indexing service.

        Args:
            face_store: Store the face records are written to
        """
        self._face_store = face_store

    async def register_photo(
        self,
        collection_id: str,
        photo_id: str,
        url: str,
        is_hidden: bool = False,
    ) -> StoredPhoto:
        """Register a photo of a collection so its faces can be indexed.

        Raises:
            FaceStoreError: If the photo cannot be stored
        """
        photo = await self._face_store.register_photo(
            collection_id=collection_id,
            photo_id=photo_id,
            url=url,
            is_hidden=is_hidden,
        )
        logger.info("Registered photo", collection_id=collection_id, photo_id=photo_id)
        return photo

    async def index_faces(
        self,
        photo_id: str,
        faces: List[DetectedFace],
    ) -> ServiceIndexFacesResponse:
        """Store the faces detected in a photo.

        If the photo already has stored faces, returns the existing face records
        without storing anything, so processing a photo twice is harmless.
        A photo with no detected faces is a valid outcome.

        Args:
            photo_id: Registered photo the faces were detected in
            faces: Extractor output, one entry per detected face

        Returns:
            ServiceIndexFacesResponse with the stored face records

        Raises:
            PhotoNotFoundError: If the photo is not registered
            FaceStoreError: If storing the faces fails
        """
        photo = await self._face_store.get_photo(photo_id)
        if photo is None:
            raise PhotoNotFoundError(f"Photo not found: {photo_id}", details={"photo_id": photo_id})

        existing = await self._face_store.list_faces(photo.collection_id, photo_id=photo_id)
        if existing:
            records, _ = normalize_faces(existing)
            logger.info(
                "Photo already indexed, returning existing records",
                photo_id=photo_id,
                collection_id=photo.collection_id,
                faces_count=len(records),
            )
            return ServiceIndexFacesResponse(
                photo_id=photo_id,
                face_records=[ServiceFaceRecord.from_face(record) for record in records],
                already_indexed=True,
            )

        records: List[FaceRecord] = []
        skipped = 0
        for index, face in enumerate(faces):
            try:
                embedding = normalize_embedding(face.embedding)
            except MalformedEmbeddingError as e:
                skipped += 1
                logger.warning(
                    "Skipping detected face with malformed embedding",
                    photo_id=photo_id,
                    face_index=index,
                    error=str(e),
                    details=e.details,
                )
                continue

            records.append(FaceRecord(
                face_id=str(uuid.uuid4()),
                photo_id=photo_id,
                photo_url=photo.url,
                collection_id=photo.collection_id,
                embedding=embedding,
                bounding_box=face.bounding_box,
            ))

        if not records:
            logger.warning(
                "No usable faces for photo",
                photo_id=photo_id,
                detected_count=len(faces),
                skipped_count=skipped,
            )
            return ServiceIndexFacesResponse(photo_id=photo_id, face_records=[], skipped_faces=skipped)

        try:
            await self._face_store.store_faces(photo_id, records)
        except (PhotoNotFoundError, FaceStoreError):
            raise
        except Exception as e:
            logger.error(
                "Unexpected error during face indexing",
                error=str(e),
                photo_id=photo_id,
                exc_info=True,
            )
            raise FaceStoreError(f"Failed to index faces: {str(e)}")

        logger.info(
            "Successfully indexed faces",
            photo_id=photo_id,
            collection_id=photo.collection_id,
            faces_count=len(records),
            skipped_count=skipped,
        )
        return ServiceIndexFacesResponse(
            photo_id=photo_id,
            face_records=[ServiceFaceRecord.from_face(record) for record in records],
            skipped_faces=skipped,
        )

    async def delete_photo(self, photo_id: str) -> int:
        """Delete a photo together with all of its faces.

        Returns:
            Number of faces removed

        Raises:
            PhotoNotFoundError: If the photo is not registered
            FaceStoreError: If the deletion fails
        """
        deleted = await self._face_store.delete_photo(photo_id)
        logger.info("Deleted photo", photo_id=photo_id, faces_count=deleted)
        return deleted
