"""SQL implementation of the face store."""
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from guestface.core.exceptions import FaceStoreError, PhotoNotFoundError
from guestface.core.logging import get_logger
from guestface.core.utils.vectors import serialize_embedding
from guestface.domain.entities.face import FaceRecord
from guestface.domain.interfaces.storage.face_store import FaceStore
from guestface.domain.models.storage.face import StoredFace
from guestface.domain.models.storage.photo import StoredPhoto
from guestface.infrastructure.database.models import Photo, PhotoFace
from guestface.infrastructure.database.session import get_db_session
from guestface.infrastructure.database.unit_of_work import UnitOfWork

logger = get_logger(__name__)


def _to_stored_photo(photo: Photo) -> StoredPhoto:
    return StoredPhoto(
        photo_id=photo.id,
        collection_id=photo.collection_id,
        url=photo.url,
        is_hidden=photo.is_hidden,
        created_at=photo.created_at,
    )


def _to_stored_face(face: PhotoFace, photo: Photo) -> StoredFace:
    return StoredFace(
        id=face.id,
        photo_id=face.photo_id,
        embedding=face.embedding,
        photo_url=photo.url,
        collection_id=photo.collection_id,
        box_x=face.box_x,
        box_y=face.box_y,
        box_width=face.box_width,
        box_height=face.box_height,
    )


class SqlFaceStore(FaceStore):
    """Face store backed by a relational database through async SQLAlchemy.

    Embeddings are stored in their bracketed text form and returned raw; callers
    normalize them before use.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: Factory creating sessions on the face store database
        """
        self._session_factory = session_factory

    async def register_photo(
        self,
        collection_id: str,
        photo_id: str,
        url: str,
        is_hidden: bool = False,
    ) -> StoredPhoto:
        """Register a photo, creating its collection on first use."""
        try:
            async with get_db_session(self._session_factory) as session, UnitOfWork(session) as uow:
                photo = await uow.photos.get(photo_id)
                if photo is None:
                    await uow.collections.get_or_create(collection_id)
                    photo = await uow.photos.create(
                        photo_id=photo_id,
                        collection_id=collection_id,
                        url=url,
                        is_hidden=is_hidden,
                    )
                    logger.debug("Stored photo", photo_id=photo_id, collection_id=collection_id)
                return _to_stored_photo(photo)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to register photo",
                error=str(e),
                photo_id=photo_id,
                collection_id=collection_id,
                exc_info=True
            )
            raise FaceStoreError(f"Failed to register photo: {str(e)}")

    async def get_photo(self, photo_id: str) -> Optional[StoredPhoto]:
        """Look up a registered photo."""
        try:
            async with get_db_session(self._session_factory) as session:
                photo = await UnitOfWork(session).photos.get(photo_id)
                return _to_stored_photo(photo) if photo is not None else None
        except SQLAlchemyError as e:
            logger.error("Failed to load photo", error=str(e), photo_id=photo_id, exc_info=True)
            raise FaceStoreError(f"Failed to load photo: {str(e)}")

    async def store_faces(self, photo_id: str, faces: List[FaceRecord]) -> None:
        """Persist face records of a registered photo in one transaction."""
        try:
            async with get_db_session(self._session_factory) as session, UnitOfWork(session) as uow:
                photo = await uow.photos.get(photo_id)
                if photo is None:
                    raise PhotoNotFoundError(f"Photo not found: {photo_id}", details={"photo_id": photo_id})

                for position, face in enumerate(faces):
                    box = face.bounding_box
                    await uow.faces.create(
                        face_id=face.face_id,
                        photo_id=photo_id,
                        position=position,
                        embedding=serialize_embedding(face.embedding),
                        box_x=box.x if box else None,
                        box_y=box.y if box else None,
                        box_width=box.width if box else None,
                        box_height=box.height if box else None,
                    )

            logger.debug("Stored face embeddings", photo_id=photo_id, faces_count=len(faces))
        except SQLAlchemyError as e:
            logger.error(
                "Failed to store face embeddings",
                error=str(e),
                photo_id=photo_id,
                exc_info=True
            )
            raise FaceStoreError(f"Failed to store face embeddings: {str(e)}")

    async def list_faces(
        self,
        collection_id: str,
        include_hidden: bool = True,
        limit: Optional[int] = None,
        photo_id: Optional[str] = None,
    ) -> List[StoredFace]:
        """List the raw stored faces of one collection."""
        try:
            async with get_db_session(self._session_factory) as session:
                rows = await UnitOfWork(session).faces.list_by_collection(
                    collection_id,
                    include_hidden=include_hidden,
                    limit=limit,
                    photo_id=photo_id,
                )
                return [_to_stored_face(face, photo) for face, photo in rows]
        except SQLAlchemyError as e:
            logger.error(
                "Failed to list faces",
                error=str(e),
                collection_id=collection_id,
                exc_info=True
            )
            raise FaceStoreError(f"Failed to list faces: {str(e)}")

    async def delete_photo(self, photo_id: str) -> int:
        """Delete a photo and all of its faces."""
        try:
            async with get_db_session(self._session_factory) as session, UnitOfWork(session) as uow:
                deleted = await uow.photos.delete(photo_id)
                if deleted is None:
                    raise PhotoNotFoundError(f"Photo not found: {photo_id}", details={"photo_id": photo_id})
                return deleted
        except SQLAlchemyError as e:
            logger.error("Failed to delete photo", error=str(e), photo_id=photo_id, exc_info=True)
            raise FaceStoreError(f"Failed to delete photo: {str(e)}")
