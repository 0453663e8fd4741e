"""Database repositories for the guest face service."""
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from guestface.infrastructure.database.models import Collection, Photo, PhotoFace


class CollectionRepository:
    """Repository for collection operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            session: Database session
        """
        self._session = session

    async def get(self, collection_id: str) -> Optional[Collection]:
        """Get a collection by its identifier."""
        return await self._session.get(Collection, collection_id)

    async def get_or_create(self, collection_id: str) -> Collection:
        """Get collection by identifier or create it if it does not exist.

        Args:
            collection_id: External system collection identifier

        Returns:
            Collection: Found or created collection
        """
        collection = await self.get(collection_id)
        if collection is None:
            collection = Collection(id=collection_id)
            self._session.add(collection)
            await self._session.flush()
        return collection


class PhotoRepository:
    """Repository for photo operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            session: Database session
        """
        self._session = session

    async def get(self, photo_id: str) -> Optional[Photo]:
        """Get a photo by its identifier."""
        return await self._session.get(Photo, photo_id)

    async def create(
        self,
        photo_id: str,
        collection_id: str,
        url: str,
        is_hidden: bool = False
    ) -> Photo:
        """Create a new photo record.

        Args:
            photo_id: External system photo identifier
            collection_id: Collection the photo belongs to
            url: Display URL of the photo
            is_hidden: Whether the photo is hidden from guest searches

        Returns:
            Photo: Created photo record
        """
        photo = Photo(
            id=photo_id,
            collection_id=collection_id,
            url=url,
            is_hidden=is_hidden
        )
        self._session.add(photo)
        await self._session.flush()
        return photo

    async def delete(self, photo_id: str) -> Optional[int]:
        """Delete a photo and its faces.

        Args:
            photo_id: Photo identifier

        Returns:
            Number of faces deleted with the photo, or None if the photo does not exist
        """
        stmt = (
            select(Photo)
            .where(Photo.id == photo_id)
            .options(selectinload(Photo.faces))
        )
        result = await self._session.execute(stmt)
        photo = result.scalar_one_or_none()
        if photo is None:
            return None

        faces_count = len(photo.faces)
        # ORM cascade removes the faces even where the database does not enforce foreign keys
        await self._session.delete(photo)
        await self._session.flush()
        return faces_count


class FaceRepository:
    """Repository for face operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            session: Database session
        """
        self._session = session

    async def create(
        self,
        face_id: str,
        photo_id: str,
        position: int,
        embedding: str,
        box_x: Optional[int] = None,
        box_y: Optional[int] = None,
        box_width: Optional[int] = None,
        box_height: Optional[int] = None
    ) -> PhotoFace:
        """Create a new face record.

        Args:
            face_id: Face identifier
            photo_id: Owning photo identifier
            position: Order of the face within its photo
            embedding: Serialized face embedding
            box_x: Bounding box left edge
            box_y: Bounding box top edge
            box_width: Bounding box width
            box_height: Bounding box height

        Returns:
            PhotoFace: Created face record
        """
        face = PhotoFace(
            id=face_id,
            photo_id=photo_id,
            position=position,
            embedding=embedding,
            box_x=box_x,
            box_y=box_y,
            box_width=box_width,
            box_height=box_height
        )
        self._session.add(face)
        return face

    async def list_by_collection(
        self,
        collection_id: str,
        include_hidden: bool = True,
        limit: Optional[int] = None,
        photo_id: Optional[str] = None
    ) -> List[Tuple[PhotoFace, Photo]]:
        """List the faces of a collection with their photos, in insertion order.

        Args:
            collection_id: Collection identifier
            include_hidden: Whether faces of hidden photos are included
            limit: Maximum number of faces to return
            photo_id: Optional filter on a single photo

        Returns:
            List of (face, photo) pairs
        """
        stmt = (
            select(PhotoFace, Photo)
            .join(Photo, PhotoFace.photo_id == Photo.id)
            .where(Photo.collection_id == collection_id)
            .order_by(Photo.created_at, Photo.id, PhotoFace.position)
        )
        if not include_hidden:
            stmt = stmt.where(Photo.is_hidden.is_(False))
        if photo_id is not None:
            stmt = stmt.where(Photo.id == photo_id)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self._session.execute(stmt)
        return [(face, photo) for face, photo in result.all()]
