"""Face store interface for face embeddings and their photos."""
from abc import ABC, abstractmethod
from typing import List, Optional

from ...entities.face import FaceRecord
from ...models.storage.face import StoredFace
from ...models.storage.photo import StoredPhoto


class FaceStore(ABC):
    """Interface for persisting face embeddings and reading them back by collection."""

    @abstractmethod
    async def register_photo(
        self,
        collection_id: str,
        photo_id: str,
        url: str,
        is_hidden: bool = False,
    ) -> StoredPhoto:
        """
        Register a photo so faces can be stored for it.

        Registering an existing photo again returns the stored photo unchanged.

        Args:
            collection_id: Collection (event) the photo belongs to
            photo_id: External system photo identifier
            url: Display URL of the photo
            is_hidden: Whether the photo is hidden from guest searches

        Raises:
            FaceStoreError: If the operation fails
        """
        pass

    @abstractmethod
    async def get_photo(self, photo_id: str) -> Optional[StoredPhoto]:
        """
        Look up a registered photo.

        Returns:
            The stored photo, or None if it is not registered

        Raises:
            FaceStoreError: If the operation fails
        """
        pass

    @abstractmethod
    async def store_faces(
        self,
        photo_id: str,
        faces: List[FaceRecord],
    ) -> None:
        """
        Persist validated face records for a registered photo.

        Args:
            photo_id: Owning photo identifier
            faces: Face records, all owned by ``photo_id``

        Raises:
            PhotoNotFoundError: If the photo is not registered
            FaceStoreError: If the operation fails
        """
        pass

    @abstractmethod
    async def list_faces(
        self,
        collection_id: str,
        include_hidden: bool = True,
        limit: Optional[int] = None,
        photo_id: Optional[str] = None,
    ) -> List[StoredFace]:
        """
        List the raw stored faces of a collection in insertion order.

        Args:
            collection_id: Collection scope; faces outside it are never returned
            include_hidden: Whether faces of hidden photos are included
            limit: Maximum number of faces to return (None for no limit)
            photo_id: Optional filter on a single photo

        Raises:
            FaceStoreError: If the operation fails
        """
        pass

    @abstractmethod
    async def delete_photo(self, photo_id: str) -> int:
        """
        Delete a photo and, by cascade, all of its faces.

        Returns:
            Number of faces deleted with the photo

        Raises:
            PhotoNotFoundError: If the photo is not registered
            FaceStoreError: If the operation fails
        """
        pass
