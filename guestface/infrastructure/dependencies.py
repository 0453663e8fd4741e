"""FastAPI dependency providers."""
from typing import AsyncGenerator

from fastapi import Depends

from guestface.core.container import ServiceContainer, container
from guestface.core.exceptions import ServiceNotInitializedError
from guestface.domain.interfaces.storage.face_store import FaceStore
from guestface.services.clustering import GuestClusteringService
from guestface.services.face_indexing import FaceIndexingService
from guestface.services.face_matching import FaceMatchingService


async def get_container() -> ServiceContainer:
    """Dependency provider for the global ServiceContainer instance."""
    if not container.is_initialized:
        try:
            await container.initialize()
        except Exception as e:
            raise ServiceNotInitializedError(f"Service container could not be initialized: {e}")
    return container


async def get_face_store(
    cont: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[FaceStore, None]:
    """Provide the initialized face store.

    Yields:
        FaceStore: Initialized face store

    Raises:
        ServiceNotInitializedError: If the face store is not initialized
    """
    if cont.face_store is None:
        raise ServiceNotInitializedError("Face store not initialized")
    yield cont.face_store


async def get_face_indexing_service(
    face_store: FaceStore = Depends(get_face_store),
) -> AsyncGenerator[FaceIndexingService, None]:
    """Provide the face indexing service."""
    yield FaceIndexingService(face_store=face_store)


async def get_face_matching_service(
    face_store: FaceStore = Depends(get_face_store),
) -> AsyncGenerator[FaceMatchingService, None]:
    """Provide the face matching service.

    Args:
        face_store: Face store instance

    Yields:
        FaceMatchingService: Initialized matching service
    """
    yield FaceMatchingService(face_store=face_store)


async def get_guest_clustering_service(
    face_store: FaceStore = Depends(get_face_store),
) -> AsyncGenerator[GuestClusteringService, None]:
    """Provide the guest clustering service."""
    yield GuestClusteringService(face_store=face_store)
