"""Service container for dependency injection."""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from guestface.core.config import settings
from guestface.core.logging import get_logger
from guestface.domain.interfaces.storage.face_store import FaceStore
from guestface.infrastructure.database.face_store import SqlFaceStore
from guestface.infrastructure.database.session import (
    create_engine,
    create_session_factory,
    create_tables,
)
from guestface.services.clustering import GuestClusteringService
from guestface.services.face_indexing import FaceIndexingService
from guestface.services.face_matching import FaceMatchingService

logger = get_logger(__name__)


class ServiceContainer:
    """Container for application services.

    This container manages the lifecycle and dependencies of all services in the application.
    It ensures proper initialization order and provides a single source of truth for service instances.

    Example:
        ```python
        container = ServiceContainer()
        await container.initialize()

        face_matching = container.face_matching_service
        guest_clustering = container.guest_clustering_service
        ```
    """

    def __init__(self, database_url: Optional[str] = None) -> None:
        """Initialize empty container.

        Args:
            database_url: Face store database, defaults to ``settings.DATABASE_URL``
        """
        self.database_url = database_url or settings.DATABASE_URL
        self.engine: Optional[AsyncEngine] = None

        # Core services
        self.face_store: Optional[FaceStore] = None

        # Domain services (depend on interfaces)
        self.face_indexing_service: Optional[FaceIndexingService] = None
        self.face_matching_service: Optional[FaceMatchingService] = None
        self.guest_clustering_service: Optional[GuestClusteringService] = None

    @property
    def is_initialized(self) -> bool:
        """Whether the services have been created."""
        return self.face_store is not None

    async def initialize(self) -> None:
        """Initialize all services in the correct order."""
        self.engine = create_engine(self.database_url)
        if settings.DATABASE_CREATE_TABLES:
            await create_tables(self.engine)

        self.face_store = SqlFaceStore(create_session_factory(self.engine))
        self.face_indexing_service = FaceIndexingService(face_store=self.face_store)
        self.face_matching_service = FaceMatchingService(face_store=self.face_store)
        self.guest_clustering_service = GuestClusteringService(face_store=self.face_store)
        logger.info("Service container initialized")

    async def cleanup(self) -> None:
        """Cleanup all services in reverse order of initialization."""
        self.guest_clustering_service = None
        self.face_matching_service = None
        self.face_indexing_service = None
        self.face_store = None

        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None


# Global container instance
container = ServiceContainer()
