"""Shared fixtures for guest face tests."""
import math
from typing import Callable, List

import numpy as np
import pytest

from guestface.core.utils.vectors import EMBEDDING_DIM
from guestface.domain.models.storage.face import StoredFace
from guestface.infrastructure.database.face_store import SqlFaceStore
from guestface.infrastructure.database.session import (
    create_engine,
    create_session_factory,
    create_tables,
)


def basis(index: int) -> np.ndarray:
    """Unit vector along one axis of the embedding space."""
    vector = np.zeros(EMBEDDING_DIM)
    vector[index] = 1.0
    return vector


def toward(base: int, other: int, similarity: float) -> np.ndarray:
    """Unit vector whose cosine similarity with ``basis(base)`` is exactly ``similarity``."""
    return similarity * basis(base) + math.sqrt(1.0 - similarity ** 2) * basis(other)


@pytest.fixture
def embedding() -> Callable[..., np.ndarray]:
    """Factory for embeddings with a known similarity to a basis vector.

    ``embedding(3)`` is the basis vector 3; ``embedding(3, 0.8, other=9)`` has
    similarity 0.8 with basis vector 3.
    """
    def factory(base: int, similarity: float = 1.0, other: int = EMBEDDING_DIM - 1) -> np.ndarray:
        if similarity == 1.0:
            return basis(base)
        return toward(base, other, similarity)
    return factory


@pytest.fixture
def stored_face() -> Callable[..., StoredFace]:
    """Factory for raw stored faces."""
    def factory(face_id: str, photo_id: str, vector, collection_id: str = "event-1") -> StoredFace:
        embedding: List = vector.tolist() if isinstance(vector, np.ndarray) else vector
        return StoredFace(
            id=face_id,
            photo_id=photo_id,
            embedding=embedding,
            photo_url=f"https://cdn.example.com/{photo_id}.jpg",
            collection_id=collection_id,
        )
    return factory


@pytest.fixture
async def session_factory(tmp_path):
    """Session factory on a fresh SQLite database."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'faces.db'}")
    await create_tables(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def face_store(session_factory) -> SqlFaceStore:
    """SQL face store on a fresh SQLite database."""
    return SqlFaceStore(session_factory)
