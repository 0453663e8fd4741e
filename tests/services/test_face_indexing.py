"""Tests for face indexing."""
from unittest.mock import AsyncMock

import pytest

from guestface.core.exceptions import FaceStoreError, PhotoNotFoundError
from guestface.core.utils.vectors import EMBEDDING_DIM
from guestface.domain.entities.face import BoundingBox, DetectedFace
from guestface.domain.interfaces.storage.face_store import FaceStore
from guestface.domain.models.storage.photo import StoredPhoto
from guestface.services.face_indexing import FaceIndexingService


@pytest.fixture
async def indexing(face_store):
    service = FaceIndexingService(face_store)
    await service.register_photo("event-1", "p1", "https://cdn.example.com/p1.jpg")
    return service


async def test_index_faces_stores_one_record_per_face(indexing, face_store, embedding):
    box = BoundingBox(x=10, y=20, width=64, height=80)
    result = await indexing.index_faces("p1", [
        DetectedFace(embedding=embedding(0).tolist(), bounding_box=box),
        DetectedFace(embedding=embedding(1).tolist()),
    ])

    assert result.photo_id == "p1"
    assert len(result.face_records) == 2
    assert result.skipped_faces == 0
    assert result.already_indexed is False
    assert result.face_records[0].bounding_box == box
    assert result.face_records[1].bounding_box is None
    assert len({record.face_id for record in result.face_records}) == 2

    stored = await face_store.list_faces("event-1")
    assert [face.id for face in stored] == [record.face_id for record in result.face_records]


async def test_malformed_faces_are_skipped(indexing, face_store, embedding):
    result = await indexing.index_faces("p1", [
        DetectedFace(embedding=[0.1] * (EMBEDDING_DIM - 1)),
        DetectedFace(embedding=embedding(2).tolist()),
        DetectedFace(embedding="garbage"),
    ])

    assert len(result.face_records) == 1
    assert result.skipped_faces == 2
    assert len(await face_store.list_faces("event-1")) == 1


async def test_photo_without_faces_is_valid(indexing, face_store):
    result = await indexing.index_faces("p1", [])
    assert result.face_records == []
    assert result.skipped_faces == 0
    assert await face_store.list_faces("event-1") == []


async def test_indexing_twice_returns_existing_records(indexing, face_store, embedding):
    first = await indexing.index_faces("p1", [DetectedFace(embedding=embedding(0).tolist())])
    second = await indexing.index_faces("p1", [
        DetectedFace(embedding=embedding(3).tolist()),
        DetectedFace(embedding=embedding(4).tolist()),
    ])

    assert second.already_indexed is True
    assert [record.face_id for record in second.face_records] == [
        record.face_id for record in first.face_records
    ]
    assert len(await face_store.list_faces("event-1")) == 1


async def test_unknown_photo_is_rejected(indexing, embedding):
    with pytest.raises(PhotoNotFoundError) as exc_info:
        await indexing.index_faces("missing", [DetectedFace(embedding=embedding(0).tolist())])
    assert exc_info.value.details == {"photo_id": "missing"}


async def test_delete_photo_removes_its_faces(indexing, face_store, embedding):
    await indexing.register_photo("event-1", "p2", "https://cdn.example.com/p2.jpg")
    await indexing.index_faces("p1", [
        DetectedFace(embedding=embedding(0).tolist()),
        DetectedFace(embedding=embedding(1).tolist()),
    ])
    await indexing.index_faces("p2", [DetectedFace(embedding=embedding(2).tolist())])

    assert await indexing.delete_photo("p1") == 2

    remaining = await face_store.list_faces("event-1")
    assert [face.photo_id for face in remaining] == ["p2"]
    assert await face_store.get_photo("p1") is None


async def test_delete_unknown_photo_is_rejected(indexing):
    with pytest.raises(PhotoNotFoundError):
        await indexing.delete_photo("missing")


async def test_unexpected_store_failure_is_wrapped(embedding):
    store = AsyncMock(spec=FaceStore)
    store.get_photo.return_value = StoredPhoto(
        photo_id="p1", collection_id="event-1", url="https://cdn.example.com/p1.jpg"
    )
    store.list_faces.return_value = []
    store.store_faces.side_effect = RuntimeError("disk full")

    with pytest.raises(FaceStoreError, match="disk full"):
        await FaceIndexingService(store).index_faces("p1", [DetectedFace(embedding=embedding(0).tolist())])
