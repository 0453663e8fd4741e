"""Tests for the SQL face store."""
import numpy as np
import pytest

from guestface.core.exceptions import PhotoNotFoundError
from guestface.domain.entities.face import BoundingBox, FaceRecord
from guestface.infrastructure.database.models import PhotoFace
from guestface.services.clustering import GuestClusteringService


def make_record(face_id, photo_id, vector, collection_id="event-1", bounding_box=None):
    return FaceRecord(
        face_id=face_id,
        photo_id=photo_id,
        photo_url=f"https://cdn.example.com/{photo_id}.jpg",
        collection_id=collection_id,
        embedding=vector,
        bounding_box=bounding_box,
    )


async def test_register_photo_is_idempotent(face_store):
    first = await face_store.register_photo("event-1", "p1", "https://cdn.example.com/p1.jpg")
    second = await face_store.register_photo("event-1", "p1", "https://cdn.example.com/other.jpg")

    assert first.photo_id == second.photo_id == "p1"
    assert second.url == "https://cdn.example.com/p1.jpg"
    assert second.collection_id == "event-1"
    assert second.is_hidden is False


async def test_get_unknown_photo(face_store):
    assert await face_store.get_photo("missing") is None


async def test_round_trip_preserves_embedding_and_box(face_store):
    vector = np.random.default_rng(3).normal(size=128)
    box = BoundingBox(x=1, y=2, width=30, height=40)
    await face_store.register_photo("event-1", "p1", "https://cdn.example.com/p1.jpg")
    await face_store.store_faces("p1", [make_record("f1", "p1", vector, bounding_box=box)])

    (stored,) = await face_store.list_faces("event-1")
    assert stored.id == "f1"
    assert stored.photo_url == "https://cdn.example.com/p1.jpg"
    assert isinstance(stored.embedding, str)

    record = FaceRecord.from_stored(stored)
    assert record.embedding.tolist() == vector.tolist()
    assert record.bounding_box == box


async def test_list_faces_filters(face_store, embedding):
    await face_store.register_photo("event-1", "p1", "https://cdn.example.com/p1.jpg")
    await face_store.register_photo("event-1", "hidden", "https://cdn.example.com/h.jpg", is_hidden=True)
    await face_store.register_photo("event-2", "q1", "https://cdn.example.com/q1.jpg")
    await face_store.store_faces("p1", [
        make_record("f1", "p1", embedding(0)),
        make_record("f2", "p1", embedding(1)),
    ])
    await face_store.store_faces("hidden", [make_record("h1", "hidden", embedding(2))])
    await face_store.store_faces("q1", [make_record("g1", "q1", embedding(3), collection_id="event-2")])

    all_faces = await face_store.list_faces("event-1")
    assert sorted(face.id for face in all_faces) == ["f1", "f2", "h1"]
    assert all(face.collection_id == "event-1" for face in all_faces)

    visible = await face_store.list_faces("event-1", include_hidden=False)
    assert sorted(face.id for face in visible) == ["f1", "f2"]

    assert len(await face_store.list_faces("event-1", limit=2)) == 2

    by_photo = await face_store.list_faces("event-1", photo_id="p1")
    assert [face.id for face in by_photo] == ["f1", "f2"]

    assert await face_store.list_faces("event-3") == []


async def test_store_faces_for_unknown_photo(face_store, embedding):
    with pytest.raises(PhotoNotFoundError):
        await face_store.store_faces("missing", [make_record("f1", "missing", embedding(0))])


async def test_delete_photo_returns_face_count(face_store, embedding):
    await face_store.register_photo("event-1", "p1", "https://cdn.example.com/p1.jpg")
    await face_store.store_faces("p1", [make_record("f1", "p1", embedding(0))])

    assert await face_store.delete_photo("p1") == 1
    assert await face_store.list_faces("event-1") == []

    with pytest.raises(PhotoNotFoundError):
        await face_store.delete_photo("p1")


async def test_malformed_rows_are_returned_raw(face_store, session_factory, embedding):
    await face_store.register_photo("event-1", "p1", "https://cdn.example.com/p1.jpg")
    await face_store.store_faces("p1", [make_record("good", "p1", embedding(0))])
    async with session_factory() as session:
        session.add(PhotoFace(id="broken", photo_id="p1", position=1, embedding="[1.0, 2.0]"))
        await session.commit()

    faces = await face_store.list_faces("event-1")
    assert [face.id for face in faces] == ["good", "broken"]
    assert faces[1].embedding == "[1.0, 2.0]"

    result = await GuestClusteringService(face_store).cluster_collection("event-1")
    assert result.skipped_faces == 1
    assert result.face_count == 2
    assert [cluster.face_ids for cluster in result.clusters] == [["good"]]
