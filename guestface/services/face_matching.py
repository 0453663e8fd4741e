"""Face matching service for finding a guest's photos in a collection."""
import asyncio
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from guestface.core.config import settings
from guestface.core.exceptions import InvalidQueryError, MalformedEmbeddingError
from guestface.core.logging import get_logger
from guestface.core.utils.vectors import RawEmbedding, cosine_similarities, normalize_embedding
from guestface.domain.entities.face import FaceRecord
from guestface.domain.interfaces.storage.face_store import FaceStore
from guestface.domain.models.storage.face import StoredFace
from guestface.domain.value_objects.recognition import PhotoMatch, SearchResult
from guestface.services.normalization import normalize_faces

logger = get_logger(__name__)


def validate_query(query: RawEmbedding) -> np.ndarray:
    """Validate a caller-supplied query embedding.

    Raises:
        InvalidQueryError: If the query is not exactly 128 finite numbers
    """
    try:
        return normalize_embedding(query)
    except MalformedEmbeddingError as e:
        raise InvalidQueryError(f"Invalid query embedding: {e}", details=e.details)


def match_faces(
    query: RawEmbedding,
    candidates: Sequence[Union[StoredFace, FaceRecord]],
    collection_id: str,
    threshold: Optional[float] = None,
    limit: Optional[int] = None,
) -> List[PhotoMatch]:
    """Find the photos of a collection whose faces resemble the query.

    Faces are scored one by one, so a photo matches through any of its faces.
    Each photo is reported once, with its best-scoring face.

    Args:
        query: Query embedding, typically from a selfie
        candidates: Stored faces already scoped to the collection by the caller.
            Only candidates whose collection id equals ``collection_id`` are
            scored, so a candidate without a collection never matches.
            Malformed embeddings are skipped.
        collection_id: Collection being searched
        threshold: Similarity a face must exceed to match, defaults to
            ``settings.MATCH_SIMILARITY_THRESHOLD``
        limit: Maximum number of photos to return, defaults to
            ``settings.DEFAULT_MATCH_COUNT``

    Returns:
        Matched photos sorted by similarity, best first, at most ``limit`` long.
        An empty collection gives an empty list.

    Raises:
        InvalidQueryError: If the query embedding or the limit is invalid
    """
    threshold = settings.MATCH_SIMILARITY_THRESHOLD if threshold is None else threshold
    limit = settings.DEFAULT_MATCH_COUNT if limit is None else limit

    query_vector = validate_query(query)
    if limit < 0:
        raise InvalidQueryError("Match limit must not be negative", details={"limit": limit})

    in_scope = [candidate for candidate in candidates if candidate.collection_id == collection_id]
    records, dropped = normalize_faces(in_scope)

    best_by_photo: Dict[str, PhotoMatch] = {}
    if records:
        scores = cosine_similarities(query_vector, np.stack([record.embedding for record in records]))
        for record, score in zip(records, scores):
            similarity = float(score)
            if similarity <= threshold:
                continue
            current = best_by_photo.get(record.photo_id)
            if current is None or similarity > current.similarity:
                best_by_photo[record.photo_id] = PhotoMatch(
                    photo_id=record.photo_id,
                    photo_url=record.photo_url,
                    face_id=record.face_id,
                    similarity=similarity,
                )

    matches = sorted(best_by_photo.values(), key=lambda match: match.similarity, reverse=True)

    logger.debug(
        "Scored candidate faces",
        collection_id=collection_id,
        candidates_count=len(in_scope),
        dropped_count=dropped,
        matched_photos=len(matches),
        threshold=threshold,
    )
    return matches[:limit]


class FaceMatchingService:
    """Service for matching a guest's selfie against the faces of a collection.

    The caller is responsible for deciding which collection the guest may search;
    this service only applies that scope.

    Example:
        ```python
        matcher = FaceMatchingService(face_store)
        result = await matcher.search_collection(
            query=selfie_embedding,
            collection_id="wedding-2026",
            threshold=0.4,
            max_matches=50,
        )
        ```
    """

    def __init__(self, face_store: FaceStore) -> None:
        """Initialize the face matching service.

        Args:
            face_store: Store the candidate faces are read from
        """
        self.face_store = face_store

    async def search_collection(
        self,
        query: RawEmbedding,
        collection_id: str,
        threshold: Optional[float] = None,
        max_matches: Optional[int] = None,
    ) -> SearchResult:
        """Find the photos of a collection that show the person in the query.

        Hidden photos are left out by the store before any scoring happens.

        Args:
            query: Query face embedding
            collection_id: Collection to search in
            threshold: Minimum similarity, defaults to ``settings.MATCH_SIMILARITY_THRESHOLD``
            max_matches: Maximum photos returned, defaults to ``settings.DEFAULT_MATCH_COUNT``

        Returns:
            SearchResult with the matched photos, best first

        Raises:
            InvalidQueryError: If the query embedding is invalid
            FaceStoreError: If the candidate faces cannot be read
        """
        threshold = settings.MATCH_SIMILARITY_THRESHOLD if threshold is None else threshold
        max_matches = settings.DEFAULT_MATCH_COUNT if max_matches is None else max_matches

        # Reject a bad query before touching the store
        query_vector = validate_query(query)

        candidates = await self.face_store.list_faces(collection_id, include_hidden=False)
        logger.info(
            "Searching collection",
            collection_id=collection_id,
            candidates_count=len(candidates),
            threshold=threshold,
        )

        # CPU-bound, kept off the event loop
        matches = await asyncio.to_thread(
            match_faces,
            query_vector,
            candidates,
            collection_id=collection_id,
            threshold=threshold,
            limit=max_matches,
        )
        logger.info(
            "Found matches in collection",
            collection_id=collection_id,
            matches_count=len(matches),
        )
        return SearchResult(collection_id=collection_id, matches=matches)
