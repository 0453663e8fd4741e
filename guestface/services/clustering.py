"""Guest clustering: grouping a collection's faces into distinct people."""
import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from guestface.core.config import settings
from guestface.core.logging import get_logger
from guestface.core.utils.vectors import EMBEDDING_DIM, cosine_similarities
from guestface.domain.entities.face import FaceRecord, PhotoRef
from guestface.domain.interfaces.storage.face_store import FaceStore
from guestface.domain.models.storage.face import StoredFace
from guestface.domain.value_objects.recognition import ClusteringResult, GuestCluster
from guestface.services.normalization import normalize_faces

logger = get_logger(__name__)

MAX_SAMPLE_PHOTOS = 3


@dataclass
class _ClusterState:
    """Members of one cluster being built during a clustering run."""
    id: str
    faces: List[FaceRecord] = field(default_factory=list)
    photos: Dict[str, PhotoRef] = field(default_factory=dict)

    def add(self, face: FaceRecord) -> None:
        self.faces.append(face)
        # dicts keep insertion order, so this is first-seen photo order
        self.photos.setdefault(face.photo_id, face.photo)

    def to_guest_cluster(self) -> GuestCluster:
        return GuestCluster(
            id=self.id,
            face_count=len(self.faces),
            photo_count=len(self.photos),
            sample_photos=list(self.photos.values())[:MAX_SAMPLE_PHOTOS],
            face_ids=[face.face_id for face in self.faces],
        )


def cluster_faces(
    faces: Sequence[Union[StoredFace, FaceRecord]],
    threshold: Optional[float] = None,
    order_by_id: bool = False,
) -> List[GuestCluster]:
    """Partition faces into guest clusters with single-pass nearest-centroid assignment.

    Each face is compared against the running centroid of every cluster created so
    far. It joins the most similar cluster when that similarity is at least
    ``threshold`` and otherwise starts a new cluster of its own. Centroids are kept
    as running means, updated incrementally as faces join.

    This is a greedy online method, not a globally optimal clustering: the way
    faces are grouped depends on the order they are visited in. Pass
    ``order_by_id=True`` to visit faces sorted by face id so that the same set of
    faces always yields the same grouping regardless of how it was fetched.

    Cost is O(n*k) for n faces and k clusters, with each face scored against all
    centroids in one matrix product. Callers should bound n (see
    ``settings.MAX_CLUSTER_FACES``) and keep this off the event loop.

    Args:
        faces: Stored faces or face records of one collection. Faces with a
            malformed embedding are dropped, not fatal.
        threshold: Cosine similarity at or above which a face joins a cluster,
            defaults to ``settings.CLUSTER_SIMILARITY_THRESHOLD``
        order_by_id: Visit faces sorted by face id instead of input order

    Returns:
        Guest clusters sorted by face count, largest first; clusters of equal
        size keep their creation order
    """
    threshold = settings.CLUSTER_SIMILARITY_THRESHOLD if threshold is None else threshold
    records, dropped = normalize_faces(faces)
    if order_by_id:
        records = sorted(records, key=lambda record: record.face_id)

    # Row i holds the running centroid of clusters[i]; there are never more clusters than faces
    centroids = np.empty((len(records), EMBEDDING_DIM), dtype=np.float64)
    norms = np.empty(len(records), dtype=np.float64)
    clusters: List[_ClusterState] = []
    for face in records:
        count = len(clusters)
        if count:
            scores = cosine_similarities(face.embedding, centroids[:count], norms[:count])
            # argmax returns the first maximum, so ties go to the oldest cluster
            best = int(np.argmax(scores))
            if scores[best] >= threshold:
                cluster = clusters[best]
                cluster.add(face)
                centroids[best] += (face.embedding - centroids[best]) / len(cluster.faces)
                norms[best] = np.linalg.norm(centroids[best])
                continue

        cluster = _ClusterState(id=f"guest_{count + 1}")
        cluster.add(face)
        clusters.append(cluster)
        centroids[count] = face.embedding
        norms[count] = np.linalg.norm(face.embedding)

    logger.debug(
        "Clustered faces",
        faces_count=len(records),
        dropped_count=dropped,
        clusters_count=len(clusters),
        threshold=threshold,
    )

    guest_clusters = [cluster.to_guest_cluster() for cluster in clusters]
    # sorted() is stable, so equal sizes keep creation order
    return sorted(guest_clusters, key=lambda cluster: cluster.face_count, reverse=True)


class GuestClusteringService:
    """Service for grouping the faces of a collection into guests.

    Example:
        ```python
        service = GuestClusteringService(face_store)
        result = await service.cluster_collection("wedding-2026")
        for guest in result.clusters:
            print(guest.id, guest.face_count, guest.photo_count)
        ```
    """

    def __init__(self, face_store: FaceStore) -> None:
        """Initialize the clustering service.

        Args:
            face_store: Store the collection's faces are read from
        """
        self._face_store = face_store

    async def cluster_collection(
        self,
        collection_id: str,
        threshold: Optional[float] = None,
        max_faces: Optional[int] = None,
        order_by_id: bool = False,
    ) -> ClusteringResult:
        """Cluster every stored face of a collection.

        Clusters are recomputed on every call; nothing is cached between runs.

        Args:
            collection_id: Collection whose faces are clustered
            threshold: Join threshold, defaults to ``settings.CLUSTER_SIMILARITY_THRESHOLD``
            max_faces: Cap on faces considered, defaults to ``settings.MAX_CLUSTER_FACES``
            order_by_id: Visit faces sorted by face id for a reproducible grouping

        Returns:
            ClusteringResult with the guest clusters, largest first

        Raises:
            FaceStoreError: If the faces cannot be read from the store
        """
        threshold = settings.CLUSTER_SIMILARITY_THRESHOLD if threshold is None else threshold
        max_faces = settings.MAX_CLUSTER_FACES if max_faces is None else max_faces

        rows = await self._face_store.list_faces(collection_id, limit=max_faces)
        if len(rows) >= max_faces:
            logger.warning(
                "Face cap reached, clustering a partial collection",
                collection_id=collection_id,
                max_faces=max_faces,
            )

        # CPU-bound, kept off the event loop
        clusters = await asyncio.to_thread(
            cluster_faces, rows, threshold=threshold, order_by_id=order_by_id
        )
        clustered = sum(cluster.face_count for cluster in clusters)

        logger.info(
            "Clustered collection faces",
            collection_id=collection_id,
            faces_count=len(rows),
            clusters_count=len(clusters),
            threshold=threshold,
        )

        return ClusteringResult(
            collection_id=collection_id,
            clusters=clusters,
            face_count=len(rows),
            skipped_faces=len(rows) - clustered,
        )
