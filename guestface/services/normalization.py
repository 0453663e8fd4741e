"""Batch normalization of stored faces into validated face records."""
from typing import Iterable, List, Tuple, Union

from pydantic import ValidationError

from guestface.core.exceptions import MalformedEmbeddingError
from guestface.core.logging import get_logger
from guestface.domain.entities.face import FaceRecord
from guestface.domain.models.storage.face import StoredFace

logger = get_logger(__name__)


def normalize_faces(
    rows: Iterable[Union[StoredFace, FaceRecord]],
) -> Tuple[List[FaceRecord], int]:
    """Convert raw stored faces into face records, dropping unusable ones.

    A malformed row never fails the batch: it is logged and counted instead.
    Rows that are already face records pass through untouched.

    Args:
        rows: Stored faces and/or face records, in the order to keep

    Returns:
        Tuple of (valid face records in input order, number of dropped rows)
    """
    records: List[FaceRecord] = []
    dropped = 0
    for row in rows:
        if isinstance(row, FaceRecord):
            records.append(row)
            continue
        try:
            records.append(FaceRecord.from_stored(row))
        except (MalformedEmbeddingError, ValidationError) as e:
            dropped += 1
            logger.warning(
                "Dropping face with malformed data",
                face_id=row.id,
                photo_id=row.photo_id,
                error=str(e),
                details=getattr(e, "details", None),
            )
    return records, dropped
