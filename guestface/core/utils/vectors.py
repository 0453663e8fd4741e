"""
Face embedding vector utilities.

Comparisons go through :func:`cosine_similarity`, or :func:`cosine_similarities`
when one embedding is scored against many. Every embedding read from storage
or received from a caller goes through :func:`normalize_embedding` first. Storage
layers hand embeddings back either as numeric arrays or in the bracketed
text form ``"[0.12, -0.03, ...]"``; both are accepted here so nothing downstream has to care.
"""
import math
from numbers import Real
from typing import Optional, Sequence, Union

import numpy as np

from guestface.core.exceptions import MalformedEmbeddingError

EMBEDDING_DIM = 128

RawEmbedding = Union[str, Sequence[float], np.ndarray]


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Compute the cosine similarity between two embeddings.

    Args:
        a: First embedding vector
        b: Second embedding vector, same length as ``a``

    Returns:
        Similarity in [-1.0, 1.0]. A zero-magnitude vector resembles nothing,
        so any comparison involving one returns 0.0.

    Raises:
        ValueError: If the vectors have different lengths
    """
    if a.shape != b.shape:
        raise ValueError(f"Embedding shapes differ: {a.shape} != {b.shape}")

    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    similarity = float(np.dot(a, b)) / (norm_a * norm_b)
    return float(np.clip(similarity, -1.0, 1.0))


def cosine_similarities(
    vector: np.ndarray,
    matrix: np.ndarray,
    norms: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Score one embedding against every row of a matrix in a single pass.

    Gives the same values as calling :func:`cosine_similarity` per row,
    including 0.0 for zero-magnitude rows or a zero-magnitude vector.

    Args:
        vector: Embedding of shape (d,)
        matrix: Embeddings of shape (n, d)
        norms: Precomputed row norms of ``matrix``, computed when omitted

    Returns:
        Array of n similarities in [-1.0, 1.0]

    Raises:
        ValueError: If the row length differs from the vector length
    """
    if matrix.ndim != 2 or matrix.shape[1:] != vector.shape:
        raise ValueError(f"Embedding shapes differ: {matrix.shape} vs {vector.shape}")
    if norms is None:
        norms = np.linalg.norm(matrix, axis=1)

    denominators = norms * float(np.linalg.norm(vector))
    dots = matrix @ vector
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(denominators > 0.0, dots / denominators, 0.0)
    return np.clip(scores, -1.0, 1.0)


def _parse_serialized(raw: str) -> list:
    text = raw.strip()
    if not (text.startswith("[") and text.endswith("]")):
        raise MalformedEmbeddingError("Serialized embedding must be a bracketed list")

    body = text[1:-1].strip()
    if not body:
        return []

    components = []
    for part in body.split(","):
        try:
            components.append(float(part.strip()))
        except ValueError:
            raise MalformedEmbeddingError(
                "Serialized embedding has a non-numeric component",
                details={"component": part.strip()[:32]},
            )
    return components


def normalize_embedding(raw: RawEmbedding) -> np.ndarray:
    """Parse and validate a raw embedding into a 128-d float vector.

    The whole embedding is rejected if any component is not a finite number or
    if the final length is not exactly ``EMBEDDING_DIM``. Nothing is truncated,
    padded or defaulted.

    Args:
        raw: Numeric sequence, numpy array, or bracketed text form

    Returns:
        A new float64 array of shape (128,)

    Raises:
        MalformedEmbeddingError: If the embedding cannot be used
    """
    if raw is None:
        raise MalformedEmbeddingError("Embedding is missing")

    if isinstance(raw, str):
        components = _parse_serialized(raw)
    elif isinstance(raw, np.ndarray):
        if raw.ndim != 1:
            raise MalformedEmbeddingError(
                "Embedding array must be one-dimensional", details={"shape": raw.shape}
            )
        components = raw.tolist()
    elif isinstance(raw, (list, tuple)):
        components = list(raw)
    else:
        raise MalformedEmbeddingError(
            "Unsupported embedding type", details={"type": type(raw).__name__}
        )

    if len(components) != EMBEDDING_DIM:
        raise MalformedEmbeddingError(
            f"Embedding must have exactly {EMBEDDING_DIM} components",
            details={"length": len(components)},
        )

    values = []
    for index, component in enumerate(components):
        if isinstance(component, bool):
            raise MalformedEmbeddingError("Embedding component is not numeric", details={"index": index})
        if isinstance(component, Real):
            value = float(component)
        elif isinstance(component, str):
            try:
                value = float(component)
            except ValueError:
                raise MalformedEmbeddingError("Embedding component is not numeric", details={"index": index})
        else:
            raise MalformedEmbeddingError("Embedding component is not numeric", details={"index": index})

        if not math.isfinite(value):
            raise MalformedEmbeddingError("Embedding component is not finite", details={"index": index})
        values.append(value)

    return np.asarray(values, dtype=np.float64)


def serialize_embedding(vector: np.ndarray) -> str:
    """Serialize an embedding to the bracketed text form read by :func:`normalize_embedding`."""
    return "[" + ",".join(repr(float(v)) for v in vector) + "]"
