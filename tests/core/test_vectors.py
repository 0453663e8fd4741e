"""Tests for embedding similarity and normalization."""
import math

import numpy as np
import pytest

from guestface.core.exceptions import MalformedEmbeddingError
from guestface.core.utils.vectors import (
    EMBEDDING_DIM,
    cosine_similarities,
    cosine_similarity,
    normalize_embedding,
    serialize_embedding,
)


@pytest.fixture
def random_vectors():
    rng = np.random.default_rng(7)
    return [rng.normal(size=EMBEDDING_DIM) for _ in range(5)]


class TestCosineSimilarity:
    """Cosine similarity over 128-d vectors."""

    def test_identical_vectors_score_one(self, random_vectors):
        for vector in random_vectors:
            assert cosine_similarity(vector, vector.copy()) == pytest.approx(1.0)

    def test_zero_vector_scores_zero(self, random_vectors):
        zero = np.zeros(EMBEDDING_DIM)
        for vector in random_vectors:
            assert cosine_similarity(vector, zero) == 0.0
            assert cosine_similarity(zero, vector) == 0.0
        assert cosine_similarity(zero, zero) == 0.0

    def test_orthogonal_and_opposite(self, embedding):
        assert cosine_similarity(embedding(0), embedding(1)) == pytest.approx(0.0)
        assert cosine_similarity(embedding(0), -embedding(0)) == pytest.approx(-1.0)

    def test_known_similarity(self, embedding):
        assert cosine_similarity(embedding(0), embedding(0, 0.73, other=5)) == pytest.approx(0.73)

    def test_is_scale_invariant(self, random_vectors):
        a, b = random_vectors[:2]
        assert cosine_similarity(a * 10, b * 0.5) == pytest.approx(cosine_similarity(a, b))

    def test_mismatched_lengths_are_an_error(self):
        with pytest.raises(ValueError):
            cosine_similarity(np.ones(EMBEDDING_DIM), np.ones(EMBEDDING_DIM - 1))


class TestCosineSimilarities:
    """Scoring one embedding against many rows at once."""

    def test_agrees_with_pairwise_similarity(self, random_vectors):
        query, *rows = random_vectors
        matrix = np.stack(rows)
        expected = [cosine_similarity(query, row) for row in rows]
        assert cosine_similarities(query, matrix).tolist() == pytest.approx(expected)

    def test_accepts_precomputed_norms(self, random_vectors):
        query, *rows = random_vectors
        matrix = np.stack(rows)
        norms = np.linalg.norm(matrix, axis=1)
        assert cosine_similarities(query, matrix, norms).tolist() == pytest.approx(
            cosine_similarities(query, matrix).tolist()
        )

    def test_zero_rows_and_zero_query_score_zero(self, random_vectors):
        matrix = np.stack([random_vectors[1], np.zeros(EMBEDDING_DIM)])
        scores = cosine_similarities(random_vectors[0], matrix)
        assert scores[1] == 0.0
        assert cosine_similarities(np.zeros(EMBEDDING_DIM), matrix).tolist() == [0.0, 0.0]

    def test_mismatched_lengths_are_an_error(self):
        with pytest.raises(ValueError):
            cosine_similarities(np.ones(EMBEDDING_DIM), np.ones((3, EMBEDDING_DIM - 1)))


class TestNormalizeEmbedding:
    """Parsing and validation of raw embeddings."""

    def test_valid_list_is_unchanged(self, random_vectors):
        values = random_vectors[0].tolist()
        result = normalize_embedding(values)
        assert result.shape == (EMBEDDING_DIM,)
        assert result.dtype == np.float64
        assert result.tolist() == values

    def test_accepts_tuple_and_array(self, random_vectors):
        vector = random_vectors[1]
        assert np.array_equal(normalize_embedding(tuple(vector.tolist())), vector)
        assert np.array_equal(normalize_embedding(vector.astype(np.float32)), vector.astype(np.float32))

    def test_returns_a_copy(self, random_vectors):
        vector = random_vectors[2]
        result = normalize_embedding(vector)
        result[0] = 42.0
        assert vector[0] != 42.0

    def test_accepts_serialized_text(self, random_vectors):
        vector = random_vectors[3]
        assert normalize_embedding(serialize_embedding(vector)).tolist() == vector.tolist()

    def test_accepts_text_with_whitespace(self):
        text = "  [" + ", ".join(["0.5"] * EMBEDDING_DIM) + "]  "
        assert normalize_embedding(text).tolist() == [0.5] * EMBEDDING_DIM

    def test_coerces_numeric_strings(self):
        result = normalize_embedding(["0.25"] * EMBEDDING_DIM)
        assert result.tolist() == [0.25] * EMBEDDING_DIM

    @pytest.mark.parametrize("length", [0, 127, 129])
    def test_rejects_wrong_length(self, length):
        with pytest.raises(MalformedEmbeddingError):
            normalize_embedding([0.1] * length)
        with pytest.raises(MalformedEmbeddingError):
            normalize_embedding("[" + ",".join(["0.1"] * length) + "]")

    @pytest.mark.parametrize("bad", ["abc", None, True, [0.1], math.nan, math.inf, -math.inf, {"x": 1}])
    def test_rejects_bad_component(self, bad):
        values = [0.1] * EMBEDDING_DIM
        values[17] = bad
        with pytest.raises(MalformedEmbeddingError):
            normalize_embedding(values)

    @pytest.mark.parametrize("bad", ["nan", "inf", "abc", ""])
    def test_rejects_bad_text_component(self, bad):
        parts = ["0.1"] * EMBEDDING_DIM
        parts[64] = bad
        with pytest.raises(MalformedEmbeddingError):
            normalize_embedding("[" + ",".join(parts) + "]")

    @pytest.mark.parametrize("raw", [
        None,
        "",
        "[]",
        ",".join(["0.1"] * EMBEDDING_DIM),
        42,
        {"embedding": [0.1] * EMBEDDING_DIM},
        np.zeros((2, 64)),
    ])
    def test_rejects_unusable_input(self, raw):
        with pytest.raises(MalformedEmbeddingError):
            normalize_embedding(raw)

    def test_rejection_carries_details(self):
        with pytest.raises(MalformedEmbeddingError) as exc_info:
            normalize_embedding([0.1] * 127)
        assert exc_info.value.details == {"length": 127}
