"""
Tests for the Similarity Metric

These tests verify that:
1. cosine_similarity is 1 for identical vectors and symmetric
2. Unequal lengths, zero vectors and non-finite inputs score 0
3. validate_feature_vector rejects malformed vectors

Run with: pytest tests/test_similarity.py -v
"""

import os
import sys

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.exceptions import InvalidInputError
from core.matching.similarity import cosine_similarity, validate_feature_vector


def unit(dim: int, index: int) -> np.ndarray:
    v = np.zeros(dim)
    v[index] = 1.0
    return v


class TestCosineSimilarity:
    """Tests for cosine_similarity."""

    def test_identical_vectors(self):
        """A vector compared with itself scores 1."""
        rng = np.random.default_rng(0)
        for _ in range(20):
            a = rng.standard_normal(128)
            assert cosine_similarity(a, a) == pytest.approx(1.0)

    def test_symmetry(self):
        """similarity(a, b) == similarity(b, a)."""
        rng = np.random.default_rng(1)
        for _ in range(20):
            a = rng.standard_normal(128)
            b = rng.standard_normal(128)
            assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_orthogonal_vectors(self):
        assert cosine_similarity(unit(128, 0), unit(128, 1)) == 0.0

    def test_opposite_vectors(self):
        a = np.arange(1, 129, dtype=float)
        assert cosine_similarity(a, -a) == pytest.approx(-1.0)

    def test_scale_invariant(self):
        a = np.arange(1, 129, dtype=float)
        assert cosine_similarity(a, 3.5 * a) == pytest.approx(1.0)

    def test_known_value(self):
        assert cosine_similarity([1, 0], [1, 1]) == pytest.approx(1 / np.sqrt(2))

    def test_accepts_plain_lists(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_unequal_lengths_score_zero(self):
        """Unequal lengths are 'unrelated', regardless of content."""
        assert cosine_similarity([1.0, 0.0, 0.0], [1.0, 0.0]) == 0.0
        assert cosine_similarity(np.ones(128), np.ones(127)) == 0.0
        assert cosine_similarity([], [1.0]) == 0.0

    def test_zero_vector_scores_zero(self):
        """Zero-norm input would divide by zero; it scores 0 instead."""
        assert cosine_similarity(np.zeros(128), unit(128, 0)) == 0.0
        assert cosine_similarity(unit(128, 0), np.zeros(128)) == 0.0
        assert cosine_similarity(np.zeros(128), np.zeros(128)) == 0.0

    def test_nan_input_scores_zero(self):
        a = unit(4, 0)
        b = np.array([np.nan, 0.0, 0.0, 0.0])
        assert cosine_similarity(a, b) == 0.0

    def test_result_within_bounds(self):
        rng = np.random.default_rng(2)
        for _ in range(50):
            score = cosine_similarity(rng.standard_normal(16), rng.standard_normal(16))
            assert -1.0 <= score <= 1.0

    def test_tiny_magnitude_vectors(self):
        """Magnitude does not matter, even where squares underflow."""
        a = np.zeros(128)
        a[0] = 1e-13
        assert cosine_similarity(a, a) == pytest.approx(1.0)
        assert cosine_similarity(a, unit(128, 0)) == pytest.approx(1.0)
        assert cosine_similarity(np.full(128, 1e-200), np.ones(128)) == pytest.approx(1.0)

    def test_huge_magnitude_vectors(self):
        """Magnitude does not matter, even where squares overflow."""
        a = np.full(128, 1e200)
        assert cosine_similarity(a, a) == pytest.approx(1.0)
        assert cosine_similarity(a, -a) == pytest.approx(-1.0)

    def test_extreme_magnitudes_symmetric(self):
        rng = np.random.default_rng(3)
        for scale in (1e-160, 1e160):
            a = scale * rng.standard_normal(128)
            b = rng.standard_normal(128)
            assert cosine_similarity(a, b) == cosine_similarity(b, a)
            assert cosine_similarity(a, b) == pytest.approx(
                float(np.dot(a / scale, b)) / (np.linalg.norm(a / scale) * np.linalg.norm(b))
            )


class TestValidateFeatureVector:
    """Tests for validate_feature_vector."""

    def test_valid_list(self):
        vector = validate_feature_vector([0.1, 0.2, 0.3])
        assert vector.dtype == np.float64
        assert vector.shape == (3,)

    def test_valid_array(self):
        vector = validate_feature_vector(np.ones(128, dtype=np.float32))
        assert vector.shape == (128,)

    @pytest.mark.parametrize(
        "values",
        [
            None,
            [],
            "1,2,3",
            b"\x00\x01",
            ["a", "b"],
            [[1.0, 2.0], [3.0, 4.0]],
            [1.0, float("nan")],
            [1.0, float("inf")],
            {"x": 1.0},
        ],
    )
    def test_invalid_inputs(self, values):
        with pytest.raises(InvalidInputError):
            validate_feature_vector(values)

    def test_error_names_field(self):
        with pytest.raises(InvalidInputError, match="vector"):
            validate_feature_vector([], name="vector")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
