"""
Similarity Metric: cosine similarity between face feature vectors.

Feature vectors are 1-D float arrays of a fixed dimension (128 for the
reference capture pipeline). Vectors of unequal length, zero-norm vectors
and any computation that turns non-finite are all scored as 0.0
("unrelated") rather than raising, so the matcher can treat them as a
plain non-match.
"""

import logging
from typing import Sequence, Union

import numpy as np

from core.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

FeatureVector = Union[np.ndarray, Sequence[float]]


def as_feature_vector(values: FeatureVector) -> np.ndarray:
    """
    Convert a sequence of numbers to a flat float64 array.

    Raises:
        TypeError, ValueError: If the values are not numeric.
    """
    return np.asarray(values, dtype=np.float64).ravel()


def validate_feature_vector(values: FeatureVector, name: str = "features") -> np.ndarray:
    """
    Check that values form a non-empty 1-D finite numeric vector.

    Args:
        values: Candidate feature vector.
        name: Field name used in the error message.

    Returns:
        The vector as a flat float64 array.

    Raises:
        InvalidInputError: If the values are not a usable feature vector.
    """
    if values is None or isinstance(values, (str, bytes)):
        raise InvalidInputError(f"{name} must be a numeric array")

    try:
        vector = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{name} must be a numeric array") from e

    if vector.ndim != 1:
        raise InvalidInputError(f"{name} must be one-dimensional, got shape {vector.shape}")
    if vector.shape[0] == 0:
        raise InvalidInputError(f"{name} must not be empty")
    if not np.all(np.isfinite(vector)):
        raise InvalidInputError(f"{name} must contain only finite numbers")

    return vector


def cosine_similarity(a: FeatureVector, b: FeatureVector) -> float:
    """
    Compute cosine similarity between two feature vectors.

    Args:
        a: First feature vector, shape (D,).
        b: Second feature vector, shape (D,).

    Returns:
        Similarity in [-1, 1]. 1.0 means identical direction.
        Returns 0.0 for unequal lengths, zero-norm input, or a
        non-finite result.
    """
    a = as_feature_vector(a)
    b = as_feature_vector(b)

    if a.shape[0] != b.shape[0]:
        logger.debug(f"Dimension mismatch: {a.shape[0]} vs {b.shape[0]}")
        return 0.0

    a = _rescale(a)
    b = _rescale(b)
    if a is None or b is None:
        return 0.0

    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))

    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    similarity = float(np.dot(a, b)) / (norm_a * norm_b)

    if not np.isfinite(similarity):
        return 0.0

    # Clamp to [-1, 1] for numerical stability
    return max(-1.0, min(1.0, similarity))


def _rescale(vector: np.ndarray):
    """
    Divide a vector by its largest absolute component.

    Cosine similarity does not depend on magnitude, so this keeps the
    squared terms of the norm and dot product inside float64 range for
    very small and very large inputs. Returns None for the zero vector
    and for non-finite input.
    """
    peak = float(np.max(np.abs(vector))) if vector.size else 0.0
    if not np.isfinite(peak) or peak == 0.0:
        return None
    return vector / peak
