"""
Feature Extractor Interface

The feature extractor turns a face image into a fixed-length feature vector.
The neural network behind it is an external oracle: the authentication core
never inspects image pixels, it only consumes the vector.

Readiness is explicit: an extractor reports ``is_loaded`` after
``load_model()`` and refuses to extract before that, instead of relying on
a global "model ready" flag.

Two implementations are provided here:
  - FeatureExtractor: abstract interface for real model backends
  - StubFeatureExtractor: deterministic hash-seeded vectors for development
    and tests, so the same image always yields the same vector

Usage:
    from core.feature_extractor import get_feature_extractor

    extractor = get_feature_extractor({"backend": "stub", "embedding_dim": 128})
    extractor.load_model()
    vector = extractor.extract(image_bytes)  # (128,)
"""

import hashlib
import logging
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from core.exceptions import ExtractionFailedError

logger = logging.getLogger(__name__)


class FeatureExtractor(ABC):
    """
    Abstract base class for face feature extraction.

    Args:
        config: Dictionary with keys:
            - embedding_dim: Output dimension (default 128)
    """

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = {}
        self.embedding_dim = int(config.get("embedding_dim", 128))
        self.is_loaded = False

    @abstractmethod
    def load_model(self) -> None:
        """Load the model. Sets is_loaded on success."""
        pass

    @abstractmethod
    def _extract(self, image: bytes) -> np.ndarray:
        """Backend-specific extraction; called only once the model is loaded."""
        pass

    def extract(self, image: bytes) -> np.ndarray:
        """
        Extract a feature vector from an encoded face image.

        Args:
            image: Encoded image bytes (e.g. JPEG).

        Returns:
            (D,) float64 feature vector.

        Raises:
            ExtractionFailedError: "model unavailable" if load_model() has not
                succeeded, "no face detected" if the image yields no face.
        """
        if not self.is_loaded:
            raise ExtractionFailedError(ExtractionFailedError.MODEL_UNAVAILABLE)
        if not image:
            raise ExtractionFailedError(ExtractionFailedError.NO_FACE, "empty image")

        vector = np.asarray(self._extract(image), dtype=np.float64).ravel()

        if vector.shape[0] != self.embedding_dim:
            raise ExtractionFailedError(
                ExtractionFailedError.MODEL_UNAVAILABLE,
                f"expected {self.embedding_dim} values, got {vector.shape[0]}",
            )
        return vector


class StubFeatureExtractor(FeatureExtractor):
    """
    Placeholder extractor that derives a unit vector from the image hash.

    Identical images map to identical vectors (similarity 1.0); different
    images map to near-orthogonal random directions. Use this to exercise
    the registration and authentication flow without a face model.
    """

    def load_model(self) -> None:
        self.is_loaded = True
        logger.info(f"StubFeatureExtractor ready (dim={self.embedding_dim})")

    def _extract(self, image: bytes) -> np.ndarray:
        seed = int.from_bytes(hashlib.sha256(image).digest()[:8], "little")
        rng = np.random.default_rng(seed)
        vector = rng.standard_normal(self.embedding_dim)
        return vector / np.linalg.norm(vector)


def get_feature_extractor(config: Optional[dict] = None) -> FeatureExtractor:
    """
    Build a feature extractor from a config section.

    Args:
        config: Dict with "backend" (only "stub" ships here) and
                "embedding_dim". If None, read from config.yaml.

    Raises:
        ValueError: If the backend is unknown.
    """
    if config is None:
        from core.config import get_feature_extractor_config
        config = get_feature_extractor_config()

    backend = config.get("backend", "stub")
    if backend == "stub":
        return StubFeatureExtractor(config)

    raise ValueError(f"Unknown feature extractor backend: {backend}")
