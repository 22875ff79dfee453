"""
Matching Module for Face Authentication

This package contains the similarity metric and the 1:N matcher that
compares a query feature vector against enrolled vectors.

Components:
    - similarity: Cosine similarity and feature vector validation
    - interfaces: MatchResult and the Authenticator interface
    - authenticator: Linear-scan AuthenticationMatcher

Usage:
    from core.matching import AuthenticationMatcher, cosine_similarity
"""

from core.matching.similarity import (
    FeatureVector,
    as_feature_vector,
    cosine_similarity,
    validate_feature_vector,
)
from core.matching.interfaces import MatchResult, Authenticator
from core.matching.authenticator import AuthenticationMatcher, DEFAULT_THRESHOLD

__all__ = [
    # Similarity
    "FeatureVector",
    "as_feature_vector",
    "cosine_similarity",
    "validate_feature_vector",
    # Data classes
    "MatchResult",
    # Interfaces
    "Authenticator",
    # Implementations
    "AuthenticationMatcher",
    "DEFAULT_THRESHOLD",
]
