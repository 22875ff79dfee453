"""
Matching Interfaces Module

This module defines the result type and abstract interface for 1:N face
authentication over enrolled feature vectors.

An Authenticator takes a query feature vector, compares it against every
enrollment in a store, and returns a MatchResult that is either accepted
(with the matched username and score) or rejected.

Usage:
    from core.matching.interfaces import MatchResult, Authenticator

    result = authenticator.authenticate(query_vector)
    if result.is_match:
        print(result.username, result.score)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from core.matching.similarity import FeatureVector


@dataclass(frozen=True)
class MatchResult:
    """
    Result of an authentication attempt.

    Attributes:
        is_match: True if an enrollment scored above the threshold.
        username: Matched username. None when rejected.
        score: Cosine similarity of the accepted match.
               Always 0.0 when rejected, so a rejection reveals nothing
               about how close the nearest enrollment was.
        details: Algorithm-specific details for logging and debugging.
    """

    is_match: bool
    username: Optional[str] = None
    score: float = 0.0
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def accepted(cls, username: str, score: float, **details: Any) -> "MatchResult":
        """Build an accepted result."""
        return cls(is_match=True, username=username, score=score, details=details)

    @classmethod
    def rejected(cls, **details: Any) -> "MatchResult":
        """Build a rejected result."""
        return cls(is_match=False, details=details)


class Authenticator(ABC):
    """
    Abstract base class for 1:N authentication.

    Implemented by AuthenticationMatcher in: core/matching/authenticator.py
    """

    @abstractmethod
    def authenticate(self, query_vector: FeatureVector) -> MatchResult:
        """
        Find the enrolled identity that best matches a query vector.

        Args:
            query_vector: Feature vector captured at login. Shape: (D,).

        Returns:
            MatchResult, accepted or rejected.

        Raises:
            InvalidInputError: If the query vector is malformed.
            StoreUnavailableError: If the enrollment store fails.
        """
        pass
