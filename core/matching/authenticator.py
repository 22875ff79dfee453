"""
Authentication Matcher: 1:N linear scan over enrolled feature vectors.

Every enrollment is scored against the query with cosine similarity. The
best-scoring enrollment is accepted only if its score is strictly greater
than both the running best and the acceptance threshold, so ties keep the
earliest enrollment in store iteration order and a best score equal to the
threshold is still a rejection.
"""

import logging
from typing import Optional

from core.enrollment_store import Enrollment, EnrollmentStore
from core.matching.interfaces import Authenticator, MatchResult
from core.matching.similarity import (
    FeatureVector,
    cosine_similarity,
    validate_feature_vector,
)

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.7


class AuthenticationMatcher(Authenticator):
    """
    Find the enrolled user whose vector best matches a query vector.

    The matcher is stateless and read-only: each call takes a fresh
    snapshot from the store. Store failures propagate unchanged as
    StoreUnavailableError; retrying is left to the caller.

    Args:
        store: Enrollment store to scan.
        config: Dictionary with optional keys:
            - threshold: Acceptance threshold (default 0.7)
    """

    def __init__(self, store: EnrollmentStore, config: Optional[dict] = None):
        if config is None:
            config = {}
        self.store = store
        self.threshold = float(config.get("threshold", DEFAULT_THRESHOLD))

    def authenticate(self, query_vector: FeatureVector) -> MatchResult:
        """
        Authenticate a query vector against all enrollments.

        Args:
            query_vector: (D,) feature vector captured at login.

        Returns:
            MatchResult.accepted(username, score) or MatchResult.rejected().

        Raises:
            InvalidInputError: If the query is not a non-empty numeric vector.
            StoreUnavailableError: If the enrollment store cannot be read.
        """
        query = validate_feature_vector(query_vector)

        enrollments = self.store.list_all()

        best_score = 0.0
        best_match: Optional[Enrollment] = None
        # Highest score seen, including candidates below the threshold
        closest = None

        for enrollment in enrollments:
            score = cosine_similarity(query, enrollment.vector)
            if closest is None or score > closest:
                closest = score
            if score > best_score and score > self.threshold:
                best_score = score
                best_match = enrollment

        if best_match is None:
            logger.info(f"Authentication rejected ({len(enrollments)} candidates)")
            if closest is not None:
                logger.debug(f"Closest candidate scored {closest:.3f} (threshold={self.threshold})")
            return MatchResult.rejected(candidates=len(enrollments))

        logger.info(f"Authentication accepted: {best_match.username} (score={best_score:.3f})")
        return MatchResult.accepted(
            best_match.username,
            best_score,
            candidates=len(enrollments),
            threshold=self.threshold,
        )
