"""
Core Module for Face Vector Authentication

This package contains the vector-matching authentication engine: the
similarity metric, the enrollment store, registration, and the 1:N
authentication matcher.

Main components:
    - config: Configuration loading and management
    - exceptions: Typed error taxonomy
    - enrollment_store: Enrollment storage (in-memory and SQLite)
    - registration: Registration service
    - administration: User listing and deletion
    - feature_extractor: Image-to-vector oracle interface
    - matching: Similarity metric and authentication matcher

Usage:
    from core.enrollment_store import get_enrollment_store
    from core.registration import RegistrationService
    from core.matching import AuthenticationMatcher
"""

from core.config import (
    get_config,
    get_section,
    get_matching_config,
    get_storage_config,
    get_feature_extractor_config,
    get_api_config,
    get_server_config,
)

from core.exceptions import (
    FaceAuthError,
    MissingFieldError,
    DuplicateUsernameError,
    InvalidInputError,
    NotFoundError,
    StoreUnavailableError,
    ExtractionFailedError,
)

from core.enrollment_store import (
    Enrollment,
    EnrollmentSummary,
    EnrollmentStore,
    InMemoryEnrollmentStore,
    SQLiteEnrollmentStore,
    get_enrollment_store,
)

from core.registration import RegistrationService
from core.administration import AdminService

from core.feature_extractor import (
    FeatureExtractor,
    StubFeatureExtractor,
    get_feature_extractor,
)

from core.matching import (
    MatchResult,
    AuthenticationMatcher,
    cosine_similarity,
)

__all__ = [
    # Configuration
    "get_config",
    "get_section",
    "get_matching_config",
    "get_storage_config",
    "get_feature_extractor_config",
    "get_api_config",
    "get_server_config",
    # Errors
    "FaceAuthError",
    "MissingFieldError",
    "DuplicateUsernameError",
    "InvalidInputError",
    "NotFoundError",
    "StoreUnavailableError",
    "ExtractionFailedError",
    # Enrollment Store
    "Enrollment",
    "EnrollmentSummary",
    "EnrollmentStore",
    "InMemoryEnrollmentStore",
    "SQLiteEnrollmentStore",
    "get_enrollment_store",
    # Services
    "RegistrationService",
    "AdminService",
    # Feature Extraction
    "FeatureExtractor",
    "StubFeatureExtractor",
    "get_feature_extractor",
    # Matching
    "MatchResult",
    "AuthenticationMatcher",
    "cosine_similarity",
]
