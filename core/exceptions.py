"""
Error Taxonomy for Face Authentication

Every failure the core can report is a subclass of FaceAuthError. Each
carries a stable ``code`` string (used by the API layer to build error
responses) and a ``retryable`` flag. Only StoreUnavailableError is
retryable; all other failures are terminal for the request.

Usage:
    from core.exceptions import DuplicateUsernameError

    try:
        service.register(username, image, vector)
    except DuplicateUsernameError as e:
        print(e.code, e.message)
"""

from typing import Optional


class FaceAuthError(Exception):
    """Base class for all face authentication errors."""

    code = "FACE_AUTH_ERROR"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingFieldError(FaceAuthError):
    """A required request field (username, image or vector) is absent."""

    code = "MISSING_FIELD"

    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}")
        self.field = field


class DuplicateUsernameError(FaceAuthError):
    """The username is already enrolled."""

    code = "DUPLICATE_USERNAME"

    def __init__(self, username: str):
        super().__init__(f"Username already exists: {username}")
        self.username = username


class InvalidInputError(FaceAuthError):
    """A feature vector is malformed (empty, non-numeric, wrong shape)."""

    code = "INVALID_INPUT"


class NotFoundError(FaceAuthError):
    """No enrollment exists for the username."""

    code = "NOT_FOUND"

    def __init__(self, username: str):
        super().__init__(f"User not found: {username}")
        self.username = username


class StoreUnavailableError(FaceAuthError):
    """The enrollment store could not be reached or timed out."""

    code = "STORE_UNAVAILABLE"
    retryable = True


class ExtractionFailedError(FaceAuthError):
    """The feature extractor could not produce a vector from the image."""

    code = "EXTRACTION_FAILED"

    NO_FACE = "no face detected"
    MODEL_UNAVAILABLE = "model unavailable"

    def __init__(self, reason: str, detail: Optional[str] = None):
        message = f"Feature extraction failed: {reason}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.reason = reason
