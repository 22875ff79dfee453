"""
Registration Service Module

Validates a registration request and stores it as a new Enrollment.

The service checks for an existing username before inserting so the common
duplicate case fails fast, but that check is not atomic. The store's
insert() is the sole authority on uniqueness: when two requests race for
the same username, exactly one insert succeeds and the other raises
DuplicateUsernameError from the store itself.

Usage:
    from core.registration import RegistrationService
    from core.enrollment_store import get_enrollment_store

    service = RegistrationService(get_enrollment_store())
    enrollment = service.register("alice", image_bytes, vector)
"""

import logging
from typing import Optional, Union

import numpy as np

from core.enrollment_store import Enrollment, EnrollmentStore, utc_now
from core.exceptions import DuplicateUsernameError, MissingFieldError, NotFoundError
from core.matching.similarity import FeatureVector, validate_feature_vector

logger = logging.getLogger(__name__)


def _is_missing(value) -> bool:
    """None, empty strings/bytes and empty sequences all count as missing."""
    if value is None:
        return True
    if isinstance(value, np.ndarray):
        return value.size == 0
    try:
        return len(value) == 0
    except TypeError:
        return False


class RegistrationService:
    """
    Creates enrollments in an EnrollmentStore.

    Attributes:
        store: The enrollment store that owns all records.
    """

    def __init__(self, store: EnrollmentStore):
        self.store = store

    def register(
        self,
        username: Optional[str],
        image: Optional[Union[bytes, str]],
        vector: Optional[FeatureVector],
    ) -> Enrollment:
        """
        Register a new user.

        Args:
            username: Unique, non-empty identifier.
            image: Reference image blob. Strings are stored UTF-8 encoded.
            vector: Feature vector extracted from the image.

        Returns:
            The stored Enrollment.

        Raises:
            MissingFieldError: If username, image or vector is absent.
            InvalidInputError: If the vector is not numeric.
            DuplicateUsernameError: If the username is already enrolled.
            StoreUnavailableError: If the store cannot be accessed.
        """
        for name, value in (("username", username), ("image", image), ("vector", vector)):
            if _is_missing(value):
                raise MissingFieldError(name)

        vector = validate_feature_vector(vector, name="vector")

        if isinstance(image, str):
            image = image.encode("utf-8")

        # Fast-path duplicate check; insert() below is authoritative
        try:
            self.store.lookup_by_username(username)
        except NotFoundError:
            pass
        else:
            logger.warning(f"Registration rejected: username {username} already exists")
            raise DuplicateUsernameError(username)

        enrollment = Enrollment(
            username=username,
            vector=vector,
            image=bytes(image),
            created_at=utc_now(),
        )

        stored = self.store.insert(enrollment)

        logger.info(f"Registered user {username}")
        return stored
