"""
Administrative operations on enrolled users.

Listings expose only usernames and enrollment timestamps; feature vectors
and reference images never leave the store through this module.
"""

import logging
from typing import List

from core.enrollment_store import EnrollmentStore, EnrollmentSummary

logger = logging.getLogger(__name__)


class AdminService:
    """List and delete enrollments."""

    def __init__(self, store: EnrollmentStore):
        self.store = store

    def list_users(self) -> List[EnrollmentSummary]:
        """Return {username, created_at} for every enrollment."""
        return [EnrollmentSummary.from_enrollment(e) for e in self.store.list_all()]

    def delete_user(self, username: str) -> None:
        """
        Delete an enrollment so it can no longer be matched.

        Raises:
            NotFoundError: If the username is not enrolled.
            StoreUnavailableError: If the store cannot be accessed.
        """
        self.store.delete_by_username(username)
        logger.info(f"Administrative delete of user {username}")
