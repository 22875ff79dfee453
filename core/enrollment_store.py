"""
Enrollment Store Module

This module handles persistence and retrieval of face enrollments for the
vector-based face authentication system.

An enrollment is one registered identity: a unique username, the feature
vector captured at registration, the opaque reference image, and the
creation timestamp. Enrollments are immutable once stored; the only
mutation is deletion.

The EnrollmentStore interface defines the capability set every backend
must provide:
- insert: Store a new enrollment (atomically rejects duplicate usernames)
- lookup_by_username: Load a single enrollment
- list_all: Load every enrollment (for 1:N authentication)
- delete_by_username: Remove an enrollment

Two backends are provided:
- InMemoryEnrollmentStore: dict guarded by a lock (tests, ephemeral runs)
- SQLiteEnrollmentStore: one SQLite table with a PRIMARY KEY on username

Usage:
    from core.enrollment_store import SQLiteEnrollmentStore, Enrollment

    store = SQLiteEnrollmentStore(db_path="storage/enrollments.sqlite")

    enrollment = Enrollment(
        username="alice",
        vector=np.random.randn(128),
        image=b"data:image/jpeg;base64,...",
    )
    store.insert(enrollment)

    loaded = store.lookup_by_username("alice")
    everyone = store.list_all()
    store.delete_by_username("alice")
"""

import sqlite3
import threading
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from core.exceptions import (
    DuplicateUsernameError,
    NotFoundError,
    StoreUnavailableError,
)

# Setup logging
logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Enrollment:
    """
    Data class representing one enrolled identity.

    Attributes:
        username: Unique, non-empty identifier for the user.
        vector: Feature vector captured at registration.
                Shape: (D,), dtype: float64. Read-only.
        image: Opaque reference image blob (never inspected by the core).
        created_at: UTC timestamp of registration.
    """

    username: str
    vector: np.ndarray
    image: bytes
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        """Normalize the vector to a read-only flat float64 array."""
        vector = np.array(self.vector, dtype=np.float64).ravel()
        vector.flags.writeable = False
        object.__setattr__(self, "vector", vector)

    @property
    def vector_dim(self) -> int:
        """Return the dimension of the feature vector."""
        return self.vector.shape[0]


@dataclass(frozen=True)
class EnrollmentSummary:
    """
    Listing view of an enrollment.

    Feature vectors and images are deliberately absent so that
    administrative listings never expose biometric data.
    """

    username: str
    created_at: datetime

    @classmethod
    def from_enrollment(cls, enrollment: Enrollment) -> "EnrollmentSummary":
        return cls(username=enrollment.username, created_at=enrollment.created_at)


class EnrollmentStore(ABC):
    """
    Abstract base class for enrollment storage.

    The matcher and registration service only depend on this interface,
    so an indexed nearest-neighbor backend can replace the linear-scan
    backends without changing their contracts.

    Implementations must:
        - Enforce username uniqueness atomically inside insert()
        - Return a consistent snapshot from list_all()
        - Raise StoreUnavailableError for any storage-layer failure
    """

    @abstractmethod
    def insert(self, enrollment: Enrollment) -> Enrollment:
        """
        Persist a new enrollment.

        Returns:
            The stored enrollment.

        Raises:
            DuplicateUsernameError: If the username is already enrolled.
            StoreUnavailableError: If the store cannot be written.
        """
        pass

    @abstractmethod
    def lookup_by_username(self, username: str) -> Enrollment:
        """
        Load a single enrollment.

        Raises:
            NotFoundError: If no enrollment exists for the username.
            StoreUnavailableError: If the store cannot be read.
        """
        pass

    @abstractmethod
    def list_all(self) -> List[Enrollment]:
        """
        Load every enrollment as a snapshot taken at call time.

        Raises:
            StoreUnavailableError: If the store cannot be read.
        """
        pass

    @abstractmethod
    def delete_by_username(self, username: str) -> None:
        """
        Remove an enrollment.

        Raises:
            NotFoundError: If no enrollment exists for the username.
            StoreUnavailableError: If the store cannot be written.
        """
        pass

    def count(self) -> int:
        """Return the number of stored enrollments."""
        return len(self.list_all())

    def close(self) -> None:
        """Release any resources held by the store."""
        pass


class InMemoryEnrollmentStore(EnrollmentStore):
    """
    Enrollment store backed by a dict, guarded by a lock.

    Iteration order of list_all() is insertion order.
    """

    def __init__(self):
        self._enrollments: Dict[str, Enrollment] = {}
        self._lock = threading.Lock()

    def insert(self, enrollment: Enrollment) -> Enrollment:
        with self._lock:
            if enrollment.username in self._enrollments:
                raise DuplicateUsernameError(enrollment.username)
            self._enrollments[enrollment.username] = enrollment

        logger.info(f"Stored enrollment for {enrollment.username} (dim={enrollment.vector_dim})")
        return enrollment

    def lookup_by_username(self, username: str) -> Enrollment:
        with self._lock:
            enrollment = self._enrollments.get(username)

        if enrollment is None:
            raise NotFoundError(username)
        return enrollment

    def list_all(self) -> List[Enrollment]:
        with self._lock:
            return list(self._enrollments.values())

    def delete_by_username(self, username: str) -> None:
        with self._lock:
            if username not in self._enrollments:
                raise NotFoundError(username)
            del self._enrollments[username]

        logger.info(f"Deleted enrollment for {username}")

    def count(self) -> int:
        with self._lock:
            return len(self._enrollments)


class SQLiteEnrollmentStore(EnrollmentStore):
    """
    Enrollment store backed by a single SQLite table.

    Uniqueness is enforced by the PRIMARY KEY on username, so two
    concurrent inserts of the same username cannot both succeed even
    if both passed an earlier existence check.

    Vectors are stored as raw float64 bytes alongside their dimension.

    Attributes:
        db_path: Path to the SQLite database file.
        timeout_sec: How long to wait on a locked database before
                     giving up with StoreUnavailableError.
    """

    def __init__(self, db_path: str, timeout_sec: float = 5.0):
        """
        Initialize the store.

        Creates the parent directory and database schema if they don't exist.

        Args:
            db_path: Path to SQLite database file.
            timeout_sec: Busy timeout for database access, in seconds.
        """
        self.db_path = Path(db_path)
        self.timeout_sec = timeout_sec
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_database()

        logger.info(f"SQLiteEnrollmentStore initialized: db={self.db_path}")

    def _get_connection(self) -> sqlite3.Connection:
        """
        Get or create the SQLite connection.

        Returns:
            SQLite connection with Row factory for dict-like access.
        """
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                timeout=self.timeout_sec,
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_database(self) -> None:
        """Create the enrollments table if it doesn't exist."""
        try:
            with self._lock:
                conn = self._get_connection()
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS enrollments (
                        username TEXT PRIMARY KEY,
                        vector BLOB NOT NULL,
                        vector_dim INTEGER NOT NULL,
                        image BLOB NOT NULL,
                        created_at TEXT NOT NULL
                    )
                """)
                conn.commit()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Failed to initialize enrollment store: {e}") from e

        logger.debug("Database schema initialized")

    def _connect_or_raise(self) -> sqlite3.Connection:
        try:
            return self._get_connection()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot open enrollment store: {e}") from e

    @staticmethod
    def _row_to_enrollment(row: sqlite3.Row) -> Enrollment:
        vector = np.frombuffer(row["vector"], dtype="<f8")
        if vector.shape[0] != row["vector_dim"]:
            raise StoreUnavailableError(
                f"Corrupt vector for {row['username']}: expected {row['vector_dim']} "
                f"values, found {vector.shape[0]}"
            )
        try:
            created_at = datetime.fromisoformat(row["created_at"])
        except (TypeError, ValueError) as e:
            raise StoreUnavailableError(
                f"Corrupt timestamp for {row['username']}: {row['created_at']!r}"
            ) from e
        return Enrollment(
            username=row["username"],
            vector=vector,
            image=bytes(row["image"]),
            created_at=created_at,
        )

    def insert(self, enrollment: Enrollment) -> Enrollment:
        vector_blob = enrollment.vector.astype("<f8").tobytes()

        with self._lock:
            conn = self._connect_or_raise()
            try:
                conn.execute("""
                    INSERT INTO enrollments (username, vector, vector_dim, image, created_at)
                    VALUES (?, ?, ?, ?, ?)
                """, (
                    enrollment.username,
                    vector_blob,
                    enrollment.vector_dim,
                    enrollment.image,
                    enrollment.created_at.isoformat(),
                ))
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                raise DuplicateUsernameError(enrollment.username) from e
            except sqlite3.Error as e:
                conn.rollback()
                raise StoreUnavailableError(f"Failed to insert enrollment: {e}") from e

        logger.info(f"Stored enrollment for {enrollment.username} (dim={enrollment.vector_dim})")
        return enrollment

    def lookup_by_username(self, username: str) -> Enrollment:
        try:
            with self._lock:
                row = self._get_connection().execute(
                    "SELECT * FROM enrollments WHERE username = ?", (username,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Failed to read enrollment: {e}") from e

        if row is None:
            raise NotFoundError(username)
        return self._row_to_enrollment(row)

    def list_all(self) -> List[Enrollment]:
        try:
            with self._lock:
                rows = self._get_connection().execute(
                    "SELECT * FROM enrollments ORDER BY created_at, username"
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Failed to list enrollments: {e}") from e

        enrollments = [self._row_to_enrollment(row) for row in rows]
        logger.debug(f"Loaded {len(enrollments)} enrollments")
        return enrollments

    def delete_by_username(self, username: str) -> None:
        with self._lock:
            conn = self._connect_or_raise()
            try:
                cursor = conn.execute(
                    "DELETE FROM enrollments WHERE username = ?", (username,)
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise StoreUnavailableError(f"Failed to delete enrollment: {e}") from e

        if cursor.rowcount == 0:
            logger.warning(f"Cannot delete: user {username} not found")
            raise NotFoundError(username)

        logger.info(f"Deleted enrollment for {username}")

    def count(self) -> int:
        try:
            with self._lock:
                row = self._get_connection().execute(
                    "SELECT COUNT(*) AS count FROM enrollments"
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Failed to count enrollments: {e}") from e
        return row["count"]

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug("Database connection closed")


# Singleton instance for the store
_store_instance: Optional[EnrollmentStore] = None


def create_enrollment_store(storage_config: Dict) -> EnrollmentStore:
    """
    Build an enrollment store from a storage config section.

    Args:
        storage_config: Dict with keys:
            - backend: "sqlite" (default) or "memory"
            - db_path: SQLite file path, relative to the project root
            - timeout_sec: Busy timeout in seconds (default 5.0)

    Raises:
        ValueError: If the backend name is unknown.
    """
    backend = storage_config.get("backend", "sqlite")

    if backend == "memory":
        return InMemoryEnrollmentStore()

    if backend == "sqlite":
        db_path = Path(storage_config.get("db_path", "storage/enrollments.sqlite"))
        if not db_path.is_absolute():
            from core.config import get_project_root
            db_path = get_project_root() / db_path
        return SQLiteEnrollmentStore(
            db_path=str(db_path),
            timeout_sec=float(storage_config.get("timeout_sec", 5.0)),
        )

    raise ValueError(f"Unknown storage backend: {backend}")


def get_enrollment_store() -> EnrollmentStore:
    """
    Get or create the singleton EnrollmentStore instance.

    The first call builds the store from the "storage" config section;
    subsequent calls return the same instance.
    """
    global _store_instance

    if _store_instance is None:
        from core.config import get_storage_config

        _store_instance = create_enrollment_store(get_storage_config())

    return _store_instance


def close_enrollment_store() -> None:
    """Close and forget the singleton store, if one was created."""
    global _store_instance

    if _store_instance is not None:
        _store_instance.close()
        _store_instance = None
