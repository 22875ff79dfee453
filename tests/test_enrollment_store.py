"""
Tests for the Enrollment Store module.

This test suite verifies, for both the in-memory and SQLite backends:
- Enrollment dataclass normalization and immutability
- Insert / lookup / list / delete
- Atomic username uniqueness, including under concurrent inserts
- Storage failures surfacing as StoreUnavailableError

Run with: pytest tests/test_enrollment_store.py -v
"""

import os
import sys
import sqlite3
import threading
import tempfile
import shutil
from datetime import datetime, timezone
from unittest.mock import MagicMock

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.enrollment_store import (
    Enrollment,
    EnrollmentSummary,
    InMemoryEnrollmentStore,
    SQLiteEnrollmentStore,
    create_enrollment_store,
)
from core.exceptions import (
    DuplicateUsernameError,
    NotFoundError,
    StoreUnavailableError,
)


def make_enrollment(username: str, seed: int = 0, dim: int = 128) -> Enrollment:
    rng = np.random.default_rng(seed)
    return Enrollment(
        username=username,
        vector=rng.standard_normal(dim),
        image=f"data:image/jpeg;base64,{username}".encode("utf-8"),
    )


class TestEnrollment:
    """Tests for the Enrollment dataclass."""

    def test_vector_converted_to_float64(self):
        enrollment = Enrollment(
            username="alice",
            vector=np.ones(128, dtype=np.float32),
            image=b"img",
        )
        assert enrollment.vector.dtype == np.float64
        assert enrollment.vector_dim == 128

    def test_vector_from_list(self):
        enrollment = Enrollment(username="alice", vector=[1.0, 2.0, 3.0], image=b"img")
        assert enrollment.vector.shape == (3,)

    def test_vector_is_read_only(self):
        enrollment = make_enrollment("alice")
        with pytest.raises(ValueError):
            enrollment.vector[0] = 42.0

    def test_vector_copied_from_source(self):
        source = np.ones(4)
        enrollment = Enrollment(username="alice", vector=source, image=b"img")
        source[0] = 5.0
        assert enrollment.vector[0] == 1.0

    def test_fields_are_frozen(self):
        enrollment = make_enrollment("alice")
        with pytest.raises(AttributeError):
            enrollment.username = "mallory"

    def test_created_at_defaults_to_utc_now(self):
        before = datetime.now(timezone.utc)
        enrollment = make_enrollment("alice")
        after = datetime.now(timezone.utc)
        assert before <= enrollment.created_at <= after

    def test_summary_has_no_biometric_data(self):
        enrollment = make_enrollment("alice")
        summary = EnrollmentSummary.from_enrollment(enrollment)
        assert summary.username == "alice"
        assert summary.created_at == enrollment.created_at
        assert not hasattr(summary, "vector")
        assert not hasattr(summary, "image")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    path = tempfile.mkdtemp(prefix="enrollment_store_test_")
    yield path
    shutil.rmtree(path)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, temp_dir):
    """Each test runs against both store backends."""
    if request.param == "memory":
        s = InMemoryEnrollmentStore()
    else:
        s = SQLiteEnrollmentStore(db_path=os.path.join(temp_dir, "test.sqlite"))
    yield s
    s.close()


class TestEnrollmentStore:
    """Behavior shared by every EnrollmentStore backend."""

    def test_empty_store(self, store):
        assert store.list_all() == []
        assert store.count() == 0

    def test_insert_and_lookup(self, store):
        original = make_enrollment("alice", seed=1)
        stored = store.insert(original)
        assert stored.username == "alice"

        loaded = store.lookup_by_username("alice")
        assert loaded.username == "alice"
        assert np.array_equal(loaded.vector, original.vector)
        assert loaded.image == original.image
        assert loaded.created_at == original.created_at

    def test_lookup_missing_raises_not_found(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            store.lookup_by_username("nobody")
        assert exc_info.value.username == "nobody"

    def test_duplicate_insert_keeps_first(self, store):
        first = make_enrollment("alice", seed=1)
        store.insert(first)

        with pytest.raises(DuplicateUsernameError):
            store.insert(make_enrollment("alice", seed=2))

        assert store.count() == 1
        assert np.array_equal(store.lookup_by_username("alice").vector, first.vector)

    def test_duplicate_vectors_allowed(self, store):
        """Same vector under two usernames is permitted."""
        vector = np.ones(128)
        store.insert(Enrollment(username="alice", vector=vector, image=b"a"))
        store.insert(Enrollment(username="bob", vector=vector, image=b"b"))
        assert store.count() == 2

    def test_list_all(self, store):
        for i, name in enumerate(["alice", "bob", "carol"]):
            store.insert(make_enrollment(name, seed=i))

        usernames = {e.username for e in store.list_all()}
        assert usernames == {"alice", "bob", "carol"}

    def test_list_all_is_snapshot(self, store):
        store.insert(make_enrollment("alice"))
        snapshot = store.list_all()
        store.insert(make_enrollment("bob", seed=1))
        assert len(snapshot) == 1

    def test_delete(self, store):
        store.insert(make_enrollment("alice"))
        store.delete_by_username("alice")

        assert store.count() == 0
        with pytest.raises(NotFoundError):
            store.lookup_by_username("alice")

    def test_delete_missing_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.delete_by_username("nobody")

    def test_reinsert_after_delete(self, store):
        store.insert(make_enrollment("alice", seed=1))
        store.delete_by_username("alice")
        store.insert(make_enrollment("alice", seed=2))
        assert store.count() == 1

    def test_concurrent_same_username_inserts(self, store):
        """Exactly one of many racing inserts for one username succeeds."""
        n_threads = 8
        barrier = threading.Barrier(n_threads)
        successes = []
        duplicates = []

        def worker(seed):
            enrollment = make_enrollment("alice", seed=seed)
            barrier.wait()
            try:
                store.insert(enrollment)
                successes.append(seed)
            except DuplicateUsernameError:
                duplicates.append(seed)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(n_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(successes) == 1
        assert len(duplicates) == n_threads - 1
        assert store.count() == 1


class TestSQLiteEnrollmentStore:
    """SQLite-specific behavior."""

    def test_persists_across_instances(self, temp_dir):
        db_path = os.path.join(temp_dir, "persist.sqlite")
        original = make_enrollment("alice", seed=3)

        first = SQLiteEnrollmentStore(db_path=db_path)
        first.insert(original)
        first.close()

        second = SQLiteEnrollmentStore(db_path=db_path)
        try:
            loaded = second.lookup_by_username("alice")
            assert np.array_equal(loaded.vector, original.vector)
            assert loaded.created_at == original.created_at
        finally:
            second.close()

    def test_creates_parent_directory(self, temp_dir):
        db_path = os.path.join(temp_dir, "nested", "dir", "db.sqlite")
        store = SQLiteEnrollmentStore(db_path=db_path)
        try:
            assert os.path.exists(os.path.dirname(db_path))
        finally:
            store.close()

    def test_list_all_ordered_by_creation(self, temp_dir):
        store = SQLiteEnrollmentStore(db_path=os.path.join(temp_dir, "order.sqlite"))
        try:
            for i, name in enumerate(["carol", "alice", "bob"]):
                store.insert(Enrollment(
                    username=name,
                    vector=np.ones(4),
                    image=b"img",
                    created_at=datetime(2026, 1, 1, 12, i, tzinfo=timezone.utc),
                ))
            assert [e.username for e in store.list_all()] == ["carol", "alice", "bob"]
        finally:
            store.close()

    def test_locked_database_times_out(self, temp_dir):
        """A held write lock surfaces as StoreUnavailableError, not a hang."""
        db_path = os.path.join(temp_dir, "locked.sqlite")
        store = SQLiteEnrollmentStore(db_path=db_path, timeout_sec=0.1)

        other = sqlite3.connect(db_path)
        other.execute("BEGIN EXCLUSIVE")
        try:
            with pytest.raises(StoreUnavailableError):
                store.insert(make_enrollment("alice"))
        finally:
            other.rollback()
            other.close()

        store.insert(make_enrollment("alice"))
        assert store.count() == 1
        store.close()

    def test_database_error_becomes_store_unavailable(self, temp_dir):
        store = SQLiteEnrollmentStore(db_path=os.path.join(temp_dir, "broken.sqlite"))
        real_conn = store._get_connection()
        broken_conn = MagicMock()
        broken_conn.execute.side_effect = sqlite3.OperationalError("database is locked")
        store._conn = broken_conn

        with pytest.raises(StoreUnavailableError) as exc_info:
            store.list_all()
        assert exc_info.value.retryable is True

        with pytest.raises(StoreUnavailableError):
            store.insert(make_enrollment("alice"))

        with pytest.raises(StoreUnavailableError):
            store.lookup_by_username("alice")

        with pytest.raises(StoreUnavailableError):
            store.delete_by_username("alice")

        store._conn = real_conn
        store.close()

    def test_connection_failure_becomes_store_unavailable(self, temp_dir, monkeypatch):
        """Opening the connection can fail too, e.g. after the file is removed."""
        store = SQLiteEnrollmentStore(db_path=os.path.join(temp_dir, "gone.sqlite"))
        store.close()
        monkeypatch.setattr(
            store,
            "_get_connection",
            MagicMock(side_effect=sqlite3.OperationalError("unable to open database file")),
        )

        with pytest.raises(StoreUnavailableError):
            store.insert(make_enrollment("alice"))

        with pytest.raises(StoreUnavailableError):
            store.delete_by_username("alice")

        with pytest.raises(StoreUnavailableError):
            store.lookup_by_username("alice")

        with pytest.raises(StoreUnavailableError):
            store.list_all()

    def test_corrupt_timestamp_becomes_store_unavailable(self, temp_dir):
        store = SQLiteEnrollmentStore(db_path=os.path.join(temp_dir, "corrupt.sqlite"))
        try:
            store.insert(make_enrollment("alice"))
            conn = store._get_connection()
            conn.execute(
                "UPDATE enrollments SET created_at = ? WHERE username = ?",
                ("not a timestamp", "alice"),
            )
            conn.commit()

            with pytest.raises(StoreUnavailableError):
                store.lookup_by_username("alice")

            with pytest.raises(StoreUnavailableError):
                store.list_all()
        finally:
            store.close()


class TestCreateEnrollmentStore:
    """Tests for building a store from config."""

    def test_memory_backend(self):
        assert isinstance(create_enrollment_store({"backend": "memory"}), InMemoryEnrollmentStore)

    def test_sqlite_backend_absolute_path(self, temp_dir):
        store = create_enrollment_store({
            "backend": "sqlite",
            "db_path": os.path.join(temp_dir, "cfg.sqlite"),
            "timeout_sec": 1.5,
        })
        try:
            assert isinstance(store, SQLiteEnrollmentStore)
            assert store.timeout_sec == 1.5
        finally:
            store.close()

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_enrollment_store({"backend": "mongodb"})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
