"""Unit tests for the user claim store backends.

The ``store`` fixture is parametrized over the SQL and in-memory backends so
both honour the same conditional-write contract.
"""

import threading
from datetime import UTC, datetime
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from claim_registry.core.errors import ConflictError, NotFoundError, StorageError
from claim_registry.core.storage import SqlUserClaimStore
from claim_registry.entities.user_claim import ClaimStatus, UserClaim


def _record(identity: str = "0xabc", callback_id: str = "cb-1") -> UserClaim:
    return UserClaim(
        identity=identity,
        template_link=f"https://templates.test/template?id={callback_id}",
        callback_id=callback_id,
    )


def _claim(store, identity: str = "0xabc", subject: str = "octocat", claim_string: str = "{}"):
    return store.compare_and_swap_status(
        identity,
        ClaimStatus.PENDING,
        ClaimStatus.CLAIMED,
        claim_string=claim_string,
        claim_subject=subject,
        updated_at=datetime.now(UTC),
    )


class TestCreate:
    def test_create_then_get(self, store):
        store.create(_record())

        fetched = store.get("0xabc")

        assert fetched is not None
        assert fetched.identity == "0xabc"
        assert fetched.callback_id == "cb-1"
        assert fetched.claim_status == ClaimStatus.PENDING
        assert fetched.claim_string is None
        assert fetched.claim_updated_at is None

    def test_create_is_conditioned_on_absence(self, store):
        store.create(_record())

        with pytest.raises(ConflictError):
            store.create(_record(callback_id="cb-2"))

        # The original record is untouched
        assert store.get("0xabc").callback_id == "cb-1"

    def test_callback_id_is_unique(self, store):
        store.create(_record("0xabc", "cb-1"))

        with pytest.raises(ConflictError):
            store.create(_record("0xdef", "cb-1"))

        assert store.get("0xdef") is None

    def test_get_missing_returns_none(self, store):
        assert store.get("missing") is None


class TestLookups:
    def test_get_by_callback_id(self, store):
        store.create(_record("0xabc", "cb-1"))
        store.create(_record("0xdef", "cb-2"))

        assert store.get_by_callback_id("cb-2").identity == "0xdef"
        assert store.get_by_callback_id("unknown") is None

    def test_find_claimed_by_subject_ignores_pending(self, store):
        store.create(_record())

        assert store.find_claimed_by_subject("octocat") is None

        _claim(store)

        found = store.find_claimed_by_subject("octocat")
        assert found is not None
        assert found.identity == "0xabc"

    def test_list_records(self, store):
        store.create(_record("0xabc", "cb-1"))
        store.create(_record("0xdef", "cb-2"))

        assert {r.identity for r in store.list_records()} == {"0xabc", "0xdef"}

    def test_is_available(self, store):
        assert store.is_available() is True


class TestCompareAndSwap:
    def test_transition_sets_claim_fields(self, store):
        store.create(_record())

        updated = _claim(store, claim_string='{"claims": []}')

        assert updated.claim_status == ClaimStatus.CLAIMED
        assert updated.claim_subject == "octocat"
        assert updated.claim_string == '{"claims": []}'
        assert updated.claim_updated_at is not None
        assert store.get("0xabc").claim_status == ClaimStatus.CLAIMED

    def test_second_transition_conflicts_without_overwriting(self, store):
        store.create(_record())
        _claim(store, subject="octocat", claim_string="first")

        with pytest.raises(ConflictError):
            _claim(store, subject="someone-else", claim_string="second")

        record = store.get("0xabc")
        assert record.claim_string == "first"
        assert record.claim_subject == "octocat"

    def test_missing_record_is_not_found(self, store):
        with pytest.raises(NotFoundError):
            _claim(store, identity="missing")

    def test_subject_cannot_be_credited_twice(self, store):
        """Two identities racing with the same subject: only one wins."""
        store.create(_record("0xabc", "cb-1"))
        store.create(_record("0xdef", "cb-2"))

        _claim(store, identity="0xabc", subject="octocat")
        with pytest.raises(ConflictError):
            _claim(store, identity="0xdef", subject="octocat")

        assert store.get("0xdef").claim_status == ClaimStatus.PENDING
        assert store.get("0xdef").claim_string is None

    def test_callback_id_survives_transition(self, store):
        store.create(_record())
        _claim(store)

        assert store.get_by_callback_id("cb-1").claim_status == ClaimStatus.CLAIMED


class TestSqlStorageErrors:
    """Backend failures surface as a generic StorageError."""

    @pytest.fixture
    def failing_session(self):
        session = Mock()
        error = OperationalError("SELECT 1", {}, Exception("database is locked"))
        session.get.side_effect = error
        session.exec.side_effect = error
        session.execute.side_effect = error
        return session

    def test_get_failure(self, failing_session):
        with pytest.raises(StorageError) as exc_info:
            SqlUserClaimStore(failing_session).get("0xabc")

        assert "locked" not in exc_info.value.message

    def test_create_failure_rolls_back(self, failing_session):
        with pytest.raises(StorageError):
            SqlUserClaimStore(failing_session).create(_record())

        failing_session.rollback.assert_called_once()

    def test_callback_lookup_failure(self, failing_session):
        with pytest.raises(StorageError, match="Could not get status for callback id cb-1"):
            SqlUserClaimStore(failing_session).get_by_callback_id("cb-1")

    def test_update_failure(self, failing_session):
        with pytest.raises(StorageError):
            _claim(SqlUserClaimStore(failing_session))

    def test_unavailable(self, failing_session):
        assert SqlUserClaimStore(failing_session).is_available() is False


class TestInMemoryConcurrentReads:
    def test_reads_while_writing(self, memory_store):
        """Lookups that scan the records stay valid while another thread inserts."""
        done = threading.Event()
        errors: list[BaseException] = []

        def read():
            while not done.is_set():
                try:
                    memory_store.get_by_callback_id("missing")
                    memory_store.find_claimed_by_subject("octocat")
                    memory_store.list_records()
                except Exception as exc:
                    errors.append(exc)
                    return

        readers = [threading.Thread(target=read) for _ in range(2)]
        for reader in readers:
            reader.start()
        try:
            for i in range(3000):
                memory_store.create(_record(f"0x{i}", f"cb-{i}"))
        finally:
            done.set()
            for reader in readers:
                reader.join()

        assert errors == []
        assert len(memory_store.list_records()) == 3000
