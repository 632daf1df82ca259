"""User claim storage interface and implementations.

Provides a unified interface over the backing key-value store with a SQL
backend and an in-memory fallback. Both expose conditional writes as
first-class operations: ``create`` only succeeds when the key is absent and
``compare_and_swap_status`` only succeeds when the current status matches.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import datetime

from loguru import logger
from sqlalchemy import insert, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from claim_registry.core.errors import ConflictError, NotFoundError, StorageError
from claim_registry.entities.user_claim import ClaimStatus, UserClaim, UserClaimTable


class UserClaimStore(ABC):
    """Abstract interface for user claim storage backends."""

    @abstractmethod
    def create(self, record: UserClaim) -> UserClaim:
        """Store a new record, conditioned on the identity not existing.

        Raises:
            ConflictError: A record with the same identity or callback id exists
            StorageError: The backend failed
        """

    @abstractmethod
    def get(self, identity: str) -> UserClaim | None:
        """Fetch a record by primary key."""

    @abstractmethod
    def get_by_callback_id(self, callback_id: str) -> UserClaim | None:
        """Fetch a record through the secondary callback id index."""

    @abstractmethod
    def find_claimed_by_subject(self, subject: str) -> UserClaim | None:
        """Return the claimed record credited with ``subject``, if any."""

    @abstractmethod
    def compare_and_swap_status(
        self,
        identity: str,
        expected: ClaimStatus,
        new: ClaimStatus,
        *,
        claim_string: str,
        claim_subject: str,
        updated_at: datetime,
    ) -> UserClaim:
        """Move ``identity`` from ``expected`` to ``new`` atomically.

        Raises:
            NotFoundError: No record with that identity
            ConflictError: The current status is not ``expected``, or the
                subject is already credited to another record
            StorageError: The backend failed
        """

    @abstractmethod
    def list_records(self) -> list[UserClaim]:
        """Return every stored record."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the storage backend is reachable."""


class InMemoryUserClaimStore(UserClaimStore):
    """Dict-backed store. A lock makes each conditional write atomic."""

    def __init__(self):
        self._data: dict[str, UserClaim] = {}
        self._lock = threading.Lock()

    def _snapshot(self) -> list[UserClaim]:
        # Readers iterate a copy so concurrent writers never resize it mid-loop
        with self._lock:
            return list(self._data.values())

    def create(self, record: UserClaim) -> UserClaim:
        with self._lock:
            if record.identity in self._data:
                raise ConflictError(f"User {record.identity} already exists")
            if any(r.callback_id == record.callback_id for r in self._data.values()):
                raise ConflictError("Could not create user")
            self._data[record.identity] = record.model_copy()
        return record

    def get(self, identity: str) -> UserClaim | None:
        with self._lock:
            record = self._data.get(identity)
        return record.model_copy() if record else None

    def get_by_callback_id(self, callback_id: str) -> UserClaim | None:
        for record in self._snapshot():
            if record.callback_id == callback_id:
                return record.model_copy()
        return None

    def find_claimed_by_subject(self, subject: str) -> UserClaim | None:
        for record in self._snapshot():
            if record.is_claimed and record.claim_subject == subject:
                return record.model_copy()
        return None

    def compare_and_swap_status(
        self,
        identity: str,
        expected: ClaimStatus,
        new: ClaimStatus,
        *,
        claim_string: str,
        claim_subject: str,
        updated_at: datetime,
    ) -> UserClaim:
        with self._lock:
            current = self._data.get(identity)
            if current is None:
                raise NotFoundError("User not found")
            if current.claim_status != expected:
                raise ConflictError(f"User {identity} is not {expected.value}")
            if any(
                r.claim_subject == claim_subject and r.identity != identity
                for r in self._data.values()
            ):
                raise ConflictError(f"Claim subject {claim_subject} already credited")
            updated = current.model_copy(
                update={
                    "claim_status": new,
                    "claim_string": claim_string,
                    "claim_subject": claim_subject,
                    "claim_updated_at": updated_at,
                }
            )
            self._data[identity] = updated
        return updated.model_copy()

    def list_records(self) -> list[UserClaim]:
        return [r.model_copy() for r in self._snapshot()]

    def is_available(self) -> bool:
        """In-memory storage is always available."""
        return True


class SqlUserClaimStore(UserClaimStore):
    """SQLModel-backed store.

    Each write commits immediately so the conditional write is the unit of
    consistency; the session is owned by the caller.
    """

    def __init__(self, session: Session):
        self._session = session

    @staticmethod
    def _to_entity(row: UserClaimTable) -> UserClaim:
        return UserClaim.model_validate(row, from_attributes=True)

    def create(self, record: UserClaim) -> UserClaim:
        # Core INSERT so the primary key constraint, not the identity map, decides
        statement = insert(UserClaimTable).values(
            identity=record.identity,
            address=record.address,
            template_link=record.template_link,
            callback_id=record.callback_id,
            claim_status=record.claim_status.value,
            created_at=record.created_at,
        )
        try:
            self._session.execute(statement)
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            logger.info("Conditional create rejected for {}: {}", record.identity, type(e).__name__)
            raise ConflictError(f"User {record.identity} already exists") from e
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error("Create failed for {}: {}", record.identity, e)
            raise StorageError("Could not create user") from e
        return record

    def get(self, identity: str) -> UserClaim | None:
        try:
            row = self._session.get(UserClaimTable, identity)
        except SQLAlchemyError as e:
            logger.error("Get failed for {}: {}", identity, e)
            raise StorageError("Could not get user") from e
        if row is None:
            return None
        return self._to_entity(row)

    def get_by_callback_id(self, callback_id: str) -> UserClaim | None:
        statement = select(UserClaimTable).where(UserClaimTable.callback_id == callback_id)
        try:
            row = self._session.exec(statement).first()
        except SQLAlchemyError as e:
            logger.error("Callback lookup failed for {}: {}", callback_id, e)
            raise StorageError(f"Could not get status for callback id {callback_id}") from e
        if row is None:
            return None
        return self._to_entity(row)

    def find_claimed_by_subject(self, subject: str) -> UserClaim | None:
        statement = select(UserClaimTable).where(
            (UserClaimTable.claim_subject == subject)
            & (UserClaimTable.claim_status == ClaimStatus.CLAIMED.value)
        )
        try:
            row = self._session.exec(statement).first()
        except SQLAlchemyError as e:
            logger.error("Subject lookup failed for {}: {}", subject, e)
            raise StorageError("Could not query claims") from e
        if row is None:
            return None
        return self._to_entity(row)

    def compare_and_swap_status(
        self,
        identity: str,
        expected: ClaimStatus,
        new: ClaimStatus,
        *,
        claim_string: str,
        claim_subject: str,
        updated_at: datetime,
    ) -> UserClaim:
        statement = (
            update(UserClaimTable)
            .where(UserClaimTable.identity == identity)
            .where(UserClaimTable.claim_status == expected.value)
            .values(
                claim_status=new.value,
                claim_string=claim_string,
                claim_subject=claim_subject,
                claim_updated_at=updated_at,
            )
        )
        try:
            result = self._session.execute(statement)
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            logger.warning("Claim subject {} already credited; {} rejected", claim_subject, identity)
            raise ConflictError(f"Claim subject {claim_subject} already credited") from e
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error("Claim update failed for {}: {}", identity, e)
            raise StorageError("Could not update claim") from e

        if result.rowcount == 0:
            # Precondition failed: tell a missing record from a lost race
            if self.get(identity) is None:
                raise NotFoundError("User not found")
            raise ConflictError(f"User {identity} is not {expected.value}")

        self._session.expire_all()
        record = self.get(identity)
        if record is None:
            raise NotFoundError("User not found")
        return record

    def list_records(self) -> list[UserClaim]:
        try:
            rows = self._session.exec(select(UserClaimTable)).all()
        except SQLAlchemyError as e:
            logger.error("Listing records failed: {}", e)
            raise StorageError("Could not list users") from e
        return [self._to_entity(row) for row in rows]

    def is_available(self) -> bool:
        try:
            self._session.exec(select(UserClaimTable.identity).limit(1)).first()
            return True
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error("Store availability check failed: {}", e)
            return False
