"""User-claim registry: registration, lookup and the one-time claim transition."""

import uuid
from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote

from loguru import logger

from claim_registry.core.errors import AlreadyClaimedError, NotFoundError, ValidationError
from claim_registry.core.models.claim import decode_claim_payload
from claim_registry.core.services.consent import ClaimRequest, ConsentClient
from claim_registry.core.services.verification import ClaimVerifier, UnverifiedClaimVerifier
from claim_registry.core.storage import UserClaimStore
from claim_registry.entities.user_claim import ClaimStatus, UserClaim
from claim_registry.runtime.config.config_data import ConsentConfig


def _require_identity(identity: Any, field: str = "identity") -> str:
    if not isinstance(identity, str) or not identity.strip():
        raise ValidationError(f'"{field}" must be a string')
    # Stored and looked up verbatim; the key is never normalized
    return identity


class UserClaimRegistry:
    """Owns user registration state and the ``pending -> claimed`` transition.

    All collaborators are injected; the registry keeps no state of its own
    between calls. Mutual exclusion is delegated to the store's conditional
    writes and nothing is retried.
    """

    def __init__(
        self,
        store: UserClaimStore,
        consent_client: ConsentClient,
        consent_config: ConsentConfig,
        verifier: ClaimVerifier | None = None,
        identity_field: str = "userAddress",
    ):
        self._store = store
        self._consent_client = consent_client
        self._consent_config = consent_config
        self._verifier = verifier or UnverifiedClaimVerifier()
        self._identity_field = identity_field

    @property
    def identity_field(self) -> str:
        return self._identity_field

    def _callback_url(self, identity: str) -> str:
        base = self._consent_config.callback_url.rstrip("/")
        return f"{base}/{quote(identity, safe='')}"

    def register(self, identity: Any, address: Any = None) -> dict[str, str]:
        """Create a pending record and return the issued template link.

        Raises:
            ValidationError: identity missing or not a string
            ConflictError: a record with this identity already exists
        """
        identity = _require_identity(identity, self._identity_field)
        if address is not None and not isinstance(address, str):
            raise ValidationError('"userAddress" must be a string')

        callback_id = str(uuid.uuid4())
        connection = self._consent_client.get_consent(
            self._consent_config.app_name,
            [ClaimRequest(provider=self._consent_config.provider, params={})],
            self._callback_url(identity),
        )
        template = connection.generate_template(callback_id)

        record = UserClaim(
            identity=identity,
            address=address,
            template_link=template.url,
            callback_id=callback_id,
            claim_status=ClaimStatus.PENDING,
        )
        self._store.create(record)
        logger.info("Registered {} with callback id {}", identity, callback_id)
        return {"templateLink": template.url}

    def get_user(self, identity: Any, include_claim: bool = False) -> dict[str, Any]:
        identity = _require_identity(identity, self._identity_field)
        record = self._store.get(identity)
        if record is None:
            raise NotFoundError("User not found")
        return record.public_view(self._identity_field, include_claim=include_claim)

    def handle_claim_callback(self, identity: Any, raw_payload: bytes | str) -> dict[str, str]:
        """Record the claim posted back for ``identity``.

        Raises:
            ValidationError: malformed payload, or the verifier rejected it
            AlreadyClaimedError: the claim subject was already credited
            NotFoundError: no record for ``identity``
            ConflictError: the record is not pending (lost a race or already claimed)
        """
        identity = _require_identity(identity, self._identity_field)
        payload = decode_claim_payload(raw_payload)
        subject = payload.subject_id

        if not self._verifier.verify(payload):
            raise ValidationError("Claim could not be verified")

        existing = self._store.find_claimed_by_subject(subject)
        if existing is not None:
            logger.warning("Claim subject {} already credited to {}", subject, existing.identity)
            raise AlreadyClaimedError(f"Claim for {subject} has already been made")

        record = self._store.compare_and_swap_status(
            identity,
            ClaimStatus.PENDING,
            ClaimStatus.CLAIMED,
            claim_string=payload.serialize(),
            claim_subject=subject,
            updated_at=datetime.now(UTC),
        )
        logger.info("Claim recorded for {} (subject {})", identity, subject)
        return {"status": record.claim_status.value}

    def get_status(self, callback_id: Any) -> dict[str, str]:
        if not isinstance(callback_id, str) or not callback_id:
            raise ValidationError('"callbackId" must be a string')
        record = self._store.get_by_callback_id(callback_id)
        if record is None:
            raise NotFoundError(f"callbackId {callback_id} not found")
        return {"callbackId": callback_id, "status": record.claim_status.value}
