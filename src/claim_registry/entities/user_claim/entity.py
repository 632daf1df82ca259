"""Entity: UserClaim."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ClaimStatus(str, Enum):
    """Lifecycle of a user's claim. ``pending -> claimed`` is the only transition."""

    PENDING = "pending"
    CLAIMED = "claimed"


class UserClaim(BaseModel):
    """Registration and claim state of one user identity.

    The identity is the primary key and never changes. ``template_link`` and
    ``callback_id`` are assigned once at creation. The claim fields stay empty
    until the single transition to :attr:`ClaimStatus.CLAIMED`.
    """

    identity: str = Field(description="Primary identity key (userAddress or userId)")
    address: str | None = Field(default=None, description="Optional wallet address")
    template_link: str = Field(description="Template URL issued by the consent service")
    callback_id: str = Field(description="Token correlating claim callbacks")
    claim_status: ClaimStatus = Field(default=ClaimStatus.PENDING)
    claim_subject: str | None = Field(
        default=None, description="Subject identifier derived from the claim"
    )
    claim_string: str | None = Field(
        default=None, description="Serialized claim payload"
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    claim_updated_at: datetime | None = None

    @property
    def is_claimed(self) -> bool:
        return self.claim_status == ClaimStatus.CLAIMED

    def public_view(self, identity_field: str, include_claim: bool = False) -> dict[str, Any]:
        """Fields safe to return to API callers, keyed by their wire names."""
        view: dict[str, Any] = {identity_field: self.identity}
        if identity_field != "userAddress" and self.address is not None:
            view["userAddress"] = self.address
        view.update(
            templateLink=self.template_link,
            callbackId=self.callback_id,
            status=self.claim_status.value,
        )
        if include_claim:
            view["claimString"] = self.claim_string
            view["claimUpdatedAt"] = (
                self.claim_updated_at.isoformat() if self.claim_updated_at else None
            )
        return view
