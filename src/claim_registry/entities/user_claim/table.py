"""UserClaim database table model."""

from datetime import UTC, datetime

from sqlmodel import Field, SQLModel

from claim_registry.runtime.context import get_config


class UserClaimTable(SQLModel, table=True):
    """Database persistence model for user claim records.

    ``callback_id`` backs the secondary lookup index. ``claim_subject`` is
    unique so two records can never be credited with the same claim; NULLs
    (pending records) do not collide.
    """

    __tablename__ = get_config().store.table_name

    identity: str = Field(primary_key=True)
    address: str | None = None
    template_link: str
    callback_id: str = Field(unique=True, index=True)
    claim_status: str = Field(default="pending", index=True)
    claim_subject: str | None = Field(default=None, unique=True, index=True)
    claim_string: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    claim_updated_at: datetime | None = None
