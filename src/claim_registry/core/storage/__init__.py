"""Storage abstractions for user claim records."""

from .user_claim_store import (
    InMemoryUserClaimStore,
    SqlUserClaimStore,
    UserClaimStore,
)

__all__ = ["InMemoryUserClaimStore", "SqlUserClaimStore", "UserClaimStore"]
