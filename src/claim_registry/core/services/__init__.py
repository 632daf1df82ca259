"""Core services exports."""

# Consent Services
from .consent import ClaimRequest, ConsentClient, ReclaimConsentClient

# Database Services
from .database.db_manage import DbManageService
from .database.db_session import DbSessionService

# Registry Services
from .registry import UserClaimRegistry

# Verification
from .verification import (
    ClaimVerifier,
    ProviderMatchVerifier,
    UnverifiedClaimVerifier,
    build_verifier,
)

__all__ = [
    # Consent Services
    "ClaimRequest",
    "ConsentClient",
    "ReclaimConsentClient",
    # Database Services
    "DbManageService",
    "DbSessionService",
    # Registry Services
    "UserClaimRegistry",
    # Verification
    "ClaimVerifier",
    "ProviderMatchVerifier",
    "UnverifiedClaimVerifier",
    "build_verifier",
]
