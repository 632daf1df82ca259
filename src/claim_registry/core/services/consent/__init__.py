from .consent_client import (
    ClaimRequest,
    ConsentClient,
    ConsentConnection,
    ReclaimConsentClient,
    Template,
)

__all__ = [
    "ClaimRequest",
    "ConsentClient",
    "ConsentConnection",
    "ReclaimConsentClient",
    "Template",
]
