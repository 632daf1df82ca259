"""Claim verification policies.

No cryptographic verification of claim proofs is performed. The verifier is
the seam where a real attestor signature check would be plugged in.
"""

from abc import ABC, abstractmethod

from loguru import logger

from claim_registry.core.models.claim import ClaimPayload


class ClaimVerifier(ABC):
    @abstractmethod
    def verify(self, payload: ClaimPayload) -> bool:
        """Return True when ``payload`` is acceptable."""


class UnverifiedClaimVerifier(ClaimVerifier):
    """Accepts every claim. Authenticity is not checked."""

    def verify(self, payload: ClaimPayload) -> bool:
        logger.warning(
            "Accepting {} claim(s) without proof verification", len(payload.claims)
        )
        return True


class ProviderMatchVerifier(ClaimVerifier):
    """Only accepts claims issued for the expected provider."""

    def __init__(self, expected_provider: str):
        self._expected_provider = expected_provider

    def verify(self, payload: ClaimPayload) -> bool:
        mismatched = [c.provider for c in payload.claims if c.provider != self._expected_provider]
        if mismatched:
            logger.warning(
                "Rejecting claim from provider(s) {}; expected {}",
                mismatched,
                self._expected_provider,
            )
            return False
        return True


def build_verifier(policy: str, provider: str) -> ClaimVerifier:
    if policy == "provider":
        return ProviderMatchVerifier(provider)
    return UnverifiedClaimVerifier()
