"""Core models exports."""

from .claim import Claim, ClaimPayload, decode_claim_payload

__all__ = ["Claim", "ClaimPayload", "decode_claim_payload"]
