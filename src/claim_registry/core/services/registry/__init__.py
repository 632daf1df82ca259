from .user_claim_registry import UserClaimRegistry

__all__ = ["UserClaimRegistry"]
