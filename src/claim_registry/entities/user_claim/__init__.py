"""Entity package: UserClaim."""

from .entity import ClaimStatus, UserClaim
from .table import UserClaimTable

__all__ = ["ClaimStatus", "UserClaim", "UserClaimTable"]
