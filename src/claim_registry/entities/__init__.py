"""Entities module with entity-centric structure.

Each entity has its own package containing:
- entity.py: Domain model
- table.py: Database persistence model
"""

from .user_claim import ClaimStatus, UserClaim, UserClaimTable

__all__ = ["ClaimStatus", "UserClaim", "UserClaimTable"]
