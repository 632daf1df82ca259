"""User registration and lookup routes."""

from typing import Any

from fastapi import APIRouter, Body, Depends

from claim_registry.api.http.deps import get_registry
from claim_registry.core.errors import ValidationError
from claim_registry.core.services import UserClaimRegistry

router = APIRouter(tags=["users"])


@router.get("/user/{identity}")
def get_user(
    identity: str,
    include_claim: bool = False,
    registry: UserClaimRegistry = Depends(get_registry),
) -> dict[str, Any]:
    """Get the public view of a registered user."""
    return registry.get_user(identity, include_claim=include_claim)


@router.post("/adduser/")
def add_user(
    payload: Any = Body(default=None),
    registry: UserClaimRegistry = Depends(get_registry),
) -> dict[str, str]:
    """Register a user and return the claim template link."""
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    identity = payload.get(registry.identity_field)
    address = None
    if registry.identity_field != "userAddress":
        address = payload.get("userAddress")
    return registry.register(identity, address)
