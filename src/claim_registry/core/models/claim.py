"""Claim payload models and decoding of inbound claim callbacks."""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from claim_registry.core.errors import ValidationError


class Claim(BaseModel):
    """A single attestation produced by the proof service."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: int | str | None = None
    provider: str
    redacted_parameters: str | None = Field(default=None, alias="redactedParameters")
    owner_public_key: str | None = Field(default=None, alias="ownerPublicKey")
    timestamp_s: str | int | None = Field(default=None, alias="timestampS")
    witness_addresses: list[str] = Field(default_factory=list, alias="witnessAddresses")
    signatures: list[str] = Field(default_factory=list)
    parameters: dict[str, str] = Field(default_factory=dict)

    @field_validator("parameters", mode="before")
    @classmethod
    def _parse_parameters(cls, value: Any) -> Any:
        # Some providers send the parameter map as a JSON-encoded string
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as e:
                raise ValueError("parameters must be a JSON object") from e
        if isinstance(value, dict):
            # Values become claim subjects, so null or structured values are rejected
            invalid = [k for k, v in value.items() if not isinstance(v, str)]
            if invalid:
                raise ValueError(f"parameter values must be strings: {', '.join(invalid)}")
        return value


class ClaimPayload(BaseModel):
    """Body posted to the callback endpoint."""

    claims: list[Claim]

    @property
    def subject_id(self) -> str:
        """Identifier the claim is about: first parameter of the first claim."""
        if not self.claims:
            raise ValidationError("Claim payload contains no claims")
        parameters = self.claims[0].parameters
        if not parameters:
            raise ValidationError("Claim carries no parameters")
        subject = next(iter(parameters.values()))
        if not subject:
            raise ValidationError("Claim subject is empty")
        return subject

    def serialize(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


def decode_claim_payload(raw: bytes | str) -> ClaimPayload:
    """Decode a raw callback body into a :class:`ClaimPayload`.

    The proof service posts percent-encoded JSON; plain JSON is accepted too.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError("Claim payload is not valid UTF-8") from e

    text = raw.strip()
    if not text:
        raise ValidationError("Claim payload is empty")
    if not text.startswith(("{", "[")):
        text = unquote(text)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError("Claim payload is not valid JSON") from e

    # A bare list of claims is accepted as shorthand
    if isinstance(data, list):
        data = {"claims": data}

    try:
        payload = ClaimPayload.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("Claim payload is malformed") from e

    if not payload.claims:
        raise ValidationError("Claim payload contains no claims")
    return payload
