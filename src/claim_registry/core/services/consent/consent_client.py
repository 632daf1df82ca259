"""Consent service client used to issue claim templates.

The registry only relies on the two-step contract of the proof service SDK:
``get_consent(app_name, requests)`` returns a connection, and
``connection.generate_template(callback_id)`` returns a template whose URL
the user visits to produce a claim.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from urllib.parse import quote

from loguru import logger
from pydantic import BaseModel, Field

from claim_registry.runtime.context import get_config


class ClaimRequest(BaseModel):
    """A provider plus the parameters the claim must attest."""

    provider: str
    params: dict[str, str] = Field(default_factory=dict)


class Template(BaseModel):
    """Template issued by the consent service."""

    id: str
    name: str
    callback_url: str
    claims: list[ClaimRequest]
    url: str


class ConsentConnection(ABC):
    """Connection returned by :meth:`ConsentClient.get_consent`."""

    @abstractmethod
    def generate_template(self, callback_id: str) -> Template:
        """Issue a template correlated with ``callback_id``."""


class ConsentClient(ABC):
    """Abstract consent service client."""

    @abstractmethod
    def get_consent(
        self, app_name: str, requests: list[ClaimRequest], callback_url: str
    ) -> ConsentConnection:
        """Open a consent connection for ``requests``.

        ``callback_url`` is where the proof service posts the resulting claim.
        """


class ReclaimConnection(ConsentConnection):
    def __init__(
        self,
        app_name: str,
        requests: list[ClaimRequest],
        callback_url: str,
        template_base_url: str,
    ):
        self._app_name = app_name
        self._requests = requests
        self._callback_url = callback_url
        self._template_base_url = template_base_url.rstrip("/")

    def generate_template(self, callback_id: str) -> Template:
        document = {
            "id": callback_id,
            "name": self._app_name,
            "callbackUrl": self._callback_url,
            "claims": [r.model_dump() for r in self._requests],
        }
        encoded = quote(json.dumps(document, separators=(",", ":")), safe="")
        return Template(
            id=callback_id,
            name=self._app_name,
            callback_url=self._callback_url,
            claims=self._requests,
            url=f"{self._template_base_url}?template={encoded}",
        )


class ReclaimConsentClient(ConsentClient):
    """Builds template links locally; no network round trip is needed."""

    def __init__(self, template_base_url: str):
        self._template_base_url = template_base_url

    @classmethod
    def from_config(cls) -> "ReclaimConsentClient":
        return cls(template_base_url=get_config().consent.template_base_url)

    def get_consent(
        self, app_name: str, requests: list[ClaimRequest], callback_url: str
    ) -> ReclaimConnection:
        if not requests:
            raise ValueError("At least one claim request is required")
        logger.debug("Opening consent connection for {} with {} request(s)", app_name, len(requests))
        return ReclaimConnection(
            app_name=app_name,
            requests=requests,
            callback_url=callback_url,
            template_base_url=self._template_base_url,
        )
