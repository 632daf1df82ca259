"""Unit tests for the user-claim registry operations."""

import json
from urllib.parse import parse_qs, urlparse
from unittest.mock import patch

import pytest

from claim_registry.core.errors import (
    AlreadyClaimedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from claim_registry.core.services import ProviderMatchVerifier, UserClaimRegistry
from claim_registry.entities.user_claim import ClaimStatus
from tests.utils import make_claim_payload


def _template_document(link: str) -> dict:
    query = parse_qs(urlparse(link).query)
    return json.loads(query["template"][0])


class TestRegister:
    def test_returns_template_link_bound_to_callback(self, registry):
        result = registry.register("0xabc")

        assert set(result) == {"templateLink"}
        link = result["templateLink"]
        assert link.startswith("https://templates.test/template?template=")

        document = _template_document(link)
        assert document["callbackUrl"] == "https://api.test/callback/0xabc"
        assert document["name"] == "claim-registry-test"
        assert document["claims"] == [{"provider": "github-contributor", "params": {}}]

    def test_record_starts_pending(self, registry, store):
        link = registry.register("0xabc")["templateLink"]

        record = store.get("0xabc")
        assert record.claim_status == ClaimStatus.PENDING
        assert record.template_link == link
        assert record.callback_id == _template_document(link)["id"]
        assert record.claim_string is None

    def test_identity_is_quoted_in_callback_url(self, registry):
        link = registry.register("user/with space")["templateLink"]

        document = _template_document(link)
        assert document["callbackUrl"] == "https://api.test/callback/user%2Fwith%20space"

    def test_identity_is_stored_verbatim(self, registry, store):
        registry.register(" 0xabc ")

        assert store.get(" 0xabc ") is not None
        assert store.get("0xabc") is None
        with pytest.raises(NotFoundError):
            registry.get_user("0xabc")
        assert registry.get_user(" 0xabc ")["userAddress"] == " 0xabc "

    def test_each_registration_gets_its_own_callback_id(self, registry, store):
        registry.register("0xabc")
        registry.register("0xdef")

        assert store.get("0xabc").callback_id != store.get("0xdef").callback_id

    def test_duplicate_registration_conflicts(self, registry, store):
        first = registry.register("0xabc")["templateLink"]

        with pytest.raises(ConflictError):
            registry.register("0xabc")

        assert store.get("0xabc").template_link == first

    @pytest.mark.parametrize("identity", [None, "", "   ", 42, ["0xabc"]])
    def test_invalid_identity_is_rejected(self, registry, store, identity):
        with pytest.raises(ValidationError, match='"userAddress" must be a string'):
            registry.register(identity)

        assert store.list_records() == []

    def test_address_must_be_a_string(self, store, consent_client, consent_config):
        registry = UserClaimRegistry(
            store=store,
            consent_client=consent_client,
            consent_config=consent_config,
            identity_field="userId",
        )

        with pytest.raises(ValidationError, match="userAddress"):
            registry.register("user-1", address=123)

        registry.register("user-1", address="0xabc")
        assert store.get("user-1").address == "0xabc"


class TestGetUser:
    def test_unknown_user(self, registry):
        with pytest.raises(NotFoundError, match="User not found"):
            registry.get_user("0xmissing")

    def test_public_view_of_pending_user(self, registry):
        link = registry.register("0xabc")["templateLink"]

        view = registry.get_user("0xabc")

        assert view["userAddress"] == "0xabc"
        assert view["templateLink"] == link
        assert view["status"] == "pending"
        assert "claimString" not in view

    def test_include_claim_after_callback(self, registry):
        registry.register("0xabc")
        registry.handle_claim_callback("0xabc", make_claim_payload("octocat"))

        view = registry.get_user("0xabc", include_claim=True)

        assert view["status"] == "claimed"
        stored = json.loads(view["claimString"])
        assert stored["claims"][0]["parameters"]["username"] == "octocat"
        assert view["claimUpdatedAt"] is not None


class TestHandleClaimCallback:
    def test_successful_claim(self, registry, store):
        registry.register("0xabc")

        result = registry.handle_claim_callback("0xabc", make_claim_payload("octocat"))

        assert result == {"status": "claimed"}
        record = store.get("0xabc")
        assert record.claim_status == ClaimStatus.CLAIMED
        assert record.claim_subject == "octocat"

    def test_second_callback_with_same_subject_is_rejected(self, registry, store):
        registry.register("0xabc")
        registry.handle_claim_callback("0xabc", make_claim_payload("octocat"))
        original = store.get("0xabc").claim_string

        with pytest.raises(AlreadyClaimedError, match="Claim for octocat has already been made"):
            registry.handle_claim_callback("0xabc", make_claim_payload("octocat", "other"))

        assert store.get("0xabc").claim_string == original

    def test_subject_cannot_be_reused_by_another_identity(self, registry, store):
        registry.register("0xabc")
        registry.register("0xdef")
        registry.handle_claim_callback("0xabc", make_claim_payload("octocat"))

        with pytest.raises(AlreadyClaimedError):
            registry.handle_claim_callback("0xdef", make_claim_payload("octocat"))

        assert store.get("0xdef").claim_status == ClaimStatus.PENDING

    def test_claimed_identity_cannot_take_a_new_subject(self, registry, store):
        registry.register("0xabc")
        registry.handle_claim_callback("0xabc", make_claim_payload("octocat"))

        with pytest.raises(ConflictError):
            registry.handle_claim_callback("0xabc", make_claim_payload("hubot"))

        assert store.get("0xabc").claim_subject == "octocat"

    def test_lost_race_on_subject_is_a_conflict(self, registry, store):
        """The read-side check can pass while another request commits first."""
        registry.register("0xabc")
        registry.register("0xdef")
        registry.handle_claim_callback("0xabc", make_claim_payload("octocat"))

        with patch.object(store, "find_claimed_by_subject", return_value=None):
            with pytest.raises(ConflictError):
                registry.handle_claim_callback("0xdef", make_claim_payload("octocat"))

        assert store.get("0xdef").claim_status == ClaimStatus.PENDING

    def test_unknown_identity(self, registry):
        with pytest.raises(NotFoundError):
            registry.handle_claim_callback("0xmissing", make_claim_payload("octocat"))

    def test_malformed_payload(self, registry, store):
        registry.register("0xabc")

        with pytest.raises(ValidationError):
            registry.handle_claim_callback("0xabc", "not-a-claim")

        assert store.get("0xabc").claim_status == ClaimStatus.PENDING

    def test_rejected_by_verifier(self, store, consent_client, consent_config):
        registry = UserClaimRegistry(
            store=store,
            consent_client=consent_client,
            consent_config=consent_config,
            verifier=ProviderMatchVerifier("github-contributor"),
        )
        registry.register("0xabc")

        with pytest.raises(ValidationError, match="Claim could not be verified"):
            registry.handle_claim_callback("0xabc", make_claim_payload("octocat", "twitter"))

        assert store.get("0xabc").claim_status == ClaimStatus.PENDING


class TestGetStatus:
    def test_pending_then_claimed(self, registry, store):
        registry.register("0xabc")
        callback_id = store.get("0xabc").callback_id

        assert registry.get_status(callback_id) == {
            "callbackId": callback_id,
            "status": "pending",
        }

        registry.handle_claim_callback("0xabc", make_claim_payload("octocat"))

        assert registry.get_status(callback_id)["status"] == "claimed"

    def test_unknown_callback_id(self, registry):
        with pytest.raises(NotFoundError, match="callbackId unknown-id not found"):
            registry.get_status("unknown-id")

    def test_empty_callback_id(self, registry):
        with pytest.raises(ValidationError):
            registry.get_status("")
