import json
from urllib.parse import quote


def make_claim_payload(
    subject: str,
    provider: str = "github-contributor",
    *,
    encoded: bool = True,
    parameter_name: str = "username",
) -> str:
    """Build a callback body the way the proof service posts it."""
    payload = {
        "claims": [
            {
                "id": 1,
                "provider": provider,
                "redactedParameters": "****",
                "ownerPublicKey": "0x04ab",
                "timestampS": "1690000000",
                "witnessAddresses": ["witness.test"],
                "signatures": ["0xsig"],
                "parameters": {parameter_name: subject, "repo": "org/project"},
            }
        ]
    }
    body = json.dumps(payload)
    return quote(body, safe="") if encoded else body
