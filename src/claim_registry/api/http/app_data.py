from dataclasses import dataclass

from claim_registry.core.services import ClaimVerifier, ConsentClient, DbSessionService
from claim_registry.core.storage import UserClaimStore
from claim_registry.runtime.config.config_data import ConfigData


@dataclass
class ApplicationDependencies:
    config: ConfigData
    consent_client: ConsentClient
    verifier: ClaimVerifier
    database_service: DbSessionService | None = None
    # Shared store used when the in-memory backend is configured
    memory_store: UserClaimStore | None = None
