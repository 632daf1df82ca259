"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, Request
from sqlmodel import Session

from claim_registry.api.http.app_data import ApplicationDependencies
from claim_registry.core.services import UserClaimRegistry
from claim_registry.core.storage import SqlUserClaimStore, UserClaimStore
from claim_registry.runtime.config.config_data import ViewsConfig


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    """Get the dependencies built at startup."""
    return request.app.state.app_dependencies


def get_db_session(
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
) -> Iterator[Session | None]:
    """Yield a database session for the request, closed afterwards."""
    if app_deps.database_service is None:
        yield None
        return
    session = app_deps.database_service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_user_claim_store(
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
    db: Session | None = Depends(get_db_session),
) -> UserClaimStore:
    """Get the store backend for this request."""
    if app_deps.memory_store is not None:
        return app_deps.memory_store
    if db is None:
        raise RuntimeError("No database session available for the SQL claim store")
    return SqlUserClaimStore(db)


def get_registry(
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
    store: UserClaimStore = Depends(get_user_claim_store),
) -> UserClaimRegistry:
    """Get the User-Claim registry bound to this request's store."""
    config = app_deps.config
    return UserClaimRegistry(
        store=store,
        consent_client=app_deps.consent_client,
        consent_config=config.consent,
        verifier=app_deps.verifier,
        identity_field=config.store.identity_field,
    )


def get_views_config(
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
) -> ViewsConfig:
    return app_deps.config.views
