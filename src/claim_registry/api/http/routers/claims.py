"""Claim callback and status routes."""

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates
from loguru import logger
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from claim_registry.api.http.deps import get_registry, get_views_config
from claim_registry.core.errors import RegistryError
from claim_registry.core.services import UserClaimRegistry
from claim_registry.runtime.config.config_data import ViewsConfig

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["claims"])


@router.post("/callback/{identity}")
async def claim_callback(
    identity: str,
    request: Request,
    registry: UserClaimRegistry = Depends(get_registry),
    views: ViewsConfig = Depends(get_views_config),
) -> Response:
    """Receive a claim from the proof service and render the outcome."""
    raw_payload = await request.body()
    context = {"identity": identity, "redirect_url": views.redirect_url}

    try:
        result = await run_in_threadpool(registry.handle_claim_callback, identity, raw_payload)
    except RegistryError as exc:
        logger.bind(error_type=type(exc).__name__).warning(
            "Claim callback rejected for {}: {}", identity, exc.message
        )
        return templates.TemplateResponse(
            request,
            "fail.html",
            {**context, "status": "failed", "message": exc.message},
            status_code=exc.status_code,
        )

    return templates.TemplateResponse(
        request,
        "success.html",
        {**context, "status": result["status"], "message": "Claim recorded"},
    )


@router.get("/status/{callback_id}")
def get_status(
    callback_id: str,
    registry: UserClaimRegistry = Depends(get_registry),
) -> dict[str, str]:
    """Get the claim status for a callback id."""
    return registry.get_status(callback_id)
