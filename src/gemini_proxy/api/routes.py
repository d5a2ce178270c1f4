"""
Gemini Proxy API Routes
Validates caller requests and relays them to the upstream AI service
"""
import asyncio
from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from gemini_proxy import __version__
from gemini_proxy.core.exceptions import MissingFieldsError
from gemini_proxy.core.forwarder import UpstreamForwarder
from gemini_proxy.core.logging import get_logger
from gemini_proxy.core.validator import validate_inbound
from gemini_proxy.models.proxy import CallerResponse, InboundRequest

logger = get_logger(__name__)

# Create API router
router = APIRouter()

# How often the caller connection is checked while the upstream call runs
DISCONNECT_POLL_INTERVAL = 0.5

# Non-standard status used when the caller has already gone away
CLIENT_CLOSED_REQUEST = 499


class CallerDisconnected(Exception):
    """The caller closed the connection before the upstream answered."""


def get_forwarder(request: Request) -> UpstreamForwarder:
    """Dependency injection for the forwarder created in the app lifespan"""
    forwarder = getattr(request.app.state, "forwarder", None)
    if forwarder is None:
        raise RuntimeError("Forwarder not initialized")
    return forwarder


async def _read_json(request: Request) -> Any:
    """Parse the request body; an absent or unparseable body reads as None"""
    try:
        return await request.json()
    except ValueError:
        return None


async def _handle_unless_disconnected(
    request: Request,
    forwarder: UpstreamForwarder,
    inbound: InboundRequest
) -> CallerResponse:
    """
    Run the upstream call, cancelling it if the caller disconnects first.

    Raises:
        CallerDisconnected: If the caller went away before completion
    """
    task = asyncio.ensure_future(forwarder.handle(inbound))
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_INTERVAL)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info("caller_disconnected", session_id=inbound.session_id)
                task.cancel()
                raise CallerDisconnected()
    finally:
        if not task.done():
            task.cancel()


@router.get("/health",
           summary="Health Check",
           description="Check if the proxy is running; does not call the upstream")
async def health_check(forwarder: UpstreamForwarder = Depends(get_forwarder)):
    """Health check endpoint with basic proxy information"""
    return {
        "status": "healthy",
        "service": "gemini-proxy",
        "version": __version__,
        "upstream": forwarder.config.upstream_url
    }


@router.post("/api/gemini",
            summary="Generate AI Response",
            description="Validate the request and forward it to the AI service",
            tags=["proxy"])
async def generate_ai_response(
    request: Request,
    forwarder: UpstreamForwarder = Depends(get_forwarder)
) -> Response:
    """Proxy a prompt to the upstream AI service"""
    payload = await _read_json(request)

    try:
        inbound = validate_inbound(payload)
    except MissingFieldsError as e:
        logger.warning(
            "request_rejected",
            missing_fields=e.missing_fields,
            path=request.url.path
        )
        raise

    try:
        caller_response = await _handle_unless_disconnected(request, forwarder, inbound)
    except CallerDisconnected:
        return Response(status_code=CLIENT_CLOSED_REQUEST)

    return JSONResponse(status_code=caller_response.status_code, content=caller_response.body)
