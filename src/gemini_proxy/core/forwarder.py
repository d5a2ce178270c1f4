"""
Gemini Proxy Upstream Forwarder
Forwards validated requests to the AI service and translates every outcome
into a caller-facing response
"""
import asyncio
import json
import time
from typing import Any, Dict, Optional

import httpx

from gemini_proxy.core.config import ForwarderConfig
from gemini_proxy.core.exceptions import (
    UpstreamApplicationError,
    UpstreamConnectionError,
    UpstreamTimeoutError,
)
from gemini_proxy.core.logging import get_logger
from gemini_proxy.models.proxy import (
    ApplicationError,
    CallerResponse,
    ConnectionFailure,
    InboundRequest,
    Success,
    Timeout,
    UpstreamOutcome,
)

logger = get_logger(__name__)

DEFAULT_UPSTREAM_ERROR = "upstream service returned an error"
INVALID_JSON_ERROR = "upstream returned an invalid JSON response"
INVALID_STATUS_ERROR = "upstream returned an invalid status code"


class UpstreamForwarder:
    """Single-attempt forwarder to one upstream, sharing one connection pool"""

    def __init__(
        self,
        config: ForwarderConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config
        self._transport = transport
        self.http_client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry - initialize HTTP client with connection pooling"""
        self.http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout_seconds),
            limits=httpx.Limits(
                max_connections=self.config.max_connections,
                max_keepalive_connections=self.config.max_keepalive_connections
            ),
            transport=self._transport,
            follow_redirects=False
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - cleanup HTTP client"""
        if self.http_client:
            await self.http_client.aclose()
            self.http_client = None

    async def forward(self, request: InboundRequest) -> UpstreamOutcome:
        """
        POST the request to the upstream exactly once.

        The whole exchange is bounded by the configured timeout. Upstream
        failures come back as outcome variants, never as exceptions; only
        cancellation by the caller propagates.

        Args:
            request: Validated inbound request

        Returns:
            The UpstreamOutcome variant describing what happened
        """
        if not self.http_client:
            raise RuntimeError("Forwarder not initialized. Use async context manager.")

        url = self.config.upstream_url
        started = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self.http_client.post(
                    url,
                    json=request.to_upstream_payload(),
                    headers={"Content-Type": "application/json"}
                ),
                timeout=self.config.timeout_seconds
            )
            outcome = self._classify(response)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            outcome = Timeout(timeout_ms=self.config.timeout_ms)
        except httpx.RequestError as e:
            outcome = ConnectionFailure(cause=str(e) or type(e).__name__)
        except asyncio.CancelledError:
            logger.info(
                "upstream_call_cancelled",
                url=url,
                latency_ms=_elapsed_ms(started),
                session_id=request.session_id
            )
            raise

        self._log_outcome(outcome, url, _elapsed_ms(started), request.session_id)
        return outcome

    async def handle(self, request: InboundRequest) -> CallerResponse:
        """Forward the request and build the caller-facing response"""
        return build_caller_response(await self.forward(request))

    def _classify(self, response: httpx.Response) -> UpstreamOutcome:
        """
        Turn a completed upstream response into an outcome variant.

        Bodies with NaN or Infinity values count as non-JSON, and statuses
        outside 100-599 are never mirrored to the caller.
        """
        try:
            body = response.json()
            json.dumps(body, allow_nan=False)
            is_json = True
        except ValueError:
            body = response.text
            is_json = False

        if not 100 <= response.status_code <= 599:
            return ApplicationError(status_code=502, body=body, message=INVALID_STATUS_ERROR)

        if response.is_success:
            if not is_json:
                return ApplicationError(status_code=502, body=body, message=INVALID_JSON_ERROR)
            return Success(status_code=response.status_code, body=body)
        return ApplicationError(status_code=response.status_code, body=body)

    def _log_outcome(self, outcome: UpstreamOutcome, url: str, latency_ms: float, session_id: str) -> None:
        event: Dict[str, Any] = {
            "outcome": outcome.kind,
            "url": url,
            "latency_ms": latency_ms,
            "session_id": session_id,
        }
        if isinstance(outcome, (Success, ApplicationError)):
            event["status_code"] = outcome.status_code

        if isinstance(outcome, Success):
            logger.info("upstream_call_completed", **event)
        elif isinstance(outcome, ApplicationError):
            logger.warning("upstream_call_completed", cause=outcome.message or "upstream error response", **event)
        elif isinstance(outcome, Timeout):
            logger.error("upstream_call_completed", cause=f"timeout after {outcome.timeout_ms}ms", **event)
        else:
            logger.error("upstream_call_completed", cause=outcome.cause, **event)


def build_caller_response(outcome: UpstreamOutcome) -> CallerResponse:
    """
    Map an outcome variant onto the status and body the caller sees.

    Success bodies pass through unmodified; every other variant becomes
    a JSON body with an ``error`` field.
    """
    if isinstance(outcome, Success):
        return CallerResponse(status_code=outcome.status_code, body=outcome.body)

    if isinstance(outcome, ApplicationError):
        error = UpstreamApplicationError(
            status_code=outcome.status_code,
            message=outcome.message or upstream_error_message(outcome.body),
            details=outcome.body
        )
    elif isinstance(outcome, Timeout):
        error = UpstreamTimeoutError(outcome.timeout_ms)
    elif isinstance(outcome, ConnectionFailure):
        error = UpstreamConnectionError(outcome.cause)
    else:
        raise TypeError(f"Unknown upstream outcome: {outcome!r}")

    return CallerResponse(status_code=error.get_http_status_code(), body=error.to_dict())


def upstream_error_message(body: Any) -> str:
    """Pick the upstream's own error message, falling back to a generic one"""
    if isinstance(body, dict):
        for key in ("detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return DEFAULT_UPSTREAM_ERROR


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
