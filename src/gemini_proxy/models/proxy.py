"""
Proxy Models

Pydantic models and outcome variants for the /api/gemini proxy route.
All of them live for a single request only.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class InboundRequest(BaseModel):
    """Validated caller request; extra keys are kept and forwarded as sent."""
    model_config = ConfigDict(extra="allow")

    user_id: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)

    def to_upstream_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class CallerResponse(BaseModel):
    """Status and JSON body returned to the caller."""
    status_code: int = Field(..., ge=100, le=599)
    body: Any


@dataclass(frozen=True)
class Success:
    """Upstream answered 2xx with a JSON body."""
    kind: ClassVar[str] = "success"
    status_code: int
    body: Any


@dataclass(frozen=True)
class ApplicationError:
    """Upstream answered, but not with a usable success response."""
    kind: ClassVar[str] = "application_error"
    status_code: int
    body: Any
    message: Optional[str] = None


@dataclass(frozen=True)
class Timeout:
    """No complete upstream response within the timeout."""
    kind: ClassVar[str] = "timeout"
    timeout_ms: int


@dataclass(frozen=True)
class ConnectionFailure:
    """Upstream unreachable: refused, DNS failure, reset or protocol error."""
    kind: ClassVar[str] = "connection_failure"
    cause: str


UpstreamOutcome = Union[Success, ApplicationError, Timeout, ConnectionFailure]


__all__ = [
    "InboundRequest",
    "CallerResponse",
    "Success",
    "ApplicationError",
    "Timeout",
    "ConnectionFailure",
    "UpstreamOutcome",
]
