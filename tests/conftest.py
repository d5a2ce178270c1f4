"""Shared fixtures: an in-process mock upstream built on httpx.MockTransport."""

import asyncio
import json
from typing import Any, List, Optional

import httpx
import pytest

from gemini_proxy.core.config import ForwarderConfig, Settings

UPSTREAM_BASE_URL = "http://upstream.test"


class MockUpstream:
    """
    Records every upstream call and answers with a configurable response.

    Set ``delay`` to hold the response back, or ``error`` to raise a
    transport error instead of answering.
    """

    def __init__(
        self,
        status_code: int = 200,
        body: Any = None,
        content: Optional[bytes] = None,
        delay: float = 0.0,
        error: Optional[type] = None,
    ):
        self.status_code = status_code
        self.body = {"response": "hello"} if body is None else body
        self.content = content
        self.delay = delay
        self.error = error
        self.requests: List[httpx.Request] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    @property
    def received_bodies(self) -> List[Any]:
        return [json.loads(request.content) for request in self.requests]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error("Connection refused", request=request)
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def upstream():
    """Mock upstream answering 200 {"response": "hello"}"""
    return MockUpstream()


@pytest.fixture
def forwarder_config():
    """Forwarder configuration pointing at the mock upstream"""
    return ForwarderConfig(upstream_base_url=UPSTREAM_BASE_URL, timeout_ms=1000)


@pytest.fixture
def settings():
    """Settings pointing at the mock upstream with a short timeout"""
    return Settings(FASTAPI_URL=UPSTREAM_BASE_URL, AI_REQUEST_TIMEOUT=1000)


@pytest.fixture
def valid_payload():
    return {"user_id": "u1", "session_id": "s1", "prompt": "hi"}
