"""
Clarifai Client Test Configuration
----------------------------------
Shared fixtures and configuration for all tests.

HTTP traffic is served by httpx.MockTransport; no test touches the network.
"""

import json
import sys
import threading
from pathlib import Path
from typing import List, Tuple

import httpx
import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from api.client import ClarifaiClient, ClientConfig  # noqa: E402

TEST_ROOT = "https://clarifai.test"


class FakeClarifai:
    """
    Scripted stand-in for the Clarifai service.

    Token requests get a fresh token each time. Every other request pops
    the next (status, body) pair from the script, or, with
    authorize_tokens set, answers 200 to issued tokens and 401 to anything else.
    """

    def __init__(self, script: List[Tuple[int, bytes]] = None):
        self.script = list(script or [])
        self.requests: List[httpx.Request] = []
        self.token_requests: List[httpx.Request] = []
        self.tokens_issued = 0
        self.token_body = None
        self.authorize_tokens = False
        self._lock = threading.Lock()

    def handler(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            return self._respond(request)

    def _respond(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/token":
            self.token_requests.append(request)
            if self.token_body is not None:
                return httpx.Response(200, content=self.token_body)
            self.tokens_issued += 1
            return httpx.Response(200, json={
                "access_token": f"token-{self.tokens_issued}",
                "expires_in": 172800,
                "scope": "api_access",
                "token_type": "Bearer",
            })

        self.requests.append(request)
        if self.authorize_tokens:
            if request.headers.get("Authorization", "").startswith("Bearer token-"):
                return httpx.Response(200, json={"status": "ok"})
            return httpx.Response(401)

        if not self.script:
            raise AssertionError(f"Unscripted request to {request.url}")
        status, body = self.script.pop(0)
        return httpx.Response(status, content=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake():
    """A fake service with an empty script."""
    return FakeClarifai()


@pytest.fixture
def make_client(fake):
    """Factory for clients wired to the fake service."""
    clients = []

    def _make(**config_kwargs):
        config = ClientConfig(api_root=TEST_ROOT, **config_kwargs)
        client = ClarifaiClient("id", "secret", config=config, transport=fake.transport)
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()


@pytest.fixture
def ok_body():
    return json.dumps({"status": "ok"}).encode()


@pytest.fixture
def image_files(tmp_path):
    """Three small files under a recognisable directory name."""
    folder = tmp_path / "private-holiday-photos"
    folder.mkdir()
    paths = []
    for i, payload in enumerate([b"\x89PNG-first", b"\xff\xd8JPEG-second", b"GIF89a-third"]):
        path = folder / f"img_{i}.bin"
        path.write_bytes(payload)
        paths.append(str(path))
    return paths
