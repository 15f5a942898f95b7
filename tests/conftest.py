import json

import httpx
import pytest
from fastapi.testclient import TestClient

from cassidy.config import Settings
from cassidy.llm.client import UpstreamClient
from cassidy.main import create_app
from cassidy.memory.store import FileMemoryStore

SECRET = "test-secret"


def openrouter_reply(text="Hello from upstream"):
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


def gemini_reply(text="Hello from Gemini"):
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


class FakeUpstream:
    """Records outbound requests and answers them through httpx.MockTransport."""

    def __init__(self, status_code=200, json_body=None, text=None, exc=None):
        self.status_code = status_code
        self.json_body = json_body if json_body is not None else openrouter_reply()
        self.text = text
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc(f"simulated failure for {request.url.host}", request=request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json_body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def memory_path(tmp_path):
    return str(tmp_path / "memory" / "memory.json")


@pytest.fixture
def make_settings(memory_path):
    def _make(**overrides):
        values = {
            "proxy_secret": SECRET,
            "openrouter_api_key": "or-key",
            "gemini_api_key": "gm-key",
            "memory_path": memory_path,
            "_env_file": None,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def make_client(make_settings, upstream):
    def _make(**overrides):
        settings = make_settings(**overrides)
        app = create_app(
            settings,
            upstream_client=UpstreamClient(settings, transport=upstream.transport),
            memory_store=FileMemoryStore(settings.memory_path),
        )
        return TestClient(app)

    return _make


@pytest.fixture
def auth_headers():
    return {"X-Proxy-Key": SECRET}
