import httpx
import pytest

from cassidy.errors import UpstreamError
from cassidy.llm.client import UpstreamClient
from cassidy.llm.providers.gemini import GeminiProvider
from cassidy.llm.providers.openrouter import OpenRouterProvider
from conftest import FakeUpstream, gemini_reply, openrouter_reply


@pytest.mark.asyncio
class TestUpstreamClient:
    async def test_returns_parsed_json(self, make_settings):
        fake = FakeUpstream(json_body=openrouter_reply("hi"))
        settings = make_settings()
        client = UpstreamClient(settings, transport=fake.transport)

        result = await client.post(OpenRouterProvider(settings), {"messages": []})

        assert result == openrouter_reply("hi")
        assert fake.calls == 1
        sent = fake.requests[0]
        assert sent.method == "POST"
        assert str(sent.url) == "https://openrouter.ai/api/v1/chat/completions"
        assert sent.headers["Authorization"] == "Bearer or-key"
        assert fake.last_json() == {"messages": []}

    async def test_raw_mode_returns_text(self, make_settings):
        fake = FakeUpstream(text='{"id": "gen-1", "choices": []}')
        settings = make_settings()
        client = UpstreamClient(settings, transport=fake.transport)

        result = await client.post(OpenRouterProvider(settings), {}, raw=True)

        assert result == '{"id": "gen-1", "choices": []}'

    async def test_gemini_key_in_query(self, make_settings):
        fake = FakeUpstream(json_body=gemini_reply())
        settings = make_settings(upstream="gemini")
        client = UpstreamClient(settings, transport=fake.transport)

        await client.post(GeminiProvider(settings), {"contents": []})

        assert fake.requests[0].url.params["key"] == "gm-key"
        assert fake.requests[0].url.path.endswith("/models/gemini-2.0-flash:generateContent")

    @pytest.mark.parametrize("status", [400, 401, 429, 500, 503])
    async def test_non_2xx_is_upstream_error(self, make_settings, status):
        fake = FakeUpstream(status_code=status, json_body={"error": "nope"})
        settings = make_settings()
        client = UpstreamClient(settings, transport=fake.transport)

        with pytest.raises(UpstreamError) as excinfo:
            await client.post(OpenRouterProvider(settings), {})
        assert excinfo.value.detail == f"HTTP {status}"
        assert excinfo.value.message == "Upstream request failed."

    @pytest.mark.parametrize("exc", [httpx.ConnectError, httpx.ReadTimeout])
    async def test_network_error_is_upstream_error(self, make_settings, exc):
        fake = FakeUpstream(exc=exc)
        settings = make_settings()
        client = UpstreamClient(settings, transport=fake.transport)

        with pytest.raises(UpstreamError):
            await client.post(OpenRouterProvider(settings), {})
        assert fake.calls == 1

    async def test_malformed_json_is_upstream_error(self, make_settings):
        fake = FakeUpstream(text="<html>Bad gateway</html>")
        settings = make_settings()
        client = UpstreamClient(settings, transport=fake.transport)

        with pytest.raises(UpstreamError):
            await client.post(OpenRouterProvider(settings), {})

    async def test_never_retries(self, make_settings):
        fake = FakeUpstream(status_code=503)
        settings = make_settings()
        client = UpstreamClient(settings, transport=fake.transport)

        with pytest.raises(UpstreamError):
            await client.post(OpenRouterProvider(settings), {})
        assert fake.calls == 1
