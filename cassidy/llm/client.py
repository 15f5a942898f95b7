import httpx

from cassidy.config import Settings
from cassidy.errors import UpstreamError
from cassidy.llm.base import UpstreamProvider
from cassidy.observability.logger import get_logger

log = get_logger("llm.client")


class UpstreamClient:
    """Sends exactly one POST per call to the configured upstream. No retries."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport = None):
        self.timeout = settings.upstream_timeout_seconds
        self._transport = transport

    async def post(self, provider: UpstreamProvider, payload: dict, raw: bool = False):
        """POST ``payload`` to the provider.

        Returns the response body text when ``raw`` is set, otherwise the parsed
        JSON. Network failures, non-2xx statuses and undecodable JSON all raise
        UpstreamError with the detail kept for the log.
        """
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(
                    provider.endpoint(),
                    json=payload,
                    headers=provider.headers(),
                    params=provider.params(),
                )
            except httpx.HTTPError as e:
                log.error("upstream_request_failed", provider=provider.name,
                          error_type=type(e).__name__, error=str(e))
                raise UpstreamError(f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            log.error("upstream_http_error", provider=provider.name,
                      status=response.status_code, body=response.text[:500])
            raise UpstreamError(f"HTTP {response.status_code}")

        if raw:
            return response.text

        try:
            return response.json()
        except ValueError as e:
            log.error("upstream_bad_json", provider=provider.name, body=response.text[:500])
            raise UpstreamError("malformed JSON") from e
