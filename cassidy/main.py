import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from cassidy.api.middleware import CORS_HEADERS, BodySizeLimitMiddleware, CORSHeadersMiddleware
from cassidy.api.routes import ClientDisconnected, router
from cassidy.config import Settings, get_settings
from cassidy.core.relay import Relay
from cassidy.errors import ProxyError, UpstreamError
from cassidy.llm.client import UpstreamClient
from cassidy.llm.router import get_provider
from cassidy.memory.store import FileMemoryStore, MemoryStore
from cassidy.observability.logger import get_logger, setup_logging

log = get_logger("main")


def create_app(
    settings: Settings,
    upstream_client: UpstreamClient = None,
    memory_store: MemoryStore = None,
) -> FastAPI:
    """Wire the relay together from an explicit settings object."""
    if settings.uses_default_secret:
        log.warning("default_proxy_secret_in_use")
    if not settings.api_key:
        log.warning("upstream_api_key_missing", upstream=settings.upstream)

    provider = get_provider(settings)
    client = upstream_client or UpstreamClient(settings)
    memory = memory_store or FileMemoryStore(settings.memory_path)

    app = FastAPI(title="Cassidy Proxy", version="1.0.0")
    app.state.settings = settings
    app.state.memory = memory
    app.state.relay = Relay(settings, provider, client, memory)

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.body_size_limit)
    app.add_middleware(CORSHeadersMiddleware)

    @app.exception_handler(ProxyError)
    async def proxy_error_handler(request: Request, exc: ProxyError):
        if isinstance(exc, UpstreamError):
            log.error("upstream_error", path=request.url.path, detail=exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(ClientDisconnected)
    async def client_disconnected_handler(request: Request, exc: ClientDisconnected):
        # Nobody is listening; 499 only shows up in access logs
        return Response(status_code=499)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        log.exception("unhandled_error", path=request.url.path, error=str(exc))
        # Runs outside the CORS middleware, so the headers go on here
        return JSONResponse(
            status_code=500,
            content={"error": "Proxy error occurred."},
            headers=CORS_HEADERS,
        )

    app.include_router(router)
    log.info("cassidy_ready", upstream=provider.name, envelope=settings.chat_envelope,
             memory_enabled=settings.memory_enabled)
    return app


def run():
    settings = get_settings()
    setup_logging(settings.log_level)
    app = create_app(settings)
    log.info("cassidy_starting", host=settings.host, port=settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
