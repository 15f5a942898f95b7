import asyncio
import json

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, Response

from cassidy.api.auth import require_proxy_key
from cassidy.api.schemas import MemoryUpdateResponse
from cassidy.errors import InvalidBankShape, InvalidRequest, PayloadTooLarge
from cassidy.observability.logger import get_logger

log = get_logger("api")

router = APIRouter()

BANNER = "✅ Cassidy Proxy running and CORS-enabled."

# How often an in-flight upstream call checks whether the client went away
DISCONNECT_POLL_SECONDS = 0.25


class ClientDisconnected(Exception):
    pass


def _reject_constant(name: str):
    raise ValueError(f"non-finite number {name} is not valid JSON")


async def _read_body(request: Request) -> bytes:
    """Read the body, counting bytes so chunked uploads respect the limit too."""
    limit = request.app.state.settings.body_size_limit
    chunks = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            log.warning("body_too_large", path=request.url.path, limit=limit)
            raise PayloadTooLarge()
        chunks.append(chunk)
    return b"".join(chunks)


async def _read_json(request: Request, error_cls=InvalidRequest):
    raw = await _read_body(request)
    try:
        # NaN/Infinity are not JSON and cannot be re-encoded in a reply
        return json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError) as e:
        raise error_cls("Request body must be valid JSON.") from e


async def _wait_for_disconnect(request: Request):
    while True:
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)
        if await request.is_disconnected():
            return


async def _run_unless_disconnected(request: Request, coro):
    """Await ``coro``, cancelling it if the client disconnects first."""
    work = asyncio.ensure_future(coro)
    watcher = asyncio.ensure_future(_wait_for_disconnect(request))
    try:
        await asyncio.wait({work, watcher}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        work.cancel()
        raise
    finally:
        watcher.cancel()
    if not work.done():
        work.cancel()
        log.info("client_disconnected", path=request.url.path)
        raise ClientDisconnected()
    return work.result()


@router.get("/", response_class=PlainTextResponse)
async def banner():
    return BANNER


@router.post("/cassidy", dependencies=[Depends(require_proxy_key)])
async def cassidy_chat(request: Request):
    body = await _read_json(request)
    relay = request.app.state.relay
    result = await _run_unless_disconnected(request, relay.chat(body))
    if isinstance(result, str):
        # raw envelope: upstream body goes back untouched
        return Response(content=result, media_type="application/json")
    return result


@router.post("/cassidy-vision", dependencies=[Depends(require_proxy_key)])
async def cassidy_vision(request: Request):
    body = await _read_json(request)
    relay = request.app.state.relay
    return await _run_unless_disconnected(request, relay.vision(body))


@router.get("/memory", dependencies=[Depends(require_proxy_key)])
async def get_memory(request: Request):
    return await run_in_threadpool(request.app.state.memory.load)


@router.post("/memory", dependencies=[Depends(require_proxy_key)])
async def update_memory(request: Request):
    body = await _read_json(request, InvalidBankShape)
    current = await run_in_threadpool(request.app.state.memory.replace, body)
    return MemoryUpdateResponse(current=current)
