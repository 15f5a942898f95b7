"""Shared-secret check for the protected routes."""

import hmac
from typing import Optional

from fastapi import Request

from cassidy.errors import Unauthorized
from cassidy.observability.logger import get_logger

log = get_logger("auth")

PROXY_KEY_HEADER = "X-Proxy-Key"


def is_authorized(header_value: Optional[str], secret: str) -> bool:
    """Exact match against the configured secret. A missing header never matches."""
    if header_value is None:
        return False
    return hmac.compare_digest(header_value.encode("utf-8"), secret.encode("utf-8"))


def require_proxy_key(request: Request):
    """Dependency: raise Unauthorized unless X-Proxy-Key matches the proxy secret."""
    settings = request.app.state.settings
    if not is_authorized(request.headers.get(PROXY_KEY_HEADER), settings.proxy_secret):
        log.warning("auth_rejected", path=request.url.path,
                    header_present=PROXY_KEY_HEADER.lower() in request.headers)
        raise Unauthorized()
