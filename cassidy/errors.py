"""Error taxonomy for the relay.

Every error carries a message that is safe to show the client. Detail about
the underlying cause goes to the server log, never into the response body.
"""


class ProxyError(Exception):
    status_code: int = 500
    default_message: str = "Proxy error occurred."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(ProxyError):
    status_code = 401
    default_message = "Unauthorized: Invalid proxy key."


class InvalidRequest(ProxyError):
    status_code = 400
    default_message = "Invalid request body."


class MissingImage(InvalidRequest):
    default_message = "Missing image data."


class InvalidBankShape(InvalidRequest):
    default_message = "Memory bank must be a JSON object."


class PayloadTooLarge(ProxyError):
    status_code = 413
    default_message = "Request body too large."


class UpstreamError(ProxyError):
    status_code = 500
    default_message = "Upstream request failed."

    def __init__(self, detail: str = ""):
        # detail is for logs only; clients always see the generic message
        super().__init__()
        self.detail = detail


class StorageError(ProxyError):
    status_code = 500
    default_message = "Memory storage error."
