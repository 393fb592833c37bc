"""Request correlation for the editor API.

Every HTTP request gets an id that log lines (parse, style, export and
compile) pick up through ``request_id_var`` and that is echoed back in the
``X-Request-ID`` header and in error bodies. An id sent by the editor is kept
when it is a short token, so a frontend trace and the server logs share it.

Pure ASGI rather than BaseHTTPMiddleware: PDF, DOCX and text attachments pass
through without being buffered.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_ID_HEADER = "X-Request-ID"
_CLIENT_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_request_id(scope: Scope) -> str:
    """Reuse a well-formed inbound X-Request-ID, else mint an 8-char one."""
    inbound = Headers(scope=scope).get(REQUEST_ID_HEADER, "").strip()
    if _CLIENT_ID_RE.match(inbound):
        return inbound
    return new_request_id()


class RequestIdMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        rid = resolve_request_id(scope)
        request_id_var.set(rid)
        scope.setdefault("state", {})["request_id"] = rid

        async def send_with_rid(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = rid
            await send(message)

        await self.app(scope, receive, send_with_rid)
