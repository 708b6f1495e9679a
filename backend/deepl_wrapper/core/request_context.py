# backend/deepl_wrapper/core/request_context.py
"""
Request context middleware.

Gives every request an id, returns it as `X-Request-ID` and makes it
available to code deeper in the call stack (the translation workflow uses it
to prefix its log lines). The settings of the app serving the request travel
with it, for code that has no access to the request object.
"""

import logging
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from deepl_wrapper.core.config import Settings

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@dataclass
class RequestContext:
    request_method: str
    request_path: str
    app_settings: Settings | None = field(default=None, repr=False)
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    @property
    def log_prefix(self) -> str:
        return f"[{self.request_id}] "


_request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


def get_request_context() -> RequestContext | None:
    """Get the current request context."""
    return _request_context.get()


def current_log_prefix() -> str:
    ctx = get_request_context()
    return ctx.log_prefix if ctx else ""


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Must be added early in the middleware stack."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        ctx = RequestContext(
            request_method=request.method,
            request_path=request.url.path[:255],
            app_settings=getattr(request.app.state, "settings", None),
        )
        token = _request_context.set(ctx)
        started = time.monotonic()
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = ctx.request_id
            logger.debug(
                f"{ctx.log_prefix}{ctx.request_method} {ctx.request_path} -> "
                f"{response.status_code} in {time.monotonic() - started:.2f}s"
            )
            return response
        finally:
            _request_context.reset(token)
