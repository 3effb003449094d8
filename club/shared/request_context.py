from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional

import structlog


@dataclass(frozen=True)
class RequestContext:
    request_id: Optional[str]
    ip: Optional[str]
    user_agent: Optional[str]


_EMPTY = RequestContext(request_id=None, ip=None, user_agent=None)

_request_ctx: ContextVar[RequestContext] = ContextVar("club_request_context", default=_EMPTY)


def set_request_context(*, request_id: str | None, ip: str | None, user_agent: str | None) -> None:
    """Store request metadata for audit rows and bind it to every log line of this request."""
    _request_ctx.set(RequestContext(request_id=request_id, ip=ip, user_agent=user_agent))
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, client_ip=ip)


def get_request_context() -> RequestContext:
    return _request_ctx.get()
