from contextvars import ContextVar
from typing import Optional
import uuid

# Correlation id shared by every log record emitted while serving one call
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> str:
    return request_id_ctx.get() or "n/a"


def set_request_id(request_id: Optional[str] = None) -> str:
    request_id = request_id or uuid.uuid4().hex
    request_id_ctx.set(request_id)
    return request_id
