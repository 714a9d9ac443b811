"""Middleware that assigns and propagates a request identifier.

Every incoming HTTP request receives a request id: the ``X-Request-ID``
header when the client sends one, a fresh UUID4 otherwise. The id is kept
in ``REQUEST_ID_CTX`` for the duration of the request so log records
emitted anywhere downstream can carry it, and it is echoed back on the
response.
"""

import contextvars
import logging
import uuid

from fastapi import Request

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")
REQUEST_HEADER = "X-Request-ID"

logger = logging.getLogger("orders.http")


async def add_request_id(request: Request, call_next):
    rid = request.headers.get(REQUEST_HEADER) or str(uuid.uuid4())
    request.state.request_id = rid
    token = REQUEST_ID_CTX.set(rid)
    try:
        response = await call_next(request)
        response.headers[REQUEST_HEADER] = rid
        return response
    finally:
        logger.info("request handled", extra={"path": request.url.path, "method": request.method})
        REQUEST_ID_CTX.reset(token)
