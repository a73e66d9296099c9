import logging
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware

from backend.core.logging import LOGGER_NAME, latency_bucket_ms, request_id_ctx_var

REQUEST_ID_HEADER = "x-request-id"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind x-request-id (client supplied or generated) for the request and log its completion."""

    async def dispatch(self, request, call_next):
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = rid
        token = request_id_ctx_var.set(rid)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        # Server errors are already logged by the error handlers at ERROR
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logging.getLogger(LOGGER_NAME).log(
            level,
            "request.complete",
            extra={
                "request_id": rid,
                "path": request.url.path,
                "method": request.method,
                "status": response.status_code,
                "latency_bucket": latency_bucket_ms((time.perf_counter() - start) * 1000),
            },
        )
        return response
