"""Per-request log correlation."""

import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.core.logging import business_id_ctx, request_id_ctx

REQUEST_ID_HEADER = "X-Request-ID"

RequestResponseEndpoint = Callable[[Request], Awaitable[Response]]


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the lifetime of each request.

    The caller's X-Request-ID is reused when present, otherwise a uuid4 is
    generated; either way it is echoed on the response. The business id
    starts empty and is filled in once the endpoint resolves the business.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request_token = request_id_ctx.set(request_id)
        business_token = business_id_ctx.set(None)
        try:
            response = await call_next(request)
        finally:
            business_id_ctx.reset(business_token)
            request_id_ctx.reset(request_token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
