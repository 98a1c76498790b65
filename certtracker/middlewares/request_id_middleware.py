import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from certtracker.utils.context import set_request_id

REQUEST_ID_HEADER = "X-Request-ID"

__all__ = ["RequestIDMiddleware", "REQUEST_ID_HEADER"]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tags every request with an ID, echoed back in ``X-Request-ID``"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER)
        try:
            request_id = str(uuid.UUID(incoming))
        except (ValueError, TypeError):
            request_id = uuid.uuid4().hex

        request.state.request_id = request_id
        # Picked up by get_logger() for the rest of the request
        set_request_id(request_id)

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
