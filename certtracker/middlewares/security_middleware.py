from typing import Callable, Dict, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

__all__ = ["SecurityHeadersMiddleware"]

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

PRODUCTION_HEADERS = {
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    # JSON API and file downloads only
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Cross-Origin-Resource-Policy": "same-site",
}

DEVELOPMENT_HEADERS = {
    "X-Frame-Options": "SAMEORIGIN",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds response security headers; stricter outside development"""

    def __init__(
        self,
        app,
        production: bool = False,
        custom_headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(app)
        self.headers = {
            **BASE_HEADERS,
            **(PRODUCTION_HEADERS if production else DEVELOPMENT_HEADERS),
            **(custom_headers or {}),
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for header_name, header_value in self.headers.items():
            response.headers.setdefault(header_name, header_value)
        return response
