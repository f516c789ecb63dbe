from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request
from jobsite.config import settings

DOC_PATHS = {"/docs", "/redoc", "/openapi.json", "/docs/oauth2-redirect"}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses, with relaxed CSP on docs."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"

        # Stored photos are immutable, everything else must not be cached
        if request.url.path.startswith("/photos/") and response.status_code == 200:
            response.headers["Cache-Control"] = "public, max-age=86400"
        else:
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"

        if not settings.DEBUG:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        if request.url.path in DOC_PATHS:
            # Swagger/Redoc need jsdelivr + inline styles
            csp = (
                "default-src 'self'; "
                "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "img-src 'self' data: https:; "
                "object-src 'none'; "
                "frame-ancestors 'none'"
            )
        else:
            csp = (
                "default-src 'none'; "
                "img-src 'self'; "
                "frame-ancestors 'none'"
            )

        response.headers["Content-Security-Policy"] = csp

        return response
