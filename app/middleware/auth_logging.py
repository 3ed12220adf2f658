from fastapi import Request
import logging
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("app")

class AuthLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        has_auth = request.headers.get("Authorization") is not None

        response = await call_next(request)

        # Log auth-related status codes
        if response.status_code == 401:
            reason = "invalid credentials" if has_auth else "no auth header"
            logger.warning(f"Auth error: 401 on {path} ({reason})")
        elif response.status_code == 403:
            logger.warning(f"Permission denied: 403 on {path}")

        return response
