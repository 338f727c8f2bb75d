import logging

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from taskboard.config import settings

logger = logging.getLogger(__name__)

def is_protected(path: str, prefixes: list[str]) -> bool:
    return any(path == p or path.startswith(p.rstrip("/") + "/") for p in prefixes)

class RouteProtectionMiddleware(BaseHTTPMiddleware):
    """
    Bounce requests for protected paths that carry no credentials to the
    login route. Only presence is checked here; the route dependencies
    validate the token itself.
    """

    def __init__(self, app, prefixes: list[str] | None = None, login_path: str | None = None) -> None:
        super().__init__(app)
        self.prefixes = list(prefixes if prefixes is not None else settings.protected_prefixes)
        self.login_path = login_path or settings.login_path

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if is_protected(path, self.prefixes):
            has_cookie = bool(request.cookies.get(settings.session_cookie_name))
            has_header = bool(request.headers.get("authorization"))
            if not (has_cookie or has_header):
                logger.debug("Redirecting unauthenticated request path=%s", path)
                return RedirectResponse(url=self.login_path, status_code=307)
        return await call_next(request)
