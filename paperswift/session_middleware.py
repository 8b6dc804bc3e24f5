from urllib.parse import quote

from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from paperswift.core.session_store import SessionStore


class NavigationGuard(BaseHTTPMiddleware):
    """Sends the browser to the login page while no session token is stored."""

    def __init__(self, app, session: SessionStore):
        super().__init__(app)
        self.session = session
        self._public_prefixes = (
            '/login',
            '/static/',
            '/health',
        )

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path.startswith(self._public_prefixes):
            return await call_next(request)

        if not self.session.get_token():
            next_url = quote(path, safe='/')
            return RedirectResponse(url=f'/login?next={next_url}', status_code=303)

        return await call_next(request)
