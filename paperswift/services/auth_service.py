from __future__ import annotations

import logging

from paperswift.backend.clients import AuthClient
from paperswift.cache import QueryCache
from paperswift.core.errors import ConsoleError
from paperswift.core.session_store import SessionStore
from paperswift.schemas import User
from paperswift.services.notifications import NotificationCenter


logger = logging.getLogger(__name__)

USER_QUERY_KEY = 'user'
LOGIN_SUCCESS_MESSAGE = 'You are successfully logged in!'
LOGIN_FAILED_MESSAGE = 'Unable to login with this credentials.'
LOGOUT_MESSAGE = 'You are successfully logged out!'


class AuthService:
    def __init__(
        self,
        client: AuthClient,
        session: SessionStore,
        queries: QueryCache,
        notifier: NotificationCenter,
    ) -> None:
        self.client = client
        self.session = session
        self.queries = queries
        self.notifier = notifier

    async def login(self, username: str, password: str, email: str = '') -> bool:
        try:
            key = await self.client.login(username.strip(), password, email.strip())
        except ConsoleError as exc:
            logger.warning('login_failed username=%s error=%s', username, exc)
            self.notifier.error(LOGIN_FAILED_MESSAGE)
            return False
        self.session.set_token(key)
        # Lists cached for a previous session must not leak into this one.
        self.queries.invalidate_all()
        self.notifier.success(LOGIN_SUCCESS_MESSAGE)
        logger.info('login_succeeded username=%s', username)
        return True

    def logout(self) -> None:
        self.session.clear()
        self.queries.invalidate_all()
        self.notifier.success(LOGOUT_MESSAGE)

    async def current_user(self) -> User | None:
        if not self.session.is_authenticated:
            return None
        result = await self.queries.fetch(USER_QUERY_KEY, self.client.current_user)
        return result.data if result.ok else None
