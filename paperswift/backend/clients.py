from __future__ import annotations

import logging
import time
from typing import Any, Generic, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as SchemaValidationError

from paperswift.core.errors import ApiError, AuthError, NetworkError
from paperswift.core.fields import EntitySchema
from paperswift.core.session_store import SessionStore
from paperswift.metrics import record_backend_timing
from paperswift.request_context import current_view
from paperswift.schemas import User


logger = logging.getLogger(__name__)

ModelT = TypeVar('ModelT', bound=BaseModel)


def _response_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class BackendClient:
    """Shared transport to the records backend. Adds the session token and maps failures to console errors."""

    def __init__(
        self,
        base_url: str,
        session: SessionStore,
        *,
        timeout: float | None = None,
        slow_ms: float = 200,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip('/')
        self.session = session
        self.timeout = timeout
        self.slow_ms = slow_ms
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    def _headers(self, authenticated: bool) -> dict[str, str]:
        headers = {'Accept': 'application/json'}
        if authenticated:
            token = self.session.get_token()
            if token:
                headers['Authorization'] = f'Token {token}'
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        authenticated: bool = True,
    ) -> Any:
        client = self._get_client()
        started = time.perf_counter()
        try:
            response = await client.request(method, path, json=json, headers=self._headers(authenticated))
        except httpx.TransportError as exc:
            logger.warning(
                'backend_unreachable view=%s method=%s path=%s error=%s',
                current_view.get(),
                method,
                path,
                exc,
            )
            raise NetworkError(f'{method} {path} failed: {exc}') from exc
        duration_ms = (time.perf_counter() - started) * 1000.0
        record_backend_timing(method, path, response.status_code, duration_ms, self.slow_ms)

        if response.is_success:
            return _response_body(response)

        body = _response_body(response)
        logger.warning(
            'backend_request_failed view=%s method=%s path=%s status=%s',
            current_view.get(),
            method,
            path,
            response.status_code,
        )
        if response.status_code == 401:
            raise AuthError(response.status_code, body)
        raise ApiError(response.status_code, body)


class ResourceClient(Generic[ModelT]):
    def __init__(self, schema: EntitySchema, backend: BackendClient) -> None:
        self.schema = schema
        self.backend = backend
        self._model: type[ModelT] = schema.model  # type: ignore[assignment]
        self._list_adapter = TypeAdapter(list[self._model])

    @property
    def collection_path(self) -> str:
        return f'/management/{self.schema.path}/'

    def item_path(self, key: Any) -> str:
        return f'{self.collection_path}{quote(str(key), safe="")}/'

    def _parse(self, data: Any, adapter: TypeAdapter | None = None) -> Any:
        try:
            if adapter is not None:
                return adapter.validate_python(data if data is not None else [])
            return self._model.model_validate(data)
        except SchemaValidationError as exc:
            logger.warning('backend_response_malformed resource=%s errors=%s', self.schema.name, exc.error_count())
            raise ApiError(502, data, f'Unexpected {self.schema.name} response from backend') from exc

    async def list(self) -> list[ModelT]:
        data = await self.backend.request('GET', self.collection_path)
        return self._parse(data, self._list_adapter)

    async def get(self, key: Any) -> ModelT:
        data = await self.backend.request('GET', self.item_path(key))
        return self._parse(data)

    async def create(self, payload: dict[str, Any]) -> ModelT | None:
        data = await self.backend.request('POST', self.collection_path, json=payload)
        if not isinstance(data, dict):
            return None
        logger.info('resource_created resource=%s key=%s', self.schema.name, data.get(self.schema.key_field))
        return self._parse(data)

    async def update(self, key: Any, payload: dict[str, Any]) -> ModelT | None:
        data = await self.backend.request('PATCH', self.item_path(key), json=payload)
        logger.info('resource_updated resource=%s key=%s', self.schema.name, key)
        if not isinstance(data, dict):
            return None
        return self._parse(data)

    async def remove(self, key: Any) -> None:
        await self.backend.request('DELETE', self.item_path(key))
        logger.info('resource_deleted resource=%s key=%s', self.schema.name, key)


class AuthClient:
    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend

    async def login(self, username: str, password: str, email: str = '') -> str:
        body = {'username': username, 'password': password, 'email': email}
        data = await self.backend.request('POST', '/auth/login/', json=body, authenticated=False)
        key = data.get('key') if isinstance(data, dict) else None
        if not key:
            raise ApiError(502, data, 'Login response did not include a key')
        return str(key)

    async def current_user(self) -> User:
        data = await self.backend.request('GET', '/auth/user/')
        try:
            return User.model_validate(data)
        except SchemaValidationError as exc:
            raise ApiError(502, data, 'Unexpected user profile response from backend') from exc
