from __future__ import annotations

from dataclasses import dataclass

import httpx
from fastapi import Request

from paperswift.backend.clients import AuthClient, BackendClient
from paperswift.cache import QueryCache
from paperswift.config import Settings
from paperswift.core.fields import EntitySchema
from paperswift.core.session_store import FileSessionPersistence, SessionPersistence, SessionStore
from paperswift.resources import dependents_of, resource_schemas
from paperswift.services.auth_service import AuthService
from paperswift.services.binding import ResourceBinding
from paperswift.services.form_registry import FormRegistry
from paperswift.services.notifications import NotificationCenter


@dataclass
class AppContext:
    settings: Settings
    session: SessionStore
    backend: BackendClient
    queries: QueryCache
    notifier: NotificationCenter
    forms: FormRegistry
    auth: AuthService
    bindings: dict[str, ResourceBinding]


def build_context(
    config: Settings,
    *,
    persistence: SessionPersistence | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    schemas: tuple[EntitySchema, ...] | None = None,
) -> AppContext:
    schemas = schemas or resource_schemas(config)
    session = SessionStore(persistence or FileSessionPersistence(config.session_file, config.session_storage_key))
    backend = BackendClient(
        config.backend_url,
        session,
        timeout=config.backend_timeout_seconds,
        slow_ms=config.metrics_slow_ms,
        transport=transport,
    )
    queries = QueryCache(invalidation_map={schema.name: dependents_of(schema.name, schemas) for schema in schemas})
    notifier = NotificationCenter()
    bindings = {schema.name: ResourceBinding(schema, backend, queries, notifier) for schema in schemas}
    return AppContext(
        settings=config,
        session=session,
        backend=backend,
        queries=queries,
        notifier=notifier,
        forms=FormRegistry(config.form_registry_capacity),
        auth=AuthService(AuthClient(backend), session, queries, notifier),
        bindings=bindings,
    )


def get_context(request: Request) -> AppContext:
    return request.app.state.console
