from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel

from paperswift.backend.clients import BackendClient, ResourceClient
from paperswift.cache import QueryCache, QueryResult, ResourceQuery
from paperswift.core.errors import ApiError, RecordNotFoundError
from paperswift.core.fields import EntitySchema
from paperswift.services.form_controller import EntityFormController
from paperswift.services.notifications import NotificationCenter


logger = logging.getLogger(__name__)


class ResourceBinding:
    """Everything one resource needs: client, cached list query and form controllers."""

    def __init__(
        self,
        schema: EntitySchema,
        backend: BackendClient,
        queries: QueryCache,
        notifier: NotificationCenter,
    ) -> None:
        self.schema = schema
        self.queries = queries
        self.notifier = notifier
        self.client: ResourceClient = ResourceClient(schema, backend)
        self.query = ResourceQuery(queries, schema.cache_key, self.client.list)

    @property
    def name(self) -> str:
        return self.schema.name

    @property
    def list_url(self) -> str:
        return f'/{self.schema.name}'

    def detail_url(self, key: Any) -> str:
        return f'{self.list_url}/{quote(str(key), safe="")}'

    async def load(self, *, force: bool = False) -> QueryResult:
        return await self.query.load(force=force)

    async def find(self, key: Any) -> BaseModel:
        """Look the record up in the fetched collection, falling back to a single-item fetch."""
        result = await self.load()
        if result.ok:
            for record in result.data:
                if str(self.schema.key_of(record)) == str(key):
                    return record
        logger.info('record_not_in_collection resource=%s key=%s', self.name, key)
        try:
            return await self.client.get(key)
        except ApiError as exc:
            if exc.status == 404:
                raise RecordNotFoundError(self.name, key) from exc
            raise

    def mark_mutated(self) -> None:
        keys = self.queries.invalidate_related(self.name)
        logger.info('queries_invalidated resource=%s keys=%s', self.name, ','.join(sorted(keys)))

    def form(self, record: BaseModel | None = None) -> EntityFormController:
        return EntityFormController(
            self.schema,
            self.client,
            notifier=self.notifier,
            list_url=self.list_url,
            record=record,
            on_mutated=self.mark_mutated,
        )
