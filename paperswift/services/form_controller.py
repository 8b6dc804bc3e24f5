from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from pydantic import BaseModel

from paperswift.backend.clients import ResourceClient
from paperswift.core.errors import (
    ConsoleError,
    DeleteNotConfirmedError,
    FormBusyError,
    FormClosedError,
    ValidationError,
)
from paperswift.core.fields import EntitySchema, FieldSpec, FieldType
from paperswift.services.notifications import NotificationCenter


logger = logging.getLogger(__name__)

SUBMIT_FAILED_MESSAGE = 'Something went wrong.'
DELETE_FAILED_MESSAGE = 'Something went wrong. Please try again'


class FormMode(str, Enum):
    CREATE = 'create'
    EDIT = 'edit'


@dataclass
class FormOutcome:
    ok: bool
    redirect_to: str | None = None
    record: Any = None
    error: ConsoleError | None = None


class EntityFormController:
    """Field state and mutations for one create or edit form.

    Numbers are held as text until submit, dates as ``datetime.date``. At most one
    submit or delete runs per instance; once one succeeds the instance is closed.
    """

    def __init__(
        self,
        schema: EntitySchema,
        client: ResourceClient,
        *,
        notifier: NotificationCenter,
        list_url: str,
        record: BaseModel | None = None,
        on_mutated: Callable[[], Any] | None = None,
    ) -> None:
        self.schema = schema
        self.client = client
        self.notifier = notifier
        self.list_url = list_url
        self.record = record
        self.on_mutated = on_mutated
        self.values: dict[str, Any] = {}
        self.errors: dict[str, str] = {}
        self.closed = False
        self._pending: asyncio.Future | None = None
        self._delete_requested = False
        self.initialize()

    @property
    def mode(self) -> FormMode:
        return FormMode.EDIT if self.record is not None else FormMode.CREATE

    @property
    def is_edit(self) -> bool:
        return self.mode == FormMode.EDIT

    @property
    def original_key(self) -> Any:
        if self.record is None:
            return None
        return self.schema.key_of(self.record)

    @property
    def title(self) -> str:
        return f'Edit {self.schema.label}' if self.is_edit else f'Create {self.schema.label}'

    @property
    def description(self) -> str:
        noun = self.schema.label.lower()
        return f'Edit the {noun}' if self.is_edit else f'Add a new {noun}'

    @property
    def action_label(self) -> str:
        return 'Save changes' if self.is_edit else 'Create'

    @property
    def success_message(self) -> str:
        verb = 'updated' if self.is_edit else 'created'
        return f'{self.schema.label} {verb}'

    @property
    def is_busy(self) -> bool:
        return self._pending is not None and not self._pending.done()

    @property
    def delete_requested(self) -> bool:
        return self._delete_requested

    @property
    def fields(self) -> tuple[FieldSpec, ...]:
        return self.schema.fields

    def is_read_only(self, spec: FieldSpec) -> bool:
        return self.is_edit and spec.name == self.schema.key_field

    def initialize(self) -> None:
        data = self.record.model_dump() if self.record is not None else {}
        self.values = {
            spec.name: spec.initial_value(data.get(spec.name)) if self.record is not None else spec.empty_value()
            for spec in self.fields
        }
        self.errors = {}

    def set_value(self, name: str, raw: Any) -> None:
        spec = self.schema.field(name)
        if self.is_read_only(spec):
            return
        self.values[name] = spec.accept(raw)
        self.errors.pop(name, None)

    def update(self, data: Mapping[str, Any]) -> None:
        """Apply a posted HTML form. An unchecked switch is simply absent from the post."""
        for spec in self.fields:
            if spec.type == FieldType.BOOLEAN:
                self.set_value(spec.name, data.get(spec.name, False))
            elif spec.name in data:
                self.set_value(spec.name, data.get(spec.name))

    def display_value(self, spec: FieldSpec) -> str:
        value = self.values.get(spec.name)
        if value is None:
            return ''
        if spec.type == FieldType.DATE and not isinstance(value, str):
            return value.isoformat()
        return str(value)

    def validate(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        errors: dict[str, str] = {}
        for spec in self.fields:
            if self.is_read_only(spec):
                continue
            try:
                payload[spec.name] = spec.coerce(self.values.get(spec.name))
            except ValueError as exc:
                errors[spec.name] = str(exc)
        self.errors = errors
        if errors:
            raise ValidationError(errors)
        return payload

    def _ensure_idle(self) -> None:
        if self.closed:
            raise FormClosedError(f'This {self.schema.label.lower()} form was already submitted')
        if self.is_busy:
            raise FormBusyError(f'A request for this {self.schema.label.lower()} form is still running')

    async def _run(self, operation: Callable[[], Any]) -> FormOutcome:
        task = asyncio.ensure_future(operation())
        self._pending = task
        # The request is never cancelled once started, even if the caller goes away.
        return await asyncio.shield(task)

    async def submit(self) -> FormOutcome:
        self._ensure_idle()
        payload = self.validate()
        return await self._run(lambda: self._save(payload))

    async def _save(self, payload: dict[str, Any]) -> FormOutcome:
        try:
            if self.is_edit:
                saved = await self.client.update(self.original_key, payload)
            else:
                saved = await self.client.create(payload)
        except ConsoleError as exc:
            logger.warning(
                'form_submit_failed resource=%s mode=%s key=%s error=%s',
                self.schema.name,
                self.mode.value,
                self.original_key,
                exc,
            )
            self.notifier.error(SUBMIT_FAILED_MESSAGE)
            return FormOutcome(ok=False, error=exc)
        self._finish()
        self.notifier.success(self.success_message)
        return FormOutcome(ok=True, redirect_to=self.list_url, record=saved)

    def request_delete(self) -> None:
        if not self.is_edit:
            raise ValueError('Only an existing record can be deleted')
        self._ensure_idle()
        self._delete_requested = True

    def cancel_delete(self) -> None:
        self._delete_requested = False

    async def confirm_delete(self) -> FormOutcome:
        self._ensure_idle()
        if not self._delete_requested:
            raise DeleteNotConfirmedError(f'Deleting this {self.schema.label.lower()} was not requested')
        return await self._run(self._delete)

    async def _delete(self) -> FormOutcome:
        try:
            await self.client.remove(self.original_key)
        except ConsoleError as exc:
            logger.warning(
                'form_delete_failed resource=%s key=%s error=%s',
                self.schema.name,
                self.original_key,
                exc,
            )
            self.notifier.error(DELETE_FAILED_MESSAGE)
            return FormOutcome(ok=False, error=exc)
        self._delete_requested = False
        self._finish()
        self.notifier.success(f'{self.schema.label} deleted.')
        return FormOutcome(ok=True, redirect_to=self.list_url)

    def _finish(self) -> None:
        self.closed = True
        if self.on_mutated is not None:
            self.on_mutated()
