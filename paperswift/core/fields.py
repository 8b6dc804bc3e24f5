from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel


class FieldType(str, Enum):
    TEXT = 'text'
    INTEGER = 'integer'
    BOOLEAN = 'boolean'
    DATE = 'date'
    CHOICE = 'choice'


_DEFAULT_WIDGETS = {
    FieldType.TEXT: 'text',
    FieldType.INTEGER: 'number',
    FieldType.BOOLEAN: 'switch',
    FieldType.DATE: 'date',
    FieldType.CHOICE: 'select',
}


def parse_date(value: Any) -> date | None:
    """Accept a date or a ``YYYY-MM-DD`` string; anything else is not a calendar day."""
    if isinstance(value, date):
        return value
    text = str(value or '').strip()
    if not text:
        return None
    return date.fromisoformat(text)


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = True
    widget: str | None = None
    choices: tuple[tuple[str, str], ...] = ()
    references: str | None = None
    placeholder: str = ''

    @property
    def input_widget(self) -> str:
        return self.widget or _DEFAULT_WIDGETS[self.type]

    def empty_value(self) -> Any:
        if self.type == FieldType.BOOLEAN:
            return False
        if self.type == FieldType.DATE:
            return None
        return ''

    def initial_value(self, value: Any) -> Any:
        if value is None:
            return self.empty_value()
        if self.type == FieldType.BOOLEAN:
            return bool(value)
        if self.type == FieldType.DATE:
            try:
                return parse_date(value)
            except ValueError:
                return str(value)
        return str(value)

    def accept(self, raw: Any) -> Any:
        """Convert a value posted by the browser into field state."""
        if self.type == FieldType.BOOLEAN:
            if isinstance(raw, bool):
                return raw
            return str(raw or '').strip().lower() in ('1', 'true', 'on', 'yes')
        if self.type == FieldType.DATE:
            if raw is None or isinstance(raw, date):
                return raw
            try:
                return parse_date(raw)
            except ValueError:
                # Keep what was typed so the operator can correct it.
                return str(raw)
        return '' if raw is None else str(raw)

    def coerce(self, value: Any) -> Any:
        """Turn field state into the wire value. Raises ValueError with an operator-facing message."""
        if self.type == FieldType.BOOLEAN:
            return bool(value)
        if self.type == FieldType.DATE:
            if value is None or value == '':
                if self.required:
                    raise ValueError(f'{self.label} is required')
                return None
            if not isinstance(value, date):
                raise ValueError(f'{self.label} must be a date (YYYY-MM-DD)')
            return value.isoformat()

        text = str(value if value is not None else '').strip()
        if not text:
            if self.required:
                raise ValueError(f'{self.label} is required')
            return None if self.type == FieldType.INTEGER else ''
        if self.type == FieldType.INTEGER:
            try:
                return int(text)
            except ValueError:
                raise ValueError(f'{self.label} must be a whole number') from None
        if self.type == FieldType.CHOICE:
            allowed = {choice for choice, _ in self.choices}
            if text not in allowed:
                raise ValueError(f'{self.label} must be one of {", ".join(sorted(allowed))}')
        return text

    def link(self, value: Any) -> str | None:
        """The document URL to render as a link, only for web addresses."""
        if self.input_widget != 'url' or not value:
            return None
        text = str(value).strip()
        return text if text.lower().startswith(('http://', 'https://')) else None

    def display(self, value: Any) -> str:
        if value is None or value == '':
            return ''
        if self.type == FieldType.BOOLEAN:
            return 'Yes' if value else 'No'
        if self.type == FieldType.DATE and isinstance(value, date):
            return value.isoformat()
        if self.type == FieldType.CHOICE:
            return dict(self.choices).get(str(value), str(value))
        return str(value)


@dataclass(frozen=True)
class EntitySchema:
    name: str
    label: str
    plural_label: str
    path: str
    model: type[BaseModel]
    key_field: str
    key_type: type
    fields: tuple[FieldSpec, ...]
    key_assigned_by_server: bool = False
    title_field: str = ''
    badge_fields: tuple[str, ...] = ()
    summary_fields: tuple[str, ...] = ()

    @property
    def cache_key(self) -> str:
        return self.name

    @property
    def references(self) -> set[str]:
        return {spec.references for spec in self.fields if spec.references}

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def has_field(self, name: str) -> bool:
        return any(spec.name == name for spec in self.fields)

    def parse_key(self, raw: Any) -> Any:
        if self.key_type is int:
            return int(str(raw).strip())
        text = str(raw).strip()
        if not text:
            raise ValueError('empty key')
        return text

    def key_of(self, record: BaseModel) -> Any:
        return getattr(record, self.key_field)

    def title_of(self, record: BaseModel) -> str:
        if self.title_field:
            value = getattr(record, self.title_field, None)
            if value not in (None, ''):
                return str(value)
        return f'{self.label} {self.key_of(record)}'

    def with_path(self, path: str) -> EntitySchema:
        return replace(self, path=path.strip('/'))
