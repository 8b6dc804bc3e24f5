from __future__ import annotations

from typing import Any


class ConsoleError(Exception):
    """Base class for every failure the console reports to the operator."""


class NetworkError(ConsoleError):
    """The records backend could not be reached; no response was received."""


class ApiError(ConsoleError):
    def __init__(self, status: int, body: Any = None, message: str | None = None) -> None:
        self.status = int(status)
        self.body = body
        super().__init__(message or f'Backend responded with status {self.status}')


class AuthError(ApiError):
    """401 from the backend. Not handled specially; the operator logs in again by hand."""


class ValidationError(ConsoleError):
    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        fields = ', '.join(sorted(self.errors))
        super().__init__(f'Invalid fields: {fields}')


class FormBusyError(ConsoleError):
    """A submit or delete for the same form instance is still in flight."""


class DeleteNotConfirmedError(ConsoleError):
    pass


class RecordNotFoundError(ConsoleError):
    def __init__(self, resource: str, key: Any) -> None:
        self.resource = resource
        self.key = key
        super().__init__(f'{resource} {key!r} not found')


class FormClosedError(FormBusyError):
    """The form instance already completed a submit or delete."""
