from __future__ import annotations

from contextvars import ContextVar


current_view: ContextVar[str] = ContextVar('current_view', default='background')
