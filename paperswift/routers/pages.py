from __future__ import annotations

from typing import Any

from fastapi import Request

from paperswift.app_state import AppContext
from paperswift.ui import templates


async def render_page(
    request: Request,
    ctx: AppContext,
    name: str,
    context: dict[str, Any] | None = None,
    *,
    status_code: int = 200,
):
    user = await ctx.auth.current_user()
    payload = {
        'app_name': ctx.settings.app_name,
        'nav': [(binding.list_url, binding.schema.plural_label) for binding in ctx.bindings.values()],
        'active_path': request.url.path,
        'user': user,
        'authenticated': ctx.session.is_authenticated,
        'notifications': ctx.notifier.drain(),
    }
    payload.update(context or {})
    return templates.TemplateResponse(request, name, payload, status_code=status_code)
