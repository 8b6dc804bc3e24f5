from __future__ import annotations

from fastapi.routing import APIRoute
from starlette.requests import Request

from paperswift.request_context import current_view


class ViewNameRoute(APIRoute):
    """Labels backend calls with the console view that issued them, e.g. ``list_page /exams``."""

    @property
    def view_label(self) -> str:
        return f'{self.name} {self.path}'

    def get_route_handler(self):
        handler = super().get_route_handler()
        label = self.view_label

        async def labelled_handler(request: Request):
            reset_token = current_view.set(label)
            try:
                return await handler(request)
            finally:
                current_view.reset(reset_token)

        return labelled_handler
