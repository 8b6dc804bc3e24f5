from fastapi import APIRouter, Depends, Request

from paperswift.app_state import AppContext, get_context
from paperswift.route_logging import ViewNameRoute
from paperswift.routers.pages import render_page


router = APIRouter(tags=['Home'], route_class=ViewNameRoute)


@router.get('/')
async def home(request: Request, ctx: AppContext = Depends(get_context)):
    tiles = [
        {'label': binding.schema.plural_label, 'url': binding.list_url, 'create_url': f'{binding.list_url}/new'}
        for binding in ctx.bindings.values()
    ]
    return await render_page(request, ctx, 'home.html', {'tiles': tiles})
