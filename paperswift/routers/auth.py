from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse

from paperswift.app_state import AppContext, get_context
from paperswift.route_logging import ViewNameRoute
from paperswift.routers.pages import render_page


router = APIRouter(tags=['Auth'], route_class=ViewNameRoute)


def _safe_next(next_url: str | None) -> str:
    candidate = (next_url or '/').strip()
    if not candidate.startswith('/') or candidate.startswith('//'):
        return '/'
    if candidate.startswith('/login'):
        return '/'
    return candidate


@router.get('/login')
async def login_page(request: Request, next: str = '/', ctx: AppContext = Depends(get_context)):
    return await render_page(request, ctx, 'login.html', {'next': _safe_next(next), 'username': '', 'email': ''})


@router.post('/login')
async def login_submit(
    request: Request,
    username: str = Form(''),
    password: str = Form(''),
    email: str = Form(''),
    next: str = Form('/'),
    ctx: AppContext = Depends(get_context),
):
    if await ctx.auth.login(username, password, email):
        return RedirectResponse(url=_safe_next(next), status_code=303)
    return await render_page(
        request,
        ctx,
        'login.html',
        {'next': _safe_next(next), 'username': username, 'email': email},
        status_code=401,
    )


@router.post('/logout')
async def logout(ctx: AppContext = Depends(get_context)):
    ctx.auth.logout()
    return RedirectResponse(url='/login', status_code=303)
