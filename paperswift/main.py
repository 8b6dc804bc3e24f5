from contextlib import asynccontextmanager
import logging
import time

import httpx
from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles

from paperswift.app_state import build_context
from paperswift.config import Settings, settings
from paperswift.core.session_store import SessionPersistence
from paperswift.metrics import flush_query_metrics
from paperswift.route_logging import ViewNameRoute
from paperswift.routers import auth, home
from paperswift.routers.resources import build_resource_router
from paperswift.session_middleware import NavigationGuard
from paperswift.ui import STATIC_DIR

logging.basicConfig(
    level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)


def create_app(
    config: Settings | None = None,
    *,
    persistence: SessionPersistence | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    config = config or settings
    ctx = build_context(config, persistence=persistence, transport=transport)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        logging.getLogger(__name__).info(
            'console_started backend_url=%s resources=%s',
            config.backend_url,
            ','.join(ctx.bindings),
        )
        yield
        await ctx.backend.aclose()
        flush_query_metrics()

    app = FastAPI(title=config.app_name, version='0.1.0', lifespan=lifespan)
    app.state.console = ctx
    app.router.route_class = ViewNameRoute
    app.mount('/static', StaticFiles(directory=str(STATIC_DIR)), name='static')
    app.add_middleware(NavigationGuard, session=ctx.session)

    @app.middleware('http')
    async def slow_request_logger(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= config.metrics_slow_ms:
            logging.getLogger('paperswift.request').info(
                'request_slow path=%s method=%s status_code=%s duration_ms=%.2f',
                request.url.path,
                request.method,
                response.status_code,
                duration_ms,
            )
        return response

    @app.get('/health')
    def healthcheck():
        return {'app': config.app_name, 'status': 'ok'}

    app.include_router(auth.router)
    app.include_router(home.router)
    for binding in ctx.bindings.values():
        app.include_router(build_resource_router(binding))
    return app


app = create_app()
