from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from paperswift.app_state import AppContext, get_context
from paperswift.cache import refresh_requested
from paperswift.core.errors import (
    ApiError,
    ConsoleError,
    DeleteNotConfirmedError,
    FormBusyError,
    FormClosedError,
    RecordNotFoundError,
    ValidationError,
)
from paperswift.route_logging import ViewNameRoute
from paperswift.routers.pages import render_page
from paperswift.services.binding import ResourceBinding
from paperswift.services.form_controller import EntityFormController


logger = logging.getLogger(__name__)


def _failure_status(exc: ConsoleError | None) -> int:
    if isinstance(exc, ApiError) and 400 <= exc.status < 500:
        return 400
    return 502


def build_resource_router(binding: ResourceBinding) -> APIRouter:
    """List, create, edit and delete views for one resource, all driven by its schema."""
    schema = binding.schema
    router = APIRouter(prefix=binding.list_url, tags=[schema.plural_label], route_class=ViewNameRoute)

    async def _missing(request: Request, ctx: AppContext, key: Any, status_code: int = 404, detail: str = ''):
        return await render_page(
            request,
            ctx,
            'message.html',
            {
                'title': f'{schema.label} not found' if status_code == 404 else 'Something went wrong.',
                'detail': detail or f'There is no {schema.label.lower()} with {schema.key_field} {key}.',
                'back_url': binding.list_url,
                'back_label': f'Back to {schema.plural_label.lower()}',
            },
            status_code=status_code,
        )

    async def _locate(request: Request, ctx: AppContext, raw_key: str):
        """Returns (record, None) or (None, error response)."""
        try:
            key = schema.parse_key(raw_key)
        except ValueError:
            return None, await _missing(request, ctx, raw_key)
        try:
            return await binding.find(key), None
        except RecordNotFoundError:
            return None, await _missing(request, ctx, key)
        except ConsoleError as exc:
            logger.warning('record_lookup_failed resource=%s key=%s error=%s', schema.name, key, exc)
            return None, await _missing(request, ctx, key, status_code=502, detail=str(exc))

    async def _render_form(
        request: Request,
        ctx: AppContext,
        controller: EntityFormController,
        form_id: str,
        *,
        status_code: int = 200,
    ):
        return await render_page(
            request,
            ctx,
            'resource_form.html',
            {
                'binding': binding,
                'schema': schema,
                'form': controller,
                'form_id': form_id,
                'action_url': binding.detail_url(controller.original_key) if controller.is_edit else f'{binding.list_url}/new',
                'delete_url': f'{binding.detail_url(controller.original_key)}/delete' if controller.is_edit else None,
            },
            status_code=status_code,
        )

    async def _render_delete(request: Request, ctx: AppContext, controller: EntityFormController, form_id: str, *, status_code: int = 200):
        return await render_page(
            request,
            ctx,
            'resource_delete.html',
            {
                'binding': binding,
                'schema': schema,
                'record': controller.record,
                'title': schema.title_of(controller.record),
                'form_id': form_id,
                'action_url': f'{binding.detail_url(controller.original_key)}/delete',
            },
            status_code=status_code,
        )

    async def _submit(request: Request, ctx: AppContext, raw_key: str | None):
        posted = await request.form()
        key = None
        if raw_key is not None:
            try:
                key = schema.parse_key(raw_key)
            except ValueError:
                return await _missing(request, ctx, raw_key)

        controller = ctx.forms.get(posted.get('form_id'), resource=schema.name, key=key)
        form_id = str(posted.get('form_id') or '')
        if controller is None:
            record = None
            if key is not None:
                record, error_response = await _locate(request, ctx, raw_key)
                if error_response is not None:
                    return error_response
            controller = binding.form(record)
            form_id = ctx.forms.open(controller)

        controller.update(posted)
        try:
            outcome = await controller.submit()
        except ValidationError:
            return await _render_form(request, ctx, controller, form_id, status_code=400)
        except FormClosedError as exc:
            logger.info('form_resubmitted resource=%s key=%s', schema.name, key)
            ctx.notifier.info(str(exc))
            return RedirectResponse(url=binding.list_url, status_code=303)
        except FormBusyError as exc:
            ctx.notifier.info(str(exc))
            return await _render_form(request, ctx, controller, form_id, status_code=409)

        if outcome.ok:
            return RedirectResponse(url=outcome.redirect_to or binding.list_url, status_code=303)
        return await _render_form(request, ctx, controller, form_id, status_code=_failure_status(outcome.error))

    @router.get('')
    async def list_page(request: Request, ctx: AppContext = Depends(get_context)):
        result = await binding.load(force=refresh_requested(request))
        return await render_page(
            request,
            ctx,
            'resource_list.html',
            {
                'binding': binding,
                'schema': schema,
                'records': result.data if result.data is not None else [],
                'error': result.error,
            },
            status_code=200 if result.error is None else _failure_status(result.error),
        )

    @router.get('/new')
    async def create_page(request: Request, ctx: AppContext = Depends(get_context)):
        controller = binding.form()
        return await _render_form(request, ctx, controller, ctx.forms.open(controller))

    @router.post('/new')
    async def create_submit(request: Request, ctx: AppContext = Depends(get_context)):
        return await _submit(request, ctx, None)

    @router.get('/{key}')
    async def edit_page(key: str, request: Request, ctx: AppContext = Depends(get_context)):
        record, error_response = await _locate(request, ctx, key)
        if error_response is not None:
            return error_response
        controller = binding.form(record)
        return await _render_form(request, ctx, controller, ctx.forms.open(controller))

    @router.post('/{key}')
    async def edit_submit(key: str, request: Request, ctx: AppContext = Depends(get_context)):
        return await _submit(request, ctx, key)

    @router.get('/{key}/delete')
    async def delete_page(key: str, request: Request, ctx: AppContext = Depends(get_context)):
        record, error_response = await _locate(request, ctx, key)
        if error_response is not None:
            return error_response
        controller = binding.form(record)
        controller.request_delete()
        return await _render_delete(request, ctx, controller, ctx.forms.open(controller))

    @router.post('/{key}/delete')
    async def delete_confirm(key: str, request: Request, ctx: AppContext = Depends(get_context)):
        posted = await request.form()
        try:
            parsed_key = schema.parse_key(key)
        except ValueError:
            return await _missing(request, ctx, key)
        controller = ctx.forms.get(posted.get('form_id'), resource=schema.name, key=parsed_key)
        if controller is None:
            # Unknown confirmation: ask again instead of deleting.
            record, error_response = await _locate(request, ctx, key)
            if error_response is not None:
                return error_response
            controller = binding.form(record)
            controller.request_delete()
            return await _render_delete(request, ctx, controller, ctx.forms.open(controller))

        try:
            outcome = await controller.confirm_delete()
        except FormClosedError as exc:
            ctx.notifier.info(str(exc))
            return RedirectResponse(url=binding.list_url, status_code=303)
        except (FormBusyError, DeleteNotConfirmedError) as exc:
            ctx.notifier.info(str(exc))
            return RedirectResponse(url=binding.detail_url(parsed_key), status_code=303)

        if outcome.ok:
            return RedirectResponse(url=outcome.redirect_to or binding.list_url, status_code=303)
        return await _render_delete(
            request,
            ctx,
            controller,
            str(posted.get('form_id')),
            status_code=_failure_status(outcome.error),
        )

    return router
