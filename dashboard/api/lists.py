from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from dashboard.core.deps import get_optional_user, get_session_key, get_token
from dashboard.schemas.listing import (
    DateRange,
    FilterCriteria,
    FiltersIn,
    ListSummary,
    ListView,
    PageIn,
    PageSizeIn,
    SortIn,
)
from dashboard.services.comparator import UnknownSortKey
from dashboard.services.date_presets import PRESETS, UnknownPreset, resolve_preset
from dashboard.services.export import XLSX_MEDIA_TYPE, build_workbook_bytes, export_filename
from dashboard.services.list_registry import LISTS, ListConfig, UnknownList, get_list_config
from dashboard.services.list_view import ListViewController, UnknownFilterField
from dashboard.services.permissions import can_edit, can_view
from dashboard.services.record_source import (
    RecordSource,
    RecordSourceAuthError,
    RecordSourceError,
    get_record_source,
)
from dashboard.services.view_sessions import ViewSession, ViewSessionRegistry, get_view_registry

router = APIRouter()

_LOG = logging.getLogger("dashboard.views")

# A hybrid refresh can clamp the page once (the server total shrank); one refetch settles it.
_MAX_REFRESH_ROUNDS = 2


def _config_or_404(name: str) -> ListConfig:
    try:
        return get_list_config(name)
    except UnknownList as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def _scope_or_400(config: ListConfig, scope: str | None) -> str | None:
    value = str(scope or "").strip() or None
    if config.requires_scope and value is None:
        raise HTTPException(status_code=400, detail=f'El listado "{config.name}" requiere el parámetro scope')
    return value if config.requires_scope else None


def _session(
    name: str,
    scope: str | None,
    session_key: str,
    registry: ViewSessionRegistry,
) -> tuple[ListConfig, str | None, ViewSession]:
    config = _config_or_404(name)
    resolved_scope = _scope_or_400(config, scope)
    return config, resolved_scope, registry.session_for(session_key, config, resolved_scope)


def _load(
    session: ViewSession,
    config: ListConfig,
    scope: str | None,
    token: str,
    source: RecordSource,
) -> None:
    controller = session.controller
    endpoint = config.resolve_endpoint(scope)
    for _ in range(_MAX_REFRESH_ROUNDS):
        with session.lock:
            ticket = controller.begin_refresh()
            params = controller.server_params()
        try:
            batch = source.fetch(endpoint, params, token=token)
        except RecordSourceAuthError as exc:
            with session.lock:
                controller.mark_load_failed(ticket, exc)
            raise HTTPException(status_code=401, detail="La sesión expiró o no tiene permisos") from exc
        except RecordSourceError as exc:
            with session.lock:
                controller.mark_load_failed(ticket, exc)
            _LOG.warning("load failed list=%s scope=%s error=%s", config.name, scope or "-", exc)
            raise HTTPException(status_code=502, detail=f"Error al cargar {config.title.lower()}: {exc}") from exc
        with session.lock:
            applied = controller.apply_refresh(ticket, batch.records, batch.total)
            if not applied or not controller.is_stale:
                break

    header_endpoint = config.resolve_header_endpoint(scope)
    if header_endpoint:
        try:
            header = source.fetch_one(header_endpoint, token=token)
        except RecordSourceError as exc:
            _LOG.warning("header load failed list=%s scope=%s error=%s", config.name, scope, exc)
            header = None
        with session.lock:
            controller.header = header


def _render(controller: ListViewController, user: dict | None) -> ListView:
    view = controller.view()
    view.can_edit = can_edit(user, controller.config.section) if user else False
    return view


def _apply(session: ViewSession, transition) -> bool:
    """Run one transition under the session lock; returns whether the list needs a refetch."""
    with session.lock:
        try:
            transition(session.controller)
        except (UnknownSortKey, UnknownFilterField) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return session.controller.is_stale


def _criteria_from_payload(payload: FiltersIn) -> FilterCriteria:
    date_range = DateRange(date_from=payload.date_from, date_to=payload.date_to)
    if payload.preset:
        if not date_range.is_empty:
            raise HTTPException(status_code=400, detail="Indique un rango predefinido o fechas desde/hasta, no ambos")
        try:
            date_range = resolve_preset(payload.preset)
        except UnknownPreset as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    return FilterCriteria(
        search_text=payload.search or "",
        equality_filters=dict(payload.filters or {}),
        date_range=date_range,
    )


@router.get("/lists", response_model=list[ListSummary])
def list_catalog(user: dict | None = Depends(get_optional_user)):
    return [
        ListSummary(
            name=config.name,
            title=config.title,
            section=config.section,
            mode=config.mode,
            sortable_keys=list(config.sortable),
            filter_fields=list(config.equality_fields),
            can_view=can_view(user, config.section),
            can_edit=can_edit(user, config.section),
        )
        for config in LISTS.values()
    ]


@router.get("/date-presets")
def date_presets():
    payload = {}
    for name, preset in PRESETS.items():
        date_range = preset()
        payload[name] = {"from": date_range.date_from.isoformat(), "to": date_range.date_to.isoformat()}
    return payload


@router.get("/lists/{name}", response_model=ListView)
def get_list_view(
    name: str,
    scope: str | None = Query(default=None),
    token: str = Depends(get_token),
    session_key: str = Depends(get_session_key),
    user: dict | None = Depends(get_optional_user),
    registry: ViewSessionRegistry = Depends(get_view_registry),
    source: RecordSource = Depends(get_record_source),
):
    config, resolved_scope, session = _session(name, scope, session_key, registry)
    _load(session, config, resolved_scope, token, source)
    with session.lock:
        return _render(session.controller, user)


def _transition_and_view(
    name: str,
    scope: str | None,
    transition,
    *,
    token: str,
    session_key: str,
    user: dict | None,
    registry: ViewSessionRegistry,
    source: RecordSource,
) -> ListView:
    config, resolved_scope, session = _session(name, scope, session_key, registry)
    if _apply(session, transition):
        _load(session, config, resolved_scope, token, source)
    with session.lock:
        return _render(session.controller, user)


@router.post("/lists/{name}/filters", response_model=ListView)
def set_list_filters(
    name: str,
    payload: FiltersIn,
    scope: str | None = Query(default=None),
    token: str = Depends(get_token),
    session_key: str = Depends(get_session_key),
    user: dict | None = Depends(get_optional_user),
    registry: ViewSessionRegistry = Depends(get_view_registry),
    source: RecordSource = Depends(get_record_source),
):
    criteria = _criteria_from_payload(payload)
    return _transition_and_view(
        name,
        scope,
        lambda controller: controller.set_filters(criteria),
        token=token,
        session_key=session_key,
        user=user,
        registry=registry,
        source=source,
    )


@router.post("/lists/{name}/sort", response_model=ListView)
def set_list_sort(
    name: str,
    payload: SortIn,
    scope: str | None = Query(default=None),
    token: str = Depends(get_token),
    session_key: str = Depends(get_session_key),
    user: dict | None = Depends(get_optional_user),
    registry: ViewSessionRegistry = Depends(get_view_registry),
    source: RecordSource = Depends(get_record_source),
):
    return _transition_and_view(
        name,
        scope,
        lambda controller: controller.set_sort(payload.key, payload.direction),
        token=token,
        session_key=session_key,
        user=user,
        registry=registry,
        source=source,
    )


@router.post("/lists/{name}/page-size", response_model=ListView)
def set_list_page_size(
    name: str,
    payload: PageSizeIn,
    scope: str | None = Query(default=None),
    token: str = Depends(get_token),
    session_key: str = Depends(get_session_key),
    user: dict | None = Depends(get_optional_user),
    registry: ViewSessionRegistry = Depends(get_view_registry),
    source: RecordSource = Depends(get_record_source),
):
    return _transition_and_view(
        name,
        scope,
        lambda controller: controller.set_page_size(payload.page_size),
        token=token,
        session_key=session_key,
        user=user,
        registry=registry,
        source=source,
    )


def _page_transition(payload: PageIn):
    if payload.action == "first":
        return lambda controller: controller.first()
    if payload.action == "previous":
        return lambda controller: controller.previous()
    if payload.action == "next":
        return lambda controller: controller.next()
    if payload.action == "last":
        return lambda controller: controller.last()
    if payload.page is None:
        raise HTTPException(status_code=400, detail="Indique una página o una acción")
    return lambda controller: controller.go_to(payload.page)


@router.post("/lists/{name}/page", response_model=ListView)
def set_list_page(
    name: str,
    payload: PageIn,
    scope: str | None = Query(default=None),
    token: str = Depends(get_token),
    session_key: str = Depends(get_session_key),
    user: dict | None = Depends(get_optional_user),
    registry: ViewSessionRegistry = Depends(get_view_registry),
    source: RecordSource = Depends(get_record_source),
):
    return _transition_and_view(
        name,
        scope,
        _page_transition(payload),
        token=token,
        session_key=session_key,
        user=user,
        registry=registry,
        source=source,
    )


@router.get("/lists/{name}/export")
def export_list(
    name: str,
    scope: str | None = Query(default=None),
    token: str = Depends(get_token),
    session_key: str = Depends(get_session_key),
    registry: ViewSessionRegistry = Depends(get_view_registry),
    source: RecordSource = Depends(get_record_source),
):
    config, resolved_scope, session = _session(name, scope, session_key, registry)
    with session.lock:
        stale = session.controller.is_stale
    if stale:
        _load(session, config, resolved_scope, token, source)
    with session.lock:
        rows = session.controller.export_rows()
        header = session.controller.header
    if not rows:
        raise HTTPException(status_code=404, detail="No hay registros para exportar")
    content = build_workbook_bytes(config, rows, header)
    filename = export_filename(config, header)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
