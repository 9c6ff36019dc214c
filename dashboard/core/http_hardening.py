from __future__ import annotations

import logging
import re
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,128}$")
_LIST_PATH_RE = re.compile(r"^/api/lists/(?P<name>[^/]+)(?P<rest>/[^/]+)?$")
_LOG = logging.getLogger("dashboard.http")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=(), payment=(), usb=()",
    "Content-Security-Policy": "default-src 'self'; object-src 'none'; frame-ancestors 'none'; base-uri 'self'",
}

# Spreadsheet downloads: the browser reads the file name from Content-Disposition.
_DOWNLOAD_EXPOSED_HEADERS = f"Content-Disposition, {REQUEST_ID_HEADER}"


def _request_id_from_header(raw: str | None) -> str:
    value = str(raw or "").strip()
    if value and _REQUEST_ID_RE.fullmatch(value):
        return value
    return uuid4().hex


def _list_name(path: str) -> str:
    match = _LIST_PATH_RE.fullmatch(path)
    return match.group("name") if match else "-"


def _is_export(path: str) -> bool:
    match = _LIST_PATH_RE.fullmatch(path)
    return bool(match) and match.group("rest") == "/export"


def _response_security_headers(request: Request) -> dict[str, str]:
    headers = dict(SECURITY_HEADERS)
    if _is_export(request.url.path):
        headers["Access-Control-Expose-Headers"] = _DOWNLOAD_EXPOSED_HEADERS
    return headers


def _stamp_response(response: Response, request: Request, request_id: str) -> None:
    response.headers.update(_response_security_headers(request))
    # List views are per-session state; neither proxies nor the browser may reuse them.
    response.headers["Cache-Control"] = "no-store"
    response.headers["Pragma"] = "no-cache"
    response.headers[REQUEST_ID_HEADER] = request_id


def install_http_hardening(app: FastAPI) -> None:
    @app.middleware("http")
    async def _http_hardening_middleware(request: Request, call_next):
        request_id = _request_id_from_header(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        started_at = perf_counter()

        response = await call_next(request)
        _stamp_response(response, request, request_id)

        _LOG.info(
            "%s %s list=%s status=%s duration_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            _list_name(request.url.path),
            response.status_code,
            (perf_counter() - started_at) * 1000.0,
            request_id,
        )
        return response
