from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from dashboard.core.config import settings

_LOG = logging.getLogger("dashboard.records")


class RecordSourceError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RecordSourceAuthError(RecordSourceError):
    pass


@dataclass
class RecordBatch:
    records: list[dict[str, Any]] = field(default_factory=list)
    total: int = 0


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json() if response.content else {}
    except ValueError:
        payload = {}
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("detail") or payload.get("error")
        if isinstance(message, list):
            message = "; ".join(str(item) for item in message)
        if message:
            return str(message)
    return response.text or str(response.status_code)


def parse_batch(payload: Any) -> RecordBatch:
    """Accept both ``{"data": [...], "total": n}`` and a bare list of records."""
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        records = [row for row in payload["data"] if isinstance(row, dict)]
        total = payload.get("total")
        if isinstance(total, bool) or not isinstance(total, (int, float)):
            total = len(records)
        return RecordBatch(records=records, total=max(0, int(total)))
    if isinstance(payload, list):
        records = [row for row in payload if isinstance(row, dict)]
        return RecordBatch(records=records, total=len(records))
    return RecordBatch()


class RecordSource:
    def __init__(self, base_url: str | None = None, *, timeout: float | None = None):
        self.base_url = str(base_url or settings.API_URL or "").strip().rstrip("/")
        self.timeout = float(timeout if timeout is not None else settings.API_TIMEOUT_SECONDS)

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        if not self.base_url:
            raise RecordSourceError("No está configurada la URL de la API (API_URL)")
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.request(method, url, params=params, json=json, headers=self._headers(token))
        except httpx.HTTPError as exc:
            _LOG.warning("record source unreachable method=%s path=%s error=%s", method, path, exc)
            raise RecordSourceError(f"No se pudo conectar con la API: {exc}") from exc

        if response.status_code in {401, 403}:
            raise RecordSourceAuthError(_error_detail(response), status_code=response.status_code)
        if response.status_code >= 400:
            detail = _error_detail(response)
            _LOG.warning(
                "record source error method=%s path=%s status=%s detail=%s",
                method,
                path,
                response.status_code,
                detail,
            )
            raise RecordSourceError(detail, status_code=response.status_code)
        try:
            return response.json() if response.content else None
        except ValueError as exc:
            raise RecordSourceError("Respuesta inválida de la API", status_code=response.status_code) from exc

    def fetch(self, path: str, params: dict[str, Any] | None = None, *, token: str | None = None) -> RecordBatch:
        batch = parse_batch(self._request("GET", path, token=token, params=params))
        _LOG.debug("fetched path=%s records=%s total=%s", path, len(batch.records), batch.total)
        return batch

    def fetch_one(self, path: str, *, token: str | None = None) -> dict[str, Any] | None:
        payload = self._request("GET", path, token=token)
        return payload if isinstance(payload, dict) else None

    def login(self, username: str, password: str) -> dict[str, Any]:
        payload = self._request("POST", "/auth/login", json={"username": username, "password": password})
        if not isinstance(payload, dict):
            raise RecordSourceError("Respuesta inválida de la API")
        return payload


def get_record_source() -> RecordSource:
    return RecordSource()
