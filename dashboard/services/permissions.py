from __future__ import annotations

from typing import Any

ADMIN_ROLE = "Administrador"
ACCESS_NONE = "NONE"
ACCESS_READ_ONLY = "READ_ONLY"
ACCESS_FULL = "FULL_ACCESS"


def _is_admin(user: dict[str, Any] | None) -> bool:
    return bool(user) and str(user.get("rol") or "").strip() == ADMIN_ROLE


def section_access(user: dict[str, Any] | None, section: str) -> str:
    if not user:
        return ACCESS_NONE
    for permission in user.get("permissions") or []:
        if isinstance(permission, dict) and permission.get("section") == section:
            return str(permission.get("access") or ACCESS_NONE).upper()
    return ACCESS_NONE


def can_edit(user: dict[str, Any] | None, section: str) -> bool:
    if _is_admin(user):
        return True
    return section_access(user, section) == ACCESS_FULL


def can_view(user: dict[str, Any] | None, section: str) -> bool:
    if _is_admin(user):
        return True
    return section_access(user, section) != ACCESS_NONE
