import json
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Response

from dashboard.core.config import settings
from dashboard.core.deps import get_current_user, get_session_key
from dashboard.schemas.auth import LoginIn, LoginOut, UserOut
from dashboard.services.record_source import (
    RecordSource,
    RecordSourceAuthError,
    RecordSourceError,
    get_record_source,
)
from dashboard.services.view_sessions import ViewSessionRegistry, get_view_registry

router = APIRouter()

SESSION_MAX_AGE_SECONDS = 60 * 60 * 24


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, response: Response, source: RecordSource = Depends(get_record_source)):
    try:
        data = source.login(payload.username.strip(), payload.password)
    except RecordSourceAuthError as exc:
        raise HTTPException(status_code=401, detail=str(exc) or "Credenciales inválidas") from exc
    except RecordSourceError as exc:
        raise HTTPException(status_code=502, detail=f"Error al iniciar sesión: {exc}") from exc

    token = str(data.get("access_token") or "").strip()
    if not token:
        raise HTTPException(status_code=502, detail="La API no devolvió un token de acceso")
    user = data.get("user") if isinstance(data.get("user"), dict) else {}

    response.set_cookie(
        settings.TOKEN_COOKIE_NAME,
        token,
        max_age=SESSION_MAX_AGE_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.APP_ENV != "local",
    )
    response.set_cookie(
        settings.USER_COOKIE_NAME,
        quote(json.dumps(user, ensure_ascii=False)),
        max_age=SESSION_MAX_AGE_SECONDS,
        samesite="lax",
        secure=settings.APP_ENV != "local",
    )
    return LoginOut(access_token=token, user=user)


@router.post("/logout")
def logout(
    response: Response,
    session_key: str = Depends(get_session_key),
    registry: ViewSessionRegistry = Depends(get_view_registry),
):
    dropped = registry.drop_session(session_key)
    response.delete_cookie(settings.TOKEN_COOKIE_NAME)
    response.delete_cookie(settings.USER_COOKIE_NAME)
    return {"status": "ok", "views_dropped": dropped}


@router.get("/me", response_model=UserOut)
def me(user: dict = Depends(get_current_user)):
    return user
