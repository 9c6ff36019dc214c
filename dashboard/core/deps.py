import json
from urllib.parse import unquote

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dashboard.core.config import settings
from dashboard.services.view_sessions import session_key_for_token

bearer = HTTPBearer(auto_error=False)

USER_HEADER = "X-Dashboard-User"


def get_token(request: Request, creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> str:
    token = creds.credentials if creds else request.cookies.get(settings.TOKEN_COOKIE_NAME)
    token = str(token or "").strip()
    if not token:
        raise HTTPException(status_code=401, detail="Sesión no iniciada")
    return token


def get_session_key(token: str = Depends(get_token)) -> str:
    return session_key_for_token(token)


def _decode_user(raw: str | None) -> dict | None:
    text = str(raw or "").strip()
    if not text:
        return None
    try:
        data = json.loads(unquote(text))
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def get_optional_user(request: Request) -> dict | None:
    return _decode_user(request.headers.get(USER_HEADER)) or _decode_user(
        request.cookies.get(settings.USER_COOKIE_NAME)
    )


def get_current_user(token: str = Depends(get_token), user: dict | None = Depends(get_optional_user)) -> dict:
    if user is None:
        raise HTTPException(status_code=401, detail="Datos de usuario no disponibles")
    return user
