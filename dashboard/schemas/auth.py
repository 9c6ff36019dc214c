from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class LoginIn(BaseModel):
    username: str
    password: str


class PermissionOut(BaseModel):
    section: str
    access: str


class UserOut(BaseModel):
    id: Optional[int] = None
    username: Optional[str] = None
    nombre: Optional[str] = None
    apellido: Optional[str] = None
    email: Optional[str] = None
    rol: Optional[str] = None
    permissions: List[PermissionOut] = []


class LoginOut(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    user: Dict[str, Any] = {}
