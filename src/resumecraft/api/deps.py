from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from resumecraft.config import Settings
from resumecraft.core.security import user_id_from_token
from resumecraft.db.models import User
from resumecraft.db.repositories import Repository
from resumecraft.errors import AuthenticationRequired, PermissionDenied
from resumecraft.llm.router import LLMRouter


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Generator[Session, None, None]:
    yield from request.app.state.database.session_scope()


def get_llm(request: Request) -> LLMRouter:
    return request.app.state.llm


def _token_from_request(request: Request, settings: Settings) -> str | None:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(settings.auth_cookie_name) or None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> User | None:
    token = _token_from_request(request, settings)
    if not token:
        return None

    user_id = user_id_from_token(token, settings)
    if user_id is None:
        return None
    return Repository(db).get_user(user_id)


def require_user(user: User | None = Depends(get_current_user)) -> User:
    if user is None:
        raise AuthenticationRequired()
    return user


def require_admin(user: User = Depends(require_user)) -> User:
    if not user.is_admin:
        raise PermissionDenied()
    return user
