from __future__ import annotations

import json
from collections.abc import Callable, Generator
from typing import Any, TypeVar

from fastapi import Depends, Request
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from resumind.core.context import AppContext
from resumind.core.rate_limit import check_rate_limit
from resumind.db.models import User
from resumind.db.repositories import Repository
from resumind.db.session import SessionLocal
from resumind.errors import InputValidationError, TooManyRequestsError, UnauthorizedError

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def _session_token(request: Request) -> str | None:
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    cookie_name = request.app.state.context.settings.session_cookie_name
    return request.cookies.get(cookie_name) or None


def require_user(request: Request, db: Session = Depends(get_db)) -> User:
    token = _session_token(request)
    user = Repository(db).resolve_session(token) if token else None
    if user is None:
        raise UnauthorizedError()
    return user


def rate_limited(route: str) -> Callable[..., User]:
    """Auth first, then one counted request against ``route``."""

    def dependency(
        user: User = Depends(require_user),
        db: Session = Depends(get_db),
        context: AppContext = Depends(get_context),
    ) -> User:
        if context.settings.disable_rate_limiting:
            return user
        decision = check_rate_limit(db, identity=user.id, route=route)
        if not decision.allowed:
            raise TooManyRequestsError(retry_after=decision.retry_after or 60)
        return user

    return dependency


async def read_json_object(request: Request) -> dict[str, Any]:
    """Body is read inside the handler so the gate always runs first."""
    try:
        payload = json.loads(await request.body() or b"null")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InputValidationError() from exc
    if not isinstance(payload, dict):
        raise InputValidationError()
    return payload


def parse_body(model: type[ModelT], payload: dict[str, Any], message: str | None = None) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InputValidationError(message) from exc
