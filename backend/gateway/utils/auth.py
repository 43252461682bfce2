"""Helper utilities for bearer token authentication."""

from __future__ import annotations

import functools
from collections.abc import Callable
from http import HTTPStatus
from typing import Any, TypeVar, cast

import jwt
from flask import current_app, g, jsonify, request

from .security import decode_token

TCallable = TypeVar("TCallable", bound=Callable[..., Any])


class _MalformedAuthorization(Exception):
    pass


def _extract_bearer_token() -> str | None:
    """Return the bearer token, ``None`` when the header is absent.

    Raises ``_MalformedAuthorization`` when a header with another scheme is sent.
    """
    authorization = request.headers.get("Authorization")
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        raise _MalformedAuthorization()
    return value.strip()


def _unauthorized(message: str):
    response = jsonify({"error": message})
    response.status_code = HTTPStatus.UNAUTHORIZED
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


def _forbidden(message: str):
    return jsonify({"error": message}), HTTPStatus.FORBIDDEN


def require_user(func: TCallable) -> TCallable:
    """Decorator enforcing a valid session token issued by ``/login``.

    The decoded claims are exposed as ``g.current_user``.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        try:
            token_value = _extract_bearer_token()
        except _MalformedAuthorization:
            return _unauthorized("Formato de token inválido")
        if token_value is None:
            return _unauthorized("Token ausente")

        try:
            claims = decode_token(token_value, current_app.config["JWT_SECRET"])
        except jwt.InvalidTokenError as exc:
            current_app.logger.info("Rejected session token: %s", exc)
            return _forbidden("Token inválido ou expirado")

        if not isinstance(claims.get("id"), int):
            return _forbidden("Token inválido ou expirado")

        g.current_user = claims
        return func(*args, **kwargs)

    return cast(TCallable, wrapper)
