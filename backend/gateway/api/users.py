"""User registration, login and account management endpoints."""

from __future__ import annotations

import re
from http import HTTPStatus
from typing import Any

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..config import parse_duration
from ..extensions import db
from ..models.user import User
from ..utils.auth import require_user
from ..utils.security import hash_password, issue_token, verify_password

bp = Blueprint("users", __name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72

INVALID_CREDENTIALS = "Credenciais inválidas"
EMAIL_TAKEN = "Email já cadastrado"
USER_NOT_FOUND = "Usuário não encontrado"


def _serialize_user(user: User) -> dict[str, Any]:
    return {"id": user.id, "nome": user.name, "email": user.email, "idade": user.age}


def _check_name(value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return "nome é obrigatório"
    return None


def _check_email(value: Any) -> str | None:
    if not isinstance(value, str) or not EMAIL_PATTERN.match(value):
        return "email inválido"
    return None


def _check_password(value: Any) -> str | None:
    if not isinstance(value, str) or len(value) < MIN_PASSWORD_LENGTH:
        return f"senha deve ter no mínimo {MIN_PASSWORD_LENGTH} caracteres"
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return f"senha deve ter no máximo {MAX_PASSWORD_BYTES} bytes"
    return None


def _check_age(value: Any) -> str | None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return "idade deve ser um inteiro positivo"
    return None


_CHECKS = {
    "nome": _check_name,
    "email": _check_email,
    "senha": _check_password,
    "idade": _check_age,
}


def _validate(
    payload: Any, fields: tuple[str, ...], *, partial: bool = False
) -> tuple[dict[str, Any], list[dict[str, str]]]:
    """Validate ``fields`` of ``payload``; with ``partial`` absent fields are skipped."""

    if not isinstance(payload, dict):
        return {}, [{"field": "", "message": "corpo da requisição deve ser um objeto JSON"}]

    data: dict[str, Any] = {}
    errors: list[dict[str, str]] = []
    for name in fields:
        value = payload.get(name)
        if value is None and partial:
            continue
        message = _CHECKS[name](value)
        if message:
            errors.append({"field": name, "message": message})
        else:
            data[name] = value.strip() if name == "nome" else value
    return data, errors


def _email_in_use(email: str, user_id: int | None = None) -> bool:
    query = User.query.filter(func.lower(User.email) == email.lower())
    if user_id is not None:
        query = query.filter(User.id != user_id)
    return db.session.query(query.exists()).scalar()


@bp.post("/register")
def register() -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True)
    data, errors = _validate(payload, ("nome", "email", "senha", "idade"))
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    if _email_in_use(data["email"]):
        return jsonify({"error": EMAIL_TAKEN}), HTTPStatus.BAD_REQUEST

    user = User(
        name=data["nome"],
        email=data["email"],
        password_hash=hash_password(data["senha"], current_app.config["BCRYPT_ROUNDS"]),
        age=data["idade"],
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": EMAIL_TAKEN}), HTTPStatus.BAD_REQUEST

    current_app.logger.info("User %s registered", user.id)
    return jsonify(_serialize_user(user)), HTTPStatus.CREATED


@bp.post("/login")
def login() -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True)
    data, errors = _validate(payload, ("email", "senha"))
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    user = User.query.filter_by(email=data["email"]).first()
    if user is None or not verify_password(data["senha"], user.password_hash):
        current_app.logger.info("Failed login attempt for %s", data["email"])
        return jsonify({"error": INVALID_CREDENTIALS}), HTTPStatus.BAD_REQUEST

    token = issue_token(
        {"id": user.id, "email": user.email},
        current_app.config["JWT_SECRET"],
        parse_duration(current_app.config["JWT_EXPIRES_IN"]),
    )
    return jsonify({"token": token}), HTTPStatus.OK


@bp.get("/users")
def list_users() -> tuple[object, int]:
    users = User.query.order_by(User.id.asc()).all()
    return jsonify([_serialize_user(user) for user in users]), HTTPStatus.OK


@bp.get("/users/<user_id>")
def get_user(user_id: str) -> tuple[object, int]:
    try:
        user = db.session.get(User, int(user_id))
    except ValueError:
        user = None
    if user is None:
        return jsonify({"error": USER_NOT_FOUND}), HTTPStatus.NOT_FOUND
    return jsonify(_serialize_user(user)), HTTPStatus.OK


@bp.put("/users")
@require_user
def update_user() -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True)
    data, errors = _validate(payload, ("nome", "email", "senha", "idade"), partial=True)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    user = db.session.get(User, g.current_user["id"])
    if user is None:
        return jsonify({"error": USER_NOT_FOUND}), HTTPStatus.NOT_FOUND

    if not data:
        return jsonify({"error": "Nenhum campo para atualizar"}), HTTPStatus.BAD_REQUEST

    if "email" in data and _email_in_use(data["email"], user.id):
        return jsonify({"error": EMAIL_TAKEN}), HTTPStatus.BAD_REQUEST

    if "nome" in data:
        user.name = data["nome"]
    if "email" in data:
        user.email = data["email"]
    if "idade" in data:
        user.age = data["idade"]
    if "senha" in data:
        user.password_hash = hash_password(data["senha"], current_app.config["BCRYPT_ROUNDS"])

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": EMAIL_TAKEN}), HTTPStatus.BAD_REQUEST

    return jsonify({"message": "Usuário atualizado"}), HTTPStatus.OK


@bp.delete("/users")
@require_user
def delete_user() -> tuple[object, int]:
    deleted = User.query.filter_by(id=g.current_user["id"]).delete()
    db.session.commit()
    if not deleted:
        return jsonify({"error": USER_NOT_FOUND}), HTTPStatus.NOT_FOUND
    return jsonify({"message": "Usuário deletado"}), HTTPStatus.OK
