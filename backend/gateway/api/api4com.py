"""REST endpoints proxying the Api4Com telephony API."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any

from flask import Blueprint, current_app, jsonify, request

from ..extensions import db
from ..models.api4com import Call, Contact, Extension, WebhookEvent
from ..providers import Api4ComClient, AuthenticationError, ProviderError

bp = Blueprint("api4com", __name__)

ALLOWED_ROLES = {"ADMIN", "USER"}
MIN_PASSWORD_LENGTH = 8
DIALER_ERROR = "Erro na API4COM"


def _client() -> Api4ComClient:
    return current_app.extensions["api4com"]


def _json_error(message: str, status: int = HTTPStatus.BAD_REQUEST):
    return jsonify({"error": message}), status


def _proxy_error(exc: ProviderError, action: str):
    """Map a provider failure to the upstream status and message."""

    current_app.logger.error(
        "Api4Com %s failed: status=%s data=%s", action, exc.status, exc.payload or exc.message
    )
    status = exc.status or HTTPStatus.INTERNAL_SERVER_ERROR
    return _json_error(exc.payload_message(exc.message), status)


def _dialer_error(exc: ProviderError, path: str):
    current_app.logger.error("Api4Com %s failed: %s", path, exc.payload or exc.message)
    if isinstance(exc, AuthenticationError):
        return _json_error(exc.payload_message(exc.message), HTTPStatus.INTERNAL_SERVER_ERROR)
    message = exc.payload_message(DIALER_ERROR)
    return _json_error(message, HTTPStatus.INTERNAL_SERVER_ERROR)


def _serialize_timestamp(value: Any) -> str | None:
    if value is None:
        return None
    timestamp = value.isoformat()
    if timestamp.endswith("+00:00"):
        return timestamp.replace("+00:00", "Z")
    if not timestamp.endswith("Z"):
        return f"{timestamp}Z"
    return timestamp


def _serialize_call(call: Call) -> dict[str, Any]:
    data = call.data
    payload = data if isinstance(data, dict) else {"data": data}
    return {**payload, "status": call.status}


@bp.post("/users")
def create_contact() -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True) or {}
    if not isinstance(payload, dict):
        payload = {}
    name = payload.get("name")
    email = payload.get("email")
    if not name or not email:
        return _json_error("name e email obrigatórios.")

    contact = Contact(name=name, email=email)
    db.session.add(contact)
    db.session.commit()
    return jsonify({"id": contact.id, "name": contact.name, "email": contact.email}), HTTPStatus.CREATED


@bp.get("/users")
def list_contacts() -> tuple[object, int]:
    contacts = Contact.query.order_by(Contact.created_at.asc()).all()
    return (
        jsonify([{"id": c.id, "name": c.name, "email": c.email} for c in contacts]),
        HTTPStatus.OK,
    )


def _validate_remote_user(payload: dict[str, Any]) -> tuple[dict[str, Any], str | None]:
    fields = ("name", "email", "password", "phone", "role")
    data = {key: payload.get(key) for key in fields}
    if not all(data.values()):
        return data, "Todos os campos são obrigatórios."
    if len(str(data["password"])) < MIN_PASSWORD_LENGTH:
        return data, "A senha deve ter no mínimo 8 caracteres."
    if data["role"] not in ALLOWED_ROLES:
        return data, "role deve ser ADMIN ou USER."
    return data, None


@bp.post("/users/remote")
def create_remote_user() -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True) or {}
    if not isinstance(payload, dict):
        payload = {}
    data, error = _validate_remote_user(payload)
    if error:
        return _json_error(error)

    try:
        created = _client().create_user(data)
    except ProviderError as exc:
        return _proxy_error(exc, "user creation")
    current_app.logger.info("Api4Com user %s created", data["email"])
    return jsonify(created), HTTPStatus.OK


@bp.get("/users/remote")
def list_remote_users() -> tuple[object, int]:
    try:
        users = _client().list_users(request.args.get("filter"))
    except ProviderError as exc:
        return _proxy_error(exc, "user listing")
    return jsonify(users), HTTPStatus.OK


def _valid_extension(payload: dict[str, Any]) -> bool:
    required = ("ramal", "senha", "first_name", "last_name", "email_address")
    if not all(payload.get(key) for key in required):
        return False
    recording = payload.get("gravar_audio")
    return not isinstance(recording, bool) and recording in (0, 1)


@bp.post("/ramal")
def create_extension() -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True) or {}
    if not isinstance(payload, dict) or not _valid_extension(payload):
        return _json_error("Campos obrigatórios faltando ou inválidos.")

    try:
        created = _client().create_extension(payload)
    except ProviderError as exc:
        return _dialer_error(exc, "/extensions")

    db.session.add(Extension(payload=json.dumps(created)))
    db.session.commit()
    return jsonify(created), HTTPStatus.CREATED


@bp.get("/ramal")
def list_extensions() -> tuple[object, int]:
    extensions = Extension.query.order_by(Extension.id.asc()).all()
    return jsonify([extension.data for extension in extensions]), HTTPStatus.OK


@bp.get("/ramal/remote")
def list_remote_extensions() -> tuple[object, int]:
    try:
        extensions = _client().list_extensions()
    except ProviderError as exc:
        return _proxy_error(exc, "extension listing")
    return jsonify(extensions), HTTPStatus.OK


@bp.post("/call")
def place_call() -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True) or {}
    if not isinstance(payload, dict):
        payload = {}
    extension = payload.get("extension")
    phone = payload.get("phone")
    if not extension or not phone:
        return _json_error("extension e phone são obrigatórios.")

    try:
        call = _client().dial(extension, phone, payload.get("metadata"))
    except ProviderError as exc:
        return _dialer_error(exc, "/dialer")

    call_id = call.get("id") if isinstance(call, dict) else None
    db.session.add(
        Call(
            call_id=str(call_id) if call_id is not None else None,
            payload=json.dumps(call),
            status="active",
        )
    )
    db.session.commit()
    current_app.logger.info("Call %s placed from extension %s", call_id, extension)
    return jsonify(call), HTTPStatus.CREATED


@bp.get("/call")
def list_calls() -> tuple[object, int]:
    calls = Call.query.order_by(Call.id.asc()).all()
    return jsonify([_serialize_call(call) for call in calls]), HTTPStatus.OK


@bp.post("/calls/<call_id>/hangup")
def hangup_call(call_id: str) -> tuple[object, int]:
    try:
        result = _client().hangup(call_id)
    except ProviderError as exc:
        return _proxy_error(exc, f"hangup of call {call_id}")

    current_app.logger.info("Call %s hung up: %s", call_id, result)
    call = Call.query.filter_by(call_id=call_id).first()
    if call is not None:
        call.status = "ended"
        db.session.commit()

    result = result if isinstance(result, dict) else {}
    return (
        jsonify({"status": result.get("status"), "message": result.get("message"), "id": call_id}),
        HTTPStatus.OK,
    )


@bp.post("/callback")
def receive_webhook():
    payload = request.get_json(force=True, silent=True)
    if not isinstance(payload, dict) or not payload:
        return _json_error("Payload vazio.")

    event = WebhookEvent(payload=json.dumps(payload))
    db.session.add(event)
    db.session.commit()
    current_app.logger.info("Webhook received on /callback: %s", payload)
    return "", HTTPStatus.OK


@bp.get("/webhook")
def list_webhooks() -> tuple[object, int]:
    events = WebhookEvent.query.order_by(WebhookEvent.id.asc()).all()
    return (
        jsonify(
            [{"data": event.data, "at": _serialize_timestamp(event.received_at)} for event in events]
        ),
        HTTPStatus.OK,
    )
