"""REST endpoints proxying the LigueLead voice broadcast API."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, current_app, jsonify, request

from ..extensions import limiter
from ..flows import FlowTrigger, OutcomeKind
from ..providers import LigueLeadClient, ProviderError

bp = Blueprint("liguelead", __name__)

NO_EVENT_MESSAGE = "Nenhum evento encontrado"


def _client() -> LigueLeadClient:
    return current_app.extensions["liguelead"]


def _json_error(message: str, status: int = HTTPStatus.BAD_REQUEST):
    return jsonify({"error": message}), status


def _relay_provider_error(exc: ProviderError, action: str):
    """Forward an upstream error response as-is, or answer 500 when there was none."""

    if exc.has_response:
        current_app.logger.error(
            "LigueLead %s failed: status=%s data=%s", action, exc.status, exc.payload
        )
        return jsonify(exc.payload), exc.status
    current_app.logger.error("LigueLead %s failed: %s", action, exc.message)
    return _json_error(exc.message, HTTPStatus.INTERNAL_SERVER_ERROR)


@bp.post("/audio")
def upload_audio() -> tuple[object, int]:
    current_app.logger.info("Request received on /audio")
    client = _client()
    title = (request.form.get("title") or "").strip()
    audio = request.files.get("audio")

    if not client.credentials.complete or audio is None or not audio.filename or not title:
        current_app.logger.warning("Missing parameters on /audio")
        return _json_error("Parâmetros obrigatórios ausentes.")

    current_app.logger.info("Uploading audio %r titled %r", audio.filename, title)
    try:
        data = client.upload_audio(title, audio.filename, audio.stream, audio.mimetype)
    except ProviderError as exc:
        current_app.logger.error("Audio upload failed: %s", exc.message)
        return _json_error(exc.message, HTTPStatus.INTERNAL_SERVER_ERROR)

    current_app.logger.info("Audio accepted by LigueLead")
    return jsonify(data), HTTPStatus.OK


@bp.get("/audios")
def list_audios() -> tuple[object, int]:
    current_app.logger.info("Request received on /audios")
    try:
        data = _client().list_audios()
    except ProviderError as exc:
        return _relay_provider_error(exc, "audio listing")
    return jsonify(data), HTTPStatus.OK


@bp.get("/audio/<audio_id>")
def get_audio(audio_id: str) -> tuple[object, int]:
    current_app.logger.info("Request received on /audio/%s", audio_id)
    try:
        data = _client().get_audio(audio_id)
    except ProviderError as exc:
        if exc.status == HTTPStatus.NOT_FOUND:
            current_app.logger.warning("Audio %s not found on LigueLead", audio_id)
            return _json_error("Áudio não encontrado.", HTTPStatus.NOT_FOUND)
        current_app.logger.error("Audio lookup failed: %s", exc.message)
        return _json_error(exc.message, HTTPStatus.INTERNAL_SERVER_ERROR)
    return jsonify(data), HTTPStatus.OK


def _validate_voice_payload(payload: dict[str, Any]) -> tuple[dict[str, Any], bool]:
    title = payload.get("title")
    audio_id = payload.get("audio_id")
    phones = payload.get("phones")
    valid = bool(title) and bool(audio_id) and isinstance(phones, list) and len(phones) > 0
    return {"title": title, "audio_id": audio_id, "phones": phones}, valid


@bp.post("/voice")
def send_voice() -> tuple[object, int]:
    current_app.logger.info("Request received on /voice")
    payload = request.get_json(force=True, silent=True) or {}
    data, valid = _validate_voice_payload(payload if isinstance(payload, dict) else {})
    if not valid:
        current_app.logger.warning("Missing or invalid parameters on /voice")
        return _json_error("Parâmetros obrigatórios ausentes ou inválidos.")

    try:
        result = _client().send_voice(data["title"], data["audio_id"], data["phones"])
    except ProviderError as exc:
        if exc.status == HTTPStatus.UNPROCESSABLE_ENTITY and exc.payload_message() == NO_EVENT_MESSAGE:
            current_app.logger.warning("LigueLead has no 'iniciar flow' event configured")
        return _relay_provider_error(exc, "voice message")

    current_app.logger.info("Voice message accepted for %d phone(s)", len(data["phones"]))
    return jsonify(result), HTTPStatus.OK


@bp.get("/campaigns/voice/<campaign_id>")
def get_voice_campaign(campaign_id: str) -> tuple[object, int]:
    current_app.logger.info("Request received on /campaigns/voice/%s", campaign_id)
    page = request.args.get("page")
    per_page = request.args.get("per_page")
    try:
        data = _client().get_voice_campaign(campaign_id, page=page, per_page=per_page)
    except ProviderError as exc:
        return _relay_provider_error(exc, "voice campaign lookup")
    return jsonify(data), HTTPStatus.OK


@bp.post("/flow/start")
@limiter.limit(lambda: current_app.config["FLOW_START_RATE_LIMIT"])
def start_flow() -> tuple[object, int]:
    current_app.logger.info("Request received on /flow/start")
    trigger: FlowTrigger = current_app.extensions["flow_trigger"]

    try:
        outcome = trigger.start(_client(), current_app.logger)
    except Exception as exc:
        current_app.logger.exception("Internal error while triggering flow")
        return _json_error(str(exc), HTTPStatus.INTERNAL_SERVER_ERROR)

    attempts = [attempt.to_dict() for attempt in outcome.attempts]
    if outcome.kind is OutcomeKind.FIRST_SUCCESS:
        return jsonify(
            {"ok": True, "usedPayload": outcome.used_payload, "response": outcome.response}
        ), HTTPStatus.OK
    if outcome.kind is OutcomeKind.NON_RECOVERABLE:
        return jsonify({"error": outcome.error, "attempts": attempts}), outcome.status

    return jsonify(
        {
            "ok": False,
            "message": "Nenhum payload aceito pelo webhook. Verifique schema esperado pela LigueLead.",
            "attempts": attempts,
        }
    ), HTTPStatus.UNPROCESSABLE_ENTITY
