"""Local mirror stores for resources created through the Api4Com gateway."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Any

from ..extensions import db


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _load(payload: str) -> Any:
    try:
        return json.loads(payload)
    except (TypeError, ValueError):
        return {}


class Contact(db.Model):
    """Locally stored user that never reaches Api4Com."""

    __tablename__ = "api4com_contacts"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)


class Extension(db.Model):
    """Extension (ramal) as returned by Api4Com when it was created."""

    __tablename__ = "api4com_extensions"

    id = db.Column(db.Integer, primary_key=True)
    payload = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    @property
    def data(self) -> Any:
        return _load(self.payload)


class Call(db.Model):
    """Call placed through the dialer and its local lifecycle status."""

    __tablename__ = "api4com_calls"

    id = db.Column(db.Integer, primary_key=True)
    call_id = db.Column(db.String(255), nullable=True, index=True)
    payload = db.Column(db.Text, nullable=False)
    status = db.Column(db.Enum("active", "ended", name="call_status"), nullable=False, default="active")
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    @property
    def data(self) -> Any:
        return _load(self.payload)


class WebhookEvent(db.Model):
    """Raw event delivered by Api4Com to the callback endpoint."""

    __tablename__ = "api4com_webhook_events"

    id = db.Column(db.Integer, primary_key=True)
    payload = db.Column(db.Text, nullable=False)
    received_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    @property
    def data(self) -> Any:
        return _load(self.payload)

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<WebhookEvent {self.id}>"
