"""Database models for the voice gateway backend."""

from .api4com import Call, Contact, Extension, WebhookEvent
from .user import User

__all__ = ["User", "Contact", "Extension", "Call", "WebhookEvent"]
