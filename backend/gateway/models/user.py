"""User account model."""

from __future__ import annotations

from datetime import datetime, timezone

from ..extensions import db


class User(db.Model):
    """A registered user of the users API."""

    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.Text, nullable=False)
    email = db.Column(db.Text, unique=True, nullable=False)
    password_hash = db.Column(db.Text, nullable=False)
    age = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<User {self.email!r}>"
