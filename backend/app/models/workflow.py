"""Workflow record model definition."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.dialects import mysql

from ..extensions import db

NAME_MAX_LENGTH = 255
CATEGORY_MAX_LENGTH = 120


def utcnow() -> datetime:
    """Return the current time as a naive UTC timestamp."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


_MediumText = db.Text().with_variant(mysql.MEDIUMTEXT(), "mysql")
_LongText = db.Text().with_variant(mysql.LONGTEXT(), "mysql")


class Workflow(db.Model):
    """Denormalised, searchable record of one workflow document."""

    __tablename__ = "workflows"

    id = db.Column(db.String(255), primary_key=True)
    name = db.Column(db.String(NAME_MAX_LENGTH), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False, default="")
    category = db.Column(db.String(CATEGORY_MAX_LENGTH), nullable=False, index=True)
    trigger_type = db.Column(db.String(16), nullable=False, index=True)
    node_count = db.Column(db.Integer, nullable=False, default=0, index=True)
    active = db.Column(db.Boolean, nullable=False, default=False)
    tags = db.Column(db.Text, nullable=False, default="")
    integrations = db.Column(db.Text, nullable=False, default="[]")
    search_text = db.Column(_MediumText, nullable=False, default="")
    workflow_data = db.Column(_LongText, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<Workflow {self.id!r}>"
