"""Integration usage model definition."""

from __future__ import annotations

from ..extensions import db


class Integration(db.Model):
    """An integration identifier and the number of workflows referencing it."""

    __tablename__ = "integrations"

    name = db.Column(db.String(191), primary_key=True)
    display_name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False)
    usage_count = db.Column(db.Integer, nullable=False, default=0, index=True)

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<Integration {self.name} x{self.usage_count}>"
