"""Dialect native upsert statements for workflow and integration records."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from ..catalog.categories import integration_category
from ..catalog.indexer import WorkflowRecord, parse_integrations
from ..errors import StoreFailure
from ..models.integration import Integration
from ..models.workflow import Workflow

_CONFLICT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


def _dialect_name(session: Session) -> str:
    return session.get_bind().dialect.name


def _upsert(session: Session, model, values: dict, key: str, updates) -> None:
    """Execute ``INSERT ... ON CONFLICT/DUPLICATE KEY UPDATE`` for ``model``.

    ``updates`` is called with the insert statement and returns the SET clause,
    so it can refer to the proposed row (``excluded`` / ``inserted``).
    """

    dialect = _dialect_name(session)
    if dialect == "mysql":
        stmt = mysql_insert(model).values(**values)
        stmt = stmt.on_duplicate_key_update(updates(stmt.inserted))
    elif dialect in _CONFLICT_INSERTS:
        stmt = _CONFLICT_INSERTS[dialect](model).values(**values)
        stmt = stmt.on_conflict_do_update(index_elements=[key], set_=updates(stmt.excluded))
    else:
        raise StoreFailure("Unsupported database", details=f"no upsert support for {dialect}")
    session.execute(stmt)


def previous_integrations(session: Session, workflow_id: str) -> list[str] | None:
    """Return the integrations stored for ``workflow_id``, or ``None`` if new."""

    stored = session.execute(
        select(Workflow.integrations).where(Workflow.id == workflow_id)
    ).scalar_one_or_none()
    if stored is None:
        return None
    return parse_integrations(stored)


def upsert_workflow(session: Session, record: WorkflowRecord, now: datetime) -> None:
    """Insert the record, or overwrite every field and bump ``updated_at``."""

    row = record.to_row()

    def updates(proposed):
        changes = {column: proposed[column] for column in row if column != "id"}
        changes["updated_at"] = now
        return changes

    _upsert(
        session,
        Workflow,
        {**row, "created_at": now, "updated_at": now},
        "id",
        updates,
    )


def increment_integration(session: Session, name: str) -> None:
    """Create the integration with a usage of one, or add one atomically."""

    _upsert(
        session,
        Integration,
        {
            "name": name,
            "display_name": name,
            "category": integration_category(name),
            "usage_count": 1,
        },
        "name",
        lambda _proposed: {"usage_count": Integration.usage_count + 1},
    )


def record_integrations(
    session: Session, integrations: Iterable[str], already_counted: Iterable[str] = ()
) -> list[str]:
    """Count each integration once for the current workflow.

    Integrations the workflow already referenced on a previous ingestion are
    skipped, so re-ingesting an unchanged document leaves the counters alone.
    """

    counted = set(already_counted)
    incremented: list[str] = []
    for name in integrations:
        if name in counted:
            continue
        increment_integration(session, name)
        counted.add(name)
        incremented.append(name)
    return incremented
