from __future__ import annotations

import json
import pathlib
import sys
from collections.abc import Callable
from typing import Any

import pytest
from sqlalchemy.pool import StaticPool

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _load_dependencies():
    from workflow_catalog import Config, create_app
    from backend.app.extensions import db

    return Config, create_app, db


ConfigBase, create_app, db = _load_dependencies()


class TestConfig(ConfigBase):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite+pysqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "poolclass": StaticPool,
        "connect_args": {"check_same_thread": False},
    }
    CORS_ALLOWED_ORIGINS = "http://localhost"
    RATELIMIT_ENABLED = False
    DB_INIT_MAX_RETRIES = 1


def file_database_config(path: pathlib.Path) -> type[TestConfig]:
    """Return a config backed by a SQLite file, usable from worker threads."""

    class FileDatabaseConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite+pysqlite:///{path}"
        SQLALCHEMY_ENGINE_OPTIONS = {
            "connect_args": {"check_same_thread": False, "timeout": 30},
        }

    return FileDatabaseConfig


@pytest.fixture(scope="module")
def app():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture(autouse=True)
def clean_database(request):
    if "app" not in request.fixturenames:
        yield
        return

    from backend.app.models import Integration, Workflow

    yield

    db.session.rollback()
    db.session.query(Workflow).delete()
    db.session.query(Integration).delete()
    db.session.commit()


def make_document(
    node_types: list[str],
    *,
    name: str | None = None,
    description: str | None = None,
    tags: list[Any] | None = None,
    active: bool = False,
) -> dict[str, Any]:
    """Build a workflow document with one node per entry in ``node_types``."""

    document: dict[str, Any] = {
        "nodes": [
            {"name": f"Node {index}", "type": node_type, "parameters": {}}
            for index, node_type in enumerate(node_types, start=1)
        ],
        "connections": {},
        "active": active,
    }
    if name is not None:
        document["name"] = name
    if description is not None:
        document["description"] = description
    if tags is not None:
        document["tags"] = tags
    return document


@pytest.fixture()
def seed_workflow(app) -> Callable[..., Any]:
    """Store a workflow through the same classify/index/upsert path as ingestion."""

    from backend.app.catalog.classifier import classify
    from backend.app.catalog.indexer import build_record
    from backend.app.ingestion.store import (
        previous_integrations,
        record_integrations,
        upsert_workflow,
    )
    from backend.app.models.workflow import utcnow

    def factory(
        workflow_id: str,
        document: dict[str, Any],
        category: str | None = None,
    ):
        table = {workflow_id: category} if category else {}
        classification = classify(
            document, workflow_id, table, app.config["DEFAULT_WORKFLOW_CATEGORY"]
        )
        record = build_record(document, workflow_id, classification)
        already_counted = previous_integrations(db.session, workflow_id) or []
        upsert_workflow(db.session, record, utcnow())
        record_integrations(db.session, record.integrations, already_counted)
        db.session.commit()
        return record

    return factory


@pytest.fixture()
def workflow_dir(tmp_path) -> Callable[..., pathlib.Path]:
    """Write workflow documents into a temporary directory."""

    directory = tmp_path / "workflows"
    directory.mkdir()

    def write(filename: str, document: Any) -> pathlib.Path:
        path = directory / filename
        if isinstance(document, str):
            path.write_text(document, encoding="utf-8")
        else:
            path.write_text(json.dumps(document), encoding="utf-8")
        return path

    write.directory = directory  # type: ignore[attr-defined]
    return write
