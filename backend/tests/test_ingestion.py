"""Tests for document discovery and the batch ingestion pipeline."""

from __future__ import annotations

import json

import pytest

from sqlalchemy.exc import OperationalError

from backend.app.errors import CatalogError, CategoryTableError, DocumentParseError
from backend.app.ingestion import store
from backend.app.extensions import db
from backend.app.ingestion import (
    IngestionPipeline,
    discover_documents,
    load_category_table,
    read_document,
)
from backend.app.models import Integration, Workflow
from conftest import create_app, file_database_config, make_document


@pytest.fixture(scope="module")
def file_app(tmp_path_factory):
    database = tmp_path_factory.mktemp("db") / "catalog.sqlite"
    app = create_app(file_database_config(database))
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    ctx.pop()


@pytest.fixture(autouse=True)
def clean_file_database(request):
    yield
    if "file_app" in request.fixturenames:
        db.session.rollback()
        db.session.query(Workflow).delete()
        db.session.query(Integration).delete()
        db.session.commit()


def _usage(name: str) -> int | None:
    db.session.expire_all()
    integration = db.session.get(Integration, name)
    return integration.usage_count if integration is not None else None


def test_discover_documents_assigns_file_names_as_ids(workflow_dir):
    workflow_dir("b.json", {})
    workflow_dir("a.json", {})
    workflow_dir("notes.txt", "ignored")

    documents, duplicates = discover_documents(workflow_dir.directory)

    assert [document.workflow_id for document in documents] == ["a.json", "b.json"]
    assert duplicates == []


def test_discover_documents_reports_duplicate_ids(workflow_dir):
    workflow_dir("same.json", {})
    nested = workflow_dir.directory / "nested"
    nested.mkdir()
    (nested / "same.json").write_text("{}", encoding="utf-8")

    flat, flat_duplicates = discover_documents(workflow_dir.directory)
    assert len(flat) == 1 and flat_duplicates == []

    documents, duplicates = discover_documents(workflow_dir.directory, recursive=True)
    assert [document.workflow_id for document in documents] == ["same.json"]
    assert len(duplicates) == 1
    path, error = duplicates[0]
    assert path.parent.name == "nested"
    assert "same.json" in error.details


def test_discover_documents_requires_directory(tmp_path):
    with pytest.raises(CatalogError):
        discover_documents(tmp_path / "missing")


def test_load_category_table_accepts_list_and_mapping(tmp_path):
    listed = tmp_path / "listed.json"
    listed.write_text(
        json.dumps(
            [
                {"filename": "a.json", "category": "Finance"},
                {"filename": "b.json", "category": "Marketing"},
                {"filename": "c.json"},
            ]
        ),
        encoding="utf-8",
    )
    mapped = tmp_path / "mapped.json"
    mapped.write_text(json.dumps({"a.json": "Finance"}), encoding="utf-8")

    assert load_category_table(listed) == {"a.json": "Finance", "b.json": "Marketing"}
    assert load_category_table(mapped) == {"a.json": "Finance"}


@pytest.mark.parametrize("content", ["not json", "42", "[1, 2]"])
def test_load_category_table_rejects_malformed_tables(tmp_path, content):
    path = tmp_path / "table.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(CategoryTableError):
        load_category_table(path)


def test_load_category_table_missing_file(tmp_path):
    with pytest.raises(CategoryTableError):
        load_category_table(tmp_path / "absent.json")


@pytest.mark.parametrize("content", ["{broken", "[]", '"text"'])
def test_read_document_rejects_invalid_documents(workflow_dir, content):
    path = workflow_dir("bad.json", content)
    with pytest.raises(DocumentParseError):
        read_document(path)


def test_ingests_example_document(file_app, workflow_dir):
    workflow_dir(
        "send_slack_and_log.json",
        make_document(["trigger.manual", "n8n.slack", "n8n.http"], tags=["ops", "alerts"]),
    )

    report = IngestionPipeline(file_app, {}).run(workflow_dir.directory)

    assert report.ok
    assert report.total == report.processed == report.succeeded == 1

    workflow = db.session.get(Workflow, "send_slack_and_log.json")
    assert workflow.name == "send slack and log"
    assert workflow.trigger_type == "MANUAL"
    assert workflow.node_count == 3
    assert workflow.category == "Business Process Automation"
    assert workflow.tags == "ops,alerts"
    assert json.loads(workflow.integrations) == ["slack", "http"]
    assert len(json.loads(workflow.workflow_data)["nodes"]) == workflow.node_count

    assert _usage("slack") == 1
    assert _usage("http") == 1
    assert db.session.get(Integration, "http").category == "Web Scraping & Data Extraction"


def test_reingestion_updates_in_place(file_app, workflow_dir):
    workflow_dir("flow.json", make_document(["n8n.slack"], name="First"))
    pipeline = IngestionPipeline(file_app, {"flow.json": "Finance"})

    pipeline.run(workflow_dir.directory)
    first = db.session.get(Workflow, "flow.json")
    first_created, first_updated = first.created_at, first.updated_at

    workflow_dir("flow.json", make_document(["n8n.slack", "n8n.gmail"], name="Second"))
    pipeline.run(workflow_dir.directory)

    db.session.expire_all()
    assert Workflow.query.count() == 1
    second = db.session.get(Workflow, "flow.json")
    assert second.name == "Second"
    assert second.node_count == 2
    assert second.category == "Finance"
    assert second.created_at == first_created
    assert second.updated_at >= first_updated


def test_usage_counted_once_per_document(file_app, workflow_dir):
    workflow_dir(
        "many_slack_nodes.json",
        make_document(["n8n.slack", "n8n.slack", "n8n.slack", "n8n.http"]),
    )

    IngestionPipeline(file_app, {}).run(workflow_dir.directory)

    assert _usage("slack") == 1


def test_rerunning_pipeline_keeps_usage_counts(file_app, workflow_dir):
    workflow_dir("a.json", make_document(["n8n.slack"]))
    workflow_dir("b.json", make_document(["n8n.slack", "n8n.notion"]))
    pipeline = IngestionPipeline(file_app, {})

    pipeline.run(workflow_dir.directory)
    pipeline.run(workflow_dir.directory)

    assert Workflow.query.count() == 2
    assert _usage("slack") == 2
    assert _usage("notion") == 1

    workflow_dir("a.json", make_document(["n8n.slack", "n8n.notion"]))
    pipeline.run(workflow_dir.directory)

    assert _usage("notion") == 2


def test_concurrent_documents_share_integration_counter(file_app, workflow_dir):
    for index in range(24):
        workflow_dir(f"flow_{index:02d}.json", make_document(["n8n.webhook", "n8n.slack"]))

    report = IngestionPipeline(file_app, {}, max_workers=4, batch_size=5).run(
        workflow_dir.directory
    )

    assert report.ok
    assert report.succeeded == 24
    assert Workflow.query.count() == 24
    assert _usage("slack") == 24
    assert _usage("webhook") == 24


def test_failures_are_isolated_per_document(file_app, workflow_dir):
    workflow_dir("good_one.json", make_document(["n8n.slack"]))
    workflow_dir("broken.json", "{not json")
    workflow_dir("array.json", "[]")
    workflow_dir("good_two.json", make_document(["n8n.github"]))

    progress: list[tuple[int, int]] = []
    report = IngestionPipeline(file_app, {}, max_workers=2, batch_size=2).run(
        workflow_dir.directory, progress=lambda done, total: progress.append((done, total))
    )

    assert not report.ok
    assert report.total == report.processed == 4
    assert report.succeeded == 2
    assert sorted(failure.workflow_id for failure in report.failures) == [
        "array.json",
        "broken.json",
    ]
    assert all(failure.error for failure in report.failures)
    assert progress == [(2, 4), (4, 4)]
    assert {workflow.id for workflow in Workflow.query.all()} == {"good_one.json", "good_two.json"}


def test_store_failure_rolls_back_only_that_document(file_app, workflow_dir, monkeypatch):
    workflow_dir("good.json", make_document(["n8n.slack"]))
    workflow_dir("bad.json", make_document(["n8n.slack", "n8n.flaky"]))
    increment = store.increment_integration

    def failing_increment(session, name):
        if name == "flaky":
            raise OperationalError("INSERT INTO integrations", {}, Exception("disk I/O error"))
        increment(session, name)

    monkeypatch.setattr(store, "increment_integration", failing_increment)

    report = IngestionPipeline(file_app, {}, max_workers=2).run(workflow_dir.directory)

    assert report.succeeded == 1
    [failure] = report.failures
    assert failure.workflow_id == "bad.json"
    assert failure.error == "Failed to store workflow"
    assert "disk I/O error" in failure.details

    db.session.expire_all()
    assert db.session.get(Workflow, "bad.json") is None
    assert db.session.get(Workflow, "good.json") is not None
    assert _usage("slack") == 1
    assert _usage("flaky") is None


def test_integration_names_are_lowercased_and_counted_once(file_app, workflow_dir):
    workflow_dir(
        "mixed_case.json",
        make_document(
            ["n8n-nodes-base.httpRequest", "n8n-nodes-base.openAi", "x.openai", "y.HttpRequest"]
        ),
    )

    report = IngestionPipeline(file_app, {}).run(workflow_dir.directory)

    assert report.ok
    assert sorted(integration.name for integration in Integration.query.all()) == [
        "httprequest",
        "openai",
    ]
    assert _usage("openai") == 1
    assert _usage("httprequest") == 1
    workflow = db.session.get(Workflow, "mixed_case.json")
    assert json.loads(workflow.integrations) == ["httprequest", "openai"]


def test_empty_directory_reports_nothing(file_app, workflow_dir):
    report = IngestionPipeline(file_app, {}).run(workflow_dir.directory)

    assert report.ok
    assert report.total == 0
