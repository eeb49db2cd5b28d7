"""Batch ingestion of workflow documents into the catalog store."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from ..catalog.classifier import classify
from ..catalog.indexer import build_record
from ..errors import CatalogError, StoreFailure
from ..extensions import db
from ..models.workflow import utcnow
from .discovery import SourceDocument, discover_documents, read_document
from .store import previous_integrations, record_integrations, upsert_workflow

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class IngestionFailure:
    """A document that could not be ingested and the reason why."""

    path: str
    workflow_id: str | None
    error: str
    details: str | None = None


@dataclass
class IngestionReport:
    """Outcome of a pipeline run."""

    total: int = 0
    succeeded: int = 0
    failures: list[IngestionFailure] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.succeeded + len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures


def _chunks(items: Sequence[SourceDocument], size: int) -> list[Sequence[SourceDocument]]:
    return [items[start : start + size] for start in range(0, len(items), size)]


class IngestionPipeline:
    """Classify, index and upsert every workflow document in a directory.

    Documents are processed by a fixed size thread pool, one application
    context and database session per document. A failing document is
    recorded in the report and never affects its siblings.
    """

    def __init__(
        self,
        app: Flask,
        category_table: Mapping[str, str],
        *,
        max_workers: int | None = None,
        batch_size: int | None = None,
        default_category: str | None = None,
    ) -> None:
        self.app = app
        self.category_table = category_table
        self.max_workers = max(1, max_workers or app.config.get("INGEST_MAX_WORKERS", 10))
        self.batch_size = max(1, batch_size or app.config.get("INGEST_BATCH_SIZE", 100))
        self.default_category = default_category or app.config.get(
            "DEFAULT_WORKFLOW_CATEGORY", "Business Process Automation"
        )

    def run(
        self,
        directory: str | Path,
        *,
        recursive: bool = False,
        progress: ProgressCallback | None = None,
    ) -> IngestionReport:
        """Ingest every document below ``directory`` and report the outcome."""

        documents, duplicates = discover_documents(directory, recursive=recursive)
        report = IngestionReport(total=len(documents) + len(duplicates))

        for path, error in duplicates:
            self._record_failure(report, str(path), path.name, error)

        if not documents:
            self.app.logger.warning("No workflow documents found in %s", directory)
            return report

        self.app.logger.info("Found %s workflow documents to process", len(documents))
        batches = _chunks(documents, self.batch_size)
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for number, batch in enumerate(batches, start=1):
                self.app.logger.info("Processing batch %s/%s", number, len(batches))
                futures = [(source, executor.submit(self.ingest_one, source)) for source in batch]
                for source, future in futures:
                    try:
                        future.result()
                    except CatalogError as exc:
                        self._record_failure(report, str(source.path), source.workflow_id, exc)
                    except Exception as exc:
                        self.app.logger.exception("Unexpected error ingesting %s", source.path)
                        self._record_failure(
                            report,
                            str(source.path),
                            source.workflow_id,
                            CatalogError("Unexpected ingestion error", details=str(exc)),
                        )
                    else:
                        report.succeeded += 1
                self._checkpoint(report, progress)

        self.app.logger.info(
            "Ingestion finished: %s succeeded, %s failed",
            report.succeeded,
            len(report.failures),
        )
        return report

    def ingest_one(self, source: SourceDocument) -> None:
        """Ingest a single document inside its own application context."""

        document, text = read_document(source.path)
        classification = classify(
            document, source.workflow_id, self.category_table, self.default_category
        )
        record = build_record(document, source.workflow_id, classification, source_text=text)

        with self.app.app_context():
            try:
                already_counted = previous_integrations(db.session, record.id) or []
                upsert_workflow(db.session, record, utcnow())
                record_integrations(db.session, record.integrations, already_counted)
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise StoreFailure("Failed to store workflow", details=str(exc)) from exc

    def _record_failure(
        self,
        report: IngestionReport,
        path: str,
        workflow_id: str | None,
        error: CatalogError,
    ) -> None:
        self.app.logger.warning("Failed to process %s: %s (%s)", path, error.message, error.details)
        report.failures.append(
            IngestionFailure(
                path=path,
                workflow_id=workflow_id,
                error=error.message,
                details=error.details,
            )
        )

    def _checkpoint(self, report: IngestionReport, progress: ProgressCallback | None) -> None:
        done = report.processed
        percentage = round(done / report.total * 100) if report.total else 100
        self.app.logger.info("Progress: %s/%s (%s%%)", done, report.total, percentage)
        if progress is not None:
            progress(done, report.total)
