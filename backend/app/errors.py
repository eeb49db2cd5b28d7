"""Exception types shared by the ingestion pipeline and the query API."""

from __future__ import annotations

from http import HTTPStatus


class CatalogError(Exception):
    """Base class for errors surfaced by the workflow catalog."""

    status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class DocumentParseError(CatalogError):
    """Raised when a workflow document cannot be read or decoded."""

    status = HTTPStatus.UNPROCESSABLE_ENTITY


class DuplicateWorkflowId(CatalogError):
    """Raised when two source documents resolve to the same workflow id."""

    status = HTTPStatus.CONFLICT


class CategoryTableError(CatalogError):
    """Raised when the category lookup table is missing or malformed."""


class WorkflowNotFound(CatalogError):
    """Raised when a workflow id is not present in the store."""

    status = HTTPStatus.NOT_FOUND

    def __init__(self, workflow_id: str) -> None:
        super().__init__("Workflow not found", details=f"no workflow with id {workflow_id!r}")
        self.workflow_id = workflow_id


class ValidationFailure(CatalogError):
    """Raised when request parameters are malformed."""

    status = HTTPStatus.BAD_REQUEST


class StoreFailure(CatalogError):
    """Raised when the persistence layer fails."""
