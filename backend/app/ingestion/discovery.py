"""Locate workflow documents and load the category lookup table."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..errors import CatalogError, CategoryTableError, DocumentParseError, DuplicateWorkflowId


@dataclass(frozen=True)
class SourceDocument:
    """A workflow file together with the id assigned to it at discovery time."""

    workflow_id: str
    path: Path


def discover_documents(
    directory: str | Path, *, recursive: bool = False
) -> tuple[list[SourceDocument], list[tuple[Path, DuplicateWorkflowId]]]:
    """Return the workflow documents below ``directory`` with explicit ids.

    Ids are file names. A file whose name was already assigned is returned
    as a duplicate instead of being allowed to overwrite the first one.
    """

    root = Path(directory)
    if not root.is_dir():
        raise CatalogError("Workflow directory not found", details=str(root))

    pattern = "**/*.json" if recursive else "*.json"
    paths = sorted(path for path in root.glob(pattern) if path.is_file())

    assigned: dict[str, Path] = {}
    documents: list[SourceDocument] = []
    duplicates: list[tuple[Path, DuplicateWorkflowId]] = []
    for path in paths:
        workflow_id = path.name
        first = assigned.get(workflow_id)
        if first is not None:
            duplicates.append(
                (
                    path,
                    DuplicateWorkflowId(
                        "Duplicate workflow id",
                        details=f"{workflow_id!r} is already assigned to {first}",
                    ),
                )
            )
            continue
        assigned[workflow_id] = path
        documents.append(SourceDocument(workflow_id=workflow_id, path=path))
    return documents, duplicates


def _table_from_payload(payload: Any) -> dict[str, str]:
    if isinstance(payload, dict):
        return {
            str(filename): category
            for filename, category in payload.items()
            if isinstance(category, str)
        }

    if isinstance(payload, list):
        table: dict[str, str] = {}
        for index, item in enumerate(payload, start=1):
            if not isinstance(item, dict):
                raise CategoryTableError(
                    "Invalid category table", details=f"entry {index} must be an object"
                )
            filename = item.get("filename")
            category = item.get("category")
            if isinstance(filename, str) and isinstance(category, str):
                table.setdefault(filename, category)
        return table

    raise CategoryTableError(
        "Invalid category table", details="expected a list of entries or an object"
    )


def load_category_table(path: str | Path) -> dict[str, str]:
    """Load a ``filename -> category`` mapping from a JSON file.

    Both the upstream list format (``[{"filename": ..., "category": ...}]``)
    and a plain object mapping are accepted.
    """

    table_path = Path(path)
    try:
        payload = json.loads(table_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CategoryTableError("Category table could not be read", details=str(exc)) from exc
    except ValueError as exc:
        raise CategoryTableError("Category table is not valid JSON", details=str(exc)) from exc
    return _table_from_payload(payload)


def read_document(path: Path) -> tuple[dict[str, Any], str]:
    """Read and decode a workflow document, returning it with its source text."""

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DocumentParseError("Workflow document could not be read", details=str(exc)) from exc

    try:
        document = json.loads(text)
    except ValueError as exc:
        raise DocumentParseError("Workflow document is not valid JSON", details=str(exc)) from exc

    if not isinstance(document, dict):
        raise DocumentParseError(
            "Workflow document must be a JSON object",
            details=f"got {type(document).__name__}",
        )
    return document, text
