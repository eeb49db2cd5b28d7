"""Build denormalised search records from workflow documents."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..models.workflow import NAME_MAX_LENGTH
from .classifier import Classification, get_nodes

TAG_DELIMITER = ","

_STRUCTURAL_CHARS = re.compile(r'[{}\[\]",]')
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class WorkflowRecord:
    """Normalised workflow ready to be written to the store."""

    id: str
    name: str
    description: str
    category: str
    trigger_type: str
    node_count: int
    active: bool
    tags: list[str] = field(default_factory=list)
    integrations: list[str] = field(default_factory=list)
    search_text: str = ""
    workflow_data: str = "{}"

    def to_row(self) -> dict[str, Any]:
        """Return column values for the ``workflows`` table."""

        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "trigger_type": self.trigger_type,
            "node_count": self.node_count,
            "active": self.active,
            "tags": TAG_DELIMITER.join(self.tags),
            "integrations": json.dumps(self.integrations),
            "search_text": self.search_text,
            "workflow_data": self.workflow_data,
        }


def default_name(filename: str) -> str:
    """Derive a human readable name from a workflow filename."""

    stem = filename[: -len(".json")] if filename.endswith(".json") else filename
    return stem.replace("_", " ")


def normalize_tags(raw_tags: Any) -> list[str]:
    """Return tags as an ordered set of delimiter free strings.

    Tags may be plain strings or objects carrying a ``name`` key.
    """

    if not isinstance(raw_tags, list):
        return []

    tags: dict[str, None] = {}
    for tag in raw_tags:
        if isinstance(tag, Mapping):
            tag = tag.get("name")
        if not isinstance(tag, str):
            continue
        cleaned = tag.replace(TAG_DELIMITER, " ").strip()
        if cleaned:
            tags.setdefault(cleaned, None)
    return list(tags)


def parse_tags(value: str | None) -> list[str]:
    """Split a stored tag string back into a list."""

    if not value:
        return []
    return [tag for tag in value.split(TAG_DELIMITER) if tag]


def parse_integrations(value: str | None) -> list[str]:
    """Decode a stored integration list."""

    if not value:
        return []
    try:
        decoded = json.loads(value)
    except (TypeError, ValueError):
        return []
    return [item for item in decoded if isinstance(item, str)] if isinstance(decoded, list) else []


def flatten_parameters(parameters: Any) -> str:
    """Flatten a node parameter block into whitespace separated tokens."""

    text = json.dumps(parameters, ensure_ascii=False, separators=(",", ":"))
    text = _STRUCTURAL_CHARS.sub(" ", text)
    return _WHITESPACE.sub(" ", text)


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def build_search_text(
    document: Mapping[str, Any],
    integrations: Iterable[str],
    *,
    name: str | None = None,
    tags: Iterable[str] | None = None,
) -> str:
    """Return the lowercase text blob free text queries are matched against.

    The output only depends on its inputs, so re-indexing an unchanged
    document yields the same bytes.
    """

    parts = [
        name if name is not None else _text(document.get("name")),
        _text(document.get("description")),
        " ".join(integrations),
        " ".join(tags if tags is not None else normalize_tags(document.get("tags"))),
    ]

    for node in get_nodes(document):
        if not isinstance(node, Mapping):
            continue
        node_name = _text(node.get("name"))
        if node_name:
            parts.append(node_name)
        parameters = node.get("parameters")
        if parameters:
            parts.append(flatten_parameters(parameters))

    return " ".join(parts).lower().strip()


def build_record(
    document: Mapping[str, Any],
    workflow_id: str,
    classification: Classification,
    source_text: str | None = None,
) -> WorkflowRecord:
    """Combine a document and its classification into a ``WorkflowRecord``."""

    name = _text(document.get("name")).strip() or default_name(workflow_id)
    name = name[:NAME_MAX_LENGTH]
    tags = normalize_tags(document.get("tags"))
    integrations = list(classification.integrations)

    if source_text is None:
        source_text = json.dumps(document, ensure_ascii=False)

    return WorkflowRecord(
        id=workflow_id,
        name=name,
        description=_text(document.get("description")),
        category=classification.category,
        trigger_type=classification.trigger_type.value,
        node_count=len(get_nodes(document)),
        active=bool(document.get("active")),
        tags=tags,
        integrations=integrations,
        search_text=build_search_text(document, integrations, name=name, tags=tags),
        workflow_data=source_text,
    )
