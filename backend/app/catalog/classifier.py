"""Pure classification policies applied to raw workflow documents.

Every function in this module is side effect free and total over well formed
documents: missing node lists, tags or descriptions are treated as empty.
The heuristics are deliberately simple and kept as named policies so they can
be replaced without touching the ingestion pipeline.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

# Node count boundaries shared by ingestion and the stats aggregation.
SIMPLE_MAX_NODES = 5
MEDIUM_MAX_NODES = 15

# Larger graphs without a schedule or webhook first node are reported as COMPLEX.
COMPLEX_TRIGGER_NODE_THRESHOLD = 10

SCHEDULE_MARKERS = ("schedule", "cron")
WEBHOOK_MARKERS = ("webhook",)
# Generic control nodes that do not represent an external service.
CONTROL_NODE_SEGMENTS = frozenset({"start", "set", "manual", "manualtrigger", "noop"})


class TriggerType(str, Enum):
    WEBHOOK = "WEBHOOK"
    SCHEDULED = "SCHEDULED"
    MANUAL = "MANUAL"
    COMPLEX = "COMPLEX"


class Complexity(str, Enum):
    SIMPLE = "SIMPLE"
    MEDIUM = "MEDIUM"
    COMPLEX = "COMPLEX"


@dataclass(frozen=True)
class Classification:
    """Classifier outputs for a single workflow document."""

    category: str
    trigger_type: TriggerType
    complexity: Complexity
    integrations: tuple[str, ...]


def get_nodes(document: Mapping[str, Any]) -> list[Any]:
    """Return the node list of a document, or an empty list when absent."""

    nodes = document.get("nodes")
    if not isinstance(nodes, list):
        return []
    return nodes


def _node_type(node: Any) -> str:
    if not isinstance(node, Mapping):
        return ""
    node_type = node.get("type")
    return node_type if isinstance(node_type, str) else ""


def extract_integrations(nodes: Sequence[Any]) -> list[str]:
    """Return integration identifiers referenced by the nodes in first-seen order.

    The identifier is the lowercased last dotted segment of a node ``type``. Types without
    a dot and generic control nodes (``start``, ``set``, manual triggers) are ignored.
    """

    seen: dict[str, None] = {}
    for node in nodes:
        node_type = _node_type(node)
        if "." not in node_type:
            continue
        service = node_type.rsplit(".", 1)[-1].lower()
        if not service or service in CONTROL_NODE_SEGMENTS:
            continue
        seen.setdefault(service, None)
    return list(seen)


def detect_trigger_type(nodes: Sequence[Any]) -> TriggerType:
    """Classify how a workflow starts by sniffing its first node only.

    This is a first-node heuristic, not an analysis of the trigger graph.
    """

    if not nodes:
        return TriggerType.MANUAL

    first_type = _node_type(nodes[0])
    if any(marker in first_type for marker in SCHEDULE_MARKERS):
        return TriggerType.SCHEDULED
    if any(marker in first_type for marker in WEBHOOK_MARKERS):
        return TriggerType.WEBHOOK
    if len(nodes) > COMPLEX_TRIGGER_NODE_THRESHOLD:
        return TriggerType.COMPLEX
    return TriggerType.MANUAL


def complexity_for(node_count: int) -> Complexity:
    """Map a node count onto a complexity tier."""

    if node_count > MEDIUM_MAX_NODES:
        return Complexity.COMPLEX
    if node_count > SIMPLE_MAX_NODES:
        return Complexity.MEDIUM
    return Complexity.SIMPLE


def assign_category(filename: str, category_table: Mapping[str, str], default: str) -> str:
    """Look the document up in the category table, falling back to ``default``."""

    category = category_table.get(filename)
    if isinstance(category, str) and category.strip():
        return category.strip()
    return default


def classify(
    document: Mapping[str, Any],
    filename: str,
    category_table: Mapping[str, str],
    default_category: str,
) -> Classification:
    """Run every classification policy over a document."""

    nodes = get_nodes(document)
    return Classification(
        category=assign_category(filename, category_table, default_category),
        trigger_type=detect_trigger_type(nodes),
        complexity=complexity_for(len(nodes)),
        integrations=tuple(extract_integrations(nodes)),
    )
