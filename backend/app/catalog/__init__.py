"""Classification, indexing and querying of workflow records."""

from .classifier import (
    Classification,
    Complexity,
    TriggerType,
    classify,
    complexity_for,
    detect_trigger_type,
    extract_integrations,
)
from .indexer import WorkflowRecord, build_record, build_search_text

__all__ = [
    "Classification",
    "Complexity",
    "TriggerType",
    "WorkflowRecord",
    "build_record",
    "build_search_text",
    "classify",
    "complexity_for",
    "detect_trigger_type",
    "extract_integrations",
]
