"""Batch ingestion of workflow documents."""

from .discovery import SourceDocument, discover_documents, load_category_table, read_document
from .pipeline import IngestionFailure, IngestionPipeline, IngestionReport

__all__ = [
    "IngestionFailure",
    "IngestionPipeline",
    "IngestionReport",
    "SourceDocument",
    "discover_documents",
    "load_category_table",
    "read_document",
]
