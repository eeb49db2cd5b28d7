"""Database models for the workflow catalog backend."""

from .integration import Integration
from .workflow import Workflow

__all__ = ["Integration", "Workflow"]
