"""Top-level package exposing the workflow catalog Flask application factory."""

from backend.app import Config, create_app

__all__ = ["Config", "create_app"]
