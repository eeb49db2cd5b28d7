"""Extensions used by the Flask application."""

from flask import current_app
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_sqlalchemy import SQLAlchemy


def read_rate_limit() -> str:
    """Rate limit applied to the read API, taken from the app config."""

    return current_app.config.get("SEARCH_RATE_LIMIT", "120 per minute")


db = SQLAlchemy()
cors = CORS()
limiter = Limiter(key_func=get_remote_address, default_limits=[])

__all__ = ["db", "cors", "limiter", "read_rate_limit"]
