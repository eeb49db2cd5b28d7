"""Category listing endpoint."""

from __future__ import annotations

from flask import Blueprint

from ..catalog.query import list_categories
from ..extensions import limiter, read_rate_limit
from .responses import success

bp = Blueprint("categories", __name__)


@bp.get("/categories")
@limiter.limit(read_rate_limit)
def get_categories() -> tuple[object, int]:
    return success(list_categories())
