"""Catalog statistics endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app

from ..catalog.stats import get_stats
from ..extensions import limiter, read_rate_limit
from .responses import success

bp = Blueprint("stats", __name__)


@bp.get("/stats")
@limiter.limit(read_rate_limit)
def get_catalog_stats() -> tuple[object, int]:
    return success(
        get_stats(
            top_categories=current_app.config["STATS_TOP_CATEGORIES"],
            top_integrations=current_app.config["STATS_TOP_INTEGRATIONS"],
        )
    )
