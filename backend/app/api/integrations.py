"""Integration listing endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from ..catalog.query import IntegrationListParams, list_integrations
from ..extensions import limiter, read_rate_limit
from .responses import success

bp = Blueprint("integrations", __name__)


@bp.get("/integrations")
@limiter.limit(read_rate_limit)
def get_integrations() -> tuple[object, int]:
    params = IntegrationListParams.from_args(
        request.args,
        default_limit=current_app.config["INTEGRATIONS_DEFAULT_LIMIT"],
        max_limit=current_app.config["INTEGRATIONS_MAX_LIMIT"],
    )
    return success(list_integrations(params))
