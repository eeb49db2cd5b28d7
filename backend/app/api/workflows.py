"""REST API endpoints for searching and retrieving workflows."""

from __future__ import annotations

from io import BytesIO

from flask import Blueprint, Response, current_app, request, send_file

from ..catalog.query import (
    SearchParams,
    get_workflow,
    search_workflows,
    serialize_workflow_detail,
)
from ..extensions import limiter, read_rate_limit
from .responses import success

bp = Blueprint("workflows", __name__)


@bp.get("/workflows")
@limiter.limit(read_rate_limit)
def list_workflows() -> tuple[object, int]:
    params = SearchParams.from_args(
        request.args,
        default_limit=current_app.config["SEARCH_DEFAULT_LIMIT"],
        max_limit=current_app.config["SEARCH_MAX_LIMIT"],
    )
    return success(search_workflows(params))


@bp.get("/workflows/<workflow_id>")
@limiter.limit(read_rate_limit)
def get_workflow_detail(workflow_id: str) -> tuple[object, int]:
    return success(serialize_workflow_detail(get_workflow(workflow_id)))


@bp.get("/workflows/<workflow_id>/download")
@limiter.limit(read_rate_limit)
def download_workflow(workflow_id: str) -> Response:
    """Return the stored source document as a JSON attachment."""

    workflow = get_workflow(workflow_id)
    return send_file(
        BytesIO(workflow.workflow_data.encode("utf-8")),
        mimetype="application/json",
        as_attachment=True,
        download_name=workflow.id,
    )
