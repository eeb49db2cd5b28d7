"""JSON envelopes and error handlers shared by every API blueprint."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, current_app, jsonify
from werkzeug.exceptions import HTTPException

from ..errors import CatalogError

bp = Blueprint("responses", __name__)


def success(data: Any, status: HTTPStatus = HTTPStatus.OK) -> tuple[object, int]:
    """Wrap ``data`` in the ``{success, data}`` envelope."""

    return jsonify({"success": True, "data": data}), status


def failure(
    message: str, details: str | None, status: HTTPStatus | int
) -> tuple[object, int]:
    return jsonify({"success": False, "error": message, "details": details}), status


@bp.app_errorhandler(CatalogError)
def handle_catalog_error(exc: CatalogError) -> tuple[object, int]:
    if exc.status >= HTTPStatus.INTERNAL_SERVER_ERROR:
        current_app.logger.error("%s: %s", exc.message, exc.details)
    return failure(exc.message, exc.details, exc.status)


@bp.app_errorhandler(HTTPException)
def handle_http_error(exc: HTTPException) -> tuple[object, int]:
    return failure(exc.name, exc.description, exc.code or HTTPStatus.INTERNAL_SERVER_ERROR)


@bp.app_errorhandler(Exception)
def handle_unexpected_error(exc: Exception) -> tuple[object, int]:
    current_app.logger.exception("Unhandled API error")
    return failure("Internal server error", str(exc), HTTPStatus.INTERNAL_SERVER_ERROR)
