"""Read side of the catalog: search, lookups and listings."""

from __future__ import annotations

import json
import math
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import defer

from ..errors import StoreFailure, ValidationFailure, WorkflowNotFound
from ..extensions import db
from ..models.integration import Integration
from ..models.workflow import Workflow
from .classifier import TriggerType, complexity_for
from .indexer import parse_integrations, parse_tags

ALL = "all"
SORT_ORDERS = ("asc", "desc")

WORKFLOW_SORT_COLUMNS = {
    "name": Workflow.name,
    "nodeCount": Workflow.node_count,
    "category": Workflow.category,
}
INTEGRATION_SORT_COLUMNS = {
    "usageCount": Integration.usage_count,
    "name": Integration.name,
}


@contextmanager
def store_errors(message: str) -> Iterator[None]:
    """Translate database errors into ``StoreFailure`` with ``message``."""

    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StoreFailure(message, details=str(exc)) from exc


def _timestamp(value) -> str | None:
    return value.isoformat() + "Z" if value is not None else None


def parse_positive_int(args: Mapping[str, Any], key: str, default: int) -> int:
    """Read an integer parameter that must be at least one."""

    raw = args.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationFailure(f"{key} must be an integer", details=f"got {raw!r}") from exc
    if value < 1:
        raise ValidationFailure(f"{key} must be at least 1", details=f"got {value}")
    return value


def _optional_filter(args: Mapping[str, Any], key: str) -> str | None:
    value = args.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _sort_order(args: Mapping[str, Any], default: str) -> str:
    order = str(args.get("sortOrder") or default).lower()
    return order if order in SORT_ORDERS else "asc"


@dataclass(frozen=True)
class SearchParams:
    """Validated inputs of a workflow search."""

    query: str = ""
    category: str | None = None
    integration: str | None = None
    trigger_type: str | None = None
    page: int = 1
    limit: int = 20
    sort_by: str = "name"
    sort_order: str = "asc"

    @classmethod
    def from_args(
        cls,
        args: Mapping[str, Any],
        *,
        default_limit: int = 20,
        max_limit: int = 100,
    ) -> SearchParams:
        trigger_type = _optional_filter(args, "triggerType")
        if trigger_type is not None and trigger_type.lower() != ALL:
            trigger_type = trigger_type.upper()
            if trigger_type not in TriggerType.__members__:
                raise ValidationFailure(
                    "triggerType is invalid",
                    details=f"expected one of {', '.join(TriggerType.__members__)}",
                )

        sort_by = str(args.get("sortBy") or "name")
        sort_order = _sort_order(args, "asc")
        if sort_by not in WORKFLOW_SORT_COLUMNS:
            sort_by, sort_order = "name", "asc"

        return cls(
            query=(args.get("q") or "").strip(),
            category=_optional_filter(args, "category"),
            integration=_optional_filter(args, "integration"),
            trigger_type=trigger_type,
            page=parse_positive_int(args, "page", 1),
            limit=min(parse_positive_int(args, "limit", default_limit), max_limit),
            sort_by=sort_by,
            sort_order=sort_order,
        )

    def echo(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "category": self.category,
            "integration": self.integration,
            "triggerType": self.trigger_type,
        }


def _is_active_filter(value: str | None) -> bool:
    return value is not None and value.lower() != ALL


def _search_conditions(params: SearchParams) -> list:
    conditions = []
    if params.query:
        needle = params.query.lower()
        conditions.append(
            or_(
                func.lower(Workflow.name).contains(needle, autoescape=True),
                func.lower(Workflow.description).contains(needle, autoescape=True),
                Workflow.search_text.contains(needle, autoescape=True),
                func.lower(Workflow.tags).contains(needle, autoescape=True),
            )
        )
    if _is_active_filter(params.category):
        conditions.append(Workflow.category == params.category)
    if _is_active_filter(params.integration):
        # Integrations are stored as a JSON list; match one whole element.
        element = json.dumps(params.integration.lower())
        conditions.append(func.lower(Workflow.integrations).contains(element, autoescape=True))
    if _is_active_filter(params.trigger_type):
        conditions.append(Workflow.trigger_type == params.trigger_type)
    return conditions


def serialize_workflow_summary(workflow: Workflow) -> dict[str, Any]:
    return {
        "id": workflow.id,
        "name": workflow.name,
        "description": workflow.description,
        "category": workflow.category,
        "triggerType": workflow.trigger_type,
        "complexity": complexity_for(workflow.node_count).value,
        "nodeCount": workflow.node_count,
        "active": workflow.active,
        "tags": parse_tags(workflow.tags),
        "integrations": parse_integrations(workflow.integrations),
        "createdAt": _timestamp(workflow.created_at),
        "updatedAt": _timestamp(workflow.updated_at),
    }


def serialize_workflow_detail(workflow: Workflow) -> dict[str, Any]:
    payload = serialize_workflow_summary(workflow)
    try:
        workflow_data = json.loads(workflow.workflow_data)
    except (TypeError, ValueError):
        workflow_data = None
    payload["searchText"] = workflow.search_text
    payload["workflowData"] = workflow_data
    return payload


def serialize_integration(integration: Integration) -> dict[str, Any]:
    return {
        "name": integration.name,
        "displayName": integration.display_name,
        "category": integration.category,
        "usageCount": integration.usage_count,
    }


def search_workflows(params: SearchParams) -> dict[str, Any]:
    """Return one page of workflows matching ``params`` plus pagination data."""

    column = WORKFLOW_SORT_COLUMNS[params.sort_by]
    ordering = column.desc() if params.sort_order == "desc" else column.asc()

    with store_errors("Failed to search workflows"):
        query = Workflow.query.filter(*_search_conditions(params))
        total_count = query.order_by(None).count()
        workflows = (
            query.options(defer(Workflow.workflow_data), defer(Workflow.search_text))
            .order_by(ordering, Workflow.id.asc())
            .offset((params.page - 1) * params.limit)
            .limit(params.limit)
            .all()
        )

    total_pages = math.ceil(total_count / params.limit)
    return {
        "workflows": [serialize_workflow_summary(workflow) for workflow in workflows],
        "pagination": {
            "page": params.page,
            "limit": params.limit,
            "totalCount": total_count,
            "totalPages": total_pages,
            "hasNextPage": params.page < total_pages,
            "hasPrevPage": params.page > 1,
        },
        "filters": params.echo(),
    }


def get_workflow(workflow_id: str) -> Workflow:
    """Return the workflow with ``workflow_id`` or raise ``WorkflowNotFound``."""

    if not workflow_id or not workflow_id.strip():
        raise ValidationFailure("Workflow ID is required")

    with store_errors("Failed to get workflow"):
        workflow = db.session.get(Workflow, workflow_id)
    if workflow is None:
        raise WorkflowNotFound(workflow_id)
    return workflow


def list_categories() -> list[dict[str, Any]]:
    """Return categories by workflow count, led by a synthetic ``All`` entry."""

    count = func.count(Workflow.id)
    with store_errors("Failed to get categories"):
        rows = (
            db.session.query(Workflow.category, count)
            .group_by(Workflow.category)
            .order_by(count.desc(), Workflow.category.asc())
            .all()
        )

    categories = [{"name": name, "count": total} for name, total in rows]
    return [{"name": "All", "count": sum(item["count"] for item in categories)}, *categories]


@dataclass(frozen=True)
class IntegrationListParams:
    limit: int = 50
    sort_by: str = "usageCount"
    sort_order: str = "desc"

    @classmethod
    def from_args(
        cls,
        args: Mapping[str, Any],
        *,
        default_limit: int = 50,
        max_limit: int = 200,
    ) -> IntegrationListParams:
        sort_by = str(args.get("sortBy") or "usageCount")
        sort_order = _sort_order(args, "desc")
        if sort_by not in INTEGRATION_SORT_COLUMNS:
            sort_by, sort_order = "usageCount", "desc"
        return cls(
            limit=min(parse_positive_int(args, "limit", default_limit), max_limit),
            sort_by=sort_by,
            sort_order=sort_order,
        )


def list_integrations(params: IntegrationListParams) -> dict[str, Any]:
    """Return integrations in the requested order and the total count."""

    column = INTEGRATION_SORT_COLUMNS[params.sort_by]
    ordering = column.desc() if params.sort_order == "desc" else column.asc()

    with store_errors("Failed to get integrations"):
        integrations = (
            Integration.query.order_by(ordering, Integration.name.asc())
            .limit(params.limit)
            .all()
        )
        total_count = Integration.query.count()

    return {
        "integrations": [serialize_integration(item) for item in integrations],
        "totalCount": total_count,
    }
