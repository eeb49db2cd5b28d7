"""Aggregate statistics over the catalog."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func

from ..extensions import db
from ..models.integration import Integration
from ..models.workflow import Workflow
from .classifier import MEDIUM_MAX_NODES, SIMPLE_MAX_NODES, Complexity, TriggerType
from .query import serialize_integration, store_errors


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""

    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def percentage(count: int, total: int) -> int:
    """Return ``count`` as an integer percentage of ``total`` (0 if empty)."""

    if total <= 0:
        return 0
    return round_half_up(count / total * 100)


def complexity_conditions() -> dict[Complexity, Any]:
    """SQL filters for each complexity tier, using the classifier boundaries."""

    return {
        Complexity.SIMPLE: Workflow.node_count <= SIMPLE_MAX_NODES,
        Complexity.MEDIUM: (Workflow.node_count > SIMPLE_MAX_NODES)
        & (Workflow.node_count <= MEDIUM_MAX_NODES),
        Complexity.COMPLEX: Workflow.node_count > MEDIUM_MAX_NODES,
    }


def get_stats(top_categories: int = 5, top_integrations: int = 10) -> dict[str, Any]:
    """Return overview counts and distributions for the whole catalog."""

    category_count = func.count(Workflow.id)
    with store_errors("Failed to get statistics"):
        total_workflows = Workflow.query.count()
        total_integrations = Integration.query.count()
        total_categories = db.session.query(func.count(func.distinct(Workflow.category))).scalar()
        average_nodes = db.session.query(func.avg(Workflow.node_count)).scalar()

        trigger_counts = dict(
            db.session.query(Workflow.trigger_type, func.count(Workflow.id))
            .group_by(Workflow.trigger_type)
            .all()
        )
        category_rows = (
            db.session.query(Workflow.category, category_count)
            .group_by(Workflow.category)
            .order_by(category_count.desc(), Workflow.category.asc())
            .limit(top_categories)
            .all()
        )
        integrations = (
            Integration.query.order_by(Integration.usage_count.desc(), Integration.name.asc())
            .limit(top_integrations)
            .all()
        )
        complexity_counts = {
            tier: Workflow.query.filter(condition).count()
            for tier, condition in complexity_conditions().items()
        }

    trigger_types = sorted(
        (
            {
                "type": trigger.value,
                "count": trigger_counts.get(trigger.value, 0),
                "percentage": percentage(trigger_counts.get(trigger.value, 0), total_workflows),
            }
            for trigger in TriggerType
        ),
        key=lambda item: -item["count"],
    )

    return {
        "overview": {
            "totalWorkflows": total_workflows,
            "totalIntegrations": total_integrations,
            "totalCategories": total_categories or 0,
            "avgNodesPerWorkflow": round_half_up(float(average_nodes or 0)),
        },
        "triggerTypes": trigger_types,
        "topCategories": [
            {"name": name, "count": count, "percentage": percentage(count, total_workflows)}
            for name, count in category_rows
        ],
        "topIntegrations": [serialize_integration(item) for item in integrations],
        "complexity": [
            {
                "level": tier.value,
                "count": complexity_counts[tier],
                "percentage": percentage(complexity_counts[tier], total_workflows),
            }
            for tier in Complexity
        ],
    }
