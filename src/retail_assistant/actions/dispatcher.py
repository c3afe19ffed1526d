"""Lookup table from ``ActionId`` to the function that carries the action out.

Data actions (sales, products, stores, replenishment) belong to the host
application and are passed in; the assistant's own informational actions are
built in. Construction fails unless every action has an executor.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Callable, Mapping

from retail_assistant.logging import get_logger
from retail_assistant.matching.templates import ActionId, TemplateRegistry

logger = get_logger(__name__)

Executor = Callable[[dict[str, Any]], Any]

CAPABILITIES: list[str] = [
    "📊 Analytics: Sales trends, product/store performance, KPIs",
    "🏪 Products: Search, count, filter by category",
    "📦 Replenishment: Recommendations and calculations",
    "📈 Charts: Visual representations of your data",
    "📋 Tables: Detailed data in organized format",
    "🎯 KPIs: Key performance indicators dashboard",
]

USE_CASES: list[str] = [
    "Sales Analysis: Track product performance, identify top sellers, analyze trends",
    "Store Optimization: Compare store performance, identify improvement opportunities",
    "Demand Planning: Forecast future sales, optimize inventory levels",
    "Product Insights: Analyze individual product performance across stores",
    "Geographic Analysis: City-wise performance, regional trends",
    "Inventory Optimization: Prevent stockouts, reduce excess inventory",
]


def builtin_executors(registry: TemplateRegistry) -> dict[ActionId, Executor]:
    def show_help(_: dict[str, Any]) -> dict[str, Any]:
        return {
            "message": "Here are the available commands:",
            "commands": [
                {"command": t.trigger_phrase, "description": t.description} for t in registry
            ],
        }

    def show_capabilities(_: dict[str, Any]) -> dict[str, Any]:
        return {"message": "I can help you with:", "capabilities": list(CAPABILITIES)}

    def get_capabilities(_: dict[str, Any]) -> dict[str, Any]:
        return {
            "message": "I can help you with:",
            "capabilities": list(CAPABILITIES),
            "use_cases": list(USE_CASES),
        }

    return {
        ActionId.SHOW_HELP: show_help,
        ActionId.SHOW_CAPABILITIES: show_capabilities,
        ActionId.GET_CAPABILITIES: get_capabilities,
    }


class ActionDispatcher:
    def __init__(self, executors: Mapping[ActionId, Executor]):
        missing = [a.value for a in ActionId if a not in executors]
        if missing:
            raise ValueError(f"No executor for actions: {', '.join(sorted(missing))}")
        self._executors = MappingProxyType(dict(executors))

    @classmethod
    def with_builtins(
        cls, registry: TemplateRegistry, executors: Mapping[ActionId, Executor]
    ) -> "ActionDispatcher":
        """Host executors merged over the built-in informational ones."""
        merged: dict[ActionId, Executor] = builtin_executors(registry)
        merged.update(executors)
        return cls(merged)

    def __contains__(self, action: object) -> bool:
        return action in self._executors

    def dispatch(self, action: ActionId, params: Mapping[str, Any] | None = None) -> Any:
        logger.debug(f"Dispatching {action.value} with {dict(params or {})}")
        return self._executors[action](dict(params or {}))
