"""Registry of predefined business questions and the actions they map to.

The registry is built once at startup and never mutated; matchers receive it
by reference, so concurrent reads need no synchronisation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping


class ActionId(str, Enum):
    # Intent vocabulary (LLM + regex rules)
    GET_PRODUCT_FORECAST = "getProductForecast"
    GET_PRODUCT_ANALYSIS = "getProductAnalysis"
    GET_STORE_ANALYSIS_BY_NAME = "getStoreAnalysisByName"
    GET_STORE_ANALYSIS = "getStoreAnalysis"
    GET_TOP_PRODUCTS = "getTopProducts"
    GET_TOP_PRODUCTS_IN_CITY = "getTopProductsInCity"
    GET_PRODUCT_COUNT = "getProductCount"
    GET_SALES_REPORT = "getSalesReport"
    GET_ANALYTICS_DASHBOARD = "getAnalyticsDashboard"
    GET_CAPABILITIES = "getCapabilities"
    # Template-only actions
    GET_TOP_STORES = "getTopStores"
    GET_SALES_TRENDS = "getSalesTrends"
    GET_STORE_PERFORMANCE = "getStorePerformance"
    GET_PRODUCT_PERFORMANCE = "getProductPerformance"
    GET_DISCOUNT_IMPACT = "getDiscountImpact"
    GET_TAX_MRP_ANALYTICS = "getTaxMRPAnalytics"
    GET_SUMMARY_KPIS = "getSummaryKPIs"
    GET_STORE_SALES_STATUS = "getStoreSalesStatus"
    GET_TOP_PERFORMING_ITEM = "getTopPerformingItem"
    GET_STORE_SALES_PERFORMANCE = "getStoreSalesPerformance"
    GET_STORE_TOP_PRODUCTS = "getStoreTopProducts"
    GET_SALES_FORECAST = "getSalesForecast"
    GET_STORE_SALES_FORECAST = "getStoreSalesForecast"
    GET_DEMAND_FORECAST = "getDemandForecast"
    GET_REPLENISHMENT_RECOMMENDATIONS = "getReplenishmentRecommendations"
    CALCULATE_STORE_REPLENISHMENT = "calculateStoreReplenishment"
    GET_ALL_REPLENISHMENTS = "getAllReplenishments"
    GET_REPLENISHMENT_STATUS = "getReplenishmentStatus"
    GET_ACTIVE_PRODUCTS = "getActiveProducts"
    SEARCH_PRODUCT_BY_NAME = "searchProductByName"
    GET_PRODUCTS_BY_CATEGORY = "getProductsByCategory"
    SHOW_HELP = "showHelp"
    SHOW_CAPABILITIES = "showCapabilities"

    @classmethod
    def parse(cls, value: Any) -> "ActionId | None":
        try:
            return cls(str(value).strip())
        except ValueError:
            return None


# Actions an intent detector is allowed to emit
INTENT_ACTIONS: frozenset[ActionId] = frozenset(
    {
        ActionId.GET_PRODUCT_FORECAST,
        ActionId.GET_PRODUCT_ANALYSIS,
        ActionId.GET_STORE_ANALYSIS_BY_NAME,
        ActionId.GET_STORE_ANALYSIS,
        ActionId.GET_TOP_PRODUCTS,
        ActionId.GET_TOP_PRODUCTS_IN_CITY,
        ActionId.GET_PRODUCT_COUNT,
        ActionId.GET_SALES_REPORT,
        ActionId.GET_ANALYTICS_DASHBOARD,
        ActionId.GET_CAPABILITIES,
    }
)


class TemplateCategory(str, Enum):
    ANALYTICS = "analytics"
    STORE_SALES = "storeSales"
    SALES_FORECAST = "salesForecast"
    REPLENISHMENT = "replenishment"
    PRODUCT = "product"
    GENERAL = "general"


@dataclass(frozen=True, eq=False)
class Template:
    trigger_phrase: str
    action_id: ActionId
    category: TemplateCategory
    description: str
    required_inputs: frozenset[str] = frozenset()
    default_params: Mapping[str, Any] = field(default_factory=dict)
    input_prompt: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "default_params", MappingProxyType(dict(self.default_params))
        )

    # Identity is the trigger phrase
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Template):
            return NotImplemented
        return self.trigger_phrase == other.trigger_phrase

    def __hash__(self) -> int:
        return hash(self.trigger_phrase)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger_phrase": self.trigger_phrase,
            "action_id": self.action_id.value,
            "category": self.category.value,
            "description": self.description,
            "required_inputs": sorted(self.required_inputs),
            "default_params": dict(self.default_params),
            "input_prompt": self.input_prompt,
        }


class TemplateRegistry:
    """Ordered, immutable set of templates keyed by trigger phrase.

    Registration order is significant: matchers break score ties in favour of
    the template registered first.
    """

    def __init__(self, templates: list[Template] | tuple[Template, ...]):
        by_phrase: dict[str, Template] = {}
        for t in templates:
            key = t.trigger_phrase.lower()
            if key in by_phrase:
                raise ValueError(f"Duplicate trigger phrase: {t.trigger_phrase!r}")
            by_phrase[key] = t
        self._templates = tuple(templates)
        self._by_phrase = MappingProxyType(by_phrase)

    def __iter__(self) -> Iterator[Template]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    def get(self, trigger_phrase: str) -> Template | None:
        return self._by_phrase.get(trigger_phrase.lower())

    def by_category(self, category: TemplateCategory | str = "all") -> list[Template]:
        if category == "all":
            return list(self._templates)
        cat = TemplateCategory(category)
        return [t for t in self._templates if t.category == cat]


def _t(
    phrase: str,
    action: ActionId,
    category: TemplateCategory,
    description: str,
    params: dict[str, Any] | None = None,
    required: tuple[str, ...] = (),
    prompt: str | None = None,
) -> Template:
    return Template(
        trigger_phrase=phrase,
        action_id=action,
        category=category,
        description=description,
        required_inputs=frozenset(required),
        default_params=params or {},
        input_prompt=prompt,
    )


_STORE_PROMPT = "Please provide the store name or location:"


def build_default_registry() -> TemplateRegistry:
    A = ActionId
    C = TemplateCategory
    return TemplateRegistry(
        [
            # Analytics
            _t("show me top 5 products", A.GET_TOP_PRODUCTS, C.ANALYTICS,
               "Get top 5 performing products", {"limit": 5, "sortBy": "sales"}),
            _t("show me top 5 stores", A.GET_TOP_STORES, C.ANALYTICS,
               "Get top 5 performing stores", {"limit": 5, "sortBy": "sales"}),
            _t("what are the sales trends", A.GET_SALES_TRENDS, C.ANALYTICS,
               "Get sales trends over time", {"groupBy": "month"}),
            _t("show me store performance", A.GET_STORE_PERFORMANCE, C.ANALYTICS,
               "Get overall store performance analysis"),
            _t("show me product performance", A.GET_PRODUCT_PERFORMANCE, C.ANALYTICS,
               "Get overall product performance analysis"),
            _t("what is the discount impact", A.GET_DISCOUNT_IMPACT, C.ANALYTICS,
               "Analyze the impact of discounts on sales"),
            _t("show me tax and MRP analytics", A.GET_TAX_MRP_ANALYTICS, C.ANALYTICS,
               "Get tax and MRP related analytics"),
            _t("show me summary KPIs", A.GET_SUMMARY_KPIS, C.ANALYTICS,
               "Get summary key performance indicators"),
            _t("show me the analytics dashboard", A.GET_ANALYTICS_DASHBOARD, C.ANALYTICS,
               "Get comprehensive analytics dashboard data"),
            # Store sales
            _t("what is last month sales status of mumbai, powai store",
               A.GET_STORE_SALES_STATUS, C.STORE_SALES,
               "Get last month sales status for specific store",
               {"storeLocation": "mumbai, powai", "period": "lastMonth"}),
            _t("which was top performing item in", A.GET_TOP_PERFORMING_ITEM, C.STORE_SALES,
               "Get top performing item for specific location", {"location": ""},
               required=("location",),
               prompt="Please provide the location (city, state, or area):"),
            _t("show me sales performance for store", A.GET_STORE_SALES_PERFORMANCE,
               C.STORE_SALES, "Get sales performance for a specific store",
               {"storeName": ""}, required=("storeName",), prompt=_STORE_PROMPT),
            _t("what are the top products in store", A.GET_STORE_TOP_PRODUCTS, C.STORE_SALES,
               "Get top performing products for a specific store", {"storeName": ""},
               required=("storeName",), prompt=_STORE_PROMPT),
            _t("what are the top products in store LUC-66", A.GET_STORE_TOP_PRODUCTS,
               C.STORE_SALES, "Get top performing products for store LUC-66",
               {"storeId": "LUC-66"}),
            _t("what are the top products in store SUR-5", A.GET_STORE_TOP_PRODUCTS,
               C.STORE_SALES, "Get top performing products for store SUR-5",
               {"storeId": "SUR-5"}),
            _t("show me top products in store", A.GET_STORE_TOP_PRODUCTS, C.STORE_SALES,
               "Get top performing products for a specific store", {"storeName": ""},
               required=("storeName",), prompt=_STORE_PROMPT),
            _t("top products in store", A.GET_STORE_TOP_PRODUCTS, C.STORE_SALES,
               "Get top performing products for a specific store", {"storeName": ""},
               required=("storeName",),
               prompt="Please provide the store name, store ID, or location:"),
            # Sales forecasting
            _t("what is the sales forecast for next month", A.GET_SALES_FORECAST,
               C.SALES_FORECAST, "Get sales forecast for next month",
               {"period": "nextMonth"}),
            _t("show me sales forecast by store", A.GET_STORE_SALES_FORECAST,
               C.SALES_FORECAST, "Get sales forecast breakdown by store"),
            _t("what is the demand forecast", A.GET_DEMAND_FORECAST, C.SALES_FORECAST,
               "Get demand forecast analysis"),
            # Replenishment
            _t("show me replenishment recommendations", A.GET_REPLENISHMENT_RECOMMENDATIONS,
               C.REPLENISHMENT, "Get replenishment recommendations for stores"),
            _t("calculate replenishment for store", A.CALCULATE_STORE_REPLENISHMENT,
               C.REPLENISHMENT, "Calculate replenishment for a specific store and product",
               {"storeId": "", "productId": "", "month": ""},
               required=("storeId", "productId", "month"),
               prompt="Please provide store ID, product ID, and month (format: YYYY-MM):"),
            _t("show me all replenishments", A.GET_ALL_REPLENISHMENTS, C.REPLENISHMENT,
               "Get all replenishment records"),
            _t("what is the replenishment status", A.GET_REPLENISHMENT_STATUS,
               C.REPLENISHMENT, "Get overall replenishment status"),
            # Products
            _t("how many products do we have", A.GET_PRODUCT_COUNT, C.PRODUCT,
               "Get total count of products"),
            _t("show me active products", A.GET_ACTIVE_PRODUCTS, C.PRODUCT,
               "Get all active products", {"status": "active", "limit": 10}),
            _t("find product by name", A.SEARCH_PRODUCT_BY_NAME, C.PRODUCT,
               "Search for a specific product by name", {"name": ""},
               required=("name",), prompt="Please provide the product name to search for:"),
            _t("show me products by category", A.GET_PRODUCTS_BY_CATEGORY, C.PRODUCT,
               "Get products filtered by category", {"category": ""},
               required=("category",), prompt="Please provide the category ID to filter by:"),
            # General
            _t("help", A.SHOW_HELP, C.GENERAL, "Show available commands and questions"),
            _t("what can you do", A.SHOW_CAPABILITIES, C.GENERAL, "Show chatbot capabilities"),
            _t("what are your capabilities", A.SHOW_CAPABILITIES, C.GENERAL,
               "Show chatbot capabilities"),
            _t("tell me about yourself", A.SHOW_CAPABILITIES, C.GENERAL,
               "Show chatbot capabilities"),
            _t("who are you", A.SHOW_CAPABILITIES, C.GENERAL, "Show chatbot capabilities"),
        ]
    )
