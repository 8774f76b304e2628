"""Retrieval function registry.

A closed catalogue of key-parameterized, read-only operations over the
explicit memory store and the precomputed statistics store. Functions
never parse natural language: they look data up by code, year, metric
name and comparison operator, and report every failure as a
``RetrievalResult`` with ``success=False`` instead of raising.

Usage:
    registry = RetrievalFunctionRegistry(context)
    result = registry.execute("getFinancialMetricsByFilter", {"year": "2024", "metricType": "IRR"})
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

import structlog
from pydantic import BaseModel, ConfigDict, Field

from libs.common.errors import RetrievalError, UnknownFunction
from libs.stores.context import DataContext

logger = structlog.get_logger(__name__)

FINANCIAL_METRICS = ("IRR", "profitMargin", "lossRatio", "underwritingProfit")
COMPARISONS = ("above", "below")


class DataSource(str, Enum):
    EXPLICIT_MEMORY = "explicit_memory"
    PRECOMPUTED_STATISTICS = "precomputed_statistics"


class RetrievalFunctionName(str, Enum):
    """Every operation the planner may select."""

    PRODUCTS_AFFECTED_BY_ASSUMPTION = "getProductsAffectedByAssumption"
    ASSUMPTIONS_BY_PRODUCT = "getAssumptionsByProduct"
    ASSUMPTION_RELATIONSHIPS = "getAssumptionRelationships"
    DESIGN_HISTORY_BY_FILTER = "getDesignHistoryByFilter"
    FINANCIAL_METRICS_BY_FILTER = "getFinancialMetricsByFilter"
    PRODUCT_PROFITABILITY = "getProductProfitability"
    PREMIUM_STATISTICS_BY_PRODUCT = "getPremiumStatisticsByProduct"
    RISK_METRICS = "getRiskMetrics"
    COMPARE_PRODUCTS = "compareProducts"
    YEAR_OVER_YEAR_PERFORMANCE = "getYearOverYearPerformance"
    AGGREGATED_METRICS = "getAggregatedMetrics"


class RetrievalResult(BaseModel):
    """JSON-serializable outcome of one retrieval function call."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    result_count: int = Field(default=0, alias="resultCount")
    required_params: Optional[List[str]] = Field(default=None, alias="requiredParams")

    @classmethod
    def ok(cls, data: Any, result_count: int) -> "RetrievalResult":
        return cls(success=True, data=data, result_count=result_count)

    @classmethod
    def failure(cls, error: str, required_params: Optional[List[str]] = None) -> "RetrievalResult":
        return cls(success=False, error=error, required_params=required_params)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


Handler = Callable[[DataContext, Dict[str, Any]], RetrievalResult]


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list, tuple)) and len(value) == 0)


def _year(value: Any) -> str:
    return str(value).strip()


def _date(name: str, value: str) -> str:
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except (TypeError, ValueError):
        raise RetrievalError(f"Invalid {name} {value!r}: expected YYYY-MM-DD")
    return value


def _string_list(name: str, value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise RetrievalError(f"Invalid {name}: expected a list of strings")
    return list(value)


def _is_text(value: Any) -> bool:
    return isinstance(value, str)


def _is_year(value: Any) -> bool:
    return isinstance(value, str) or (isinstance(value, int) and not isinstance(value, bool))


def _is_text_list(value: Any) -> bool:
    if isinstance(value, str):
        return True
    return isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, str)) and not isinstance(value, bool)


ParameterCheck = Tuple[Callable[[Any], bool], str]

_TEXT: ParameterCheck = (_is_text, "a string")
_YEAR: ParameterCheck = (_is_year, "a year string or integer")
_TEXT_LIST: ParameterCheck = (_is_text_list, "a list of strings")
_NUMBER: ParameterCheck = (_is_number, "a number")

# Accepted JSON shape of every parameter key any function declares
PARAMETER_TYPES: Dict[str, ParameterCheck] = {
    "assumptionType": _TEXT,
    "assumptionCode": _TEXT,
    "assumptionDetail": _TEXT,
    "productCode": _TEXT,
    "designer": _TEXT,
    "startDate": _TEXT,
    "endDate": _TEXT,
    "metricType": _TEXT,
    "productCategory": _TEXT,
    "comparison": _TEXT,
    "aggregationType": _TEXT,
    "year": _YEAR,
    "baseYear": _YEAR,
    "compareYear": _YEAR,
    "value": _YEAR,
    "productCodes": _TEXT_LIST,
    "metrics": _TEXT_LIST,
    "threshold": _NUMBER,
}


def _known_category(context: DataContext, category: Optional[str]) -> Optional[str]:
    if category and category not in context.statistics.categories():
        raise RetrievalError(f"Unknown product category {category}")
    return category


# ==============================================================================
# EXPLICIT MEMORY FUNCTIONS
# ==============================================================================

def _products_affected_by_assumption(context: DataContext, params: Dict[str, Any]) -> RetrievalResult:
    memory = context.explicit_memory
    assumption_type = params["assumptionType"]
    assumption_code = params.get("assumptionCode")
    detail = (params.get("assumptionDetail") or "").casefold()

    assumptions = {code: memory.assumption(code) for code in memory.assumption_codes()}
    if assumption_type not in {a["category"] for a in assumptions.values()}:
        raise RetrievalError(f"Unknown assumption type {assumption_type}")
    if assumption_code:
        if memory.assumption(assumption_code)["category"] != assumption_type:
            raise RetrievalError(
                f"Assumption code {assumption_code} is not of type {assumption_type}"
            )

    affected = []
    for product_code, product in memory.iter_products():
        matching = []
        for link in product["assumptions"]:
            assumption = assumptions[link["assumptionCode"]]
            if assumption["category"] != assumption_type:
                continue
            if assumption_code and link["assumptionCode"] != assumption_code:
                continue
            if detail and detail not in assumption["assumptionName"].casefold():
                continue
            matching.append({
                "assumptionCode": link["assumptionCode"],
                "name": assumption["assumptionName"],
                "currentValue": link["baseValue"],
                "unit": link["unit"],
            })
        if matching:
            affected.append({
                "productCode": product_code,
                "productName": product["productName"],
                "productType": product["productType"],
                "affectedAssumptions": matching,
            })

    return RetrievalResult.ok(
        {
            "assumptionType": assumption_type,
            "assumptionCode": assumption_code,
            "affectedProducts": affected,
        },
        len(affected),
    )


def _assumptions_by_product(context: DataContext, params: Dict[str, Any]) -> RetrievalResult:
    memory = context.explicit_memory
    product_code = params["productCode"]
    product = memory.product(product_code)
    assumptions = []
    for link in product["assumptions"]:
        info = memory.assumption(link["assumptionCode"])
        assumptions.append({
            "assumptionCode": link["assumptionCode"],
            "assumptionName": info["assumptionName"],
            "assumptionCategory": info["category"],
            "currentValue": link["baseValue"],
            "unit": link["unit"],
        })
    return RetrievalResult.ok(
        {
            "productCode": product_code,
            "productName": product["productName"],
            "launchDate": product.get("launchDate"),
            "lastReview": product.get("lastReview"),
            "assumptions": assumptions,
        },
        len(assumptions),
    )


def _assumption_relationships(context: DataContext, params: Dict[str, Any]) -> RetrievalResult:
    memory = context.explicit_memory
    relationships = []
    for code, related in memory.relationships(params.get("assumptionCode")).items():
        for entry in related:
            relationships.append({
                "assumptionCode": code,
                "assumptionName": memory.assumption(code)["assumptionName"],
                "relatedAssumptionCode": entry["relatedAssumptionCode"],
                "relatedAssumptionName": memory.assumption(entry["relatedAssumptionCode"])["assumptionName"],
                "relationship": entry["relationship"],
                "impactLevel": entry["impactLevel"],
            })
    return RetrievalResult.ok(
        {"assumptionCode": params.get("assumptionCode"), "relationships": relationships},
        len(relationships),
    )


def _design_history_by_filter(context: DataContext, params: Dict[str, Any]) -> RetrievalResult:
    memory = context.explicit_memory
    filters = ("designer", "startDate", "endDate", "productCode")
    if all(_is_missing(params.get(key)) for key in filters):
        return RetrievalResult.failure(
            "At least one filter parameter is required", required_params=list(filters)
        )

    designer = params.get("designer")
    start = _date("startDate", params["startDate"]) if params.get("startDate") else None
    end = _date("endDate", params["endDate"]) if params.get("endDate") else None
    product_code = params.get("productCode")
    codes = [product_code] if product_code else memory.product_codes()

    matching = []
    for code in codes:
        product = memory.product(code)
        history = [
            entry for entry in product["designHistory"]
            if (not designer or entry["designer"] == designer)
            and (not start or entry["date"] >= start)
            and (not end or entry["date"] <= end)
        ]
        if history:
            matching.append({
                "productCode": code,
                "productName": product["productName"],
                "history": history,
            })
    return RetrievalResult.ok(matching, len(matching))


# ==============================================================================
# PRECOMPUTED STATISTICS FUNCTIONS
# ==============================================================================

def _financial_metrics_by_filter(context: DataContext, params: Dict[str, Any]) -> RetrievalResult:
    year = _year(params["year"])
    metric_type = params["metricType"]
    if metric_type not in FINANCIAL_METRICS:
        raise RetrievalError(
            f"Unknown metric type {metric_type}; expected one of {', '.join(FINANCIAL_METRICS)}"
        )
    category = _known_category(context, params.get("productCategory"))

    threshold = params.get("threshold")
    comparison = params.get("comparison")
    if (threshold is None) != (comparison is None):
        raise RetrievalError("threshold and comparison must be given together")
    if comparison is not None and comparison not in COMPARISONS:
        raise RetrievalError(f"Invalid comparison {comparison!r}; expected 'above' or 'below'")
    if threshold is not None:
        try:
            threshold = float(threshold)
        except (TypeError, ValueError):
            raise RetrievalError(f"Invalid threshold {threshold!r}: expected a number")

    products = []
    for row in context.statistics.products_for_year(year, category):
        financial = row["metrics"]["financialMetrics"]
        value = financial.get(metric_type)
        if value is None:
            continue
        if comparison == "above" and not value > threshold:
            continue
        if comparison == "below" and not value < threshold:
            continue
        products.append({
            "productCode": row["productCode"],
            "productName": row["productName"],
            metric_type: value,
            "allFinancialMetrics": financial,
        })

    return RetrievalResult.ok(
        {
            "year": year,
            "metricType": metric_type,
            "productCategory": category,
            "threshold": threshold,
            "comparison": comparison,
            "products": products,
        },
        len(products),
    )


def _profitability_row(metrics: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "totalPremiumCollected": metrics["premiumStatistics"]["totalPremiumCollected"],
        "totalClaimsPaid": metrics["claimStatistics"]["totalClaimsPaid"],
        "lossRatio": metrics["financialMetrics"]["lossRatio"],
        "underwritingProfit": metrics["financialMetrics"]["underwritingProfit"],
    }


def _product_profitability(context: DataContext, params: Dict[str, Any]) -> RetrievalResult:
    statistics = context.statistics
    year = _year(params["year"])
    product_code = params.get("productCode")

    if product_code:
        metrics = statistics.product_year(product_code, year)
        return RetrievalResult.ok(
            {
                "productCode": product_code,
                "productName": statistics.product(product_code)["productName"],
                "year": year,
                **_profitability_row(metrics),
            },
            1,
        )

    rows = statistics.products_for_year(year)
    products = [
        {"productCode": r["productCode"], "productName": r["productName"], **_profitability_row(r["metrics"])}
        for r in rows
    ]
    return RetrievalResult.ok(
        {"year": year, "products": products, "summary": statistics.year_aggregate(year)},
        len(products),
    )


def _premium_statistics_by_product(context: DataContext, params: Dict[str, Any]) -> RetrievalResult:
    product_code = params["productCode"]
    product = context.statistics.product(product_code)
    yearly = []
    for year in sorted(product["yearlyData"]):
        data = product["yearlyData"][year]
        yearly.append({
            "year": year,
            **data["premiumStatistics"],
            "contractCount": data["contractStatistics"]["contractCount"],
            "newContracts": data["contractStatistics"]["newContracts"],
            "terminatedContracts": data["contractStatistics"]["terminatedContracts"],
        })
    return RetrievalResult.ok(
        {"productCode": product_code, "productName": product["productName"], "yearlyStatistics": yearly},
        len(yearly),
    )


def _risk_metrics(context: DataContext, params: Dict[str, Any]) -> RetrievalResult:
    statistics = context.statistics
    year = _year(params["year"])
    product_code = params.get("productCode")
    if product_code:
        metrics = statistics.product_year(product_code, year)
        rows = [{
            "productCode": product_code,
            "productName": statistics.product(product_code)["productName"],
            "riskMetrics": metrics["riskMetrics"],
        }]
    else:
        rows = [
            {"productCode": r["productCode"], "productName": r["productName"], "riskMetrics": r["metrics"]["riskMetrics"]}
            for r in statistics.products_for_year(year)
        ]
    return RetrievalResult.ok({"year": year, "products": rows}, len(rows))


def _compare_products(context: DataContext, params: Dict[str, Any]) -> RetrievalResult:
    statistics = context.statistics
    year = _year(params["year"])
    product_codes = _string_list("productCodes", params["productCodes"])
    metrics = _string_list("metrics", params["metrics"]) if params.get("metrics") else []

    comparison = []
    unknown_metrics = set()
    for code in product_codes:
        data = statistics.product_year(code, year)
        row = {"productCode": code, "productName": statistics.product(code)["productName"]}
        if metrics:
            for metric in metrics:
                value = statistics.find_metric(data, metric)
                if value is None:
                    unknown_metrics.add(metric)
                row[metric] = value
        else:
            row.update(data)
        comparison.append(row)

    if unknown_metrics:
        raise RetrievalError(f"Unknown metric(s): {', '.join(sorted(unknown_metrics))}")
    return RetrievalResult.ok({"year": year, "metrics": metrics, "products": comparison}, len(comparison))


def _growth(base: float, compare: float, label: str) -> float:
    if not base:
        raise RetrievalError(f"Base value for {label} is zero; growth is undefined")
    return round((compare - base) / base * 100, 2)


def _year_totals(context: DataContext, year: str, category: Optional[str]) -> Dict[str, Any]:
    if not category:
        aggregate = context.statistics.year_aggregate(year)
        return {
            "year": year,
            "totalContracts": aggregate["totalNewContracts"],
            "totalPremium": aggregate["totalPremiumCollected"],
            "averageIRR": aggregate["averageIRR"],
        }
    rows = context.statistics.products_for_year(year, category)
    if not rows:
        raise RetrievalError(f"No {category} products have data for year {year}")
    irrs = [r["metrics"]["financialMetrics"]["IRR"] for r in rows]
    return {
        "year": year,
        "totalContracts": sum(r["metrics"]["contractStatistics"]["newContracts"] for r in rows),
        "totalPremium": sum(r["metrics"]["premiumStatistics"]["totalPremiumCollected"] for r in rows),
        "averageIRR": round(sum(irrs) / len(irrs), 3),
    }


def _year_over_year_performance(context: DataContext, params: Dict[str, Any]) -> RetrievalResult:
    base_year = _year(params["baseYear"])
    compare_year = _year(params["compareYear"])
    category = _known_category(context, params.get("productCategory"))

    base = _year_totals(context, base_year, category)
    compare = _year_totals(context, compare_year, category)
    growth = {
        "contractsGrowth": _growth(base["totalContracts"], compare["totalContracts"], "totalContracts"),
        "premiumGrowth": _growth(base["totalPremium"], compare["totalPremium"], "totalPremium"),
        "irrChange": round(compare["averageIRR"] - base["averageIRR"], 3),
    }
    return RetrievalResult.ok(
        {"productCategory": category, "baseYear": base, "compareYear": compare, "growth": growth},
        1,
    )


def _aggregated_metrics(context: DataContext, params: Dict[str, Any]) -> RetrievalResult:
    aggregation_type = params["aggregationType"]
    value = str(params["value"]).strip()
    if aggregation_type == "year":
        metrics = context.statistics.year_aggregate(value)
    elif aggregation_type == "category":
        metrics = context.statistics.category_aggregate(value)
    else:
        raise RetrievalError(
            f"Invalid aggregation type {aggregation_type!r}; expected 'year' or 'category'"
        )
    return RetrievalResult.ok({"type": aggregation_type, "value": value, "metrics": metrics}, 1)


# ==============================================================================
# CATALOGUE
# ==============================================================================

@dataclass(frozen=True)
class _Definition:
    description: str
    data_source: DataSource
    required_keys: FrozenSet[str]
    optional_keys: FrozenSet[str]
    handler: Handler
    notes: str = ""


_DEFINITIONS: Dict[RetrievalFunctionName, _Definition] = {
    RetrievalFunctionName.PRODUCTS_AFFECTED_BY_ASSUMPTION: _Definition(
        description="Products affected when an assumption changes, with each assumption's current value",
        data_source=DataSource.EXPLICIT_MEMORY,
        required_keys=frozenset({"assumptionType"}),
        optional_keys=frozenset({"assumptionCode", "assumptionDetail"}),
        handler=_products_affected_by_assumption,
        notes="assumptionType is the assumption category (incidence, mortality, lapse, discount)",
    ),
    RetrievalFunctionName.ASSUMPTIONS_BY_PRODUCT: _Definition(
        description="Assumptions a product uses, with current values and units",
        data_source=DataSource.EXPLICIT_MEMORY,
        required_keys=frozenset({"productCode"}),
        optional_keys=frozenset(),
        handler=_assumptions_by_product,
    ),
    RetrievalFunctionName.ASSUMPTION_RELATIONSHIPS: _Definition(
        description="How a change to one assumption ripples into related assumptions, with impact level",
        data_source=DataSource.EXPLICIT_MEMORY,
        required_keys=frozenset(),
        optional_keys=frozenset({"assumptionCode"}),
        handler=_assumption_relationships,
        notes="without assumptionCode every recorded relationship is returned",
    ),
    RetrievalFunctionName.DESIGN_HISTORY_BY_FILTER: _Definition(
        description="Product design-change history filtered by designer, date range or product",
        data_source=DataSource.EXPLICIT_MEMORY,
        required_keys=frozenset(),
        optional_keys=frozenset({"designer", "startDate", "endDate", "productCode"}),
        handler=_design_history_by_filter,
        notes="at least one filter is required; dates are YYYY-MM-DD",
    ),
    RetrievalFunctionName.FINANCIAL_METRICS_BY_FILTER: _Definition(
        description="Products' financial metric for a year, optionally filtered by a threshold",
        data_source=DataSource.PRECOMPUTED_STATISTICS,
        required_keys=frozenset({"year", "metricType"}),
        optional_keys=frozenset({"productCategory", "threshold", "comparison"}),
        handler=_financial_metrics_by_filter,
        notes="metricType: IRR | profitMargin | lossRatio | underwritingProfit; "
              "threshold is a number (12% -> 0.12) and needs comparison: above | below",
    ),
    RetrievalFunctionName.PRODUCT_PROFITABILITY: _Definition(
        description="Premium collected, claims paid, loss ratio and underwriting profit for a year",
        data_source=DataSource.PRECOMPUTED_STATISTICS,
        required_keys=frozenset({"year"}),
        optional_keys=frozenset({"productCode"}),
        handler=_product_profitability,
    ),
    RetrievalFunctionName.PREMIUM_STATISTICS_BY_PRODUCT: _Definition(
        description="Year-by-year premium and contract statistics of one product",
        data_source=DataSource.PRECOMPUTED_STATISTICS,
        required_keys=frozenset({"productCode"}),
        optional_keys=frozenset(),
        handler=_premium_statistics_by_product,
    ),
    RetrievalFunctionName.RISK_METRICS: _Definition(
        description="Claim frequency, average claim amount and risk score for a year",
        data_source=DataSource.PRECOMPUTED_STATISTICS,
        required_keys=frozenset({"year"}),
        optional_keys=frozenset({"productCode"}),
        handler=_risk_metrics,
    ),
    RetrievalFunctionName.COMPARE_PRODUCTS: _Definition(
        description="Compare several products on all or selected metrics for a year",
        data_source=DataSource.PRECOMPUTED_STATISTICS,
        required_keys=frozenset({"productCodes", "year"}),
        optional_keys=frozenset({"metrics"}),
        handler=_compare_products,
        notes="productCodes and metrics are lists of strings",
    ),
    RetrievalFunctionName.YEAR_OVER_YEAR_PERFORMANCE: _Definition(
        description="Year-over-year growth of new contracts and premium, and the average IRR change",
        data_source=DataSource.PRECOMPUTED_STATISTICS,
        required_keys=frozenset({"baseYear", "compareYear"}),
        optional_keys=frozenset({"productCategory"}),
        handler=_year_over_year_performance,
    ),
    RetrievalFunctionName.AGGREGATED_METRICS: _Definition(
        description="Aggregated metrics for a year or a product category",
        data_source=DataSource.PRECOMPUTED_STATISTICS,
        required_keys=frozenset({"aggregationType", "value"}),
        optional_keys=frozenset(),
        handler=_aggregated_metrics,
        notes="aggregationType: year | category",
    ),
}

if set(_DEFINITIONS) != set(RetrievalFunctionName):
    raise RuntimeError("Retrieval function catalogue does not cover every RetrievalFunctionName")

_untyped = {
    key
    for definition in _DEFINITIONS.values()
    for key in definition.required_keys | definition.optional_keys
} - set(PARAMETER_TYPES)
if _untyped:
    raise RuntimeError(f"Retrieval parameters without a type check: {', '.join(sorted(_untyped))}")


@dataclass(frozen=True)
class RetrievalFunctionSpec:
    """One registered operation bound to the data context."""

    name: RetrievalFunctionName
    description: str
    required_keys: FrozenSet[str]
    optional_keys: FrozenSet[str]
    data_source: DataSource
    notes: str
    handler: Handler
    context: DataContext

    def execute(self, params: Optional[Dict[str, Any]]) -> RetrievalResult:
        """Validate ``params`` and run the lookup. Never raises for bad input."""
        params = dict(params or {})
        required = sorted(self.required_keys)
        missing = [key for key in required if _is_missing(params.get(key))]
        if missing:
            return RetrievalResult.failure(
                f"Missing required parameter: {', '.join(missing)}", required_params=required
            )
        unexpected = sorted(set(params) - self.required_keys - self.optional_keys)
        if unexpected:
            return RetrievalResult.failure(
                f"Unexpected parameter(s): {', '.join(unexpected)}", required_params=required
            )
        params = {k: v for k, v in params.items() if v is not None}
        for key in sorted(params):
            check, expected = PARAMETER_TYPES[key]
            if not check(params[key]):
                return RetrievalResult.failure(
                    f"Invalid {key}: expected {expected}, got {type(params[key]).__name__}",
                    required_params=required,
                )
        try:
            return self.handler(self.context, params)
        except RetrievalError as e:
            return RetrievalResult.failure(e.message)

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "description": self.description,
            "dataSource": self.data_source.value,
            "requiredKeys": sorted(self.required_keys),
            "optionalKeys": sorted(self.optional_keys),
            "notes": self.notes,
        }


class RetrievalFunctionRegistry:
    """Name → spec map for every retrieval operation."""

    def __init__(self, context: DataContext):
        self._specs: Dict[RetrievalFunctionName, RetrievalFunctionSpec] = {
            name: RetrievalFunctionSpec(
                name=name,
                description=definition.description,
                required_keys=definition.required_keys,
                optional_keys=definition.optional_keys,
                data_source=definition.data_source,
                notes=definition.notes,
                handler=definition.handler,
                context=context,
            )
            for name, definition in _DEFINITIONS.items()
        }

    def get(self, name: str) -> RetrievalFunctionSpec:
        """Spec for ``name``; raises UnknownFunction for names outside the catalogue."""
        try:
            return self._specs[RetrievalFunctionName(name)]
        except ValueError:
            raise UnknownFunction(name)

    def execute(self, name: str, params: Optional[Dict[str, Any]]) -> RetrievalResult:
        spec = self.get(name)
        result = spec.execute(params)
        logger.info(
            "Retrieval function executed",
            function=spec.name.value,
            success=result.success,
            result_count=result.result_count,
            error=result.error,
        )
        return result

    def catalogue(self) -> List[Dict[str, Any]]:
        return [spec.describe() for spec in self._specs.values()]

    def __contains__(self, name: object) -> bool:
        return name in {n.value for n in self._specs}

    def __len__(self) -> int:
        return len(self._specs)
