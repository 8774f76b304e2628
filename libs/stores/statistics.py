"""Precomputed statistics store.

Year- and product-keyed premium, claim, financial, contract and risk
metrics, plus year-level and category-level aggregates.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

from libs.common.errors import RetrievalError

METRIC_GROUPS = (
    "premiumStatistics",
    "financialMetrics",
    "contractStatistics",
    "claimStatistics",
    "riskMetrics",
)


class PrecomputedStatisticsStore:
    """Read-only view over precomputed yearly statistics."""

    def __init__(self, data: Dict[str, Any]):
        self._products: Dict[str, Dict[str, Any]] = copy.deepcopy(data.get("productYearlyMetrics", {}))
        aggregated = data.get("aggregatedMetrics", {})
        self._by_year: Dict[str, Dict[str, Any]] = copy.deepcopy(aggregated.get("byYear", {}))
        self._by_category: Dict[str, Dict[str, Any]] = copy.deepcopy(aggregated.get("byProductCategory", {}))

    def years(self) -> List[str]:
        """Every year with product-level or aggregated data."""
        years = set(self._by_year)
        for product in self._products.values():
            years.update(product.get("yearlyData", {}))
        return sorted(years)

    def categories(self) -> List[str]:
        return sorted(self._by_category)

    def product(self, code: str) -> Dict[str, Any]:
        if code not in self._products:
            raise RetrievalError(f"Product code {code} not found")
        return copy.deepcopy(self._products[code])

    def product_year(self, code: str, year: str) -> Dict[str, Any]:
        """Metrics of one product in one year."""
        product = self.product(code)
        if year not in product["yearlyData"]:
            raise RetrievalError(f"No data found for product {code} in year {year}")
        return product["yearlyData"][year]

    def products_for_year(self, year: str, category: Optional[str] = None) -> List[Dict[str, Any]]:
        """Rows of ``{productCode, productName, category, metrics}`` for a year.

        Raises RetrievalError when no product at all has data for the year.
        """
        if year not in self.years():
            raise RetrievalError(f"No data available for year {year}")
        rows = []
        for code in sorted(self._products):
            product = self._products[code]
            if category and product.get("category") != category:
                continue
            metrics = product.get("yearlyData", {}).get(year)
            if metrics is None:
                continue
            rows.append({
                "productCode": code,
                "productName": product["productName"],
                "category": product.get("category"),
                "metrics": copy.deepcopy(metrics),
            })
        return rows

    def year_aggregate(self, year: str) -> Dict[str, Any]:
        if year not in self._by_year:
            raise RetrievalError(f"No aggregated data found for year {year}")
        return copy.deepcopy(self._by_year[year])

    def category_aggregate(self, category: str) -> Dict[str, Any]:
        if category not in self._by_category:
            raise RetrievalError(f"No aggregated data found for category {category}")
        return copy.deepcopy(self._by_category[category])

    @staticmethod
    def find_metric(metrics: Dict[str, Any], name: str) -> Optional[Any]:
        """Look a metric up across metric groups, first group wins."""
        for group in METRIC_GROUPS:
            values = metrics.get(group, {})
            if name in values:
                return values[name]
        return None
