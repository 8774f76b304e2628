"""Explicit memory store.

Read-only relationship data: which assumptions each product uses (with
current value and unit), how a change to one assumption ripples into
others, and each product's design-change history. Lookups are by
assumption code and product code only.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterator, List, Optional, Tuple

from libs.common.errors import RetrievalError


class ExplicitMemoryStore:
    """Assumption ↔ product relationships and design history."""

    def __init__(self, data: Dict[str, Any]):
        self._assumptions: Dict[str, Dict[str, Any]] = copy.deepcopy(data.get("assumptions", {}))
        self._products: Dict[str, Dict[str, Any]] = copy.deepcopy(data.get("products", {}))
        self._relationships: Dict[str, List[Dict[str, Any]]] = copy.deepcopy(
            data.get("assumptionRelationships", {})
        )
        for code, product in self._products.items():
            for link in product.get("assumptions", []):
                if link["assumptionCode"] not in self._assumptions:
                    raise ValueError(
                        f"Product {code} references unknown assumption {link['assumptionCode']}"
                    )
            product["designHistory"] = sorted(product.get("designHistory", []), key=lambda h: h["date"])
        for code, related in self._relationships.items():
            for entry in [{"relatedAssumptionCode": code}, *related]:
                if entry["relatedAssumptionCode"] not in self._assumptions:
                    raise ValueError(
                        f"Relationship of {code} references unknown assumption {entry['relatedAssumptionCode']}"
                    )

    def assumption(self, code: str) -> Dict[str, Any]:
        if code not in self._assumptions:
            raise RetrievalError(f"Assumption code {code} not found")
        return copy.deepcopy(self._assumptions[code])

    def assumption_codes(self) -> List[str]:
        return sorted(self._assumptions)

    def relationships(self, code: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
        """Related assumptions keyed by source code; one key when ``code`` is given.

        A known assumption with no recorded relationships maps to an empty list.
        """
        if code is not None:
            self.assumption(code)
            return {code: copy.deepcopy(self._relationships.get(code, []))}
        return {c: copy.deepcopy(self._relationships[c]) for c in sorted(self._relationships)}

    def product(self, code: str) -> Dict[str, Any]:
        if code not in self._products:
            raise RetrievalError(f"Product code {code} not found")
        return copy.deepcopy(self._products[code])

    def product_codes(self) -> List[str]:
        return sorted(self._products)

    def iter_products(self) -> Iterator[Tuple[str, Dict[str, Any]]]:
        """Yield ``(code, product)`` copies in code order."""
        for code in self.product_codes():
            yield code, copy.deepcopy(self._products[code])

    def design_history(self, code: str) -> List[Dict[str, Any]]:
        """Design-change entries for a product, oldest first."""
        return self.product(code)["designHistory"]
