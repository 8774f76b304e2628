"""Shared test doubles and canned oracle output."""

import json
from typing import Any, Dict, List, Tuple


class ScriptedOracle:
    """Stand-in for GenerativeOracle that answers from a script.

    ``script`` maps a template name to a response: a string, a dict
    (returned as JSON), an exception instance (raised), a callable taking
    the prompt variables, or a list of those consumed in order.
    """

    def __init__(self, script: Dict[str, Any]):
        self.script = dict(script)
        self.calls: List[Tuple[str, Dict[str, Any], bool]] = []

    def templates_called(self) -> List[str]:
        return [name for name, _, _ in self.calls]

    async def complete(self, template_name: str, variables: Dict[str, Any], structured: bool = False) -> str:
        self.calls.append((template_name, variables, structured))
        response = self.script[template_name]
        if isinstance(response, list):
            response = response.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(variables)
        if isinstance(response, dict):
            return json.dumps(response, ensure_ascii=False)
        return response


SCENARIO_A_EXTRACTION = {
    "assumptions": ["갑상선암 발생률"],
    "products": [],
    "categories": [],
    "years": [],
    "other_terms": ["영향", "상품"],
}

SCENARIO_A_PLAN = {
    "intent": "Find products affected by a thyroid cancer incidence assumption change",
    "requiredFunctions": [
        {
            "functionName": "getProductsAffectedByAssumption",
            "parameters": {"assumptionType": "incidence", "assumptionCode": "C51"},
            "reason": "Explicit product ↔ assumption relationship",
        }
    ],
    "missingInfo": [],
}

SCENARIO_B_EXTRACTION = {
    "assumptions": [],
    "products": [],
    "categories": [],
    "years": ["2024"],
    "other_terms": ["IRR", "12%"],
}

SCENARIO_B_PLAN = {
    "intent": "Products with IRR above 12% in 2024",
    "requiredFunctions": [
        {
            "functionName": "getFinancialMetricsByFilter",
            "parameters": {"year": "2024", "metricType": "IRR", "threshold": 0.12, "comparison": "above"},
            "reason": "Threshold filter over precomputed IRR",
        }
    ],
    "missingInfo": [],
}

# "thyroid" only reaches C51 through the substring tier
FUZZY_EXTRACTION = {"assumptions": ["thyroid"], "years": ["2024"]}
