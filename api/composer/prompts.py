"""
Prompt templates for the product insight pipeline.

Four oracle calls make up a run:
- entity_extraction: question → assumption/product/category/year terms
- query_planning: question + function catalogue + confirmed codes → call plan
- entity_confirmation: question + low-confidence matches → confirm/reject
- response_synthesis: question + structured results → prose answer

Structured prompts ask for a single JSON object; the oracle adapter
decodes it with ``parse_json_object``.
"""

import json
from typing import Any, Dict, List

from langchain_core.prompts import ChatPromptTemplate


# ==============================================================================
# SHARED CONTEXT
# ==============================================================================

DOMAIN_CONTEXT = """You support an insurance product-design team. Their data covers:
- Actuarial assumptions (incidence, mortality, lapse and discount rates) and the products that use them
- Product design-change history (designer, date, change)
- Yearly product statistics: premium, claims, IRR, profit margin, loss ratio, contracts, risk metrics
- Aggregates by year and by product category"""


# ==============================================================================
# ENTITY EXTRACTION
# ==============================================================================

ENTITY_EXTRACTION_SYSTEM = f"""{DOMAIN_CONTEXT}

Extract the entity terms the question mentions, copied as written (any language).

- assumptions: actuarial assumption names (e.g. "thyroid cancer incidence rate")
- products: product names or codes
- categories: product categories (e.g. "thyroid cancer products")
- years: four-digit years, including relative ones made absolute when explicit
- other_terms: metric names, thresholds, designers and anything else relevant

Return JSON: {{{{"assumptions": [...], "products": [...], "categories": [...], "years": [...], "other_terms": [...]}}}}

JSON only. Use empty lists for missing entity types."""

ENTITY_EXTRACTION_TEMPLATE = ChatPromptTemplate.from_messages([
    ("system", ENTITY_EXTRACTION_SYSTEM),
    ("user", "Question: {question}")
])


# ==============================================================================
# QUERY PLANNING
# ==============================================================================

QUERY_PLANNING_SYSTEM = f"""{DOMAIN_CONTEXT}

Plan which retrieval functions answer the question. You may ONLY use the functions listed below,
with parameter names exactly as listed. Use entity codes ONLY from the confirmed entities; never
invent codes. Express percentages as decimals (12% → 0.12) and years as "YYYY" strings.

**AVAILABLE FUNCTIONS**:
{{function_catalogue}}

If a required parameter cannot be filled from the question or the confirmed entities, do not guess:
list what is missing in missingInfo and return no functions.

Return JSON:
{{{{"intent": "...", "requiredFunctions": [{{{{"functionName": "...", "parameters": {{{{...}}}}, "reason": "..."}}}}], "missingInfo": [...]}}}}

JSON only."""

QUERY_PLANNING_TEMPLATE = ChatPromptTemplate.from_messages([
    ("system", QUERY_PLANNING_SYSTEM),
    ("user", """Question: {question}

Confirmed entities:
{confirmed_entities}""")
])


# ==============================================================================
# ENTITY CONFIRMATION
# ==============================================================================

ENTITY_CONFIRMATION_SYSTEM = f"""{DOMAIN_CONTEXT}

Some question terms matched vocabulary entries only approximately. For each candidate decide whether
the user most plausibly meant that entry. Reject when in doubt.

Return JSON: {{{{"decisions": [{{{{"entityType": "...", "matchedTerm": "...", "code": "...", "confirmed": true}}}}]}}}}

JSON only."""

ENTITY_CONFIRMATION_TEMPLATE = ChatPromptTemplate.from_messages([
    ("system", ENTITY_CONFIRMATION_SYSTEM),
    ("user", """Question: {question}

Candidates:
{pending_matches}""")
])


# ==============================================================================
# RESPONSE SYNTHESIS
# ==============================================================================

RESPONSE_SYNTHESIS_TEMPLATE = ChatPromptTemplate.from_messages([
    ("system", f"""{DOMAIN_CONTEXT}

Answer the question using ONLY the retrieval results provided.

**REQUIREMENTS**:
- Quote concrete figures (values, percentages, counts, years) from the results
- Name products and assumptions as they appear in the results
- For every failed call, say which data could not be retrieved and why, using its error
- Never fill gaps with figures that are not in the results
- Answer in the language of the question, concisely"""),
    ("user", """Question: {question}
Intent: {intent}

**RETRIEVAL RESULTS**:
{results}""")
])


def get_prompt_template(template_name: str) -> ChatPromptTemplate:
    """
    Get a prompt template by name.

    Raises:
        ValueError: If template_name is not found
    """
    templates: Dict[str, ChatPromptTemplate] = {
        "entity_extraction": ENTITY_EXTRACTION_TEMPLATE,
        "query_planning": QUERY_PLANNING_TEMPLATE,
        "entity_confirmation": ENTITY_CONFIRMATION_TEMPLATE,
        "response_synthesis": RESPONSE_SYNTHESIS_TEMPLATE,
    }
    if template_name not in templates:
        raise ValueError(f"Unknown template: {template_name}. Available: {list(templates.keys())}")
    return templates[template_name]


def render_function_catalogue(catalogue: List[Dict[str, Any]]) -> str:
    """Render registry descriptions as the planner's function list."""
    lines = []
    for function in catalogue:
        required = ", ".join(function["requiredKeys"]) or "none"
        optional = ", ".join(function["optionalKeys"]) or "none"
        lines.append(f"- {function['name']}: {function['description']}")
        lines.append(f"  required: {required}; optional: {optional}")
        if function.get("notes"):
            lines.append(f"  notes: {function['notes']}")
    return "\n".join(lines)


def to_prompt_json(value: Any) -> str:
    """JSON for prompt variables, keeping non-ASCII names readable."""
    return json.dumps(value, ensure_ascii=False, indent=2, default=str)
