"""Query understanding planner.

Two oracle calls: entity extraction from the raw question, and planning
of retrieval function calls from the question, the registry catalogue
and the confirmed entity codes. Oracle output is decoded once with
``parse_json_object`` and validated into pydantic models; anything else
is a step failure.
"""

from typing import List

import structlog
from pydantic import ValidationError

from api.composer.prompts import render_function_catalogue, to_prompt_json
from api.llm.oracle import GenerativeOracle, parse_json_object
from api.schemas.pipeline_state import ExtractedEntities, QueryPlan
from api.tools.retrieval_registry import RetrievalFunctionRegistry
from libs.common.errors import ExtractionFailed, MissingEntity, OracleError, PlanningFailed
from libs.vocabulary.matcher import ResolvedMatch

logger = structlog.get_logger(__name__)


def describe_matches(matches: List[ResolvedMatch]) -> List[dict]:
    """Compact match records for prompts."""
    return [
        {
            "entityType": m.entity_type.value,
            "code": m.code,
            "name": m.primary_name,
            "category": m.category,
            "matchedTerm": m.matched_term,
        }
        for m in matches
    ]


class QueryPlanner:
    """Oracle-driven entity extraction and retrieval planning."""

    def __init__(self, oracle: GenerativeOracle, registry: RetrievalFunctionRegistry):
        self.oracle = oracle
        self.registry = registry
        self._catalogue = render_function_catalogue(registry.catalogue())

    async def extract(self, question: str) -> ExtractedEntities:
        """Pull entity terms out of ``question``.

        Raises:
            ExtractionFailed: oracle error or output that is not an entity object
        """
        try:
            text = await self.oracle.complete("entity_extraction", {"question": question}, structured=True)
        except OracleError as e:
            raise ExtractionFailed(f"Entity extraction failed: {e.message}") from e

        data = parse_json_object(text)
        if data is None:
            logger.warning("Entity extraction returned no JSON object", response_preview=text[:200])
            raise ExtractionFailed("Entity extraction returned no JSON object")
        try:
            return ExtractedEntities.model_validate(data)
        except ValidationError as e:
            raise ExtractionFailed(f"Entity extraction returned an invalid structure: {e.error_count()} error(s)")

    async def plan(self, question: str, confirmed: List[ResolvedMatch]) -> QueryPlan:
        """Select retrieval calls for ``question`` using only ``confirmed`` codes.

        Raises:
            PlanningFailed: oracle error, unparsable or empty plan
            MissingEntity: the planner reported missing information
        """
        variables = {
            "question": question,
            "function_catalogue": self._catalogue,
            "confirmed_entities": to_prompt_json(describe_matches(confirmed)),
        }
        try:
            text = await self.oracle.complete("query_planning", variables, structured=True)
        except OracleError as e:
            raise PlanningFailed(f"Query planning failed: {e.message}") from e

        data = parse_json_object(text)
        if data is None:
            logger.warning("Query planning returned no JSON object", response_preview=text[:200])
            raise PlanningFailed("Query planning returned no JSON object")
        try:
            plan = QueryPlan.model_validate(data)
        except ValidationError as e:
            raise PlanningFailed(f"Query planning returned an invalid plan: {e.error_count()} error(s)")

        if plan.missing_info:
            raise MissingEntity(plan.missing_info)
        if not plan.calls:
            raise PlanningFailed("Query planning selected no retrieval functions")

        logger.info(
            "Query planned",
            intent=plan.intent,
            functions=[c.function_name for c in plan.calls],
        )
        return plan
