"""Response synthesis: structured retrieval results narrated as prose."""

from typing import List, Optional

import structlog

from api.composer.prompts import to_prompt_json
from api.llm.oracle import GenerativeOracle
from api.schemas.pipeline_state import ExecutedCall, QueryPlan
from libs.common.errors import OracleError, SynthesisFailed

logger = structlog.get_logger(__name__)


class ResponseSynthesizer:
    def __init__(self, oracle: GenerativeOracle):
        self.oracle = oracle

    async def synthesize(self, question: str, plan: Optional[QueryPlan], results: List[ExecutedCall]) -> str:
        """Answer ``question`` from ``results``, failed calls included.

        Raises:
            SynthesisFailed: the oracle errored or answered with nothing
        """
        variables = {
            "question": question,
            "intent": plan.intent if plan else "",
            "results": to_prompt_json([call.to_payload() for call in results]),
        }
        try:
            text = await self.oracle.complete("response_synthesis", variables)
        except OracleError as e:
            raise SynthesisFailed(f"Response synthesis failed: {e.message}") from e

        answer = text.strip()
        if not answer:
            raise SynthesisFailed("Response synthesis returned an empty answer")
        logger.debug("Response synthesized", answer_length=len(answer), calls=len(results))
        return answer
