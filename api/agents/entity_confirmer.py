"""Confirmation of low-confidence entity matches.

Two ways to decide: explicit per-match decisions from the caller
(``apply_decisions``), or a confirm/reject verdict from the oracle
(``OracleEntityConfirmer``). Both fail closed: a match without an
explicit confirmation is rejected.
"""

from typing import Iterable, List, Tuple

import structlog

from api.agents.query_planner import describe_matches
from api.composer.prompts import to_prompt_json
from api.llm.oracle import GenerativeOracle, parse_json_object
from libs.common.errors import OracleError
from libs.vocabulary.matcher import ResolvedMatch

logger = structlog.get_logger(__name__)

Decision = Tuple[str, str, bool]


def apply_decisions(
    pending: List[ResolvedMatch],
    decisions: Iterable[Decision],
) -> Tuple[List[ResolvedMatch], List[ResolvedMatch]]:
    """Split ``pending`` into (confirmed, rejected).

    ``decisions`` are ``(entity_type, matched_term, confirmed)`` triples.
    Matches with no decision are rejected.
    """
    verdicts = {(entity_type, term): confirmed for entity_type, term, confirmed in decisions}
    confirmed, rejected = [], []
    for match in pending:
        if verdicts.get((match.entity_type.value, match.matched_term)) is True:
            confirmed.append(match)
        else:
            rejected.append(match)
    return confirmed, rejected


class OracleEntityConfirmer:
    """Asks the oracle whether each low-confidence match is what the user meant."""

    def __init__(self, oracle: GenerativeOracle):
        self.oracle = oracle

    async def confirm(
        self, question: str, pending: List[ResolvedMatch]
    ) -> Tuple[List[ResolvedMatch], List[ResolvedMatch]]:
        if not pending:
            return [], []
        variables = {
            "question": question,
            "pending_matches": to_prompt_json(describe_matches(pending)),
        }
        try:
            text = await self.oracle.complete("entity_confirmation", variables, structured=True)
        except OracleError as e:
            logger.warning("Entity confirmation failed, rejecting pending matches", error=e.message)
            return [], list(pending)

        data = parse_json_object(text)
        raw = data.get("decisions") if data else None
        if not isinstance(raw, list):
            logger.warning("Entity confirmation returned no decisions, rejecting pending matches")
            return [], list(pending)

        decisions = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            entity_type = str(item.get("entityType", ""))
            code = item.get("code")
            term = item.get("matchedTerm")
            for match in pending:
                if match.entity_type.value != entity_type:
                    continue
                if term == match.matched_term or (term is None and code == match.code):
                    decisions.append((entity_type, match.matched_term, item.get("confirmed") is True))
        return apply_decisions(pending, decisions)
