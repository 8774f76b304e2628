"""Query Orchestrator using LangGraph for the product insight pipeline.

This module routes a business question through a graph of nodes for
entity extraction, vocabulary resolution, confirmation, planning,
retrieval execution and synthesis.

Two graphs are compiled: the full pipeline, and a resume graph that
starts at planning for runs paused in ``awaiting_confirmation``. Runs
are stateless between requests; a paused run is resumed from the
serialized state the caller hands back.
"""

import asyncio
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog
from langgraph.graph import END, StateGraph

from api.agents.entity_confirmer import Decision, OracleEntityConfirmer, apply_decisions
from api.agents.query_planner import QueryPlanner
from api.composer.synthesis import ResponseSynthesizer
from api.llm.oracle import GenerativeOracle, get_oracle
from api.schemas.pipeline_state import (
    ExecutedCall,
    ExtractedEntities,
    PipelineFailure,
    PipelineState,
    PipelineStatus,
)
from api.tools.retrieval_registry import RetrievalFunctionRegistry, RetrievalResult
from libs.common.errors import InvalidResumeState, PipelineError
from libs.common.settings import get_settings
from libs.stores.context import DataContext, load_data_context
from libs.vocabulary.matcher import ResolvedMatch

logger = structlog.get_logger(__name__)

# Parameters that carry entity codes and must come from resolution
CODE_PARAMETERS = ("assumptionCode", "productCode", "productCodes")


def _advance(state: PipelineState, *statuses: PipelineStatus) -> Dict[str, Any]:
    return {"status": statuses[-1], "status_history": [*state.status_history, *statuses]}


def _timed(state: PipelineState, step: str, start_time: float) -> Dict[str, float]:
    return {**state.step_timings, step: round((time.time() - start_time) * 1000, 2)}


def _failed(state: PipelineState, step: str, start_time: float, error: PipelineError) -> Dict[str, Any]:
    logger.warning(
        f"{step} failed",
        error=error.message,
        error_code=error.code,
        trace_id=state.trace_id,
    )
    return {
        **_advance(state, PipelineStatus.FAILED),
        "failure": PipelineFailure(
            code=error.code,
            message=error.message,
            missing_info=getattr(error, "missing_info", []),
        ),
        "step_timings": _timed(state, step, start_time),
    }


class QueryOrchestrator:
    """Main orchestrator for question answering using LangGraph."""

    def __init__(
        self,
        context: DataContext,
        oracle: GenerativeOracle,
        confirmation_mode: str = "user",
    ):
        if confirmation_mode not in ("user", "oracle"):
            raise ValueError(f"Unknown confirmation mode: {confirmation_mode}")
        self.context = context
        self.confirmation_mode = confirmation_mode
        self.registry = RetrievalFunctionRegistry(context)
        self.planner = QueryPlanner(oracle, self.registry)
        self.confirmer = OracleEntityConfirmer(oracle)
        self.synthesizer = ResponseSynthesizer(oracle)
        self.graph = self._build_graph()
        self.resume_graph = self._build_resume_graph()

    def _add_planning_tail(self, graph: StateGraph) -> None:
        graph.add_node("04_plan", self._plan_node)
        graph.add_node("05_execute", self._execute_node)
        graph.add_node("06_synthesize", self._synthesize_node)

        graph.add_conditional_edges(
            "04_plan",
            self._continue_or_stop,
            {"continue": "05_execute", "stop": END},
        )
        graph.add_edge("05_execute", "06_synthesize")
        graph.add_edge("06_synthesize", END)

    def _build_graph(self):
        """Build and compile the full pipeline graph."""
        graph = StateGraph(PipelineState)

        graph.add_node("01_extract", self._extract_node)
        graph.add_node("02_resolve", self._resolve_node)
        graph.add_node("03_confirm", self._confirm_node)
        graph.add_node("03_await_confirmation", self._await_confirmation_node)
        self._add_planning_tail(graph)

        graph.set_entry_point("01_extract")
        graph.add_conditional_edges(
            "01_extract",
            self._continue_or_stop,
            {"continue": "02_resolve", "stop": END},
        )
        graph.add_conditional_edges(
            "02_resolve",
            self._decide_confirmation,
            {
                "confirm": "03_confirm",
                "await_user": "03_await_confirmation",
                "plan": "04_plan",
            },
        )
        graph.add_edge("03_confirm", "04_plan")
        graph.add_edge("03_await_confirmation", END)

        compiled_graph = graph.compile()
        logger.info("LangGraph orchestrator compiled successfully", confirmation_mode=self.confirmation_mode)
        return compiled_graph

    def _build_resume_graph(self):
        """Build the graph that continues a run after user confirmation."""
        graph = StateGraph(PipelineState)
        self._add_planning_tail(graph)
        graph.set_entry_point("04_plan")
        return graph.compile()

    def _continue_or_stop(self, state: PipelineState) -> str:
        return "stop" if state.status is PipelineStatus.FAILED else "continue"

    def _decide_confirmation(self, state: PipelineState) -> str:
        if not state.pending:
            return "plan"
        return "confirm" if self.confirmation_mode == "oracle" else "await_user"

    async def _extract_node(self, state: PipelineState) -> Dict[str, Any]:
        """01_extract: Pull entity terms out of the question."""
        start_time = time.time()
        try:
            extracted = await self.planner.extract(state.question)
        except PipelineError as e:
            return _failed(state, "01_extract", start_time, e)

        logger.info(
            "01_extract completed",
            assumptions=len(extracted.assumptions),
            products=len(extracted.products),
            categories=len(extracted.categories),
            years=len(extracted.years),
            duration_ms=round((time.time() - start_time) * 1000, 2),
            trace_id=state.trace_id,
        )
        return {
            **_advance(state, PipelineStatus.EXTRACTING),
            "extracted": extracted,
            "step_timings": _timed(state, "01_extract", start_time),
        }

    def _resolve(
        self, extracted: Optional[ExtractedEntities]
    ) -> Tuple[List[ResolvedMatch], List[ResolvedMatch], List[ResolvedMatch]]:
        """(resolved, confirmed, pending) for the extracted terms."""
        resolved = self.context.matcher.resolve_all(extracted.by_type()) if extracted is not None else []
        confirmed = [m for m in resolved if not m.needs_confirmation]
        pending = [m for m in resolved if m.needs_confirmation]
        return resolved, confirmed, pending

    async def _resolve_node(self, state: PipelineState) -> Dict[str, Any]:
        """02_resolve: Match extracted terms against the vocabulary and known years."""
        start_time = time.time()
        resolved, confirmed, pending = self._resolve(state.extracted)

        logger.info(
            "02_resolve completed",
            resolved=[f"{m.entity_type.value}:{m.code}" for m in resolved],
            pending=len(pending),
            duration_ms=round((time.time() - start_time) * 1000, 2),
            trace_id=state.trace_id,
        )
        return {
            **_advance(state, PipelineStatus.RESOLVING),
            "resolved": resolved,
            "confirmed": confirmed,
            "pending": pending,
            "step_timings": _timed(state, "02_resolve", start_time),
        }

    async def _confirm_node(self, state: PipelineState) -> Dict[str, Any]:
        """03_confirm: Let the oracle confirm or reject low-confidence matches."""
        start_time = time.time()
        accepted, rejected = await self.confirmer.confirm(state.question, state.pending)
        logger.info(
            "03_confirm completed",
            confirmed=[m.code for m in accepted],
            rejected=[m.code for m in rejected],
            duration_ms=round((time.time() - start_time) * 1000, 2),
            trace_id=state.trace_id,
        )
        return {
            **_advance(state, PipelineStatus.CONFIRMING),
            "confirmed": [*state.confirmed, *accepted],
            "pending": [],
            "step_timings": _timed(state, "03_confirm", start_time),
        }

    async def _await_confirmation_node(self, state: PipelineState) -> Dict[str, Any]:
        """03_await_confirmation: Pause until the caller decides on pending matches."""
        logger.info(
            "Run paused for user confirmation",
            pending=[f"{m.entity_type.value}:{m.matched_term}->{m.code}" for m in state.pending],
            trace_id=state.trace_id,
        )
        return _advance(state, PipelineStatus.AWAITING_CONFIRMATION)

    async def _plan_node(self, state: PipelineState) -> Dict[str, Any]:
        """04_plan: Select retrieval calls from confirmed entities."""
        start_time = time.time()
        try:
            plan = await self.planner.plan(state.question, state.confirmed)
        except PipelineError as e:
            return _failed(state, "04_plan", start_time, e)
        return {
            **_advance(state, PipelineStatus.PLANNING),
            "plan": plan,
            "step_timings": _timed(state, "04_plan", start_time),
        }

    def _check_codes(self, parameters: Dict[str, Any], allowed: set) -> Optional[RetrievalResult]:
        """Failed result when a code parameter was not produced by resolution."""
        unresolved = []
        for key in CODE_PARAMETERS:
            value = parameters.get(key)
            if value is None:
                continue
            values = value if isinstance(value, list) else [value]
            unresolved.extend(str(v) for v in values if not isinstance(v, str) or v not in allowed)
        if unresolved:
            return RetrievalResult.failure(
                f"Entity code(s) {', '.join(unresolved)} were not resolved from the question"
            )
        return None

    async def _execute_node(self, state: PipelineState) -> Dict[str, Any]:
        """05_execute: Run every planned call; failures are recorded, never raised."""
        start_time = time.time()
        allowed = {m.code for m in state.confirmed}
        results: List[ExecutedCall] = []
        for call in state.plan.calls:
            if call.function_name not in self.registry:
                result = RetrievalResult.failure(f"Function {call.function_name} not found")
                logger.warning("Planner selected unknown function", function=call.function_name, trace_id=state.trace_id)
            else:
                result = self._check_codes(call.parameters, allowed) or self.registry.execute(
                    call.function_name, call.parameters
                )
            results.append(ExecutedCall(function_name=call.function_name, parameters=call.parameters, result=result))

        logger.info(
            "05_execute completed",
            calls=len(results),
            failed=sum(1 for r in results if not r.result.success),
            duration_ms=round((time.time() - start_time) * 1000, 2),
            trace_id=state.trace_id,
        )
        return {
            **_advance(state, PipelineStatus.EXECUTING),
            "results": results,
            "step_timings": _timed(state, "05_execute", start_time),
        }

    async def _synthesize_node(self, state: PipelineState) -> Dict[str, Any]:
        """06_synthesize: Narrate the results as the final answer."""
        start_time = time.time()
        try:
            response = await self.synthesizer.synthesize(state.question, state.plan, state.results)
        except PipelineError as e:
            return _failed(state, "06_synthesize", start_time, e)
        return {
            **_advance(state, PipelineStatus.SYNTHESIZING, PipelineStatus.DONE),
            "response": response,
            "step_timings": _timed(state, "06_synthesize", start_time),
        }

    async def _run(self, graph, state: PipelineState) -> PipelineState:
        start_time = time.time()
        try:
            result = await graph.ainvoke(state)
        except Exception as e:
            logger.error("Query orchestration failed", error=str(e), trace_id=state.trace_id)
            raise

        if isinstance(result, dict):
            result = state.model_copy(update=result)
        result = result.model_copy(
            update={"elapsed_ms": state.elapsed_ms + (time.time() - start_time) * 1000}
        )
        logger.info(
            "Query orchestration finished",
            status=result.status.value,
            functions_used=result.functions_used(),
            elapsed_ms=round(result.elapsed_ms, 2),
            trace_id=result.trace_id,
        )
        return result

    async def run_query(self, question: str) -> PipelineState:
        """Run the full pipeline for one question."""
        state = PipelineState(question=question)
        logger.info("Starting query orchestration", trace_id=state.trace_id, question_length=len(question))
        return await self._run(self.graph, state)

    async def resume(self, state: PipelineState, decisions: Iterable[Decision]) -> PipelineState:
        """Continue a paused run with the caller's confirm/reject decisions.

        The caller's copy of the state is untrusted: matches are re-resolved
        from the extracted terms, so only vocabulary codes reach planning.

        Raises:
            InvalidResumeState: ``state`` is not awaiting confirmation
        """
        if state.status is not PipelineStatus.AWAITING_CONFIRMATION:
            raise InvalidResumeState(
                f"Cannot resume a run in status '{state.status.value}'; expected 'awaiting_confirmation'"
            )
        resolved, confirmed, pending = self._resolve(state.extracted)
        accepted, rejected = apply_decisions(pending, decisions)
        logger.info(
            "Resuming query after user confirmation",
            confirmed=[m.code for m in accepted],
            rejected=[m.code for m in rejected],
            trace_id=state.trace_id,
        )
        state = state.model_copy(update={
            **_advance(state, PipelineStatus.CONFIRMING),
            "resolved": resolved,
            "confirmed": [*confirmed, *accepted],
            "pending": [],
        })
        return await self._run(self.resume_graph, state)

    async def run_parallel(self, question: str) -> List[PipelineState]:
        """Run two independent pipelines for the same question concurrently."""
        executions = await asyncio.gather(self.run_query(question), self.run_query(question))
        return list(executions)


# Global orchestrator instance
_orchestrator: Optional[QueryOrchestrator] = None


def get_orchestrator() -> QueryOrchestrator:
    """Get or create the global orchestrator instance."""
    global _orchestrator
    if _orchestrator is None:
        settings = get_settings()
        _orchestrator = QueryOrchestrator(
            context=load_data_context(settings.data_dir),
            oracle=get_oracle(),
            confirmation_mode=settings.confirmation_mode,
        )
    return _orchestrator
