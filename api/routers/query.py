from __future__ import annotations

import time
from typing import List, Union

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError

from api.models import (
    ConfirmationRequest,
    FunctionCatalogResponse,
    FunctionDescription,
    ParallelQueryResponse,
    PendingMatch,
    QueryRequest,
    QueryResponse,
    Scenario,
    ScenarioListResponse,
)
from api.orchestrators.query_orchestrator import QueryOrchestrator, get_orchestrator
from api.schemas.pipeline_state import PipelineState, PipelineStatus
from libs.common.errors import InvalidResumeState, MissingEntity

logger = structlog.get_logger(__name__)
router = APIRouter()

EXAMPLE_SCENARIOS: List[Scenario] = [
    Scenario(
        id="A",
        name="Explicit memory question",
        question="갑상선암 발생률을 바꾸면 영향을 받는 상품은?",
        description="Traverses the product ↔ assumption relationships",
        expected_category="explicit_memory",
        expected_functions=["getProductsAffectedByAssumption"],
    ),
    Scenario(
        id="B",
        name="Precomputed statistics question",
        question="Which products had an IRR above 12% in 2024?",
        description="Filters precomputed yearly financial metrics by threshold",
        expected_category="precomputed_statistics",
        expected_functions=["getFinancialMetricsByFilter"],
    ),
    Scenario(
        id="C",
        name="Year-over-year question",
        question="How did new contracts and premium grow from 2023 to 2024?",
        description="Compares year-level aggregates",
        expected_category="precomputed_statistics",
        expected_functions=["getYearOverYearPerformance"],
    ),
]


def build_query_response(state: PipelineState, include_debug: bool) -> QueryResponse:
    """Map a finished or paused run to the wire contract."""
    debug = state.debug_payload() if include_debug else None

    if state.status is PipelineStatus.AWAITING_CONFIRMATION:
        pending = [
            PendingMatch(
                entity_type=m.entity_type.value,
                matched_term=m.matched_term,
                code=m.code,
                primary_name=m.primary_name,
                confidence=m.confidence,
                match_type=m.match_type.value,
            )
            for m in state.pending
        ]
        terms = ", ".join(f"'{p.matched_term}' → {p.primary_name}" for p in pending)
        return QueryResponse(
            success=True,
            response=f"Please confirm these matches before the question is answered: {terms}",
            awaiting_confirmation=True,
            pending_matches=pending,
            resume_state=state.model_dump(mode="json"),
            debug=debug,
        )

    if state.status is PipelineStatus.FAILED:
        failure = state.failure
        if failure.code == MissingEntity.code:
            return QueryResponse(
                success=False,
                response=failure.message,
                needs_more_info=True,
                missing_info=failure.missing_info,
                error_code=failure.code,
                debug=debug,
            )
        return QueryResponse(success=False, error=failure.message, error_code=failure.code, debug=debug)

    return QueryResponse(success=True, response=state.response, debug=debug)


@router.post(
    "/v1/query",
    response_model=Union[ParallelQueryResponse, QueryResponse],
    response_model_exclude_none=True,
    tags=["Query"],
)
async def query_product_insights(
    request: Request,
    query_request: QueryRequest,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
) -> Union[ParallelQueryResponse, QueryResponse]:
    """Answer a business question about products, assumptions and statistics.

    With ``executeInParallel`` two independent pipelines run concurrently
    and both executions are returned with their debug payloads.

    Example:
        ```bash
        curl -X POST http://localhost:8000/api/v1/query \\
          -H "Content-Type: application/json" \\
          -d '{"question": "Which products had an IRR above 12% in 2024?", "debug": true}'
        ```
    """
    request_id = getattr(request.state, "request_id", "unknown")
    start_time = time.time()
    logger.info(
        "Processing query",
        request_id=request_id,
        question=query_request.question[:100],
        parallel=query_request.execute_in_parallel,
    )

    if query_request.execute_in_parallel:
        executions = await orchestrator.run_parallel(query_request.question)
        responses = [build_query_response(state, include_debug=True) for state in executions]
        logger.info(
            "Parallel query completed",
            request_id=request_id,
            statuses=[s.status.value for s in executions],
            process_time_ms=round((time.time() - start_time) * 1000, 2),
        )
        return ParallelQueryResponse(
            success=all(r.success for r in responses),
            question=query_request.question,
            executions=responses,
        )

    state = await orchestrator.run_query(query_request.question)
    logger.info(
        "Query completed",
        request_id=request_id,
        status=state.status.value,
        process_time_ms=round((time.time() - start_time) * 1000, 2),
    )
    return build_query_response(state, include_debug=query_request.debug)


@router.post("/v1/query/confirm", response_model=QueryResponse, response_model_exclude_none=True, tags=["Query"])
async def confirm_entities(
    request: Request,
    confirmation: ConfirmationRequest,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
) -> QueryResponse:
    """Resume a paused run with per-match confirm/reject decisions."""
    try:
        state = PipelineState.model_validate(confirmation.state)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid resume state: {e.error_count()} error(s)",
        )

    decisions = [(d.entity_type, d.matched_term, d.confirmed) for d in confirmation.decisions]
    try:
        result = await orchestrator.resume(state, decisions)
    except InvalidResumeState as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    logger.info(
        "Confirmation processed",
        request_id=getattr(request.state, "request_id", "unknown"),
        status=result.status.value,
        trace_id=result.trace_id,
    )
    return build_query_response(result, include_debug=confirmation.debug)


@router.get("/v1/functions", response_model=FunctionCatalogResponse, tags=["Query"])
async def list_functions(orchestrator: QueryOrchestrator = Depends(get_orchestrator)) -> FunctionCatalogResponse:
    """List the retrieval functions the planner can select."""
    functions = [FunctionDescription.model_validate(f) for f in orchestrator.registry.catalogue()]
    return FunctionCatalogResponse(functions=functions, count=len(functions))


@router.get("/v1/scenarios", response_model=ScenarioListResponse, tags=["Query"])
async def list_scenarios() -> ScenarioListResponse:
    """Example questions for manual testing."""
    return ScenarioListResponse(scenarios=EXAMPLE_SCENARIOS)
