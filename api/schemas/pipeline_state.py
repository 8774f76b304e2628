"""Pipeline state schema for the product insight orchestrator.

This module defines the state object that flows through the LangGraph
orchestrator. It tracks one question from extraction to the final
response, and serializes losslessly so a run paused for user
confirmation can be resumed from the returned state alone.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.tools.retrieval_registry import RetrievalResult
from libs.vocabulary.matcher import EntityType, ResolvedMatch


class PipelineStatus(str, Enum):
    EXTRACTING = "extracting"
    RESOLVING = "resolving"
    CONFIRMING = "confirming"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    PLANNING = "planning"
    EXECUTING = "executing"
    SYNTHESIZING = "synthesizing"
    DONE = "done"
    FAILED = "failed"


class ExtractedEntities(BaseModel):
    """Entity terms the oracle pulled out of the question."""

    assumptions: List[str] = Field(default_factory=list)
    products: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    years: List[str] = Field(default_factory=list)
    other_terms: List[str] = Field(default_factory=list)

    @field_validator("assumptions", "products", "categories", "years", "other_terms", mode="before")
    @classmethod
    def _terms(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, (str, int)):
            v = [v]
        if not isinstance(v, list):
            raise ValueError("expected a list of terms")
        return [str(t).strip() for t in v if t is not None and str(t).strip()]

    def by_type(self) -> Dict[EntityType, List[str]]:
        return {
            EntityType.ASSUMPTION: self.assumptions,
            EntityType.PRODUCT: self.products,
            EntityType.CATEGORY: self.categories,
            EntityType.YEAR: self.years,
        }


class PlannedCall(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    function_name: str = Field(alias="functionName", min_length=1)
    parameters: Dict[str, Any] = Field(default_factory=dict)
    reason: str = ""


class QueryPlan(BaseModel):
    """Retrieval calls the planner selected, or the information it lacks."""

    model_config = ConfigDict(populate_by_name=True)

    intent: str = ""
    calls: List[PlannedCall] = Field(default_factory=list, alias="requiredFunctions")
    missing_info: List[str] = Field(default_factory=list, alias="missingInfo")

    @field_validator("intent", mode="before")
    @classmethod
    def _intent(cls, v: Any) -> str:
        return "" if v is None else str(v)


class ExecutedCall(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    function_name: str = Field(alias="functionName")
    parameters: Dict[str, Any] = Field(default_factory=dict)
    result: RetrievalResult

    def to_payload(self) -> Dict[str, Any]:
        return {
            "functionName": self.function_name,
            "parameters": self.parameters,
            "result": self.result.to_payload(),
        }


class PipelineFailure(BaseModel):
    """Terminal failure of a run."""

    code: str
    message: str
    missing_info: List[str] = Field(default_factory=list)


class PipelineState(BaseModel):
    """State object for one pass through the query pipeline."""

    # Input and tracing
    question: str = Field(min_length=1, description="Raw business question")
    trace_id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Unique trace identifier")

    # Lifecycle
    status: PipelineStatus = Field(default=PipelineStatus.EXTRACTING, description="Current step")
    status_history: List[PipelineStatus] = Field(default_factory=list, description="Steps visited, in order")

    # Understanding
    extracted: Optional[ExtractedEntities] = Field(default=None, description="Terms extracted by the oracle")
    resolved: List[ResolvedMatch] = Field(default_factory=list, description="Vocabulary matches")
    confirmed: List[ResolvedMatch] = Field(default_factory=list, description="Matches allowed into planning")
    pending: List[ResolvedMatch] = Field(default_factory=list, description="Low-confidence matches awaiting a decision")

    # Planning and execution
    plan: Optional[QueryPlan] = Field(default=None, description="Planner output")
    results: List[ExecutedCall] = Field(default_factory=list, description="One entry per planned call, in plan order")

    # Output
    response: Optional[str] = Field(default=None, description="Synthesized answer")
    failure: Optional[PipelineFailure] = Field(default=None, description="Terminal failure, if any")

    # Performance metadata
    step_timings: Dict[str, float] = Field(default_factory=dict, description="Per-step execution times (ms)")
    elapsed_ms: float = Field(default=0.0, description="Wall time spent in the pipeline (ms)")

    def functions_used(self) -> List[str]:
        return [call.function_name for call in self.results]

    def debug_payload(self) -> Dict[str, Any]:
        """Intermediate artifacts for the caller's debug view."""
        return {
            "extractedEntities": self.extracted.model_dump() if self.extracted else None,
            "resolvedEntities": [m.model_dump(mode="json") for m in self.resolved],
            "confirmedEntities": [m.model_dump(mode="json") for m in self.confirmed],
            "plan": self.plan.model_dump(by_alias=True) if self.plan else None,
            "functionsUsed": self.functions_used(),
            "retrievalResults": [call.to_payload() for call in self.results],
            "status": self.status.value,
            "stepTimings": self.step_timings,
            "elapsedMs": round(self.elapsed_ms, 2),
        }
