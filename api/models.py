"""Pydantic models for the product insight API.

This module defines the request and response models used by the API
endpoints. Wire names are camelCase; Python attributes are snake_case
and mapped through aliases.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QueryRequest(BaseModel):
    """Request model for a business question."""

    model_config = ConfigDict(populate_by_name=True)

    question: str = Field(..., max_length=2000, description="Business question", examples=["Which products are affected if the thyroid cancer incidence assumption changes?"])
    execute_in_parallel: bool = Field(
        default=False,
        alias="executeInParallel",
        description="Run two independent pipelines concurrently and return both",
    )
    debug: bool = Field(default=False, description="Include intermediate artifacts in the response")

    @field_validator("question")
    @classmethod
    def question_must_not_be_empty(cls, v: str) -> str:
        """Validate that the question is not empty."""
        if not v.strip():
            raise ValueError("Question must not be empty")
        return v.strip()


class ConfirmationDecision(BaseModel):
    """The caller's verdict on one low-confidence match."""

    model_config = ConfigDict(populate_by_name=True)

    entity_type: Literal["assumption", "product", "category", "year"] = Field(alias="entityType")
    matched_term: str = Field(alias="matchedTerm", min_length=1)
    confirmed: bool


class ConfirmationRequest(BaseModel):
    """Resume a run paused in awaiting_confirmation."""

    state: Dict[str, Any] = Field(description="resumeState returned by the paused query")
    decisions: List[ConfirmationDecision] = Field(default_factory=list)
    debug: bool = False


class PendingMatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    entity_type: str = Field(alias="entityType")
    matched_term: str = Field(alias="matchedTerm")
    code: str
    primary_name: str = Field(alias="primaryName")
    confidence: float
    match_type: str = Field(alias="matchType")


class QueryResponse(BaseModel):
    """Outcome of one pipeline run."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(description="Whether the run produced an answer or a confirmation request")
    response: Optional[str] = Field(default=None, description="Answer text or message for the caller")
    needs_more_info: Optional[bool] = Field(default=None, alias="needsMoreInfo")
    missing_info: Optional[List[str]] = Field(default=None, alias="missingInfo")
    error: Optional[str] = None
    error_code: Optional[str] = Field(default=None, alias="errorCode")
    awaiting_confirmation: Optional[bool] = Field(default=None, alias="awaitingConfirmation")
    pending_matches: Optional[List[PendingMatch]] = Field(default=None, alias="pendingMatches")
    resume_state: Optional[Dict[str, Any]] = Field(default=None, alias="resumeState")
    debug: Optional[Dict[str, Any]] = None


class ParallelQueryResponse(BaseModel):
    """Two independent runs of the same question."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    question: str
    parallel_execution: bool = Field(default=True, alias="parallelExecution")
    executions: List[QueryResponse]


class FunctionDescription(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    data_source: str = Field(alias="dataSource")
    required_keys: List[str] = Field(alias="requiredKeys")
    optional_keys: List[str] = Field(alias="optionalKeys")
    notes: str = ""


class FunctionCatalogResponse(BaseModel):
    functions: List[FunctionDescription]
    count: int


class Scenario(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    question: str
    description: str
    expected_category: str = Field(alias="expectedCategory")
    expected_functions: List[str] = Field(alias="expectedFunctions")


class ScenarioListResponse(BaseModel):
    scenarios: List[Scenario]


class HealthResponse(BaseModel):
    """Response model for health check endpoints.

    Attributes:
        status: Health status (healthy/unhealthy/ready/not_ready)
        service: Service name
        version: Service version
        timestamp: Unix timestamp
        details: Optional additional details
    """

    status: Literal["healthy", "unhealthy", "ready", "not_ready"] = Field(
        description="Health status",
        examples=["healthy"],
    )
    service: str = Field(description="Service name", examples=["api"])
    version: str = Field(description="Service version", examples=["0.1.0"])
    timestamp: float = Field(default_factory=time.time, description="Unix timestamp")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional details")
