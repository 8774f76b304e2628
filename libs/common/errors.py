"""Error taxonomy for the query understanding pipeline.

Every pipeline error carries a stable ``code`` so the HTTP layer and the
debug payload can report failures without inspecting exception classes.
"""

from __future__ import annotations

from typing import List, Optional


class PipelineError(Exception):
    """Base class for pipeline errors."""

    code = "PIPELINE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class OracleError(PipelineError):
    """The generative oracle call raised."""

    code = "ORACLE_ERROR"


class OracleTimeout(OracleError):
    """The generative oracle did not answer within its time budget."""

    code = "ORACLE_TIMEOUT"


class ExtractionFailed(PipelineError):
    """Entity extraction returned no parseable structure."""

    code = "EXTRACTION_FAILED"


class PlanningFailed(PipelineError):
    """Planning returned no parseable or valid plan."""

    code = "PLANNING_FAILED"


class MissingEntity(PipelineError):
    """The planner reported information the question does not provide."""

    code = "MISSING_ENTITY"

    def __init__(self, missing_info: List[str], message: Optional[str] = None):
        self.missing_info = list(missing_info)
        super().__init__(message or "Additional information required: " + ", ".join(self.missing_info))


class UnknownFunction(PipelineError):
    """A plan referenced a function that is not in the registry."""

    code = "UNKNOWN_FUNCTION"

    def __init__(self, function_name: str):
        self.function_name = function_name
        super().__init__(f"Function {function_name} not found")


class RetrievalError(PipelineError):
    """A requested key does not exist in a data store."""

    code = "RETRIEVAL_ERROR"


class SynthesisFailed(PipelineError):
    """The final oracle call errored."""

    code = "SYNTHESIS_FAILED"


class InvalidResumeState(PipelineError):
    """A resume request carried a state that is not awaiting confirmation."""

    code = "INVALID_RESUME_STATE"
