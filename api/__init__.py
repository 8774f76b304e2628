"""Product Insight API Service.

This package contains the FastAPI application and the query pipeline
behind it.

Main components:
- main.py: FastAPI application with endpoints
- models.py: Pydantic models for requests and responses
- orchestrators/: LangGraph query pipeline
- tools/: retrieval function registry
- llm/: generative oracle adapter
"""

# Avoid importing heavy modules (e.g., FastAPI app) at package import time to
# prevent side effects when tools import `api.*`.
__all__ = []
