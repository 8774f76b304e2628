"""
Pytest configuration and fixtures for the product insight tests.

Provides shared fixtures for:
- The bundled data context (vocabulary, explicit memory, statistics)
- Orchestrator construction over a scripted oracle
- Canned oracle scripts for the two reference scenarios
"""

from typing import Any, Dict

import pytest

from api.orchestrators.query_orchestrator import QueryOrchestrator
from api.tools.retrieval_registry import RetrievalFunctionRegistry
from libs.common.settings import DEFAULT_DATA_DIR, get_settings
from libs.stores.context import load_data_context
from tests.support import (
    SCENARIO_A_EXTRACTION,
    SCENARIO_A_PLAN,
    SCENARIO_B_EXTRACTION,
    SCENARIO_B_PLAN,
    ScriptedOracle,
)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("INSIGHT_APP_ENV", "test")
    monkeypatch.delenv("INSIGHT_DATA_DIR", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def data_context():
    """Data context loaded from the bundled JSON files."""
    return load_data_context(DEFAULT_DATA_DIR)


@pytest.fixture
def registry(data_context):
    return RetrievalFunctionRegistry(data_context)


@pytest.fixture
def make_orchestrator(data_context):
    """Factory: ``make_orchestrator(script, confirmation_mode="user")`` → (orchestrator, oracle)."""

    def _make(script: Dict[str, Any], confirmation_mode: str = "user"):
        oracle = ScriptedOracle(script)
        return QueryOrchestrator(data_context, oracle, confirmation_mode=confirmation_mode), oracle

    return _make


@pytest.fixture
def scenario_a_script():
    return {
        "entity_extraction": SCENARIO_A_EXTRACTION,
        "query_planning": SCENARIO_A_PLAN,
        "response_synthesis": "Three products use C51: PROD-001, PROD-002 and PROD-004.",
    }


@pytest.fixture
def scenario_b_script():
    return {
        "entity_extraction": SCENARIO_B_EXTRACTION,
        "query_planning": SCENARIO_B_PLAN,
        "response_synthesis": "In 2024, PROD-001 (13.5%) and PROD-004 (12.8%) had an IRR above 12%.",
    }
