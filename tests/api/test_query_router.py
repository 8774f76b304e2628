import pytest
from fastapi.testclient import TestClient

from api.main import app
from api.orchestrators.query_orchestrator import get_orchestrator
from tests.support import FUZZY_EXTRACTION, SCENARIO_A_PLAN

# --- Test Setup ---


@pytest.fixture
def client_for(make_orchestrator):
    """Build a TestClient whose orchestrator answers from ``script``."""

    def _client(script, confirmation_mode="user"):
        orchestrator, _ = make_orchestrator(script, confirmation_mode)
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()


# --- Test Cases ---


def test_query_success_with_debug(client_for, scenario_b_script):
    client = client_for(scenario_b_script)

    response = client.post("/api/v1/query", json={"question": "IRR above 12% in 2024?", "debug": True})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["response"].startswith("In 2024")
    assert "error" not in body
    debug = body["debug"]
    assert debug["functionsUsed"] == ["getFinancialMetricsByFilter"]
    assert debug["status"] == "done"
    assert debug["plan"]["requiredFunctions"][0]["parameters"]["threshold"] == 0.12
    result = debug["retrievalResults"][0]["result"]
    assert [p["productCode"] for p in result["data"]["products"]] == ["PROD-001", "PROD-004"]
    assert result["resultCount"] == 2
    assert set(debug) >= {
        "extractedEntities", "resolvedEntities", "confirmedEntities", "plan",
        "functionsUsed", "retrievalResults", "status", "elapsedMs",
    }


def test_query_without_debug_omits_payload(client_for, scenario_a_script):
    client = client_for(scenario_a_script)

    body = client.post("/api/v1/query", json={"question": "갑상선암 발생률을 바꾸면?"}).json()

    assert body["success"] is True
    assert "debug" not in body


def test_parallel_execution_returns_both_branches(client_for, scenario_a_script):
    client = client_for(scenario_a_script)

    response = client.post("/api/v1/query", json={"question": "갑상선암 발생률을 바꾸면?", "executeInParallel": True})

    assert response.status_code == 200
    body = response.json()
    assert body["parallelExecution"] is True
    assert body["success"] is True
    assert body["question"] == "갑상선암 발생률을 바꾸면?"
    assert len(body["executions"]) == 2
    for execution in body["executions"]:
        assert execution["debug"]["functionsUsed"] == ["getProductsAffectedByAssumption"]


def test_missing_info_response(client_for):
    client = client_for({
        "entity_extraction": {"other_terms": ["IRR"]},
        "query_planning": {"intent": "x", "requiredFunctions": [], "missingInfo": ["year"]},
    })

    body = client.post("/api/v1/query", json={"question": "What was the IRR?"}).json()

    assert body["success"] is False
    assert body["needsMoreInfo"] is True
    assert body["missingInfo"] == ["year"]
    assert body["errorCode"] == "MISSING_ENTITY"


def test_failed_run_reports_error(client_for):
    client = client_for({"entity_extraction": "not json"})

    body = client.post("/api/v1/query", json={"question": "q"}).json()

    assert body["success"] is False
    assert body["errorCode"] == "EXTRACTION_FAILED"
    assert body["error"]


@pytest.mark.parametrize("payload", [{}, {"question": "   "}, {"question": "x" * 2001}])
def test_invalid_request_body(client_for, payload):
    client = client_for({})
    assert client.post("/api/v1/query", json=payload).status_code == 422


def test_confirmation_round_trip(client_for):
    client = client_for({
        "entity_extraction": FUZZY_EXTRACTION,
        "query_planning": SCENARIO_A_PLAN,
        "response_synthesis": "answer",
    })

    paused = client.post("/api/v1/query", json={"question": "thyroid products in 2024"}).json()

    assert paused["success"] is True
    assert paused["awaitingConfirmation"] is True
    assert paused["pendingMatches"] == [{
        "entityType": "assumption",
        "matchedTerm": "thyroid",
        "code": "C51",
        "primaryName": "Thyroid Cancer Incidence Rate",
        "confidence": 0.7,
        "matchType": "fuzzy",
    }]

    resumed = client.post("/api/v1/query/confirm", json={
        "state": paused["resumeState"],
        "decisions": [{"entityType": "assumption", "matchedTerm": "thyroid", "confirmed": True}],
        "debug": True,
    })

    assert resumed.status_code == 200
    body = resumed.json()
    assert body["success"] is True
    assert body["response"] == "answer"
    assert body["debug"]["status"] == "done"
    assert "C51" in [m["code"] for m in body["debug"]["confirmedEntities"]]


def test_confirm_rejects_state_that_is_not_paused(client_for, scenario_b_script):
    client = client_for(scenario_b_script)
    done_state = {"question": "q", "status": "done"}

    response = client.post("/api/v1/query/confirm", json={"state": done_state, "decisions": []})

    assert response.status_code == 400


def test_confirm_rejects_malformed_state(client_for):
    client = client_for({})

    response = client.post("/api/v1/query/confirm", json={"state": {"status": "nonsense"}, "decisions": []})

    assert response.status_code == 422


def test_function_catalogue(client_for):
    client = client_for({})

    body = client.get("/api/v1/functions").json()

    assert body["count"] == 11
    by_name = {f["name"]: f for f in body["functions"]}
    assert by_name["getFinancialMetricsByFilter"]["requiredKeys"] == ["metricType", "year"]
    assert by_name["getAssumptionsByProduct"]["dataSource"] == "explicit_memory"


def test_scenarios(client_for):
    client = client_for({})

    scenarios = client.get("/api/v1/scenarios").json()["scenarios"]

    assert [s["id"] for s in scenarios] == ["A", "B", "C"]
    assert scenarios[0]["expectedFunctions"] == ["getProductsAffectedByAssumption"]


def test_health_probes():
    client = TestClient(app)
    assert client.get("/healthz").json()["status"] == "healthy"
    assert client.get("/readyz").json()["status"] == "ready"
