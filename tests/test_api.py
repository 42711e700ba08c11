"""Tests for the HTTP surface."""
import pytest
from fastapi.testclient import TestClient

from pipeline_engine.main import app


@pytest.fixture
def client():
    """Test client for the FastAPI app."""
    return TestClient(app)


def test_health(client):
    """Health check reports healthy."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestSynthesizeEndpoint:
    """Test suite for POST /api/synthesize."""

    def test_synthesize_returns_graph(self, client, saas_payload):
        """A valid payload answers 200 with the graph."""
        response = client.post("/api/synthesize", json={"payload": saas_payload})

        assert response.status_code == 200
        body = response.json()
        assert [s["id"] for s in body["graph"]["stages"]] == ["stage-1", "stage-2", "stage-3"]
        assert body["dropped_assignments"] == []

    def test_reports_dropped_assignments(self, client, saas_payload):
        """Dropped assignments are listed in the response."""
        saas_payload["stage_agent_assignments"] = {"5": "Nonexistent Agent"}

        response = client.post("/api/synthesize", json={"payload": saas_payload})

        body = response.json()
        assert response.status_code == 200
        assert body["graph"]["assignments"] == {}
        assert body["dropped_assignments"][0]["stage_level"] == "5"

    def test_missing_stages_is_422(self, client, saas_payload):
        """A payload without stages answers 422 naming the field."""
        del saas_payload["stages"]

        response = client.post("/api/synthesize", json={"payload": saas_payload})

        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "stages"

    def test_custom_layout(self, client, saas_payload):
        """Request layout parameters override the defaults."""
        response = client.post(
            "/api/synthesize",
            json={
                "payload": saas_payload,
                "layout": {"stage_spacing_px": 150, "agent_offset_px": 250},
            },
        )

        stages = response.json()["graph"]["stages"]
        assert stages[2]["coordinates"] == {"x": 300, "y": 0}


class TestActionsEndpoint:
    """Test suite for POST /api/actions."""

    def test_apply_action(self, client, saas_graph):
        """An accepted action answers 200 with the new graph."""
        response = client.post(
            "/api/actions",
            json={
                "graph": saas_graph.model_dump(mode="json"),
                "action": {"type": "add_stage", "payload": {"name": "Nurture", "position": 1}},
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert [s["name"] for s in body["graph"]["stages"]][1] == "Nurture"
        assert len(body["changed"]) == 3

    def test_rejected_action_is_409(self, client, saas_graph):
        """A rejected action answers 409 with the error type."""
        response = client.post(
            "/api/actions",
            json={
                "graph": saas_graph.model_dump(mode="json"),
                "action": {
                    "type": "assign_agent",
                    "payload": {"agentName": "Aria", "stageName": "Nowhere", "role": "primary"},
                },
            },
        )

        assert response.status_code == 409
        assert response.json()["detail"]["error_type"] == "UnknownStageError"

    def test_graph_with_levels_out_of_order_is_422(self, client, saas_graph):
        """A caller graph whose ranking runs against its levels is refused."""
        graph = saas_graph.model_dump(mode="json")
        graph["stages"][0]["level"] = 9

        response = client.post(
            "/api/actions",
            json={
                "graph": graph,
                "action": {"type": "add_stage", "payload": {"name": "Mid", "position": 1}},
            },
        )

        assert response.status_code == 422


def test_layout_endpoint(client, saas_graph):
    """The layout endpoint re-lays out the given graph."""
    response = client.post(
        "/api/layout",
        json={
            "graph": saas_graph.model_dump(mode="json"),
            "layout": {"stage_spacing_px": 300, "agent_offset_px": 500},
        },
    )

    graph = response.json()["graph"]
    assert graph["stages"][1]["coordinates"] == {"x": 300, "y": 0}
    assert graph["agent_slots"]["stage-3"] == {"x": 600, "y": 500}
