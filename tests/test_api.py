"""API endpoint tests for Spiral Staircase Studio.

Tests all FastAPI endpoints using the TestClient for synchronous testing.
Validates response codes, data integrity, and error handling.
"""
import pytest

from fastapi.testclient import TestClient
from api import app


client = TestClient(app)


# ===========================================================================
# FIXTURES
# ===========================================================================

CLEAN_CONFIG = {
    "center_pole_diameter": 10.75,
    "overall_height": 144.0,
    "outside_diameter": 72.0,
    "total_rotation": 450.0,
    "direction": "clockwise",
}

TALL_CONFIG = dict(CLEAN_CONFIG, overall_height=160.0, total_rotation=540.0)


# ===========================================================================
# GET /defaults
# ===========================================================================

class TestDefaults:
    def test_defaults_returns_200(self):
        r = client.get("/defaults")
        assert r.status_code == 200

    def test_defaults_has_expected_keys(self):
        data = client.get("/defaults").json()
        for key in ["center_pole_diameter", "overall_height", "outside_diameter",
                    "total_rotation", "direction"]:
            assert key in data["config"], f"Missing key: {key}"

    def test_defaults_lists_stock_diameters(self):
        stock = client.get("/defaults").json()["stock_diameters"]
        assert stock[0] == {"diameter": 3.0, "label": "3 (tube)"}
        assert len(stock) == 12


# ===========================================================================
# POST /validate
# ===========================================================================

class TestValidate:
    def test_ok(self):
        data = client.post("/validate", json=CLEAN_CONFIG).json()
        assert data["ok"] is True
        assert data["derived"]["number_of_treads"] == 19
        assert data["clearances"] == []

    def test_empty_body_uses_defaults(self):
        """Default inputs pass the ranges but not the walkline width."""
        data = client.post("/validate", json={}).json()
        assert data["ok"] is True
        assert [v["kind"] for v in data["clearances"]] == ["walkline_width_too_narrow"]

    def test_fatal_violations_are_data(self):
        r = client.post("/validate", json=dict(CLEAN_CONFIG, overall_height=400.0))
        assert r.status_code == 200
        data = r.json()
        assert data["ok"] is False
        assert data["derived"] is None
        assert data["violations"][0]["kind"] == "height_out_of_range"
        assert data["violations"][0]["fatal"] is True

    def test_non_positive_input_is_422(self):
        r = client.post("/validate", json=dict(CLEAN_CONFIG, outside_diameter=-1))
        assert r.status_code == 422

    def test_bad_direction_is_422(self):
        r = client.post("/validate", json=dict(CLEAN_CONFIG, direction="sideways"))
        assert r.status_code == 422


# ===========================================================================
# POST /repair
# ===========================================================================

class TestRepair:
    def test_no_decisions_ignores(self):
        data = client.post("/repair", json={}).json()
        assert data["status"] == "ready"
        assert [v["kind"] for v in data["ignored"]] == ["walkline_width_too_narrow"]
        assert data["transitions"][-1] == "ready"

    def test_accept_fix(self):
        body = {"decisions": [{"action": "accept", "choice": 0}]}
        data = client.post("/repair", json=body).json()
        assert data["spec"]["center_pole_diameter"] == 10.75
        assert data["actions"][0]["field"] == "center_pole_diameter"
        assert data["ignored"] == []

    def test_mid_landing(self):
        body = {"config": TALL_CONFIG, "decisions": [{"action": "place_landing", "choice": 8}]}
        data = client.post("/repair", json=body).json()
        assert data["status"] == "ready"
        assert data["mid_landing_index"] == 7

    def test_abort(self):
        body = {"decisions": [{"action": "abort"}]}
        data = client.post("/repair", json=body).json()
        assert data["status"] == "aborted"
        assert data["spec"] is None

    def test_default_decision(self):
        body = {"default_decision": {"action": "abort"}}
        assert client.post("/repair", json=body).json()["status"] == "aborted"

    def test_rejected(self):
        body = {"config": dict(CLEAN_CONFIG, total_rotation=45.0)}
        data = client.post("/repair", json=body).json()
        assert data["status"] == "rejected"
        assert data["violations"][0]["kind"] == "rotation_out_of_range"

    def test_invalid_decision_is_400(self):
        body = {"config": TALL_CONFIG, "decisions": [{"action": "place_landing", "choice": 21}]}
        r = client.post("/repair", json=body)
        assert r.status_code == 400

    def test_unknown_action_is_422(self):
        r = client.post("/repair", json={"decisions": [{"action": "maybe"}]})
        assert r.status_code == 422

    def test_snap_pole(self):
        body = {"config": {"snap_center_pole": True}}
        data = client.post("/repair", json=body).json()
        assert data["spec"]["center_pole_diameter"] == 5.56


# ===========================================================================
# POST /geometry
# ===========================================================================

class TestGeometry:
    def test_returns_placements_and_summary(self):
        data = client.post("/geometry", json={"config": CLEAN_CONFIG}).json()
        assert len(data["placements"]) == 20
        assert data["placements"][0]["kind"] == "center_pole"
        assert data["placements"][-1]["kind"] == "top_landing_panel"
        assert data["summary"]["number_of_treads"] == 19
        assert data["summary"]["center_pole_stock"] == "10.75 (10in. pipe)"

    def test_outline_segments(self):
        body = {"config": dict(CLEAN_CONFIG, arc_segments=4)}
        data = client.post("/geometry", json=body).json()
        assert len(data["placements"][1]["outline"]) == 10
        assert len(data["placements"][-1]["outline"]) == 4

    def test_with_mid_landing(self):
        body = {"config": TALL_CONFIG, "decisions": [{"action": "accept"}]}
        data = client.post("/geometry", json=body).json()
        kinds = [p["kind"] for p in data["placements"]]
        assert len(kinds) == 22
        assert kinds.count("mid_landing_sector") == 1
        assert data["summary"]["mid_landing"] == "Yes at tread 11"

    def test_aborted_has_no_placements(self):
        body = {"decisions": [{"action": "abort"}]}
        data = client.post("/geometry", json=body).json()
        assert data["outcome"]["status"] == "aborted"
        assert data["placements"] == []
        assert data["summary"] is None


# ===========================================================================
# POST /derive
# ===========================================================================

class TestDerive:
    def test_scenario_a(self):
        data = client.post("/derive", json={}).json()
        assert data["number_of_treads"] == 19
        assert data["tread_clear_width"] == pytest.approx(31.69)
