"""REST API tests.

These drive the FastAPI app through TestClient the way an HTTP client would,
against a temporary design document.

Run with: pytest tests/test_web_server.py -v
"""

import pytest
from conftest import make_feature, make_term
from fastapi.testclient import TestClient

from design_kb.config import Settings
from design_kb.web_server import create_app


@pytest.fixture
def client(data_file):
    """Create test client on a temp design document."""
    app = create_app(Settings(mode="rest", data_file=data_file))
    return TestClient(app)


def assert_error_envelope(response, status_code: int, error: str):
    assert response.status_code == status_code
    body = response.json()
    assert body["error"] == error
    assert body["message"]
    assert "timestamp" in body
    return body


class TestEndToEnd:
    """The full lifecycle of one feature over HTTP."""

    def test_checkout_lifecycle(self, client):
        created = client.post("/api/features", json={"feature": make_feature("Checkout")})
        assert created.status_code == 201
        assert created.json()["success"] is True
        assert created.json()["data"] == {"featureName": "Checkout", "isUpdate": False}

        changed = make_feature("Checkout")
        changed["feature"]["purpose"] = "Take payment for a cart."
        updated = client.post("/api/features", json={"feature": changed})
        assert updated.status_code == 200
        assert updated.json()["data"]["isUpdate"] is True

        listed = client.get("/api/resources/features")
        assert listed.status_code == 200
        assert listed.json()["data"] == [{"name": "Checkout", "purpose": "Take payment for a cart."}]

        deleted = client.delete("/api/features/Checkout")
        assert deleted.status_code == 200
        assert deleted.json()["data"] == {"featureName": "Checkout", "deleted": True}

        again = client.delete("/api/features/Checkout")
        assert_error_envelope(again, 404, "Not Found")


class TestFeatures:
    def test_missing_wrapper_is_400(self, client):
        response = client.post("/api/features", json={"term": make_term()})
        body = assert_error_envelope(response, 400, "Validation Error")
        assert body["message"] == "No feature data was provided"

    def test_unwrapped_record_is_400(self, client):
        # The bare record's own "feature" section is taken as the wrapper
        response = client.post("/api/features", json=make_feature())
        body = assert_error_envelope(response, 400, "Validation Error")
        assert body["message"] == "'feature' must be an object"

    def test_invalid_record_is_400(self, client):
        payload = make_feature()
        payload["coreLogicSteps"][1]["stepNumber"] = 1
        response = client.post("/api/features", json={"feature": payload})
        body = assert_error_envelope(response, 400, "Validation Error")
        assert "duplicate stepNumber 1" in body["message"]

    def test_malformed_json_is_400(self, client):
        response = client.post(
            "/api/features",
            content=b"{broken",
            headers={"Content-Type": "application/json"},
        )
        assert_error_envelope(response, 400, "Validation Error")

    def test_invalid_delete_name_is_400(self, client):
        response = client.delete("/api/features/9lives")
        assert_error_envelope(response, 400, "Validation Error")

    def test_storage_failure_is_500(self, client, write_document):
        write_document("{")
        response = client.post("/api/features", json={"feature": make_feature()})
        body = assert_error_envelope(response, 500, "Execution Error")
        assert "Failed to load design document" in body["message"]


class TestTerms:
    def test_term_lifecycle(self, client):
        created = client.post("/api/terms", json={"term": make_term("注文")})
        assert created.status_code == 201
        assert created.json()["data"] == {"termName": "注文", "isUpdate": False}

        assert client.post("/api/terms", json={"term": make_term("注文")}).status_code == 200

        listed = client.get("/api/resources/terms").json()["data"]
        assert [t["name"] for t in listed] == ["注文"]

        assert client.delete("/api/terms/注文").status_code == 200
        assert_error_envelope(client.delete("/api/terms/注文"), 404, "Not Found")


class TestDetails:
    def test_partial_lookup(self, client):
        client.post("/api/features", json={"feature": make_feature("Checkout")})
        response = client.post(
            "/api/details",
            json={"featureNames": ["Checkout", "Refund"], "termNames": []},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert [f["feature"]["name"] for f in data["features"]] == ["Checkout"]
        assert data["notFound"] == {"featureNames": ["Refund"], "termNames": []}

    def test_wrong_types_are_400(self, client):
        response = client.post("/api/details", json={"featureNames": "Checkout"})
        assert_error_envelope(response, 400, "Validation Error")

    def test_non_object_body_is_400(self, client):
        response = client.post("/api/details", json=["Checkout"])
        assert_error_envelope(response, 400, "Validation Error")


class TestResourcesAndHealth:
    def test_statistics(self, client):
        client.post("/api/features", json={"feature": make_feature()})
        client.post("/api/terms", json={"term": make_term()})
        body = client.get("/api/resources/statistics").json()
        assert body["success"] is True
        assert body["data"] == {"featureCount": 1, "termCount": 1}

    def test_repository_failure_is_500(self, client, write_document):
        write_document("oops")
        response = client.get("/api/resources/features")
        assert_error_envelope(response, 500, "Repository Error")

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["details"] == {"featureRepository": True, "termRepository": True}
        assert body["version"] == "1.0.0"
        assert body["uptime"] >= 0

    def test_unhealthy_is_503(self, client, write_document):
        write_document("{")
        response = client.get("/api/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"


class TestRouting:
    def test_index(self, client):
        body = client.get("/").json()
        assert body["name"] == "design-kb"
        assert "POST /api/features" in body["endpoints"]

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")
        body = assert_error_envelope(response, 404, "Not Found")
        assert body["message"] == "Endpoint GET /api/nothing-here was not found"

    def test_cors_headers(self, client):
        response = client.get("/api/health", headers={"Origin": "http://example.test"})
        assert response.headers["access-control-allow-origin"] in ("*", "http://example.test")
