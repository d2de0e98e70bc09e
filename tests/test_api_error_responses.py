from fastapi.testclient import TestClient

from app.deps import get_history
from app.main import app
from core.errors import ServerMisconfigured

MISSING_ID = "00000000-0000-0000-0000-000000000001"


def _client() -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


def test_not_found_carries_error_meta_and_echoes_request_id():
    response = _client().get(
        f"/api/v1/ocr/results/{MISSING_ID}",
        headers={"X-Request-Id": "rid-404"},
    )

    assert response.status_code == 404
    body = response.json()
    assert body["detail"] == f"Result not found: {MISSING_ID}"
    assert body["error"] == {
        "code": "HTTP_404",
        "message": f"Result not found: {MISSING_ID}",
        "request_id": "rid-404",
    }
    assert response.headers["x-request-id"] == "rid-404"


def test_request_id_is_generated_when_absent():
    response = _client().put(f"/api/v1/ocr/results/{MISSING_ID}/text", json={})

    assert response.status_code == 422
    body = response.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["message"] == "Request validation failed"
    assert isinstance(body["detail"], list)
    assert body["error"]["request_id"]
    assert response.headers["x-request-id"] == body["error"]["request_id"]


def test_service_error_uses_its_code_and_status():
    def _misconfigured():
        raise ServerMisconfigured("history backend unavailable")

    app.dependency_overrides[get_history] = _misconfigured

    response = _client().get("/api/v1/ocr/results")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "configuration_error"
    assert response.json()["error"]["message"] == "history backend unavailable"


def test_unexpected_exception_is_sanitized():
    class _ExplodingHistory:
        def list(self):
            raise RuntimeError("secret internals")

    app.dependency_overrides[get_history] = lambda: _ExplodingHistory()

    response = _client().get("/api/v1/ocr/results", headers={"X-Request-Id": "rid-500"})

    assert response.status_code == 500
    body = response.json()
    assert body["detail"] == "Internal server error"
    assert body["error"]["code"] == "INTERNAL_SERVER_ERROR"
    assert body["error"]["request_id"] == "rid-500"
    assert "secret internals" not in response.text
