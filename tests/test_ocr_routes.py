import cv2
import numpy as np
from fastapi.testclient import TestClient

from app.deps import get_engine_factory, get_history
from app.main import app
from core.history import ResultHistory
from core.vision.ocr import MockRecognitionEngine


def _png_bytes() -> bytes:
    ok, encoded = cv2.imencode(".png", np.full((8, 8, 3), 255, dtype=np.uint8))
    assert ok
    return encoded.tobytes()


def _client(engine_factory=None, history=None):
    history = history or ResultHistory()
    app.dependency_overrides[get_engine_factory] = lambda: engine_factory or (
        lambda: MockRecognitionEngine(text="Hello World. Second line!", confidence=93.0)
    )
    app.dependency_overrides[get_history] = lambda: history
    return TestClient(app), history


def _upload(client, **form):
    return client.post(
        "/api/v1/ocr",
        files={"file": ("scan.png", _png_bytes(), "image/png")},
        data=form,
    )


def test_upload_returns_result_and_stores_it():
    client, history = _client()

    response = _upload(client, language="eng", page_seg_mode="6")

    assert response.status_code == 200
    payload = response.json()
    assert payload["text"] == "Hello World. Second line!"
    assert payload["confidence"] == 93.0
    assert payload["word_count"] == 4
    assert payload["language"] == "eng"
    assert payload["image_name"] == "scan.png"
    assert len(history) == 1

    listed = client.get("/api/v1/ocr/results").json()
    assert [item["result_id"] for item in listed] == [payload["result_id"]]

    fetched = client.get(f"/api/v1/ocr/results/{payload['result_id']}").json()
    assert fetched["text"] == payload["text"]


def test_upload_passes_settings_to_engine():
    engines = []

    def factory():
        engine = MockRecognitionEngine()
        engines.append(engine)
        return engine

    client, _ = _client(engine_factory=factory)

    response = _upload(client, language="fra", page_seg_mode="7", whitelist="ABC")

    assert response.status_code == 200
    assert engines[0].language == "fra"
    assert engines[0].parameters["tessedit_pageseg_mode"] == 7
    assert engines[0].parameters["tessedit_char_whitelist"] == "ABC"
    assert engines[0].terminate_calls == 1


def test_empty_upload_is_rejected():
    client, history = _client()

    response = client.post(
        "/api/v1/ocr", files={"file": ("empty.png", b"", "image/png")}
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Uploaded file is empty"
    assert len(history) == 0


def test_out_of_range_page_segmentation_mode_is_rejected():
    client, _ = _client()

    response = _upload(client, page_seg_mode="99")

    assert response.status_code == 422
    assert isinstance(response.json()["detail"], list)


def test_recognition_failure_returns_structured_error():
    class _BrokenEngine(MockRecognitionEngine):
        async def recognize(self, image):
            raise RuntimeError("engine crashed")

    engines = []

    def factory():
        engine = _BrokenEngine()
        engines.append(engine)
        return engine

    client, history = _client(engine_factory=factory)

    response = _upload(client, job_id="job-1")

    assert response.status_code == 422
    payload = response.json()
    assert payload["error"]["code"] == "recognition_failed"
    assert "engine crashed" in payload["error"]["message"]
    assert payload["detail"]["job_id"] == "job-1"
    assert engines[0].terminate_calls == 1
    assert len(history) == 0


def test_unknown_result_is_404():
    client, _ = _client()

    response = client.get("/api/v1/ocr/results/00000000-0000-0000-0000-000000000000")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "HTTP_404"


def test_edit_text_then_analytics_and_download():
    client, _ = _client()
    result_id = _upload(client).json()["result_id"]

    edited = client.put(
        f"/api/v1/ocr/results/{result_id}/text",
        json={"text": "One two three.\n\nFour five."},
    )
    assert edited.status_code == 200
    assert edited.json()["word_count"] == 5

    stats = client.get(f"/api/v1/ocr/results/{result_id}/analytics").json()
    assert stats["words"] == 5
    assert stats["sentences"] == 2
    assert stats["paragraphs"] == 2
    assert stats["confidence_label"] == "Excellent"

    download = client.get(f"/api/v1/ocr/results/{result_id}/download")
    assert download.status_code == 200
    assert download.text == "One two three.\n\nFour five."
    disposition = download.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="extracted-text-')
    assert disposition.endswith('.txt"')


def test_edit_unknown_result_is_404():
    client, _ = _client()

    response = client.put(
        "/api/v1/ocr/results/00000000-0000-0000-0000-000000000000/text",
        json={"text": "x"},
    )

    assert response.status_code == 404


def test_options_lists_languages_and_modes():
    client, _ = _client()

    payload = client.get("/api/v1/ocr/options").json()

    codes = [lang["code"] for lang in payload["languages"]]
    assert "eng" in codes and "chi_sim" in codes
    assert payload["default_language"] == "eng"
    assert {mode["value"] for mode in payload["ocr_engine_modes"]} == {0, 1, 2, 3}
    assert 3 in {mode["value"] for mode in payload["page_seg_modes"]}
