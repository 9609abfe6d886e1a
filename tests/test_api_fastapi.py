# tests/test_api_fastapi.py

import pytest
from fastapi.testclient import TestClient

from fastapi_app.main import app
import fastapi_app.main as main
from src.recognition import service
from src.recognition.client import RecognitionClient
from src.recognition.errors import Result, remote_error, timeout_error

client = TestClient(app)

IMAGE_FILE = {"file": ("receipt.png", b"\x89PNG fake content", "image/png")}


def test_recognize_endpoint_happy_path(monkeypatch):
    """
    Goal:
    - Simulate uploading an image to /recognize/{name} using TestClient.
    - Mock recognize_bytes() so we don't call the platform.
    - Assert we get back exactly the JSON the fake returns.
    """
    fake_response = {"log_id": 1, "words_result": [{"words": "TOTAL 12.00"}]}

    def fake_recognize(name, data, options, is_pdf=False):
        assert name == "receipt"
        assert data == b"\x89PNG fake content"
        assert options == {"probability": "true"}
        return Result.success(fake_response)

    monkeypatch.setattr(main, "recognize_bytes", fake_recognize, raising=True)

    response = client.post(
        "/recognize/receipt",
        files=IMAGE_FILE,
        data={"options": '{"probability": "true"}'},
    )

    assert response.status_code == 200
    assert response.json() == fake_response


def test_recognize_endpoint_unknown_name_returns_404():
    response = client.post("/recognize/nothing_here", files=IMAGE_FILE)

    assert response.status_code == 404
    assert response.json()["detail"] == "Unknown endpoint: nothing_here"


def test_recognize_endpoint_rejects_non_image():
    files = {"file": ("notes.txt", b"Hello", "text/plain")}

    response = client.post("/recognize/basic_general", files=files)

    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Unsupported content type: text/plain. Expected an image or PDF."
    )


def test_recognize_endpoint_empty_file_returns_400():
    files = {"file": ("empty.png", b"", "image/png")}

    response = client.post("/recognize/basic_general", files=files)

    assert response.status_code == 400
    assert response.json()["detail"] == "Uploaded file is empty."


def test_recognize_endpoint_bad_options_returns_400():
    response = client.post("/recognize/basic_general", files=IMAGE_FILE, data={"options": "{not json"})

    assert response.status_code == 400
    assert response.json()["detail"].startswith("options is not valid JSON")


def test_recognize_endpoint_caller_error_returns_400(monkeypatch):
    def fake_recognize(name, data, options, is_pdf=False):
        raise ValueError("idcard is missing required field(s): id_card_side.")

    monkeypatch.setattr(main, "recognize_bytes", fake_recognize, raising=True)

    response = client.post("/recognize/idcard", files=IMAGE_FILE)

    assert response.status_code == 400
    assert "id_card_side" in response.json()["detail"]


def test_recognize_endpoint_remote_error_returns_502_with_service_body(monkeypatch):
    payload = {"error_code": 17, "error_msg": "Open api daily request limit reached"}

    def fake_recognize(name, data, options, is_pdf=False):
        return Result.failure(remote_error(payload))

    monkeypatch.setattr(main, "recognize_bytes", fake_recognize, raising=True)

    response = client.post("/recognize/basic_general", files=IMAGE_FILE)

    assert response.status_code == 502
    assert response.json() == payload


def test_tables_endpoint_returns_result(monkeypatch):
    finished = {"result": {"ret_code": 3, "result_data": "https://example.com/t.xls"}}

    def fake_table(data, result_type):
        assert result_type.value == "excel"
        return Result.success(finished)

    monkeypatch.setattr(main, "recognize_table_bytes", fake_table, raising=True)

    response = client.post("/tables?result_type=excel", files=IMAGE_FILE)

    assert response.status_code == 200
    assert response.json() == finished


def test_tables_endpoint_timeout_returns_504(monkeypatch):
    def fake_table(data, result_type):
        return Result.failure(timeout_error(60))

    monkeypatch.setattr(main, "recognize_table_bytes", fake_table, raising=True)

    response = client.post("/tables", files=IMAGE_FILE)

    assert response.status_code == 504
    assert response.json()["error_code"] == "SDK103"


def test_table_submit_and_fetch(monkeypatch):
    monkeypatch.setattr(main, "submit_table_bytes", lambda data: Result.success("req-1"), raising=True)
    monkeypatch.setattr(
        main,
        "fetch_table_result",
        lambda request_id, result_type: Result.success({"result": {"ret_code": 1}, "id": request_id}),
        raising=True,
    )

    submitted = client.post("/tables/submit", files=IMAGE_FILE)
    fetched = client.get("/tables/req-1")

    assert submitted.status_code == 202
    assert submitted.json() == {"request_id": "req-1"}
    assert fetched.status_code == 200
    assert fetched.json() == {"result": {"ret_code": 1}, "id": "req-1"}


def test_list_endpoints_only_shows_upload_capable_ones():
    response = client.get("/endpoints")

    body = response.json()
    assert response.status_code == 200
    assert "basic_general" in body["ocr"]
    assert "table_result_get" not in body["ocr"]
    assert "text_censor" not in body.get("content_censor", [])


def test_health_check():
    """
    /health should return 200 and a simple JSON status.
    """
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.fixture
def live_transport(monkeypatch, scripted_transport, settings):
    """Runs the real service layer against a scripted transport."""
    transport = scripted_transport([{"log_id": 1, "words_result": {}}], settings)
    monkeypatch.setattr(service, "_client", RecognitionClient(settings, transport), raising=True)
    return transport


def test_recognize_required_field_in_options_reaches_service(live_transport):
    response = client.post(
        "/recognize/idcard",
        files=IMAGE_FILE,
        data={"options": '{"id_card_side": "front"}'},
    )

    assert response.status_code == 200
    assert live_transport.requests[0].fields["id_card_side"] == "front"


def test_recognize_pdf_upload_goes_in_pdf_field(live_transport):
    files = {"file": ("invoice.pdf", b"%PDF-1.4", "application/pdf")}

    response = client.post("/recognize/vat_invoice", files=files)

    assert response.status_code == 200
    assert live_transport.requests[0].fields == {"pdf_file": "JVBERi0xLjQ="}


def test_recognize_pdf_upload_to_image_only_endpoint_returns_400(live_transport):
    files = {"file": ("invoice.pdf", b"%PDF-1.4", "application/pdf")}

    response = client.post("/recognize/basic_general", files=files)

    assert response.status_code == 400
    assert response.json()["detail"] == "basic_general does not accept pdf input."
    assert live_transport.requests == []


def test_tables_endpoint_rejects_pdf():
    files = {"file": ("table.pdf", b"%PDF-1.4", "application/pdf")}

    response = client.post("/tables", files=files)

    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Unsupported content type: application/pdf. Expected an image."
    )
