# tests/test_service.py

import pytest

from src.recognition import service
from src.recognition.client import RecognitionClient
from src.recognition.errors import ErrorKind, cancelled_error, io_error, remote_error, timeout_error
from src.recognition.http_errors import http_status_for


def install_client(monkeypatch, scripted_transport, settings, responses):
    transport = scripted_transport(responses, settings)
    monkeypatch.setattr(service, "_client", RecognitionClient(settings, transport), raising=True)
    return transport


def test_recognize_bytes_happy_path(monkeypatch, scripted_transport, settings):
    """
    recognize_bytes() should forward the bytes to the named endpoint and hand
    back the service's JSON untouched.
    """
    response = {"log_id": 3, "result": [{"keyword": "cat", "score": 0.9}]}
    transport = install_client(monkeypatch, scripted_transport, settings, [response])

    result = service.recognize_bytes("advanced_general", b"fake-image", {"baike_num": 1})

    assert result.value == response
    assert transport.requests[0].endpoint.endswith("/image-classify/v2/advanced_general")
    assert transport.requests[0].fields["baike_num"] == 1


def test_recognize_bytes_as_pdf(monkeypatch, scripted_transport, settings):
    transport = install_client(monkeypatch, scripted_transport, settings, [{"log_id": 4}])

    result = service.recognize_bytes("vat_invoice", b"%PDF-1.4", is_pdf=True)

    assert result.ok
    assert list(transport.requests[0].fields) == ["pdf_file"]


def test_recognize_table_bytes_runs_the_job(monkeypatch, scripted_transport, settings):
    transport = install_client(monkeypatch, scripted_transport, settings, [
        {"result": [{"request_id": "r1"}]},
        {"result": {"ret_code": 3}},
    ])

    result = service.recognize_table_bytes(b"table", "json")

    assert result.value == {"result": {"ret_code": 3}}
    assert len(transport.requests) == 2


def test_submit_and_fetch_table(monkeypatch, scripted_transport, settings):
    install_client(monkeypatch, scripted_transport, settings, [
        {"result": [{"request_id": "r1"}]},
        {"result": {"ret_code": 1}},
    ])

    assert service.submit_table_bytes(b"table").value == "r1"
    assert service.fetch_table_result("r1").value == {"result": {"ret_code": 1}}


@pytest.mark.parametrize(
    "call",
    [
        lambda: service.recognize_bytes("basic_general", b""),
        lambda: service.recognize_table_bytes(b""),
        lambda: service.submit_table_bytes(b""),
    ],
)
def test_empty_bytes_raise(call):
    with pytest.raises(ValueError):
        call()


@pytest.mark.parametrize(
    "error, status",
    [
        (io_error("nope"), 400),
        (remote_error({"error_code": 17, "error_msg": "quota"}), 502),
        (timeout_error(5), 504),
        (cancelled_error(), 503),
    ],
)
def test_http_status_for(error, status):
    assert http_status_for(error) == status
    assert error.kind in ErrorKind
