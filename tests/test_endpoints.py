import pytest

from src.recognition.endpoints import ENDPOINTS, InputVariant, get_endpoint
from src.recognition.jobs import TABLE_RECOGNITION
from src.recognition.request import BodyEncoding


def test_every_endpoint_path_is_absolute():
    for endpoint in ENDPOINTS.values():
        assert endpoint.path.startswith("/"), endpoint.name


def test_url_joins_base_without_double_slash():
    endpoint = get_endpoint("basic_general")

    assert endpoint.url("https://aip.test/") == "https://aip.test/rest/2.0/ocr/v1/general_basic"


def test_table_family_endpoints_exist():
    submit = get_endpoint(TABLE_RECOGNITION.submit_endpoint)
    poll = get_endpoint(TABLE_RECOGNITION.poll_endpoint)

    assert submit.accepts(InputVariant.BYTES)
    assert not poll.variants
    assert poll.required == ("request_id",)


def test_pdf_capable_endpoints():
    assert get_endpoint("vat_invoice").accepts(InputVariant.PDF)
    assert not get_endpoint("basic_general").accepts(InputVariant.PDF)


def test_json_bodies():
    assert get_endpoint("combination").encoding is BodyEncoding.JSON
    assert get_endpoint("report").encoding is BodyEncoding.JSON
    assert get_endpoint("general").encoding is BodyEncoding.FORM


def test_unknown_endpoint_lists_known_names():
    with pytest.raises(KeyError) as excinfo:
        get_endpoint("nope")

    assert "basic_general" in str(excinfo.value)
