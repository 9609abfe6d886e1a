import threading
from typing import Any, Mapping, Optional

from src.recognition.client import RecognitionClient
from src.recognition.errors import Result
from src.recognition.jobs import ResultType

_client: Optional[RecognitionClient] = None
_client_lock = threading.Lock()


def get_client() -> RecognitionClient:
    global _client
    with _client_lock:
        if _client is None:
            _client = RecognitionClient()
        return _client


def _require_bytes(data: bytes):
    if not data:
        raise ValueError("Image bytes are empty.")


def recognize_bytes(name: str, data: bytes,
                    options: Optional[Mapping[str, Any]] = None,
                    is_pdf: bool = False) -> Result[dict]:
    """
    Core business logic behind the HTTP surfaces:
    - Takes raw uploaded bytes (an image, or a PDF when is_pdf is set)
    - Calls the named recognition endpoint
    - Returns the service's JSON untouched

    This function does NOT know anything about HTTP, status codes,
    request headers, or frameworks.
    """
    _require_bytes(data)
    if is_pdf:
        return get_client().invoke(name, pdf=data, options=options)
    return get_client().invoke(name, image=data, options=options)


def recognize_table_bytes(data: bytes,
                          result_type: ResultType = ResultType.JSON) -> Result[dict]:
    _require_bytes(data)
    return get_client().recognize_table(image=data, result_type=result_type)


def submit_table_bytes(data: bytes) -> Result[str]:
    _require_bytes(data)
    return get_client().submit_table(image=data)


def fetch_table_result(request_id: str,
                       result_type: ResultType = ResultType.JSON) -> Result[dict]:
    return get_client().get_table_result(request_id, result_type)
