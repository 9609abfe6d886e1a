import logging
import json

import azure.functions as func

from src.recognition.http_errors import http_status_for
from src.recognition.jobs import ResultType
from src.recognition.service import recognize_table_bytes


def main(req: func.HttpRequest) -> func.HttpResponse:
    """
    Azure Function HTTP trigger:
    - Accepts a table image via POST
    - Submits it for asynchronous table recognition
    - Polls until the table is ready
    - Returns the service's JSON (or an Excel URL with ?result_type=excel)
    """
    logging.info("Table Recognizer function triggered.")

    try:
        # 1. Basic input validation
        image_bytes = req.get_body()

        if not image_bytes:
            logging.warning("Request body is empty.")
            return _json_response(
                {"error": "Request body is empty. Please POST an image."},
                status_code=400,
            )

        content_type = req.headers.get("Content-Type", "")
        if not content_type.lower().startswith("image/"):
            logging.warning("Unexpected Content-Type: %s", content_type)
            return _json_response(
                {
                    "error": "Unsupported content type. "
                             "Please send an image with Content-Type: image/*."
                },
                status_code=400,
            )

        raw_type = req.params.get("result_type", ResultType.JSON.value)
        try:
            result_type = ResultType(raw_type)
        except ValueError:
            return _json_response(
                {"error": f"Unsupported result_type: {raw_type}. Expected json or excel."},
                status_code=400,
            )

        # 2. Call core service logic
        logging.info("Recognizing table (result_type=%s).", result_type.value)
        result = recognize_table_bytes(image_bytes, result_type)

        if not result.ok:
            logging.error("Table recognition failed: %s", result.error)
            return _json_response(
                {
                    "error": "Failed to recognize table.",
                    "details": result.error.to_json(),
                },
                status_code=http_status_for(result.error),
            )

        # 3. Success response
        logging.info("Table recognition completed successfully.")
        return _json_response(result.value, status_code=200)

    except Exception as e:
        # Catch-all safeguard
        logging.exception("Unexpected error in table_recognizer: %s", e)
        return _json_response(
            {"error": "Unexpected server error.", "details": str(e)},
            status_code=500,
        )


def _json_response(payload: dict, status_code: int = 200) -> func.HttpResponse:
    """
    Small helper to return JSON responses consistently.
    """
    return func.HttpResponse(
        json.dumps(payload, indent=2, ensure_ascii=False),
        status_code=status_code,
        mimetype="application/json",
    )
