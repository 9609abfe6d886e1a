import json
import logging
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from src.recognition.endpoints import ENDPOINTS, InputVariant
from src.recognition.errors import Result
from src.recognition.http_errors import http_status_for
from src.recognition.jobs import ResultType
from src.recognition.service import (
    fetch_table_result,
    recognize_bytes,
    recognize_table_bytes,
    submit_table_bytes,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
)

app = FastAPI(
    title="Recognition API (FastAPI + AI platform OCR / classification / moderation)",
    description="Upload an image and get the platform's recognition JSON back.",
    version="1.0.0",
)

PDF_CONTENT_TYPE = "application/pdf"


def _check_content_type(file: UploadFile, allow_pdf: bool):
    content_type = file.content_type or ""
    if content_type.startswith("image/") or content_type == "application/octet-stream":
        return
    if allow_pdf and content_type == PDF_CONTENT_TYPE:
        return
    expected = "an image or PDF" if allow_pdf else "an image"
    raise HTTPException(
        status_code=400,
        detail=f"Unsupported content type: {content_type}. Expected {expected}.",
    )


async def _read_upload(file: UploadFile, allow_pdf: bool = False) -> bytes:
    _check_content_type(file, allow_pdf)
    try:
        data = await file.read()
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Failed to read file: {e}") from e

    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")
    return data


def _respond(result: Result) -> JSONResponse:
    if not result.ok:
        return JSONResponse(status_code=http_status_for(result.error), content=result.error.to_json())
    return JSONResponse(content=result.value)


@app.get("/health")
def health_check():
    """
    Simple health endpoint so we can check the service is running.
    """
    return {"status": "ok"}


@app.get("/endpoints")
def list_endpoints():
    """Endpoints that accept an uploaded image, grouped by family."""
    grouped = {}
    for name, endpoint in sorted(ENDPOINTS.items()):
        if endpoint.accepts(InputVariant.BYTES):
            grouped.setdefault(endpoint.family, []).append(name)
    return grouped


@app.post("/recognize/{name}")
async def recognize_endpoint(
    name: str,
    file: UploadFile = File(...),
    options: Optional[str] = Form(None),
):
    """
    Sends the uploaded image (or PDF) to the named endpoint. `options` is an optional
    JSON object passed through to the service as extra fields.
    """
    if name not in ENDPOINTS:
        raise HTTPException(status_code=404, detail=f"Unknown endpoint: {name}")

    extra = None
    if options:
        try:
            extra = json.loads(options)
        except json.JSONDecodeError as e:
            raise HTTPException(status_code=400, detail=f"options is not valid JSON: {e}") from e
        if not isinstance(extra, dict):
            raise HTTPException(status_code=400, detail="options must be a JSON object.")

    data = await _read_upload(file, allow_pdf=True)
    is_pdf = file.content_type == PDF_CONTENT_TYPE

    try:
        result = recognize_bytes(name, data, extra, is_pdf=is_pdf)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        raise HTTPException(status_code=502, detail=f"Error processing request: {e}") from e

    return _respond(result)


@app.post("/tables")
async def recognize_table_endpoint(
    file: UploadFile = File(...),
    result_type: ResultType = ResultType.JSON,
):
    """
    Synchronous table recognition: submits the image and waits for the
    result (cells as JSON, or an Excel download URL).
    """
    data = await _read_upload(file)

    try:
        result = recognize_table_bytes(data, result_type)
    except Exception as e:
        raise HTTPException(status_code=502, detail=f"Error processing table: {e}") from e

    return _respond(result)


@app.post("/tables/submit")
async def submit_table_endpoint(file: UploadFile = File(...)):
    data = await _read_upload(file)

    try:
        result = submit_table_bytes(data)
    except Exception as e:
        raise HTTPException(status_code=502, detail=f"Error submitting table: {e}") from e

    if not result.ok:
        return _respond(result)
    return JSONResponse(status_code=202, content={"request_id": result.value})


@app.get("/tables/{request_id}")
def table_result_endpoint(request_id: str, result_type: ResultType = ResultType.JSON):
    try:
        result = fetch_table_result(request_id, result_type)
    except Exception as e:
        raise HTTPException(status_code=502, detail=f"Error fetching table result: {e}") from e

    return _respond(result)
