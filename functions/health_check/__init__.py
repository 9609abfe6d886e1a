import datetime as dt
import json
import logging
import os

import azure.functions as func

from src.recognition.config import Settings
from src.recognition.transport import Transport

REQUIRED_ENV_VARS = [
    "AIP_API_KEY",
    "AIP_SECRET_KEY",
]


def check_env_vars() -> dict:
    """
    Verify that required environment variables are present.
    A pre-issued AIP_ACCESS_TOKEN stands in for the key pair.
    """
    missing = [name for name in REQUIRED_ENV_VARS if not os.getenv(name)]
    if os.getenv("AIP_ACCESS_TOKEN"):
        missing = []

    status = "ok" if not missing else "error"
    details: dict = {}
    if missing:
        details["missing"] = missing

    return {
        "name": "environment",
        "status": status,
        "details": details,
    }


def check_token_endpoint() -> dict:
    """
    Light connectivity check to the platform.

    Obtains an access token, which is cheap and read-only.
    Does NOT send any images, so it's safe to run every few minutes.
    """
    settings = Settings.from_env()

    if not settings.has_credentials:
        return {
            "name": "token_endpoint",
            "status": "error",
            "details": "Missing AIP_API_KEY or AIP_SECRET_KEY",
        }

    token = Transport(settings).access_token()

    if token.ok:
        return {
            "name": "token_endpoint",
            "status": "ok",
            "details": {"base_url": settings.base_url},
        }

    logging.error("Token endpoint health check failed: %s", token.error)
    return {
        "name": "token_endpoint",
        "status": "error",
        "details": {
            "kind": token.error.kind.value,
            "code": token.error.code,
            "message": token.error.message[:200],  # avoid logging a huge body
        },
    }


def main(req: func.HttpRequest) -> func.HttpResponse:
    """
    HTTP GET /api/health

    Returns a JSON payload summarizing the health of external dependencies.
    """
    logging.info("Health check request received.")

    checks = [
        check_env_vars(),
        check_token_endpoint(),
    ]

    overall_ok = all(c["status"] == "ok" for c in checks)
    overall_status = "ok" if overall_ok else "degraded"

    body = {
        "status": overall_status,
        "service": "recognition-api",
        "timestamp_utc": dt.datetime.now(dt.timezone.utc).isoformat(),
        "version": os.getenv("APP_VERSION", "v0.1.0"),
        "checks": checks,
    }

    return func.HttpResponse(
        body=json.dumps(body, indent=2),
        status_code=200 if overall_ok else 503,
        mimetype="application/json",
    )
