# src/recognition/transport.py

import json
import logging
import threading
import time
from dataclasses import replace
from typing import Optional, Union

import requests

from src.recognition.config import Settings
from src.recognition.errors import (
    ClientError,
    ErrorKind,
    Result,
    is_error_payload,
    protocol_error,
    remote_error,
    transport_error,
)
from src.recognition.request import BodyEncoding, CanonicalRequest

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth/2.0/token"
TOKEN_REFRESH_MARGIN = 60     # seconds before expiry at which we fetch a new token

# Service codes meaning the access token is invalid or expired.
TOKEN_ERROR_CODES = {110, 111}

CONTENT_TYPES = {
    BodyEncoding.FORM: "application/x-www-form-urlencoded",
    BodyEncoding.JSON: "application/json",
}


def pre_operation(request: CanonicalRequest, access_token: str) -> CanonicalRequest:
    """
    Attaches authentication and default headers. Pure and idempotent;
    `fields` is left untouched.
    """
    params = dict(request.params)
    params["access_token"] = access_token
    headers = dict(request.headers)
    headers.setdefault("Accept", "application/json")
    return replace(request, params=params, headers=headers)


def post_operation(request: CanonicalRequest) -> CanonicalRequest:
    """Finalizes the content type from the body encoding."""
    headers = dict(request.headers)
    headers["Content-Type"] = CONTENT_TYPES[request.encoding]
    return replace(request, headers=headers)


def _form_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def encode_body(request: CanonicalRequest) -> Union[dict, str]:
    if request.encoding is BodyEncoding.JSON:
        return json.dumps(request.fields, ensure_ascii=False)
    return {k: _form_value(v) for k, v in request.fields.items() if v is not None}


def decode_response(response) -> Result[dict]:
    try:
        payload = response.json()
    except ValueError:
        if response.status_code >= 400:
            return Result.failure(
                transport_error(f"HTTP {response.status_code}: {response.text[:200]}")
            )
        logger.warning("Service returned a body that is not JSON.")
        return Result.failure(protocol_error("Response body is not valid JSON."))

    if not isinstance(payload, dict):
        return Result.failure(protocol_error("Response body is not a JSON object."))
    if response.status_code >= 500 and not is_error_payload(payload):
        # gateway errors can carry JSON that is not a service error body
        logger.warning("Service returned HTTP %s without an error_code.", response.status_code)
        return Result.failure(
            transport_error(f"HTTP {response.status_code}: {response.text[:200]}")
        )
    return Result.success(payload)


class Transport:
    """
    Sends canonical requests to the platform.

    Holds the OAuth access token between calls; everything else is per call.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings.from_env()
        self._lock = threading.Lock()
        self._token = self.settings.access_token
        # None means "never expires" (pre-issued token from the environment)
        self._token_expires_at: Optional[float] = None

    def access_token(self) -> Result[str]:
        with self._lock:
            if self._token and (
                self._token_expires_at is None or time.monotonic() < self._token_expires_at
            ):
                return Result.success(self._token)

            api_key = self.settings.api_key
            secret_key = self.settings.secret_key
            if not api_key or not secret_key:
                raise ValueError("Missing AIP_API_KEY or AIP_SECRET_KEY environment variables.")

            fetched = self._fetch_token(api_key, secret_key)
            if not fetched.ok:
                return Result.failure(fetched.error)

            payload = fetched.value
            expires_in = float(payload.get("expires_in", 0))
            self._token = payload["access_token"]
            self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_REFRESH_MARGIN, 0)
            logger.info("Obtained access token (expires in %ss)", int(expires_in))
            return Result.success(self._token)

    def invalidate_token(self):
        with self._lock:
            if self._token_expires_at is not None:
                self._token = None

    def _fetch_token(self, api_key: str, secret_key: str) -> Result[dict]:
        url = f"{self.settings.base_url}{TOKEN_PATH}"
        params = {
            "grant_type": "client_credentials",
            "client_id": api_key,
            "client_secret": secret_key,
        }
        logger.info("Requesting access token...")
        try:
            response = requests.post(url, params=params, timeout=self.settings.http_timeout)
        except requests.RequestException as e:
            logger.error("Token request failed: %s", e)
            return Result.failure(transport_error(e))

        decoded = decode_response(response)
        if not decoded.ok:
            return decoded

        payload = decoded.value
        if "access_token" not in payload:
            # OAuth errors use their own shape: {"error": ..., "error_description": ...}
            logger.error("Token endpoint refused credentials: %s", payload.get("error"))
            return Result.failure(ClientError(
                ErrorKind.REMOTE,
                str(payload.get("error_description", "access token not granted")),
                payload.get("error"),
                payload,
            ))
        return decoded

    def request_server(self, request: CanonicalRequest) -> Result[dict]:
        """One HTTP POST, no retries."""
        try:
            response = requests.post(
                request.endpoint,
                params=request.params,
                headers=request.headers,
                data=encode_body(request),
                timeout=self.settings.http_timeout,
            )
        except requests.RequestException as e:
            logger.error("Request to %s failed: %s", request.endpoint, e)
            return Result.failure(transport_error(e))
        return decode_response(response)

    def execute(self, request: CanonicalRequest) -> Result[dict]:
        token = self.access_token()
        if not token.ok:
            return Result.failure(token.error)

        prepared = post_operation(pre_operation(request, token.value))
        logger.debug("POST %s (%s)", request.endpoint, request.encoding.value)

        result = self.request_server(prepared)
        if result.ok and is_error_payload(result.value):
            payload = result.value
            logger.error(
                "Service error %s from %s: %s",
                payload.get("error_code"), request.endpoint, payload.get("error_msg"),
            )
            if payload.get("error_code") in TOKEN_ERROR_CODES:
                self.invalidate_token()
            return Result.failure(remote_error(payload))
        return result
