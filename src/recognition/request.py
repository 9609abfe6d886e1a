# src/recognition/request.py

import base64
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from src.recognition.errors import Result, io_error

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class BodyEncoding(str, Enum):
    FORM = "form"
    JSON = "json"


@dataclass(frozen=True)
class CanonicalRequest:
    """
    The single shape every input variant converges to before transport.

    `fields` is the request body. `params` (query string) and `headers` are
    filled in by the transport boundary and never carry body fields.
    """
    endpoint: str
    fields: Dict[str, Any] = field(default_factory=dict)
    encoding: BodyEncoding = BodyEncoding.FORM
    params: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)


def encode_base64(payload: bytes) -> str:
    return base64.b64encode(payload).decode("ascii")


def merge(request: CanonicalRequest, extra_fields: Optional[Mapping[str, Any]]) -> CanonicalRequest:
    """
    Adds caller-supplied optional parameters verbatim.

    Unknown keys pass through uninterpreted; the remote service owns the option
    catalog. None or an empty mapping returns the request unchanged.
    """
    if not extra_fields:
        return request
    fields = dict(request.fields)
    fields.update(extra_fields)
    return replace(request, fields=fields)


def from_fields(
    endpoint: str,
    fields: Mapping[str, Any],
    extra_fields: Optional[Mapping[str, Any]] = None,
    encoding: BodyEncoding = BodyEncoding.FORM,
) -> CanonicalRequest:
    return merge(CanonicalRequest(endpoint, dict(fields), encoding), extra_fields)


def from_bytes(
    endpoint: str,
    payload: bytes,
    field_name: str = "image",
    extra_fields: Optional[Mapping[str, Any]] = None,
    encoding: BodyEncoding = BodyEncoding.FORM,
) -> CanonicalRequest:
    # Empty payloads are passed through; the service judges validity.
    return from_fields(endpoint, {field_name: encode_base64(payload)}, extra_fields, encoding)


def read_file(path: PathLike) -> Result[bytes]:
    try:
        return Result.success(Path(path).read_bytes())
    except OSError as e:
        logger.warning("Could not read %s: %s", path, e)
        return Result.failure(io_error(f"Cannot read file {str(path)!r}: {e.strerror or e}"))


def from_file_path(
    endpoint: str,
    path: PathLike,
    field_name: str = "image",
    extra_fields: Optional[Mapping[str, Any]] = None,
    encoding: BodyEncoding = BodyEncoding.FORM,
) -> Result[CanonicalRequest]:
    """
    Reads the whole file, then behaves like from_bytes().
    A missing or unreadable path yields an IO error and no request at all.
    """
    data = read_file(path)
    if not data.ok:
        return Result.failure(data.error)
    return Result.success(from_bytes(endpoint, data.value, field_name, extra_fields, encoding))


def from_url_reference(
    endpoint: str,
    url: str,
    field_name: str = "url",
    extra_fields: Optional[Mapping[str, Any]] = None,
    encoding: BodyEncoding = BodyEncoding.FORM,
) -> CanonicalRequest:
    # No local I/O and no reachability check.
    return from_fields(endpoint, {field_name: url}, extra_fields, encoding)


def from_pdf(
    endpoint: str,
    pdf: bytes,
    page: Optional[int] = None,
    extra_fields: Optional[Mapping[str, Any]] = None,
    field_name: str = "pdf_file",
    page_field: str = "pdf_file_num",
) -> CanonicalRequest:
    """Multi-page PDF; without a page number the service reads page 1."""
    fields: Dict[str, Any] = {field_name: encode_base64(pdf)}
    if page is not None:
        fields[page_field] = page
    return from_fields(endpoint, fields, extra_fields)
