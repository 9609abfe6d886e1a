# src/recognition/client.py

import logging
import threading
from typing import Any, Mapping, Optional, Union

from src.recognition.config import Settings
from src.recognition.endpoints import InputVariant, get_endpoint
from src.recognition.errors import Result
from src.recognition.jobs import TABLE_RECOGNITION, AsyncJobClient, JobFamily, ResultType
from src.recognition.request import (
    CanonicalRequest,
    PathLike,
    from_bytes,
    from_fields,
    from_file_path,
    from_pdf,
    from_url_reference,
    merge,
    read_file,
)
from src.recognition.transport import Transport

logger = logging.getLogger(__name__)


class RecognitionClient:
    """
    One invoker for every endpoint in the catalog.

    Usage:
        client = RecognitionClient()
        client.invoke("basic_general", path="receipt.jpg", options={"language_type": "ENG"})
        client.invoke("text_censor", text="hello")
        client.recognize_table(path="table.png", result_type="excel")
    """

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[Transport] = None):
        if settings is None:
            settings = transport.settings if transport is not None else Settings.from_env()
        self.settings = settings
        self.transport = transport or Transport(settings)

    def build_request(
        self,
        name: str,
        *,
        image: Optional[bytes] = None,
        path: Optional[PathLike] = None,
        url: Optional[str] = None,
        pdf: Optional[Union[bytes, PathLike]] = None,
        page: Optional[int] = None,
        options: Optional[Mapping[str, Any]] = None,
        **fields: Any,
    ) -> Result[CanonicalRequest]:
        endpoint = get_endpoint(name)
        target = endpoint.url(self.settings.base_url)

        sources = {
            InputVariant.BYTES: image,
            InputVariant.FILE: path,
            InputVariant.URL: url,
            InputVariant.PDF: pdf,
        }
        given = [variant for variant, value in sources.items() if value is not None]

        if len(given) > 1:
            raise ValueError(
                f"Supply exactly one of image, path, url or pdf; got {', '.join(v.value for v in given)}."
            )
        if page is not None and given != [InputVariant.PDF]:
            raise ValueError("page is only meaningful together with pdf.")
        if endpoint.variants and not given:
            accepted = ", ".join(sorted(v.value for v in endpoint.variants))
            raise ValueError(f"{name} needs one input source: {accepted}.")
        if given and not endpoint.accepts(given[0]):
            raise ValueError(f"{name} does not accept {given[0].value} input.")

        supplied = {**fields, **(options or {})}
        missing = [f for f in endpoint.required if supplied.get(f) is None]
        if missing:
            raise ValueError(f"{name} is missing required field(s): {', '.join(missing)}.")

        variant = given[0] if given else None
        if variant is InputVariant.BYTES:
            request = from_bytes(target, image, endpoint.source_field, encoding=endpoint.encoding)
        elif variant is InputVariant.FILE:
            read = from_file_path(target, path, endpoint.source_field, encoding=endpoint.encoding)
            if not read.ok:
                return read
            request = read.value
        elif variant is InputVariant.URL:
            request = from_url_reference(target, url, endpoint.url_field, encoding=endpoint.encoding)
        elif variant is InputVariant.PDF:
            if not isinstance(pdf, (bytes, bytearray)):
                data = read_file(pdf)
                if not data.ok:
                    return Result.failure(data.error)
                pdf = data.value
            request = from_pdf(target, bytes(pdf), page, field_name=endpoint.pdf_field)
        else:
            request = from_fields(target, {}, encoding=endpoint.encoding)

        request = merge(request, {k: v for k, v in fields.items() if v is not None})
        return Result.success(merge(request, options))

    def invoke(self, name: str, **kwargs: Any) -> Result[dict]:
        """
        Builds the request for `name` and sends it. The decoded response is
        returned unmodified; service errors come back as REMOTE failures.
        """
        built = self.build_request(name, **kwargs)
        if not built.ok:
            logger.warning("Could not build %s request: %s", name, built.error)
            return Result.failure(built.error)
        return self.transport.execute(built.value)

    def jobs(self, family: JobFamily = TABLE_RECOGNITION) -> AsyncJobClient:
        return AsyncJobClient(self.transport, family, self.settings.base_url)

    def submit_table(
        self,
        *,
        image: Optional[bytes] = None,
        path: Optional[PathLike] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Result[str]:
        built = self.build_request(
            TABLE_RECOGNITION.submit_endpoint, image=image, path=path, options=options
        )
        if not built.ok:
            return Result.failure(built.error)
        return self.jobs(TABLE_RECOGNITION).submit(built.value)

    def get_table_result(self, request_id: str,
                         result_type: Union[ResultType, str] = ResultType.JSON) -> Result[dict]:
        return self.invoke(
            TABLE_RECOGNITION.poll_endpoint,
            request_id=request_id,
            result_type=ResultType(result_type).value,
        )

    def recognize_table(
        self,
        *,
        image: Optional[bytes] = None,
        path: Optional[PathLike] = None,
        result_type: Union[ResultType, str] = ResultType.JSON,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Result[dict]:
        """
        Synchronous table recognition: submit, then poll until the table is
        ready. `result_type="excel"` yields a download URL instead of cells.
        """
        built = self.build_request(
            TABLE_RECOGNITION.submit_endpoint, image=image, path=path, options=options
        )
        if not built.ok:
            return Result.failure(built.error)

        return self.jobs(TABLE_RECOGNITION).run(
            built.value,
            result_type,
            timeout=self.settings.poll_timeout if timeout is None else timeout,
            interval=self.settings.poll_interval if interval is None else interval,
            cancel=cancel,
        )
