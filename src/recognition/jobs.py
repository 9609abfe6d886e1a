# src/recognition/jobs.py

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple, Union

from src.recognition.config import DEFAULT_BASE_URL, DEFAULT_POLL_INTERVAL, DEFAULT_POLL_TIMEOUT
from src.recognition.endpoints import get_endpoint
from src.recognition.errors import (
    Result,
    cancelled_error,
    protocol_error,
    timeout_error,
)
from src.recognition.request import CanonicalRequest, from_fields

logger = logging.getLogger(__name__)

ResponsePath = Tuple[Union[str, int], ...]

ASYNC_TASK_STATUS_FINISHED = 3


class JobState(str, Enum):
    SUBMITTING = "submitting"
    POLLING = "polling"
    FINISHED = "finished"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class ResultType(str, Enum):
    JSON = "json"
    EXCEL = "excel"


@dataclass(frozen=True)
class JobFamily:
    """
    Where a family's submit and poll calls live, and where in their
    responses the task identifier and the status code are found.
    """
    name: str
    submit_endpoint: str
    poll_endpoint: str
    request_id_path: ResponsePath
    status_path: ResponsePath
    terminal_status: int
    poll_id_field: str = "request_id"
    result_type_field: Optional[str] = "result_type"


# submit -> {"result": [{"request_id": "..."}]}
# poll   -> {"result": {"ret_code": 3, ...}}
TABLE_RECOGNITION = JobFamily(
    name="table_recognition",
    submit_endpoint="table_recognition_async",
    poll_endpoint="table_result_get",
    request_id_path=("result", 0, "request_id"),
    status_path=("result", "ret_code"),
    terminal_status=ASYNC_TASK_STATUS_FINISHED,
)


@dataclass(frozen=True)
class PollOutcome:
    state: JobState
    payload: dict
    status: Optional[int] = None

    @property
    def finished(self) -> bool:
        return self.state is JobState.FINISHED


def describe_path(path: ResponsePath) -> str:
    """("result", 0, "request_id") -> "result[0].request_id" """
    text = ""
    for part in path:
        if isinstance(part, int):
            text += f"[{part}]"
        else:
            text += f".{part}" if text else part
    return text


def extract(payload: Any, path: ResponsePath) -> Any:
    """
    Walks `path` through decoded JSON. Integer parts index lists, string parts
    index objects; anything else raises LookupError.
    """
    node = payload
    for part in path:
        if isinstance(part, int):
            if not isinstance(node, list) or not -len(node) <= part < len(node):
                raise LookupError(part)
        elif not isinstance(node, dict) or part not in node:
            raise LookupError(part)
        node = node[part]
    return node


class AsyncJobClient:
    """
    Submit -> poll -> terminal state for one job family.

    Holds no per-job state: every call is a function of its arguments, the
    transport and the clock, so jobs can be polled from separate threads.
    """

    def __init__(self, transport, family: JobFamily = TABLE_RECOGNITION,
                 base_url: str = DEFAULT_BASE_URL):
        self.transport = transport
        self.family = family
        self.base_url = base_url

    def submit(self, request: CanonicalRequest) -> Result[str]:
        logger.info("Submitting %s job...", self.family.name)
        response = self.transport.execute(request)
        if not response.ok:
            logger.error("%s submit failed: %s", self.family.name, response.error)
            return Result.failure(response.error)

        path = self.family.request_id_path
        try:
            request_id = extract(response.value, path)
        except LookupError:
            return Result.failure(protocol_error(
                f"Submit response has no {describe_path(path)}.", response.value
            ))

        if isinstance(request_id, (dict, list, bool)) or request_id is None or str(request_id) == "":
            return Result.failure(protocol_error(
                f"Submit response has a malformed {describe_path(path)}: {request_id!r}",
                response.value,
            ))

        logger.info("%s job accepted, request_id=%s", self.family.name, request_id)
        return Result.success(str(request_id))

    def poll_request(self, request_id: str,
                     result_type: Optional[Union[ResultType, str]] = None) -> CanonicalRequest:
        fields = {self.family.poll_id_field: request_id}
        if result_type is not None and self.family.result_type_field:
            fields[self.family.result_type_field] = ResultType(result_type).value
        endpoint = get_endpoint(self.family.poll_endpoint)
        return from_fields(endpoint.url(self.base_url), fields, encoding=endpoint.encoding)

    def poll_once(self, request_id: str,
                  result_type: Optional[Union[ResultType, str]] = None) -> Result[PollOutcome]:
        response = self.transport.execute(self.poll_request(request_id, result_type))
        if not response.ok:
            return Result.failure(response.error)

        payload = response.value
        path = self.family.status_path
        try:
            raw_status = extract(payload, path)
        except LookupError:
            return Result.failure(protocol_error(
                f"Poll response has no {describe_path(path)}.", payload
            ))

        if isinstance(raw_status, bool):
            raw_status = None
        try:
            status = int(raw_status)
        except (TypeError, ValueError):
            return Result.failure(protocol_error(
                f"Poll response has a non-integer {describe_path(path)}: {raw_status!r}",
                payload,
            ))

        # Any code other than the terminal one, documented or not, means pending.
        if status == self.family.terminal_status:
            return Result.success(PollOutcome(JobState.FINISHED, payload, status))
        return Result.success(PollOutcome(JobState.POLLING, payload, status))

    def poll_until_done(
        self,
        request_id: str,
        result_type: Optional[Union[ResultType, str]] = None,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        interval: float = DEFAULT_POLL_INTERVAL,
        cancel: Optional[threading.Event] = None,
    ) -> Result[dict]:
        """
        Polls at a fixed interval until the job finishes, fails, is cancelled
        or `timeout` seconds have passed since polling began.

        The deadline and the cancel event are both checked before every poll.
        Transport and remote failures end the loop at once; only "not yet
        finished" is retried. A timeout abandons polling, it does not cancel
        the job on the service side.
        """
        if timeout < 0 or interval < 0:
            raise ValueError("timeout and interval must be non-negative.")

        start_time = time.monotonic()
        polls = 0

        while True:
            if cancel is not None and cancel.is_set():
                logger.info("%s polling cancelled after %s polls", self.family.name, polls)
                return Result.failure(cancelled_error())

            elapsed = time.monotonic() - start_time
            if elapsed > timeout:
                logger.error(
                    "%s polling timed out after %ss (%s polls)", self.family.name, timeout, polls
                )
                return Result.failure(timeout_error(timeout))

            outcome = self.poll_once(request_id, result_type)
            polls += 1
            if not outcome.ok:
                logger.error("%s job %s failed: %s", self.family.name, request_id, outcome.error)
                return Result.failure(outcome.error)

            if outcome.value.finished:
                duration = int((time.monotonic() - start_time) * 1000)
                logger.info(
                    "%s job %s finished in %sms (%s polls)",
                    self.family.name, request_id, duration, polls,
                )
                return Result.success(outcome.value.payload)

            logger.debug(
                "%s job %s status: %s (elapsed=%.2fs)",
                self.family.name, request_id, outcome.value.status, elapsed,
            )
            self._wait(interval, cancel)

    def run(
        self,
        request: CanonicalRequest,
        result_type: Optional[Union[ResultType, str]] = None,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        interval: float = DEFAULT_POLL_INTERVAL,
        cancel: Optional[threading.Event] = None,
    ) -> Result[dict]:
        """Submit, then poll until done. A failed submit never polls."""
        submitted = self.submit(request)
        if not submitted.ok:
            return Result.failure(submitted.error)
        return self.poll_until_done(submitted.value, result_type, timeout, interval, cancel)

    @staticmethod
    def _wait(interval: float, cancel: Optional[threading.Event]):
        if cancel is None:
            time.sleep(interval)
        else:
            # returns early when the event is set
            cancel.wait(interval)
