# src/recognition/errors.py

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")

# Error indicator carried by every failed response of the platform.
ERROR_CODE_KEY = "error_code"
ERROR_MSG_KEY = "error_msg"


class ErrorKind(str, Enum):
    IO = "io"
    PROTOCOL = "protocol"
    REMOTE = "remote"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    CANCELLED = "cancelled"


# Client-side failures use SDK-prefixed codes so they never collide with
# the numeric codes the service returns.
SDK_CODES = {
    ErrorKind.IO: "SDK101",
    ErrorKind.PROTOCOL: "SDK102",
    ErrorKind.TIMEOUT: "SDK103",
    ErrorKind.CANCELLED: "SDK104",
    ErrorKind.TRANSPORT: "SDK108",
}


@dataclass(frozen=True)
class ClientError:
    """
    One structured failure.

    For REMOTE errors `code` and `message` are copied from the service's own
    `error_code` / `error_msg` and `payload` holds the untouched response body.
    """
    kind: ErrorKind
    message: str
    code: Optional[Union[int, str]] = None
    payload: Optional[dict] = None

    def to_json(self) -> dict:
        if self.kind is ErrorKind.REMOTE and self.payload is not None:
            return dict(self.payload)
        return {ERROR_CODE_KEY: self.code, ERROR_MSG_KEY: self.message}

    def __str__(self) -> str:
        return f"{self.kind.value} error {self.code}: {self.message}"


class RecognitionError(Exception):
    """Raised by Result.unwrap() for callers that prefer exceptions."""

    def __init__(self, error: ClientError):
        super().__init__(str(error))
        self.error = error


@dataclass(frozen=True)
class Result(Generic[T]):
    """Success payload XOR structured error."""
    value: Optional[T] = None
    error: Optional[ClientError] = None

    def __post_init__(self):
        if self.value is not None and self.error is not None:
            raise ValueError("Result cannot carry both a value and an error.")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ClientError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise RecognitionError(self.error)
        return self.value


def is_error_payload(payload: Any) -> bool:
    return isinstance(payload, dict) and ERROR_CODE_KEY in payload


def io_error(message: str) -> ClientError:
    return ClientError(ErrorKind.IO, message, SDK_CODES[ErrorKind.IO])


def protocol_error(message: str, payload: Optional[dict] = None) -> ClientError:
    return ClientError(ErrorKind.PROTOCOL, message, SDK_CODES[ErrorKind.PROTOCOL], payload)


def remote_error(payload: dict) -> ClientError:
    return ClientError(
        ErrorKind.REMOTE,
        str(payload.get(ERROR_MSG_KEY, "")),
        payload.get(ERROR_CODE_KEY),
        payload,
    )


def timeout_error(timeout: float) -> ClientError:
    return ClientError(
        ErrorKind.TIMEOUT,
        f"Polling abandoned after {timeout}s; the job may still be running.",
        SDK_CODES[ErrorKind.TIMEOUT],
    )


def transport_error(exc: Union[BaseException, str]) -> ClientError:
    return ClientError(ErrorKind.TRANSPORT, str(exc), SDK_CODES[ErrorKind.TRANSPORT])


def cancelled_error() -> ClientError:
    return ClientError(
        ErrorKind.CANCELLED,
        "Polling cancelled by caller.",
        SDK_CODES[ErrorKind.CANCELLED],
    )
