from src.recognition.errors import ClientError, ErrorKind

# Shared by the FastAPI app and the Azure Functions so both answer a given
# failure with the same status.
HTTP_STATUS_BY_KIND = {
    ErrorKind.IO: 400,
    ErrorKind.REMOTE: 502,
    ErrorKind.PROTOCOL: 502,
    ErrorKind.TRANSPORT: 502,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.CANCELLED: 503,
}


def http_status_for(error: ClientError) -> int:
    return HTTP_STATUS_BY_KIND.get(error.kind, 502)
