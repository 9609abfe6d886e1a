import sys
from pathlib import Path

import pytest

# Get the project root directory (one level above tests/)
ROOT_DIR = Path(__file__).resolve().parents[1]

# Add the root directory to sys.path so "import src" works
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from src.recognition.config import Settings  # noqa: E402
from src.recognition.errors import Result, is_error_payload, remote_error  # noqa: E402

TEST_BASE_URL = "https://aip.test"


class ScriptedTransport:
    """
    Stands in for Transport.execute().

    Returns the queued responses in order; the last one repeats forever.
    Plain dicts are classified the way the real transport does it
    (error_code -> REMOTE failure), Result objects are returned as-is.
    Every request it receives is recorded in `requests`.
    """

    def __init__(self, responses, settings=None):
        self.responses = list(responses)
        self.requests = []
        self.settings = settings or Settings(access_token="test-token", base_url=TEST_BASE_URL)

    def execute(self, request):
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Result):
            return item
        if is_error_payload(item):
            return Result.failure(remote_error(item))
        return Result.success(item)


@pytest.fixture
def settings():
    return Settings(access_token="test-token", base_url=TEST_BASE_URL)


@pytest.fixture
def scripted_transport():
    """Factory: scripted_transport([resp1, resp2, ...])"""
    return ScriptedTransport
