"""Pytest configuration - loads .env for live tests and fakes the HTTP layer for unit tests."""

import io
import json
import urllib.error
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from dotenv import load_dotenv

from parse_cli.core.client import APIClient

# Load .env from project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

APP_ID = "test-app-id"
APP_SECRET = "test-app-secret"
BASE_URL = "https://parse.example.com/1"


@dataclass
class RecordedRequest:
    """A request captured by FakeUrlopen."""

    method: str
    url: str
    headers: dict[str, str]
    body: bytes | None
    timeout: float | None

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    def json(self) -> Any:
        assert self.body is not None
        return json.loads(self.body.decode("utf-8"))


def create_mock_response(
    status: int = 200,
    json_data: Any = None,
    body: bytes | None = None,
) -> MagicMock:
    """Create a context-manager response like the one urlopen returns.

    Args:
        status: HTTP status code
        json_data: Data to serialize as the response body
        body: Raw response body (overrides json_data)

    Returns:
        Configured MagicMock response
    """
    if body is None:
        body = json.dumps(json_data).encode("utf-8") if json_data is not None else b""
    response = MagicMock()
    response.status = status
    response.read.return_value = body
    response.__enter__.return_value = response
    response.__exit__.return_value = None
    return response


def create_http_error(url: str, status: int, json_data: Any = None, body: bytes | None = None) -> urllib.error.HTTPError:
    """Create the HTTPError urlopen raises for a non-2xx status."""
    if body is None:
        body = json.dumps(json_data).encode("utf-8") if json_data is not None else b""
    return urllib.error.HTTPError(url, status, "Error", {}, io.BytesIO(body))


class FakeUrlopen:
    """Stands in for urllib.request.urlopen, recording requests and replaying outcomes."""

    def __init__(self) -> None:
        self.requests: list[RecordedRequest] = []
        self._outcomes: list[Any] = []

    def respond(self, json_data: Any = None, status: int = 200, body: bytes | None = None) -> None:
        self._outcomes.append(create_mock_response(status, json_data, body))

    def fail(self, error: BaseException) -> None:
        self._outcomes.append(error)

    @property
    def last(self) -> RecordedRequest:
        return self.requests[-1]

    def __call__(self, req, timeout=None):
        body = req.data
        if body is not None and not isinstance(body, bytes):
            body = b"".join(body)
        self.requests.append(
            RecordedRequest(
                method=req.get_method(),
                url=req.full_url,
                headers={k.lower(): v for k, v in req.header_items()},
                body=body,
                timeout=timeout,
            )
        )
        assert self._outcomes, f"Unexpected request: {req.get_method()} {req.full_url}"
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def fake_urlopen(monkeypatch: pytest.MonkeyPatch) -> FakeUrlopen:
    """Replace urlopen for the duration of a test."""
    fake = FakeUrlopen()
    monkeypatch.setattr("urllib.request.urlopen", fake)
    return fake


@pytest.fixture
def api_client() -> APIClient:
    return APIClient(APP_ID, APP_SECRET, base_url=BASE_URL, timeout=5)
