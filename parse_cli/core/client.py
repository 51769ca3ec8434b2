"""
Core HTTP client for the Parse REST API.

Handles authentication, request/response, query URLs, file streaming and
error handling.
"""

import base64
import http.client
import json
import logging
import os
import urllib.error
import urllib.parse
import urllib.request
import uuid
from collections.abc import Iterator
from typing import Any, BinaryIO

from parse_cli.core.errors import (
    BackendError,
    DecodeError,
    InvalidArgumentError,
    TransportError,
)
from parse_cli.core.types import encode_value

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_BASE_URL = "https://api.parse.com/1"
DEFAULT_TIMEOUT = 100
CHUNK_SIZE = 4096


class APIClient:
    """
    Low-level HTTP client for the Parse REST API.

    Handles:
    - Basic authentication with the application ID and secret
    - HTTP methods (GET, POST, PUT, DELETE) on the classes endpoint
    - Streaming file uploads to the files endpoint
    - Error handling and response parsing

    Holds no mutable state after construction, so one instance can be
    shared between threads.
    """

    def __init__(
        self,
        application_id: str,
        application_secret: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the API client.

        Args:
            application_id: Parse application ID
            application_secret: Parse application key, used as the Basic auth password
            base_url: API base URL; records live under /classes, files under /files
            timeout: Timeout in seconds for each HTTP round trip

        """
        if not application_id or not application_secret:
            raise InvalidArgumentError("Application ID and application secret are required")

        self.application_id = application_id
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.records_url = f"{self.base_url}/classes"
        self.files_url = f"{self.base_url}/files"
        self.timeout = timeout

        token = base64.b64encode(f"{application_id}:{application_secret}".encode()).decode("ascii")
        self._authorization = f"Basic {token}"

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": self._authorization,
            "X-Parse-Application-Id": self.application_id,
        }

    # =========================================================================
    # URL Building
    # =========================================================================

    def record_url(self, class_name: str, object_id: str | None = None) -> str:
        """Build the URL of a class, or of one record in it."""
        url = f"{self.records_url}/{urllib.parse.quote(class_name, safe='')}"
        if object_id:
            url = f"{url}/{urllib.parse.quote(object_id, safe='')}"
        return url

    def file_url(self, file_name: str) -> str:
        return f"{self.files_url}/{urllib.parse.quote(file_name, safe='')}"

    def query_url(
        self,
        class_name: str,
        where: Any,
        order: str | None = None,
        limit: int = 0,
        skip: int = 0,
    ) -> str:
        """
        Build a query URL for a class.

        Args:
            class_name: The class to query
            where: Filter object, sent as JSON; dates and wrappers are
                encoded the same way as record attributes
            order: Field to sort by; a leading '-' sorts descending
            limit: Maximum number of results (0 for the backend default)
            skip: Number of results to skip (0 for none)

        Returns:
            URL with where/order/limit/skip query parameters

        """
        params: dict[str, Any] = {"where": json.dumps(encode_value(where), separators=(",", ":"))}
        if order:
            params["order"] = order
        if limit:
            params["limit"] = limit
        if skip:
            params["skip"] = skip
        return f"{self.record_url(class_name)}?{urllib.parse.urlencode(params)}"

    # =========================================================================
    # Request Handling
    # =========================================================================

    def _make_request(
        self,
        method: str,
        url: str,
        body: bytes | Iterator[bytes] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Make an HTTP request to the API.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            url: Full request URL
            body: Request body, as bytes or an iterator of byte chunks
            headers: Extra headers (content type/length)

        Returns:
            Parsed JSON response ({} for an empty body)

        Raises:
            BackendError: On a non-success status
            TransportError: On connection failures, timeouts and malformed responses
            DecodeError: If the body is not a JSON object

        """
        request_headers = self._auth_headers()
        if headers:
            request_headers.update(headers)

        logger.debug("%s %s", method, url)
        try:
            req = urllib.request.Request(url, data=body, headers=request_headers, method=method)
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                status = response.status
                raw = response.read()

        except urllib.error.HTTPError as e:
            raise _backend_error(e) from e

        except urllib.error.URLError as e:
            raise TransportError(f"Connection error: {e.reason}") from e

        except TimeoutError as e:
            raise TransportError(f"Request timed out after {self.timeout} seconds") from e

        except OSError as e:
            raise TransportError(f"Connection error: {e}") from e

        except http.client.HTTPException as e:
            raise TransportError(f"Malformed HTTP response: {e!r}") from e

        logger.debug("%s %s -> %s", method, url, status)
        if not raw:
            return {}
        response_data = raw.decode("utf-8", errors="replace")
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(f"Invalid JSON response: {e}", details={"body": response_data[:200]}) from e
        if not isinstance(data, dict):
            raise DecodeError("Expected a JSON object in response", details={"body": response_data[:200]})
        return data

    def _send_json(self, method: str, url: str, data: dict[str, Any]) -> dict[str, Any]:
        body = json.dumps(data).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "Content-Length": str(len(body)),
        }
        return self._make_request(method, url, body, headers)

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    def get(self, url: str) -> dict[str, Any]:
        """Make a GET request."""
        return self._make_request("GET", url)

    def post(self, url: str, data: dict[str, Any]) -> dict[str, Any]:
        """Make a POST request with a JSON body."""
        return self._send_json("POST", url, data)

    def put(self, url: str, data: dict[str, Any]) -> dict[str, Any]:
        """Make a PUT request with a JSON body."""
        return self._send_json("PUT", url, data)

    def delete(self, url: str) -> dict[str, Any]:
        """Make a DELETE request."""
        return self._make_request("DELETE", url)

    # =========================================================================
    # File Upload
    # =========================================================================

    def upload(
        self,
        url: str,
        path: str,
        content_type: str,
        multipart: bool = False,
    ) -> dict[str, Any]:
        """
        Stream a local file as the body of a POST request.

        In raw mode the file bytes are the whole body and ``content_type``
        is sent as the request content type. In multipart mode the bytes
        are wrapped in a single multipart/form-data part.

        Args:
            url: Upload URL
            path: Local file path
            content_type: Content type of the file
            multipart: Wrap the file in a multipart/form-data envelope

        Returns:
            Parsed JSON response

        """
        size = os.path.getsize(path)
        if multipart:
            boundary = "----parse-" + uuid.uuid4().hex
            head, tail = multipart_envelope(boundary, os.path.basename(path), content_type)
            request_content_type = f"multipart/form-data; boundary={boundary}"
        else:
            head, tail = b"", b""
            request_content_type = content_type

        headers = {
            "Content-Type": request_content_type,
            "Content-Length": str(len(head) + size + len(tail)),
        }
        with open(path, "rb") as f:
            return self._make_request("POST", url, _stream_body(f, head, tail), headers)


def multipart_envelope(boundary: str, filename: str, content_type: str) -> tuple[bytes, bytes]:
    """Return the bytes that go before and after the file in a multipart body."""
    crlf = "\r\n"
    head = (
        f"--{boundary}{crlf}"
        f'Content-Disposition: form-data; name="file"; filename="{filename}"{crlf}'
        f"Content-Type: {content_type}{crlf}{crlf}"
    ).encode("utf-8")
    tail = f"{crlf}--{boundary}--{crlf}".encode("utf-8")
    return head, tail


def _stream_body(f: BinaryIO, head: bytes, tail: bytes) -> Iterator[bytes]:
    if head:
        yield head
    while True:
        chunk = f.read(CHUNK_SIZE)
        if not chunk:
            break
        yield chunk
    if tail:
        yield tail


def _backend_error(e: urllib.error.HTTPError) -> BackendError:
    """Build a BackendError from an HTTP error response."""
    try:
        body = e.read().decode("utf-8", errors="replace")
    except (OSError, http.client.HTTPException):
        body = ""

    message = str(e.reason or f"HTTP {e.code}")
    code = None
    try:
        error_data = json.loads(body)
    except json.JSONDecodeError:
        error_data = None
    # Parse errors look like {"code": 101, "error": "object not found for get"}
    if isinstance(error_data, dict):
        if isinstance(error_data.get("error"), str):
            message = error_data["error"]
        if isinstance(error_data.get("code"), int):
            code = error_data["code"]

    logger.debug("Backend returned %s: %s", e.code, message)
    return BackendError(message, status=e.code, body=body, code=code)
