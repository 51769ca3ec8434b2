"""
Parse SDK - High-level client with nice ergonomics.

This layer provides record and file operations on top of the core
APIClient, converting between ParseObject/ParseFile and the wire format.
"""

import logging
import os
from typing import Any

from parse_cli.core.client import DEFAULT_TIMEOUT, APIClient
from parse_cli.core.errors import DecodeError, InvalidArgumentError
from parse_cli.core.types import (
    CREATED_AT_KEY,
    OBJECT_ID_KEY,
    UPDATED_AT_KEY,
    ParseFile,
    ParseObject,
)

logger = logging.getLogger(__name__)

# Keys the backend assigns; never sent back to it
CREATE_EXCLUDED_KEYS = frozenset({OBJECT_ID_KEY, CREATED_AT_KEY, UPDATED_AT_KEY})
UPDATE_EXCLUDED_KEYS = frozenset({CREATED_AT_KEY, UPDATED_AT_KEY})


class ParseClient:
    """
    High-level Parse client with typed methods and nice ergonomics.

    Example:
        client = ParseClient("app-id", "app-secret")

        score = ParseObject("GameScore")
        score["score"] = 1337
        client.objects.create(score)

        top = client.objects.query("GameScore", {}, order="-score", limit=10)

    """

    def __init__(
        self,
        application_id: str | None = None,
        application_secret: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the Parse client.

        Args:
            application_id: Application ID (or PARSE_APPLICATION_ID env var)
            application_secret: Application secret (or PARSE_APPLICATION_SECRET env var)
            base_url: API base URL (or PARSE_BASE_URL env var)
            timeout: Request timeout in seconds

        """
        self._client = APIClient(
            application_id=application_id or os.environ.get("PARSE_APPLICATION_ID", ""),
            application_secret=application_secret or os.environ.get("PARSE_APPLICATION_SECRET", ""),
            base_url=base_url or os.environ.get("PARSE_BASE_URL", ""),
            timeout=timeout,
        )

        # Sub-clients for records and files
        self.objects = ObjectOperations(self._client)
        self.files = FileOperations(self._client)

    @property
    def timeout(self) -> float:
        return self._client.timeout


def _require(data: dict[str, Any], *keys: str) -> None:
    missing = [key for key in keys if key not in data]
    if missing:
        raise DecodeError(
            f"Response is missing {', '.join(missing)}",
            details={"missing": missing, "received": sorted(data)},
        )


# =============================================================================
# Object Operations
# =============================================================================


class ObjectOperations:
    """Operations for records stored under /classes."""

    def __init__(self, client: APIClient):
        self._client = client

    def create(self, record: ParseObject) -> ParseObject:
        """
        Create a record on the backend.

        The backend-assigned objectId and createdAt are written into
        ``record``, which is returned.

        Args:
            record: The record to create

        Returns:
            The same record, now with objectId and createdAt

        """
        if record is None:
            raise InvalidArgumentError("Record required")

        result = self._client.post(
            self._client.record_url(record.class_name),
            record.to_payload(exclude=CREATE_EXCLUDED_KEYS),
        )
        _require(result, OBJECT_ID_KEY, CREATED_AT_KEY)

        record.set(OBJECT_ID_KEY, result[OBJECT_ID_KEY])
        record.set(CREATED_AT_KEY, result[CREATED_AT_KEY])
        logger.debug("Created %s/%s", record.class_name, record.object_id)
        return record

    def update(self, record: ParseObject) -> None:
        """
        Save the attributes of an existing record.

        The record is left as it is; the update timestamp in the response
        is not merged back.

        Args:
            record: A record that has an objectId

        """
        if record is None:
            raise InvalidArgumentError("Record required")
        if not record.object_id:
            raise InvalidArgumentError(f"{record.class_name} record has no objectId; create it first")

        self._client.put(
            self._client.record_url(record.class_name, record.object_id),
            record.to_payload(exclude=UPDATE_EXCLUDED_KEYS),
        )

    def get(self, class_name: str, object_id: str) -> ParseObject:
        """
        Get a record by ID.

        Args:
            class_name: The record's class
            object_id: The record's objectId

        Returns:
            A new ParseObject with every attribute the backend returned

        """
        if not class_name or not object_id:
            raise InvalidArgumentError("Class name and object ID required")

        result = self._client.get(self._client.record_url(class_name, object_id))
        return ParseObject.from_wire(class_name, result)

    def query(
        self,
        class_name: str,
        where: Any,
        order: str | None = None,
        limit: int = 0,
        skip: int = 0,
    ) -> list[ParseObject]:
        """
        Find records of a class matching a filter.

        Args:
            class_name: The class to query
            where: Filter object in the backend's query syntax ({} for all)
            order: Field to sort by; prefix with '-' for descending order
            limit: Maximum number of results (0 for the backend default)
            skip: Number of results to skip

        Returns:
            Matching records, in the order the backend returned them

        """
        if not class_name or where is None:
            raise InvalidArgumentError("Class name and filter required")

        result = self._client.get(self._client.query_url(class_name, where, order, limit, skip))
        results = result.get("results")
        if not isinstance(results, list) or not all(isinstance(item, dict) for item in results):
            raise DecodeError("Query response has no results list", details={"received": sorted(result)})
        return [ParseObject.from_wire(class_name, item) for item in results]

    def delete(self, record: ParseObject) -> None:
        """
        Delete a record.

        Args:
            record: A record that has an objectId

        """
        if record is None:
            raise InvalidArgumentError("Record required")
        if not record.object_id:
            raise InvalidArgumentError(f"{record.class_name} record has no objectId")

        self._client.delete(self._client.record_url(record.class_name, record.object_id))
        logger.debug("Deleted %s/%s", record.class_name, record.object_id)


# =============================================================================
# File Operations
# =============================================================================


class FileOperations:
    """Operations for files stored under /files."""

    def __init__(self, client: APIClient):
        self._client = client

    def upload(self, file: ParseFile, multipart: bool = False) -> ParseFile:
        """
        Upload a local file.

        The backend-assigned name and url are written into ``file``, which
        is returned.

        Args:
            file: File handle with a local path
            multipart: Send the file as multipart/form-data instead of a raw body

        Returns:
            The same file handle, now with name and url

        """
        if file is None:
            raise InvalidArgumentError("File required")
        if not os.path.isfile(file.path):
            raise InvalidArgumentError(f"No such file: {file.path}", details={"path": file.path})

        result = self._client.upload(
            self._client.file_url(file.local_name),
            file.path,
            file.content_type or "application/octet-stream",
            multipart=multipart,
        )
        _require(result, "url", "name")

        file.url = result["url"]
        file.name = result["name"]
        logger.debug("Uploaded %s as %s", file.path, file.name)
        return file

    def delete(self, file: ParseFile) -> None:
        """
        Delete an uploaded file. Does nothing if the file has no name yet.

        Args:
            file: File handle returned by upload

        """
        if file is None or not file.name:
            return
        self._client.delete(self._client.file_url(file.name))
