"""
Core types for Parse records and their wire representations.

A ParseObject holds a record's attributes. Values that the backend stores
in a non-primitive form (dates, files, pointers to other records) are kept
as small wrapper objects that know their own ``__type`` JSON shape.
"""

import builtins
import mimetypes
import os
import re
from collections.abc import Iterator, MutableMapping
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, ClassVar

from parse_cli.core.errors import FormatError, InvalidArgumentError, KeyNotFoundError

# Reserved keys
CLASS_KEY = "class"
OBJECT_ID_KEY = "objectId"
CREATED_AT_KEY = "createdAt"
UPDATED_AT_KEY = "updatedAt"

ISO_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")
ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

_MISSING = object()


def format_iso(value: datetime | date) -> str:
    """Format a date as ``yyyy-MM-ddTHH:mm:ss.fffZ`` in UTC."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, time(), tzinfo=timezone.utc)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
        f".{value.microsecond // 1000:03d}Z"
    )


def parse_iso(iso: Any) -> datetime:
    """Parse a backend ISO string into an aware UTC datetime."""
    if not isinstance(iso, str) or not ISO_PATTERN.match(iso):
        raise FormatError(f"Not a backend date string: {iso!r}", details={"value": repr(iso)})
    try:
        return datetime.strptime(iso, ISO_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise FormatError(f"Invalid date {iso!r}: {e}", details={"value": iso}) from e


# =============================================================================
# Wire Wrappers
# =============================================================================


@dataclass(frozen=True)
class ParseDate:
    """A date stored as ``{"__type": "Date", "iso": ...}``."""

    TYPE: ClassVar[str] = "Date"
    WIRE_FIELDS: ClassVar[tuple[str, ...]] = ("iso",)

    iso: str

    @classmethod
    def from_datetime(cls, value: datetime | date) -> "ParseDate":
        return cls(iso=format_iso(value))

    def to_datetime(self) -> datetime:
        return parse_iso(self.iso)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParseDate":
        """Create from API response dict."""
        return cls(iso=data.get("iso", ""))

    def to_dict(self) -> dict[str, Any]:
        return {"__type": self.TYPE, "iso": self.iso}


@dataclass(frozen=True)
class FileReference:
    """A reference to an uploaded file, ``{"__type": "File", "name": ...}``."""

    TYPE: ClassVar[str] = "File"
    WIRE_FIELDS: ClassVar[tuple[str, ...]] = ("name",)

    name: str
    url: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileReference":
        """Create from API response dict."""
        return cls(name=data.get("name", ""), url=data.get("url"))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"__type": self.TYPE, "name": self.name}
        if self.url:
            result["url"] = self.url
        return result


@dataclass(frozen=True)
class Pointer:
    """A reference from one record to another."""

    TYPE: ClassVar[str] = "Pointer"
    WIRE_FIELDS: ClassVar[tuple[str, ...]] = ("className", "objectId")

    class_name: str
    object_id: str

    def __post_init__(self) -> None:
        if not self.class_name or not self.object_id:
            raise InvalidArgumentError("Pointer requires a class name and an object ID")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Pointer":
        """Create from API response dict."""
        return cls(class_name=data.get("className", ""), object_id=data.get("objectId", ""))

    def to_dict(self) -> dict[str, Any]:
        return {"__type": self.TYPE, "className": self.class_name, "objectId": self.object_id}


WRAPPER_TYPES: dict[str, type] = {
    ParseDate.TYPE: ParseDate,
    FileReference.TYPE: FileReference,
    Pointer.TYPE: Pointer,
}

Wrapper = ParseDate | FileReference | Pointer


# =============================================================================
# File Handle
# =============================================================================


@dataclass
class ParseFile:
    """
    A local file to upload, or a file already stored by the backend.

    ``name`` and ``url`` are assigned by the backend on upload.
    """

    path: str
    content_type: str | None = None
    name: str | None = None
    url: str | None = None

    def __post_init__(self) -> None:
        if self.content_type is None:
            guessed = mimetypes.guess_type(self.local_name)[0]
            self.content_type = guessed or "application/octet-stream"

    @property
    def local_name(self) -> str:
        """File name part of the local path."""
        return os.path.basename(self.path)

    @property
    def is_uploaded(self) -> bool:
        return bool(self.name)

    def reference(self) -> FileReference:
        """Build the wire reference for this file."""
        if not self.name:
            raise InvalidArgumentError(
                f"File '{self.local_name}' has not been uploaded yet",
                details={"path": self.path},
            )
        return FileReference(name=self.name, url=self.url)


# =============================================================================
# Value Encoding
# =============================================================================


def wrap_value(value: Any) -> Any:
    """Choose the stored form of a value being set on a record."""
    if isinstance(value, (datetime, date)):
        return ParseDate.from_datetime(value)
    if isinstance(value, ParseFile):
        return value.reference()
    if isinstance(value, ParseObject):
        raise InvalidArgumentError(
            "Records cannot be nested; store a Pointer (see ParseObject.pointer())"
        )
    return value


def decode_value(value: Any) -> Any:
    """Turn ``__type`` dicts from a response into wrapper objects."""
    if isinstance(value, dict):
        wrapper_type = WRAPPER_TYPES.get(value.get("__type"))
        if wrapper_type is not None and all(value.get(f) for f in wrapper_type.WIRE_FIELDS):
            return wrapper_type.from_dict(value)
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


def encode_value(value: Any) -> Any:
    """Turn stored values into JSON-ready data."""
    if isinstance(value, Wrapper):
        return value.to_dict()
    if isinstance(value, (datetime, date)):
        return ParseDate.from_datetime(value).to_dict()
    if isinstance(value, dict):
        return {k: encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    return value


# =============================================================================
# Record
# =============================================================================


class ParseObject(MutableMapping):
    """
    A class-typed record stored by the backend.

    Behaves like a dict of attributes, but every write goes through
    ``set``, which wraps dates and files in their wire form.

    Example:
        score = ParseObject("GameScore")
        score["playerName"] = "Sean"
        score["playedAt"] = datetime.now(timezone.utc)

    """

    def __init__(self, class_name: str, attributes: dict[str, Any] | None = None):
        if not class_name:
            raise InvalidArgumentError("Class name required")
        self._data: dict[str, Any] = {CLASS_KEY: class_name}
        for key, value in (attributes or {}).items():
            self.set(key, value)

    # -- mapping protocol --------------------------------------------------

    def set(self, key: str, value: Any) -> None:
        """Store a value, wrapping dates and files."""
        if key == CLASS_KEY and not value:
            raise InvalidArgumentError("Class name required")
        self._data[key] = wrap_value(value)

    def get(self, key: str, default: Any = _MISSING) -> Any:
        """Return the stored value (wrappers are returned as-is)."""
        if key in self._data:
            return self._data[key]
        if default is _MISSING:
            raise KeyNotFoundError(key)
        return default

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        if key == CLASS_KEY:
            raise InvalidArgumentError("The class of a record cannot be removed")
        if key not in self._data:
            raise KeyNotFoundError(key)
        del self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        attrs = {k: v for k, v in self._data.items() if k != CLASS_KEY}
        return f"ParseObject({self.class_name!r}, {attrs!r})"

    # -- reserved keys -----------------------------------------------------

    @property
    def class_name(self) -> str:
        return self._data[CLASS_KEY]

    @property
    def object_id(self) -> str | None:
        return self._data.get(OBJECT_ID_KEY)

    @property
    def created_at(self) -> str | None:
        return self._data.get(CREATED_AT_KEY)

    @property
    def updated_at(self) -> str | None:
        return self._data.get(UPDATED_AT_KEY)

    def parse_date(self, key: str) -> datetime:
        """
        Read a stored date back as an aware UTC datetime.

        Accepts a ParseDate wrapper, a raw ``{"__type": "Date"}`` dict, or a
        plain ISO string such as ``createdAt``.

        Raises:
            KeyNotFoundError: If the key is absent
            FormatError: If the value is not a date in the backend format

        """
        value = self.get(key)
        if isinstance(value, ParseDate):
            return value.to_datetime()
        if isinstance(value, dict) and value.get("__type") == ParseDate.TYPE:
            return parse_iso(value.get("iso"))
        return parse_iso(value)

    def pointer(self) -> Pointer:
        """Build a Pointer to this record. The record must have been created."""
        if not self.object_id:
            raise InvalidArgumentError(
                f"{self.class_name} record has no objectId; create it first"
            )
        return Pointer(self.class_name, self.object_id)

    # -- wire format -------------------------------------------------------

    def to_payload(self, exclude: frozenset[str] | builtins.set[str] = frozenset()) -> dict[str, Any]:
        """
        Build the JSON body for this record.

        ``class`` is always left out; keys in ``exclude`` are left out too.
        The record itself is not modified.
        """
        return {
            key: encode_value(value)
            for key, value in self._data.items()
            if key != CLASS_KEY and key not in exclude
        }

    @classmethod
    def from_wire(cls, class_name: str, data: dict[str, Any]) -> "ParseObject":
        """Create from API response dict, keeping every returned key."""
        obj = cls(class_name)
        for key, value in data.items():
            if key == CLASS_KEY:
                continue
            obj._data[key] = decode_value(value)
        return obj
