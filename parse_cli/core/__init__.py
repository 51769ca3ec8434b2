"""
Core layer - Record types, errors and HTTP client.

This layer provides:
- ParseObject and the Date/File/Pointer wire wrappers
- Low-level HTTP client with auth and error handling
"""

from parse_cli.core.client import APIClient
from parse_cli.core.errors import (
    BackendError,
    DecodeError,
    FormatError,
    InvalidArgumentError,
    KeyNotFoundError,
    ParseClientError,
    TransportError,
)
from parse_cli.core.types import FileReference, ParseDate, ParseFile, ParseObject, Pointer

__all__ = [
    "APIClient",
    "BackendError",
    "DecodeError",
    "FileReference",
    "FormatError",
    "InvalidArgumentError",
    "KeyNotFoundError",
    "ParseClientError",
    "ParseDate",
    "ParseFile",
    "ParseObject",
    "Pointer",
    "TransportError",
]
