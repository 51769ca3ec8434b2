"""
Parse CLI - Three-layer client for the Parse REST API.

Layers:
- core: Record types, wire wrappers and HTTP client
- sdk: High-level ParseClient with object and file operations
- cli: Command-line interface
"""

from parse_cli.core.types import ParseFile, ParseObject, Pointer
from parse_cli.sdk import ParseClient

__version__ = "0.1.0"
__all__ = ["ParseClient", "ParseFile", "ParseObject", "Pointer"]
