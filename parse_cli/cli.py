"""
Parse CLI - Command-line interface for the Parse REST API.

This layer provides the user-facing CLI commands, using the SDK layer
for all operations. It handles:
- Argument parsing
- TTY detection for human vs machine output
- JSON output for piping/automation
"""

import argparse
import json
import logging
import sys
from typing import Any

from parse_cli.core.client import DEFAULT_TIMEOUT
from parse_cli.core.errors import InvalidArgumentError, ParseClientError
from parse_cli.core.types import ParseFile, ParseObject
from parse_cli.sdk import ParseClient

# =============================================================================
# Output Helpers
# =============================================================================


def is_tty() -> bool:
    """True when a person is reading stdout; False when it is piped to another program."""
    return sys.stdout.isatty()


def json_output(data: Any, pretty: bool = False) -> None:
    """Write ``data`` as JSON, indented for terminals and compact for pipes."""
    indent = 2 if pretty or is_tty() else None
    print(json.dumps(data, indent=indent, default=str))


def error_output(error: ParseClientError) -> None:
    """Report a client error as JSON on stdout and exit with status 1."""
    json_output(error.to_dict())
    sys.exit(1)


def success_output(data: Any) -> None:
    """Report the result of a command that succeeded."""
    json_output(data)


def table_output(
    headers: list[str],
    rows: list[list[str]],
    widths: list[int],
) -> None:
    """Print a formatted table for human output."""
    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths))
    print(header_line)
    print("-" * len(header_line))

    for row in rows:
        print("  ".join(str(v)[:w].ljust(w) for v, w in zip(row, widths)))


def record_output(record: ParseObject) -> dict[str, Any]:
    """Wire-format view of a record, including its class."""
    return {"className": record.class_name, **record.to_payload()}


def read_json_arg(value: str, flag: str) -> Any:
    """Parse a JSON argument, or read JSON from stdin when the value is '-'."""
    try:
        if value == "-":
            return json.load(sys.stdin)
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise InvalidArgumentError(f"Invalid JSON in {flag}: {e}") from e


def read_attributes(args: argparse.Namespace) -> dict[str, Any]:
    data = read_json_arg(args.data, "--data")
    if not isinstance(data, dict):
        raise InvalidArgumentError("--data must be a JSON object")
    return data


# =============================================================================
# CLI Commands
# =============================================================================


def cmd_obj_create(client: ParseClient, args: argparse.Namespace) -> None:
    """Create a record."""
    try:
        record = ParseObject.from_wire(args.class_name, read_attributes(args))
        client.objects.create(record)
        success_output(
            {
                "objectId": record.object_id,
                "createdAt": record.created_at,
                "message": f"{record.class_name} created",
            }
        )
    except ParseClientError as e:
        error_output(e)


def cmd_obj_get(client: ParseClient, args: argparse.Namespace) -> None:
    """Get a record by ID."""
    try:
        record = client.objects.get(args.class_name, args.object_id)
        if args.date:
            print(record.parse_date(args.date).isoformat())
        else:
            success_output(record_output(record))
    except ParseClientError as e:
        error_output(e)


def cmd_obj_query(client: ParseClient, args: argparse.Namespace) -> None:
    """Query records of a class."""
    try:
        where = read_json_arg(args.where, "--where") if args.where else {}
        records = client.objects.query(
            args.class_name,
            where,
            order=args.order,
            limit=args.limit or 0,
            skip=args.skip or 0,
        )

        if is_tty():
            if not records:
                print("No records found.")
                return

            table_output(
                ["Object ID", "Created At", "Attributes"],
                [
                    [
                        r.object_id or "",
                        r.created_at or "",
                        json.dumps(r.to_payload(exclude={"objectId", "createdAt", "updatedAt"})),
                    ]
                    for r in records
                ],
                [12, 26, 60],
            )
        else:
            success_output(
                {
                    "results": [record_output(r) for r in records],
                    "count": len(records),
                }
            )
    except ParseClientError as e:
        error_output(e)


def cmd_obj_update(client: ParseClient, args: argparse.Namespace) -> None:
    """Update attributes of a record."""
    try:
        record = ParseObject.from_wire(args.class_name, read_attributes(args))
        record.set("objectId", args.object_id)
        client.objects.update(record)
        success_output({"success": True, "message": f"{args.class_name} {args.object_id} updated"})
    except ParseClientError as e:
        error_output(e)


def cmd_obj_delete(client: ParseClient, args: argparse.Namespace) -> None:
    """Delete a record."""
    try:
        record = ParseObject(args.class_name)
        record.set("objectId", args.object_id)
        client.objects.delete(record)
        success_output({"success": True, "message": f"{args.class_name} {args.object_id} deleted"})
    except ParseClientError as e:
        error_output(e)


def cmd_file_upload(client: ParseClient, args: argparse.Namespace) -> None:
    """Upload a file."""
    try:
        file = client.files.upload(
            ParseFile(args.path, content_type=args.content_type),
            multipart=args.multipart,
        )
        success_output({"name": file.name, "url": file.url, "content_type": file.content_type})
    except ParseClientError as e:
        error_output(e)


def cmd_file_delete(client: ParseClient, args: argparse.Namespace) -> None:
    """Delete an uploaded file."""
    try:
        client.files.delete(ParseFile(args.name, name=args.name))
        success_output({"success": True, "message": f"File {args.name} deleted"})
    except ParseClientError as e:
        error_output(e)


# =============================================================================
# Main CLI
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="parse",
        description="Parse CLI - Command-line interface for the Parse REST API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Credentials are read from PARSE_APPLICATION_ID and PARSE_APPLICATION_SECRET.

Examples:
  parse obj create GameScore --data '{"score": 1337, "playerName": "Sean"}'
  parse obj query GameScore --where '{"playerName": "Sean"}' --order=-score --limit 10
  parse obj get GameScore <object_id> --date createdAt
  parse file upload ./avatar.png
""",
    )
    parser.add_argument(
        "--timeout",
        "-t",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Request timeout in seconds (default {DEFAULT_TIMEOUT})",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log requests to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ========== Objects ==========
    obj = subparsers.add_parser("obj", help="Manage records")
    obj.set_defaults(func=lambda _c, _a: obj.print_help())
    obj_sub = obj.add_subparsers(dest="subcommand")

    o_create = obj_sub.add_parser("create", help="Create a record")
    o_create.add_argument("class_name", help="Class name")
    o_create.add_argument("--data", "-d", required=True, help="JSON object with attributes (or - for stdin)")
    o_create.set_defaults(func=cmd_obj_create)

    o_get = obj_sub.add_parser("get", help="Get a record")
    o_get.add_argument("class_name", help="Class name")
    o_get.add_argument("object_id", help="Object ID")
    o_get.add_argument("--date", help="Print only this date attribute, as ISO-8601")
    o_get.set_defaults(func=cmd_obj_get)

    o_query = obj_sub.add_parser("query", help="Query records")
    o_query.add_argument("class_name", help="Class name")
    o_query.add_argument("--where", "-w", help="JSON filter object (or - for stdin)")
    o_query.add_argument("--order", help="Attribute to sort by; use --order=-attr for descending")
    o_query.add_argument("--limit", "-l", type=int, help="Max results")
    o_query.add_argument("--skip", "-s", type=int, help="Results to skip")
    o_query.set_defaults(func=cmd_obj_query)

    o_update = obj_sub.add_parser("update", help="Update a record")
    o_update.add_argument("class_name", help="Class name")
    o_update.add_argument("object_id", help="Object ID")
    o_update.add_argument("--data", "-d", required=True, help="JSON object with attributes (or - for stdin)")
    o_update.set_defaults(func=cmd_obj_update)

    o_delete = obj_sub.add_parser("delete", help="Delete a record")
    o_delete.add_argument("class_name", help="Class name")
    o_delete.add_argument("object_id", help="Object ID")
    o_delete.set_defaults(func=cmd_obj_delete)

    # ========== Files ==========
    file = subparsers.add_parser("file", help="Manage files")
    file.set_defaults(func=lambda _c, _a: file.print_help())
    file_sub = file.add_subparsers(dest="subcommand")

    f_upload = file_sub.add_parser("upload", help="Upload a file")
    f_upload.add_argument("path", help="Local file path")
    f_upload.add_argument("--content-type", "-c", help="Content type (guessed from the name if omitted)")
    f_upload.add_argument("--multipart", action="store_true", help="Send as multipart/form-data")
    f_upload.set_defaults(func=cmd_file_upload)

    f_delete = file_sub.add_parser("delete", help="Delete an uploaded file")
    f_delete.add_argument("name", help="File name assigned by the backend")
    f_delete.set_defaults(func=cmd_file_delete)

    return parser


def main() -> None:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(0)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        client = ParseClient(timeout=args.timeout)
    except ParseClientError as e:
        error_output(e)

    # Run command (all subparsers have default funcs that print help)
    args.func(client, args)


if __name__ == "__main__":
    main()
