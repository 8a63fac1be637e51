"""
Command line entry point: import, list, show and delete passes
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pasbook.config import settings
from pasbook.errors import PasbookError
from pasbook.importer import ImportCoordinator, import_with_retry
from pasbook.logger import configure_logging
from pasbook.models.dao.pass_dao import PassDAO


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pasbook", description="Manage a local library of .pkpass passes"
    )
    _ = parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug output"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    import_command = commands.add_parser("import", help="Import .pkpass files")
    _ = import_command.add_argument("paths", nargs="+", type=Path)

    _ = commands.add_parser("list", help="List the stored passes")

    show_command = commands.add_parser("show", help="Print a pass as JSON")
    _ = show_command.add_argument("pass_id")

    delete_command = commands.add_parser("delete", help="Delete a pass")
    _ = delete_command.add_argument("pass_id")
    return parser


def run(args: argparse.Namespace, coordinator: ImportCoordinator) -> int:
    """Execute the parsed command, returns the process exit code"""
    logger = logging.getLogger("Main")

    if args.command == "import":
        failures = 0
        for path in args.paths:
            try:
                record = import_with_retry(
                    coordinator,
                    path,
                    on_retry=lambda attempt: logger.info("Retrying, attempt %d", attempt),
                )
            except (PasbookError, OSError) as e:
                failures += 1
                print(f"{path}: {e}", file=sys.stderr)
                continue
            print(f"{record.id}\t{record.serial_number}\t{record.description}")
        return 1 if failures else 0

    if args.command == "list":
        for record in coordinator.list_passes():
            relevant = record.relevant_date.isoformat() if record.relevant_date else "-"
            print(
                f"{record.id}\t{relevant}\t{record.pass_type.value}\t{record.description}"
            )
        return 0

    if args.command == "show":
        record = coordinator.get_pass(args.pass_id)
        if record is None:
            print(f"No pass with id {args.pass_id}", file=sys.stderr)
            return 1
        print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
        return 0

    if args.command == "delete":
        if not coordinator.delete_pass(args.pass_id):
            print(f"No pass with id {args.pass_id}", file=sys.stderr)
            return 1
        return 0

    return 2


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    logging.debug("Starting pasbook %s", args.command)

    try:
        with PassDAO(settings.DATABASE_PATH) as dao:
            return run(args, ImportCoordinator(dao, settings.PASSES_DIR_PATH))
    except PasbookError as e:
        logging.getLogger("Main").error("Uncaught error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
