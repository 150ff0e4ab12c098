# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from fonttriage.adapters.extraction import default_extractor, load_extractor
from fonttriage.app import (
    apply_changes,
    build_reference_index,
    clear_reference_index,
    index_status,
    open_triage_session,
)
from fonttriage.config import configure_logging, level_for_verbosity, optional_env_var
from fonttriage.domain.model import Verdict
from fonttriage.domain.mutations import ApplyStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from fonttriage.domain.ports import FontExtractor
    from fonttriage.domain.session import TriageSession

log = logging.getLogger(__name__)

EXTRACTOR_ENV_VAR = "FONTTRIAGE_EXTRACTOR"


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Triage unreviewed fonts against a reference set")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log output (repeat for debug)",
    )
    parser.add_argument(
        "--extractor",
        type=str,
        help=(
            f"Font parser as 'module:callable' (defaults to ${EXTRACTOR_ENV_VAR}, "
            "then to the bundled fontTools parser)"
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    index = subparsers.add_parser("index", help="Reference index commands")
    index_sub = index.add_subparsers(dest="index_command", required=True)
    build = index_sub.add_parser("build", help="Index a reference font directory")
    build.add_argument("root", type=str, help="Reference font directory")
    build.add_argument(
        "--rebuild",
        action="store_true",
        help="Replace the existing index even if one is present",
    )
    index_sub.add_parser("status", help="Show the committed index summary")
    index_sub.add_parser("clear", help="Delete the committed index")

    triage = subparsers.add_parser("triage", help="Classify candidate fonts by family")
    triage.add_argument("root", type=str, help="Candidate font directory")
    triage.add_argument(
        "--verdict",
        action="append",
        choices=[verdict.value for verdict in Verdict],
        help="Only count members with this verdict (repeatable)",
    )
    triage.add_argument(
        "--family",
        type=str,
        help="Case-insensitive substring filter on the family name",
    )
    triage.add_argument(
        "--details",
        action="store_true",
        help="List every member below its family",
    )

    apply = subparsers.add_parser("apply", help="Rename or remove candidate fonts")
    apply.add_argument("root", type=str, help="Candidate font directory")
    apply.add_argument(
        "--rename",
        action="append",
        default=[],
        metavar="PATH=NAME",
        help="Rename the candidate at PATH (relative to root) to NAME (repeatable)",
    )
    apply.add_argument(
        "--remove",
        action="append",
        default=[],
        metavar="PATH",
        help="Move the candidate at PATH into the staging directory (repeatable)",
    )

    return parser.parse_args(list(argv))


def _parse_renames(values: Sequence[str]) -> dict[str, str]:
    renames: dict[str, str] = {}
    for value in values:
        path, sep, target = value.partition("=")
        if not sep or not path.strip() or not target.strip():
            raise ValueError(f"Invalid rename {value!r}; expected PATH=NAME")
        renames[path.strip()] = target.strip()
    return renames


def _resolve_extractor(args: argparse.Namespace) -> FontExtractor:
    spec = args.extractor or optional_env_var(EXTRACTOR_ENV_VAR)
    if spec is None:
        return default_extractor()
    return load_extractor(spec)


def _load_extractor_or_exit(args: argparse.Namespace) -> FontExtractor:
    try:
        return _resolve_extractor(args)
    except (ValueError, ImportError, AttributeError, TypeError):
        log.exception("Could not load font extractor")
        sys.exit(2)


def _print_status() -> None:
    metadata = index_status()
    if metadata is None:
        print("No reference index has been built.")
        return
    print(f"root: {metadata.root_label}")
    print(f"records: {metadata.item_count}")
    print(f"built: {metadata.last_built_at.isoformat()}")


def _print_triage(
    session: TriageSession,
    *,
    verdicts: Sequence[str] | None,
    family: str | None,
    details: bool,
) -> None:
    selected = {Verdict(value) for value in verdicts} if verdicts else None
    summaries = session.family_summaries(verdicts=selected, query=family)
    for summary in summaries:
        count = (
            f"{summary.filtered_count}/{summary.member_count}"
            if selected
            else str(summary.member_count)
        )
        print(f"{summary.verdict.value.upper():<9} {summary.key} ({count})")
        if not details:
            continue
        for member in session.groups[summary.key]:
            result = session.result(member.path)
            if selected and result.verdict not in selected:
                continue
            matched = result.matched.path if result.matched is not None else "-"
            print(
                f"    {result.verdict.value:<8} {result.level.value} {member.path} -> {matched}"
            )
    if not summaries:
        print("No matching families.")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        renames = _parse_renames(parsed_args.rename) if parsed_args.command == "apply" else {}
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=level_for_verbosity(parsed_args.verbose))

    try:
        if parsed_args.command == "index" and parsed_args.index_command == "build":
            result = build_reference_index(
                parsed_args.root,
                extractor=_load_extractor_or_exit(parsed_args),
                rebuild=parsed_args.rebuild,
            )
            print(f"Indexed {result.indexed} fonts ({result.failed} failed).")
        elif parsed_args.command == "index" and parsed_args.index_command == "status":
            _print_status()
        elif parsed_args.command == "index" and parsed_args.index_command == "clear":
            clear_reference_index()
        elif parsed_args.command == "triage":
            session, _scan = open_triage_session(
                parsed_args.root, extractor=_load_extractor_or_exit(parsed_args)
            )
            _print_triage(
                session,
                verdicts=parsed_args.verdict,
                family=parsed_args.family,
                details=parsed_args.details,
            )
        elif parsed_args.command == "apply":
            session, _scan = open_triage_session(
                parsed_args.root, extractor=_load_extractor_or_exit(parsed_args)
            )
            result = apply_changes(session, renames=renames, removals=parsed_args.remove)
            print(f"Renamed {result.renamed}, removed {result.removed}.")
            for failure in result.failures:
                print(f"  {failure.kind.value} {failure.path}: {failure.message}")
            if result.status is not ApplyStatus.COMPLETED or result.failures:
                if result.first_error:
                    log.error(result.first_error)
                sys.exit(1)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
