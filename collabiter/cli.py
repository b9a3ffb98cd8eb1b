"""CLI entrypoints for collabiter commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .coordination import Coordinator
from .errors import CollabiterError, CompletionBlocked
from .fingerprint import FingerprintEngine, RemoteReader
from .logging import configure_logging
from .matching import ContextMatcher
from .models import ComponentRecord
from .resolver import ContextResolver
from .stores import ContextCatalog, JsonFileStore


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="collabiter",
        description="Match projects to learned contexts and coordinate component dependencies.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--home",
        type=Path,
        default=None,
        help="Manager home directory holding contexts, memory and .collabiter.yml.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    fingerprint_parser = subparsers.add_parser("fingerprint", help="Print the project fingerprint.")
    _add_verbose_option(fingerprint_parser, suppress_default=True)
    _add_path_argument(fingerprint_parser)

    match_parser = subparsers.add_parser("match", help="Show which stored context matches a project.")
    _add_verbose_option(match_parser, suppress_default=True)
    _add_path_argument(match_parser)

    init_parser = subparsers.add_parser(
        "init", help="Resolve the project context, learning a new one when nothing matches."
    )
    _add_verbose_option(init_parser, suppress_default=True)
    _add_path_argument(init_parser)

    check_parser = subparsers.add_parser(
        "check", help="Reject a file whose imports would create a circular dependency."
    )
    _add_verbose_option(check_parser, suppress_default=True)
    check_parser.add_argument("file", help="Component path about to be created.")
    check_parser.add_argument(
        "--import", dest="imports", action="append", default=[], help="Imported component path."
    )

    reserve_parser = subparsers.add_parser("reserve", help="Reserve a component for an agent.")
    _add_verbose_option(reserve_parser, suppress_default=True)
    reserve_parser.add_argument("name")
    reserve_parser.add_argument("--owner", required=True)

    register_parser = subparsers.add_parser("register", help="Register a created component.")
    _add_verbose_option(register_parser, suppress_default=True)
    register_parser.add_argument("name")
    register_parser.add_argument("file")
    register_parser.add_argument("--import", dest="imports", action="append", default=[])
    register_parser.add_argument("--export", dest="exports", action="append", default=[])
    register_parser.add_argument("--test", dest="tests", action="append", default=[])

    review_parser = subparsers.add_parser("review", help="Record a design review for a component.")
    _add_verbose_option(review_parser, suppress_default=True)
    review_parser.add_argument("name")
    review_parser.add_argument("--reviewer", default=None)

    complete_parser = subparsers.add_parser(
        "complete", help="Fail unless every completion check passes for a component."
    )
    _add_verbose_option(complete_parser, suppress_default=True)
    complete_parser.add_argument("name")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for collabiter commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.home)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")
    configure_logging(verbose=bool(args.verbose), log_file=config.log_file)

    try:
        if args.command == "fingerprint":
            engine = FingerprintEngine(RemoteReader(timeout=config.git_timeout))
            _print_json(engine.fingerprint(args.path).to_dict())
        elif args.command == "match":
            engine = FingerprintEngine(RemoteReader(timeout=config.git_timeout))
            matcher = ContextMatcher(config.matching)
            result = matcher.match_catalog(
                engine.fingerprint(args.path), ContextCatalog(config.contexts_dir)
            )
            if result is None:
                print("No matching context")
            else:
                print(f"{result.context.id} (matched by {result.tier})")
        elif args.command == "init":
            resolution = ContextResolver(config).resolve(args.path)
            state = "Matched" if resolution.matched else "Created"
            print(f"{state} context {resolution.context.id}")
        else:
            _run_coordination(args, Coordinator(JsonFileStore(config.memory_dir)))
    except CompletionBlocked as exc:
        parser.exit(1, f"{exc}\n")
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")
    except CollabiterError as exc:
        parser.exit(1, f"collabiter {args.command} failed: {exc}\n")


def _run_coordination(args: argparse.Namespace, coordinator: Coordinator) -> None:
    if args.command == "check":
        coordinator.check_prospective_imports(args.file, args.imports)
        print("No circular dependencies detected")
    elif args.command == "reserve":
        coordinator.reserve_component(args.name, args.owner)
        print(f"Reserved {args.name} for {args.owner}")
    elif args.command == "register":
        record = ComponentRecord(
            name=args.name,
            path=args.file,
            imports=args.imports,
            exports=args.exports,
            tests=args.tests,
        )
        coordinator.register_component(record)
        print(f"Registered {args.name}")
    elif args.command == "review":
        coordinator.mark_design_reviewed(args.name, args.reviewer)
        print(f"Recorded design review for {args.name}")
    elif args.command == "complete":
        _print_json(coordinator.require_completion(args.name))
    else:  # pragma: no cover - argparse enforces choices
        raise SystemExit("Unknown command")


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


if __name__ == "__main__":
    main(sys.argv[1:])
