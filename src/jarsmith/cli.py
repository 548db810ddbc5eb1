"""Command line front end for JarBuilder.

Usage:
    jarsmith out.jar --add build/classes= --add-jar lib/dep.jar \\
        --policy '^META-INF/services/=concat' --exclude '\\.DS_Store$'

Additions are scheduled in the order they appear on the command line.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from jarsmith import __version__
from jarsmith.core.config import ALLOWED_DUPLICATE_ACTIONS, ConfigResolver
from jarsmith.core.errors import JarsmithError
from jarsmith.core.logging import apply_logging_policy, get_logger
from jarsmith.jar.builder import JarBuilder
from jarsmith.jar.duplicates import DuplicateHandler
from jarsmith.jar.listener import LoggingListener

_log = get_logger("jarsmith.cli")


class _OrderedAddition(argparse.Action):
    """Collect --add/--add-jar into one list so their relative order survives."""

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Any,
        option_string: str | None = None,
    ) -> None:
        additions = list(getattr(namespace, "additions", None) or [])
        additions.append((self.const, values))
        namespace.additions = additions


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jarsmith",
        description="Assemble a jar from files, directories and other jars.",
    )
    parser.add_argument("target", type=Path, help="jar to create or update")
    parser.add_argument(
        "--add",
        metavar="SRC[=DEST]",
        action=_OrderedAddition,
        const="path",
        help="file or directory to add; DEST defaults to the file name (root for a directory)",
    )
    parser.add_argument(
        "--add-jar",
        metavar="JAR",
        action=_OrderedAddition,
        const="jar",
        help="existing jar whose entries are added",
    )
    parser.add_argument("--manifest", type=Path, help="custom manifest file")
    parser.add_argument(
        "--default-action",
        choices=sorted(ALLOWED_DUPLICATE_ACTIONS),
        help="action for duplicate entries no policy matches",
    )
    parser.add_argument(
        "--policy",
        metavar="REGEX=ACTION",
        action="append",
        help="duplicate policy; the first matching policy wins",
    )
    parser.add_argument(
        "--exclude",
        metavar="REGEX",
        action="append",
        help="exclude entries whose path matches REGEX",
    )
    parser.add_argument("--tmp-dir", help="scratch directory for the temporary jar")
    parser.add_argument("--config", type=Path, help="user config file (YAML)")

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-q", "--quiet", action="store_true", help="warnings and errors only")
    verbosity.add_argument("-v", "--verbose", action="store_true", help="report every duplicate")
    verbosity.add_argument("--debug", action="store_true", help="report everything")

    parser.add_argument("--version", action="version", version=f"jarsmith {__version__}")
    parser.set_defaults(additions=[])
    return parser


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Map parsed arguments onto config keys (highest priority layer)."""
    overrides: dict[str, Any] = {}
    if args.default_action:
        overrides["duplicates.default_action"] = args.default_action
    if args.policy:
        overrides["duplicates.policies"] = list(args.policy)
    if args.exclude:
        overrides["duplicates.exclude"] = list(args.exclude)
    if args.tmp_dir:
        overrides["archive.tmp_dir"] = args.tmp_dir
    if args.quiet:
        overrides["logging.level"] = "quiet"
    elif args.verbose:
        overrides["logging.level"] = "verbose"
    elif args.debug:
        overrides["logging.level"] = "debug"
    return overrides


def _split_addition(value: str) -> tuple[Path, str]:
    # DEST follows the last '=' so source paths may contain one.
    src, sep, dest = value.rpartition("=")
    if not sep:
        path = Path(value)
        return path, "" if path.is_dir() else path.name
    return Path(src), dest


def run(args: argparse.Namespace) -> Path:
    """Schedule everything ``args`` names and write the jar."""
    resolver = ConfigResolver(cli_args=_cli_overrides(args), user_config_path=args.config)
    apply_logging_policy(resolver.resolve_logging_policy())

    handler = DuplicateHandler.from_config(resolver)
    patterns = resolver.resolve_exclude_patterns()

    with JarBuilder(args.target, LoggingListener(), tmp_dir=resolver.resolve_tmp_dir()) as builder:
        for kind, value in args.additions:
            if kind == "jar":
                builder.add_jar(Path(value))
            else:
                path, dest = _split_addition(value)
                builder.add(path, dest)
        if args.manifest is not None:
            builder.use_custom_manifest(args.manifest)
        return builder.write(handler, *patterns)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        run(args)
    except JarsmithError as e:
        _log.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
