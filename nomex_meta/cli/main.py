"""
Command line front end.

    nomex-layers <search_folder> <code>[,<code>...] [<code> ...] [options]

Prints one line per matching property, ``<code>: <name>: <value>``.
Per-file problems go to the log (stderr). A run that cannot complete at all,
including one started with bad arguments, prints a single ``Error: ...`` line
and exits with 1.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, IO, Iterable, List, NoReturn, Optional, Sequence

from core.config.config_service import ConfigError, ConfigService
from core.logging.logic.logger import configure_logging
from nomex_meta.logic.nomex_service import NomexLayerService

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[ConfigService], NomexLayerService]


class UsageError(Exception):
    """Bad command line; reported like any other failure."""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def split_identifiers(values: Iterable[str]) -> List[str]:
    """Flatten comma-separated and repeated identifier arguments."""
    out: List[str] = []
    for value in values:
        for token in value.split(","):
            token = token.strip()
            if token:
                out.append(token)
    return out


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="nomex-layers",
        description="Read the NOMEX_LAYERS custom properties of Solid Edge part files.",
    )
    parser.add_argument("search_folder", type=Path, help="Folder that holds the part files")
    parser.add_argument(
        "identifiers",
        nargs="+",
        help="Unique codes, comma-separated and/or as separate arguments",
    )
    parser.add_argument("--config", type=Path, help="Additional INI file (highest precedence)")
    parser.add_argument("--extension", help="Part file extension (default from config: psm)")
    parser.add_argument("--prefix", help="Property name prefix (default from config: NOMEX_LAYERS)")
    parser.add_argument(
        "--log-level",
        help="DEBUG, INFO, WARNING, ERROR (default from config)",
    )
    return parser


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    service_factory: ServiceFactory = NomexLayerService.from_config,
    out: Optional[IO[str]] = None,
) -> int:
    out = out or sys.stdout
    try:
        args = build_parser().parse_args(argv)
    except UsageError as exc:
        print(f"Error: {exc}", file=out)
        return 1

    identifiers = split_identifiers(args.identifiers)
    if not identifiers:
        print("Error: no unique codes given.", file=out)
        return 1

    try:
        config = ConfigService(extra_ini=args.config)
        configure_logging(args.log_level or config.logging.level, config.logging.format)

        service = service_factory(config)
        if args.extension:
            service.settings.extension = args.extension
        if args.prefix:
            service.settings.prefix = args.prefix

        result = service.collect(identifiers, args.search_folder)
    except ConfigError as exc:
        print(f"Error: {exc}", file=out)
        return 1
    except Exception as exc:
        logger.debug("Run aborted", exc_info=True)
        print(f"Error: {exc}", file=out)
        return 1

    for line in result:
        print(line, file=out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
