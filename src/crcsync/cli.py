"""Command line entry point for crcsync."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .config import CrcSyncConfig, ScannerConfig
from .synchronizer import MacroSynchronizer
from .common import ConfigLoader, ConfigurationError, CrcSyncError, classify_error, setup_logging

APP_NAME = "crcsync"
USAGE = f"Usage: {APP_NAME} <file_with_crc_macros>"

EXIT_OK = 0
EXIT_STALE = 1
EXIT_ERROR = 2


def sync_command(config: CrcSyncConfig, file_path: Path, check_only: bool = False) -> int:
    """Synchronize the checksum arguments in one file.

    Args:
        config: Configuration object
        file_path: File to process
        check_only: Report discrepancies without rewriting

    Returns:
        Exit code: 0 when consistent or rewritten, 1 when ``check_only``
        found discrepancies, 2 on error
    """
    logger = logging.getLogger(__package__ or __name__)

    try:
        result = MacroSynchronizer(config.scanner).sync(file_path, check_only=check_only)
    except CrcSyncError as e:
        logger.error(e.message)
        logger.debug(f"Failure details: {{'category': {classify_error(e)!r}, 'context': {e.context!r}}}")
        return EXIT_ERROR

    if result.rewritten:
        logger.info(f"Updated {result.discrepancies} of {result.invocations} checksum(s) in {file_path}")
    elif result.discrepancies:
        logger.warning(f"{result.discrepancies} of {result.invocations} checksum(s) out of date in {file_path}")
        return EXIT_STALE
    else:
        logger.info(f"All {result.invocations} checksum(s) up to date in {file_path}")
    return EXIT_OK


def _apply_overrides(config: CrcSyncConfig, args: argparse.Namespace) -> CrcSyncConfig:
    scanner = config.scanner.model_dump()
    if args.macro_name is not None:
        scanner["macro_name"] = args.macro_name
    if args.max_line_length is not None:
        scanner["max_line_length"] = args.max_line_length

    logging_config = config.logging.model_dump()
    if args.log_level is not None:
        logging_config["level"] = args.log_level

    try:
        return CrcSyncConfig(logging=logging_config, scanner=ScannerConfig(**scanner))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid option: {e}", errors=e.errors()) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Insert or correct CRC-32 constants in CRC(\"string\", 0xHEX) macro invocations"
    )
    parser.add_argument(
        "file",
        nargs="?",
        type=Path,
        help="Source file to process in place"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only report out-of-date checksums, never rewrite (exit 1 if any)"
    )
    parser.add_argument(
        "--macro-name",
        help="Macro name to look for (overrides config, default: CRC)"
    )
    parser.add_argument(
        "--max-line-length",
        type=int,
        help="Longest accepted line in bytes (overrides config)"
    )
    parser.add_argument(
        "--log-level",
        help="Log level: DEBUG, INFO, WARNING, ERROR (overrides config)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the crcsync command."""
    args = build_parser().parse_args(argv)

    if args.file is None:
        print(USAGE)
        return EXIT_OK

    loader = ConfigLoader(
        app_name=APP_NAME,
        config_class=CrcSyncConfig
    )

    try:
        config = _apply_overrides(loader.load(defaults_path=args.config), args)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_ERROR

    setup_logging(
        level=config.logging.level,
        format=config.logging.format,
        log_file=Path(config.logging.file) if config.logging.file else None,
    )

    return sync_command(config, args.file, check_only=args.check)


if __name__ == "__main__":
    sys.exit(main())
