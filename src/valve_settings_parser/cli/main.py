"""Main CLI entry point for the valve-settings command-line tool.

Provides validation, canonical formatting and JSON dumping of settings
files such as ``gamemodes.txt``.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from valve_settings_parser import __version__
from valve_settings_parser.api import SettingsParser
from valve_settings_parser.shared.config import ConfigError, ParserConfig
from valve_settings_parser.shared.logging import get_logger

SETTINGS_SUFFIXES = {".txt", ".vdf", ".res", ".cfg"}


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self, parser_config: Optional[ParserConfig] = None):
        self.parser_config = parser_config or ParserConfig.default()
        self.output_format = "text"
        self.verbose = False
        self.quiet = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "CLIConfig":
        """Build CLI configuration from a config file and argument overrides."""
        parser_config = ParserConfig.default()
        if args.config:
            parser_config = ParserConfig.from_file(args.config)
        if args.max_depth is not None:
            parser_config = parser_config.override(max_depth=args.max_depth)

        config = cls(parser_config)
        config.output_format = getattr(args, "format", None) or config.output_format
        config.verbose = args.verbose
        config.quiet = args.quiet
        return config

    @property
    def logging_level(self) -> int:
        if self.verbose:
            return logging.DEBUG
        if self.quiet:
            return logging.ERROR
        return getattr(logging, self.parser_config.logging_level)


class SettingsProcessor:
    """Core settings file processing logic for CLI operations."""

    def __init__(self, config: CLIConfig):
        self.config = config
        self.parser = SettingsParser(config=config.parser_config)
        self.logger = get_logger(__name__, None, "cli_processor")

    def process_single_file(self, file_path: Path) -> Dict[str, Any]:
        """Parse a single settings file and return a result summary."""
        try:
            result = self.parser.parse(file_path)
        except OSError as e:
            self.logger.error("Failed to read file", extra={"file": str(file_path)})
            return {"file": str(file_path), "success": False, "error": str(e)}

        summary = result.summary()
        summary["file"] = str(file_path)
        return summary

    def find_settings_files(self, path: Path, recursive: bool = False) -> Iterator[Path]:
        """Find settings files in path.

        Explicitly named files are always yielded; directories are searched
        for known settings suffixes.
        """
        if path.is_dir():
            pattern = "**/*" if recursive else "*"
            for candidate in sorted(path.glob(pattern)):
                if candidate.is_file() and candidate.suffix.lower() in SETTINGS_SUFFIXES:
                    yield candidate
        else:
            yield path

    def collect(self, paths: List[Path], recursive: bool = False) -> List[Path]:
        files: List[Path] = []
        for path in paths:
            files.extend(self.find_settings_files(path, recursive))
        return files


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="valve-settings",
        description="Validate, format and inspect Valve KeyValues-style settings files"
    )

    parser.add_argument("--version", action="version", version=__version__)

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON parser configuration file"
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        help="Reject documents nested deeper than this"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate settings files")
    validate_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Settings files or directories to validate"
    )
    validate_parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Recursively process directories"
    )
    validate_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )

    # Format command
    format_parser = subparsers.add_parser(
        "format", help="Rewrite settings files in canonical form"
    )
    format_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Settings files to format"
    )
    format_parser.add_argument(
        "--check",
        action="store_true",
        help="Only report files that are not in canonical form"
    )
    format_parser.add_argument(
        "--in-place", "-i",
        action="store_true",
        help="Overwrite each file with its canonical form"
    )
    format_parser.add_argument(
        "--output-dir", "-d",
        type=Path,
        help="Directory to write canonical files to"
    )

    # Dump command
    dump_parser = subparsers.add_parser("dump", help="Print a settings file as JSON")
    dump_parser.add_argument(
        "path",
        type=Path,
        help="Settings file to dump"
    )
    dump_parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (default: 2)"
    )

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format validation results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    if not results:
        return "No files to validate."

    valid_count = sum(1 for r in results if r.get("success", False))
    lines = [f"Validated {len(results)} files, {valid_count} valid", "-" * 50]

    for result in results:
        status = "OK  " if result.get("success", False) else "FAIL"
        lines.append(f"{status} {result['file']}")
        if not result.get("success", False):
            line_number = result.get("line_number")
            location = f" (line {line_number})" if line_number else ""
            diagnostics = result.get("diagnostics") or []
            message = diagnostics[0]["message"] if diagnostics else result.get("error", "")
            lines.append(f"     Error{location}: {message}")

    return "\n".join(lines)


def cmd_validate(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle validate command."""
    processor = SettingsProcessor(config)
    files = processor.collect(args.paths, args.recursive)
    results = [processor.process_single_file(path) for path in files]

    print(format_results(results, config.output_format))

    if not results:
        return 1
    return 0 if all(r.get("success", False) for r in results) else 1


def cmd_format(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle format command."""
    processor = SettingsProcessor(config)
    encoding = config.parser_config.encoding
    exit_code = 0

    for path in args.paths:
        try:
            original = path.read_text(encoding=encoding)
        except OSError as e:
            print(f"Could not read {path}: {e}", file=sys.stderr)
            exit_code = 1
            continue

        result = processor.parser.parse(original, source_name=str(path))
        if not result.success:
            print(f"Could not parse {path}: {result.error}", file=sys.stderr)
            exit_code = 1
            continue

        canonical = result.root.serialize()

        if args.check:
            if original != canonical:
                print(f"Would reformat: {path}")
                exit_code = 1
        elif args.in_place or args.output_dir:
            output_path = args.output_dir / path.name if args.output_dir else path
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(canonical, encoding=encoding)
            if not config.quiet:
                print(f"Formatted: {path} -> {output_path}", file=sys.stderr)
        else:
            sys.stdout.write(canonical)

    return exit_code


def cmd_dump(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle dump command."""
    processor = SettingsProcessor(config)
    try:
        result = processor.parser.parse(args.path)
    except OSError as e:
        print(f"Could not read {args.path}: {e}", file=sys.stderr)
        return 1

    if not result.success:
        print(f"Could not parse {args.path}: {result.error}", file=sys.stderr)
        return 1

    print(json.dumps(result.root.to_dict(), indent=args.indent))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = CLIConfig.from_args(args)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(level=config.logging_level)

    # Route to appropriate command handler
    try:
        if args.command == "validate":
            return cmd_validate(args, config)
        if args.command == "format":
            return cmd_format(args, config)
        if args.command == "dump":
            return cmd_dump(args, config)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
