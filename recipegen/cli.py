# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Command-line interface for recipegen.

This module provides the main CLI entry point for the recipegen tool.

Commands:

    validate: Classify records and check for collisions (writes nothing)
    generate: Generate recipe files from package records

Example:
    Check a metadata export:
        ```bash
        $ recipegen validate exports/packages.json
        ```

    Generate recipes:
        ```bash
        $ recipegen generate exports/packages.json --output-dir ./Recipes
        ```

    Use a settings file and remote input:
        ```bash
        $ recipegen generate https://inventory.example.com/packages.json --config settings.yaml
        ```

Exit Codes:

- 0: Success (generate: the run completed, even if some records were skipped)
- 1: Error (settings, templates or input unusable; validate: a record would be skipped)

Note:
    The CLI uses argparse for command parsing (stdlib, zero dependencies).
    Each command has its own handler function (cmd_<command>).
    Verbose mode shows full tracebacks on errors for debugging.
"""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import sys
from typing import Any

from recipegen import __version__
from recipegen.config import load_settings
from recipegen.core import generate_recipes, plan_recipes, templates_from_settings
from recipegen.exceptions import RecipeGenError
from recipegen.io import load_records
from recipegen.logging import get_logger, set_global_logger


def _print_error(err: Exception, args: argparse.Namespace) -> None:
    print(f"Error: {err}")
    if args.verbose or getattr(args, "debug", False):
        import traceback

        traceback.print_exc()


def _effective_settings(args: argparse.Namespace) -> dict[str, Any]:
    """Load settings and apply command-line overrides."""
    settings = load_settings(Path(args.config) if args.config else None)
    if getattr(args, "msi_template", None):
        settings["templates"]["msi"] = str(Path(args.msi_template).resolve())
    if getattr(args, "script_template", None):
        settings["templates"]["script"] = str(Path(args.script_template).resolve())
    if args.output_dir:
        settings["output_dir"] = args.output_dir
    return settings


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'recipegen validate' command.

    Loads the records and reports, for each one, the recipe variant and
    file name it would produce or the reason it would be skipped. No files
    are written.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 if every record is usable, 1 otherwise).
    """
    logger = get_logger(verbose=args.verbose, debug=False)
    set_global_logger(logger)

    print(f"Validating records: {args.records}")
    print()

    try:
        settings = _effective_settings(args)
        records = load_records(args.records)
        report = plan_recipes(records, Path(settings["output_dir"]), settings=settings)
    except RecipeGenError as err:
        _print_error(err, args)
        return 1

    print("=" * 70)
    print("VALIDATION RESULTS")
    print("=" * 70)
    print(f"Records:     {len(report.planned)}")
    print(f"Usable:      {report.usable_count}")
    print(f"Output Dir:  {report.output_dir}")
    print(f"Status:      {report.status.upper()}")
    print()

    for planned in report.planned:
        if planned.issues:
            for issue in planned.issues:
                print(f"  [X] {planned.name}: {issue}")
        else:
            print(f"  [OK] {planned.name}: {planned.variant} -> {planned.file_name}")
    print()
    print("=" * 70)

    if report.status == "valid":
        print()
        print("[SUCCESS] All records can be turned into recipes!")
        return 0

    skipped = len(report.planned) - report.usable_count
    print()
    print(f"[FAILED] {skipped} record(s) would be skipped.")
    return 1


def cmd_generate(args: argparse.Namespace) -> int:
    """Handler for 'recipegen generate' command.

    Loads settings, both templates and the input records, then generates
    one recipe per usable record. Skipped and failed records are reported
    but do not change the exit code.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 when the run completed, 1 on a startup error).
    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    try:
        settings = _effective_settings(args)
        templates = templates_from_settings(settings)
        records = load_records(args.records)
    except RecipeGenError as err:
        _print_error(err, args)
        return 1

    output_dir = Path(settings["output_dir"]).resolve()
    print(f"Generating recipes from: {args.records}")
    print(f"Output directory: {output_dir}")
    print()

    summary = generate_recipes(
        records, output_dir, settings=settings, templates=templates, logger=logger
    )

    print()
    print("=" * 70)
    print("GENERATION RESULTS")
    print("=" * 70)
    for result in summary.results:
        if result.status == "created":
            print(f"  [OK] {result.name}: {result.variant} -> {result.output_path.name}")
        elif result.status == "skipped":
            print(f"  [SKIPPED] {result.name}: {result.reason}")
        else:
            print(f"  [X] {result.name}: {result.reason}")
    print()
    print(f"Created:          {summary.processed}")
    print(f"Skipped:          {summary.skipped}")
    print(f"Failed:           {summary.failed}")
    print(f"Output Directory: {summary.output_dir}")
    print("=" * 70)
    print()
    print(
        f"[SUCCESS] Processed {summary.processed} of {summary.total} record(s). "
        "Icons and detection clauses must be completed manually."
    )

    return 0


def _program_version() -> str:
    try:
        return version("recipegen")
    except PackageNotFoundError:
        return __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recipegen",
        description="recipegen - deployment recipe scaffolding from package metadata",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"recipegen {_program_version()}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'validate' command
    parser_validate = subparsers.add_parser(
        "validate",
        help="Classify records and check for collisions (no files written)",
        description="Report the recipe each record would produce, or why it would be skipped.",
    )
    parser_validate.add_argument(
        "records",
        help="Path or http(s) URL of the package records (JSON or YAML)",
    )
    parser_validate.add_argument(
        "--output-dir",
        default=None,
        help="Recipe directory to check for collisions (default: from settings or ./Recipes)",
    )
    parser_validate.add_argument(
        "--config",
        default=None,
        help="YAML settings file",
    )
    parser_validate.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show validation progress and details",
    )
    parser_validate.set_defaults(func=cmd_validate)

    # 'generate' command
    parser_generate = subparsers.add_parser(
        "generate",
        help="Generate recipe files from package records",
        description="Create one XML recipe per package record. Existing recipes are never overwritten.",
    )
    parser_generate.add_argument(
        "records",
        help="Path or http(s) URL of the package records (JSON or YAML)",
    )
    parser_generate.add_argument(
        "--output-dir",
        default=None,
        help="Directory for recipe files (default: from settings or ./Recipes)",
    )
    parser_generate.add_argument(
        "--config",
        default=None,
        help="YAML settings file",
    )
    parser_generate.add_argument(
        "--msi-template",
        default=None,
        help="MSI recipe template (default: from settings or bundled)",
    )
    parser_generate.add_argument(
        "--script-template",
        default=None,
        help="Script recipe template (default: from settings or bundled)",
    )
    parser_generate.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser_generate.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )
    parser_generate.set_defaults(func=cmd_generate)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the recipegen CLI.

    This function is registered as the 'recipegen' console script in pyproject.toml.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
