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

"""Core orchestration for recipegen.

This module ties the pipeline together. For every package record:

1. Validate the record (Name and InstallerType are required)
2. Select the variant (MSI or Script) from InstallerType
3. Map metadata to recipe field values
4. Fill a fresh copy of the variant's template
5. Write ``<output_dir>/<sanitized name>.xml`` unless it already exists

Records are independent. Whatever happens to one record is converted into
a RecordResult and the batch moves on, so a run normally ends with N of M
recipes written. Only StartupError (unloadable settings, templates or
input) stops a run, and it does so before any record is processed.

Design Principles:

- Each function has a single, clear responsibility
- Functions return structured data (dataclasses) for easy testing
- Skips are warnings, failures are errors, neither is fatal to the batch
- Templates are read once but parsed per record

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from recipegen.core import generate_recipes

        summary = generate_recipes(
            [{"Name": "7-Zip", "InstallerType": "msi"}],
            output_dir=Path("./Recipes"),
        )

        print(f"Created: {summary.processed} of {summary.total}")
        ```

"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from recipegen.config import load_settings
from recipegen.document import RecipeTemplate, apply_fields, load_templates
from recipegen.exceptions import RecordError, ValidationError
from recipegen.logging import Logger, get_global_logger
from recipegen.mapping import map_fields, recipe_file_name, sanitize
from recipegen.records import PackageRecord, record_display_name
from recipegen.results import (
    CREATED,
    FAILED,
    SKIPPED,
    BatchResult,
    PlannedRecipe,
    RecordResult,
    ValidationReport,
)
from recipegen.variants import InstallerVariant, select_variant
from recipegen.writer import write_recipe

__all__ = [
    "generate_recipe",
    "generate_recipes",
    "plan_recipes",
    "prepare_record",
    "templates_from_settings",
]


def templates_from_settings(settings: Mapping[str, Any]) -> dict[str, RecipeTemplate]:
    """Load both template documents named in settings.

    Raises:
        ConfigError: If either template cannot be loaded.
    """
    templates = settings["templates"]
    return load_templates(Path(templates["msi"]), Path(templates["script"]))


def prepare_record(raw: Any, sentinel: str) -> tuple[PackageRecord, InstallerVariant]:
    """Validate and classify a raw record.

    Returns:
        The normalized record and its variant.

    Raises:
        ValidationError: Missing Name/InstallerType, or a Name with no
            usable characters for a file name.
        UnsupportedVariantError: InstallerType outside both variants.
    """
    name = record_display_name(raw)
    record = PackageRecord.from_mapping(raw, sentinel)
    if not sanitize(record.name):
        raise ValidationError(
            f"name '{record.name}' has no characters usable in a file name", name
        )
    try:
        variant = select_variant(record.installer_type)
    except RecordError as err:
        err.record_name = name
        raise
    return record, variant


def generate_recipe(
    raw: Any,
    templates: Mapping[str, RecipeTemplate],
    output_dir: Path,
    settings: Mapping[str, Any],
    *,
    logger: Logger | None = None,
) -> RecordResult:
    """Generate one recipe and report the outcome.

    Never raises for record-level problems; the outcome is always returned
    as a RecordResult.

    Args:
        raw: Raw record mapping from the metadata source.
        templates: Loaded templates keyed by variant key.
        output_dir: Directory for the recipe file.
        settings: Effective settings.
        logger: Logger for output. Defaults to the global logger.

    Returns:
        RecordResult with status "created", "skipped" or "failed".
    """
    if logger is None:
        logger = get_global_logger()

    name = record_display_name(raw)
    variant: InstallerVariant | None = None
    destination: Path | None = None

    try:
        record, variant = prepare_record(raw, settings["sentinel"])
        logger.verbose("SELECT", f"{name}: {variant.installation_type} recipe")

        fields = map_fields(record, variant, settings, logger=logger)
        document = apply_fields(templates[variant.key].instantiate(), fields)
        logger.debug(
            "RECIPE",
            f"{name}: {len(document.element_paths())} elements, "
            f"InstallationMSI {'present' if document.has_msi_reference() else 'absent'}, "
            f"InstallProgram: {document.get_field('DeploymentType.InstallProgram')}",
        )
        destination = output_dir / recipe_file_name(record)
        write_recipe(document, destination)
    except RecordError as err:
        installation_type = variant.installation_type if variant else None
        if err.skipped:
            logger.warning("SKIP", f"Skipping '{name}': {err}")
            return RecordResult(name, SKIPPED, installation_type, destination, str(err))
        logger.error("RECIPE", f"Failed to generate recipe for '{name}': {err}")
        return RecordResult(name, FAILED, installation_type, None, str(err))
    except OSError as err:
        logger.error("WRITE", f"Failed to write recipe for '{name}': {err}")
        return RecordResult(
            name, FAILED, variant.installation_type if variant else None, None, str(err)
        )
    except Exception as err:
        # Any other failure only aborts this record.
        logger.error(
            "RECIPE",
            f"Unexpected error for '{name}': {type(err).__name__}: {err}",
        )
        return RecordResult(
            name,
            FAILED,
            variant.installation_type if variant else None,
            None,
            f"{type(err).__name__}: {err}",
        )

    logger.verbose("WRITE", f"Created {destination}")
    return RecordResult(name, CREATED, variant.installation_type, destination)


def generate_recipes(
    records: Iterable[Any],
    output_dir: Path | None = None,
    *,
    settings: Mapping[str, Any] | None = None,
    templates: Mapping[str, RecipeTemplate] | None = None,
    logger: Logger | None = None,
) -> BatchResult:
    """Generate recipes for a sequence of package records.

    This is the main entry point for the 'recipegen generate' command.
    Templates are loaded before the first record is touched; each record
    then runs through generate_recipe() in input order.

    Args:
        records: Raw record mappings, consumed once.
        output_dir: Destination directory. Defaults to settings["output_dir"].
        settings: Effective settings. Defaults to the built-in settings.
        templates: Preloaded templates. Loaded from settings if omitted.
        logger: Logger for output. Defaults to the global logger.

    Returns:
        BatchResult with per-record outcomes and counts.

    Raises:
        ConfigError: If a template cannot be loaded.
    """
    if logger is None:
        logger = get_global_logger()
    if settings is None:
        settings = load_settings(logger=logger)
    if templates is None:
        templates = templates_from_settings(settings)
    if output_dir is None:
        output_dir = Path(settings["output_dir"])

    records = list(records)
    total = len(records)
    results: list[RecordResult] = []
    created = 0

    for index, raw in enumerate(records, start=1):
        logger.step(index, total, record_display_name(raw))
        result = generate_recipe(raw, templates, output_dir, settings, logger=logger)
        if result.status == CREATED:
            created += 1
        results.append(result)

    skipped = sum(1 for r in results if r.status == SKIPPED)
    failed = sum(1 for r in results if r.status == FAILED)
    logger.verbose(
        "SUMMARY",
        f"{created} recipe(s) created in {output_dir} "
        f"({skipped} skipped, {failed} failed)",
    )

    return BatchResult(
        processed=created,
        skipped=skipped,
        failed=failed,
        output_dir=output_dir,
        results=tuple(results),
    )


def plan_recipes(
    records: Iterable[Any],
    output_dir: Path | None = None,
    *,
    settings: Mapping[str, Any] | None = None,
    logger: Logger | None = None,
) -> ValidationReport:
    """Classify records without writing anything.

    This is the entry point for 'recipegen validate'. Each record is
    validated and classified, and its recipe file name is checked against
    the output directory and against earlier records in the same input.

    Returns:
        ValidationReport; status is "valid" only if every record would
        produce a recipe.
    """
    if logger is None:
        logger = get_global_logger()
    if settings is None:
        settings = load_settings(logger=logger)
    if output_dir is None:
        output_dir = Path(settings["output_dir"])

    planned: list[PlannedRecipe] = []
    claimed: set[str] = set()

    for raw in records:
        name = record_display_name(raw)
        try:
            record, variant = prepare_record(raw, settings["sentinel"])
        except RecordError as err:
            logger.verbose("VALIDATE", f"{name}: {err}")
            planned.append(PlannedRecipe(name, None, None, (str(err),)))
            continue

        file_name = recipe_file_name(record)
        issues: list[str] = []
        if (output_dir / file_name).exists():
            issues.append(f"recipe already exists: {output_dir / file_name}")
        if file_name in claimed:
            issues.append(f"{file_name} is produced by an earlier record")
        claimed.add(file_name)

        logger.verbose("VALIDATE", f"{name}: {variant.installation_type} -> {file_name}")
        planned.append(
            PlannedRecipe(name, variant.installation_type, file_name, tuple(issues))
        )

    status = "valid" if all(not p.issues for p in planned) else "invalid"
    return ValidationReport(status=status, planned=tuple(planned), output_dir=output_dir)
