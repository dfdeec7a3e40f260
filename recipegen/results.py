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

"""Public API return types for recipegen.

This module defines dataclasses for return values from public API functions.
Every record in a batch produces exactly one RecordResult; the batch
aggregates them into a BatchResult instead of letting exceptions escape.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    Inspecting a batch:
        ```python
        from recipegen.core import generate_recipes

        summary = generate_recipes(records, Path("./Recipes"))
        for result in summary.results:
            print(result.name, result.status, result.reason)
        ```

Note:
    Only public API return types belong in this module. Domain types
    (like PackageRecord or InstallerVariant) remain co-located with their
    related logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

CREATED = "created"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass(frozen=True)
class RecordResult:
    """Outcome of processing one package record.

    Attributes:
        name: Record display name ("<unnamed>" when the record has none).
        status: One of "created", "skipped" or "failed".
        variant: Installation type of the recipe ("MSI" or "Script"), or
            None if the record never got that far.
        output_path: Path of the written recipe, or the colliding path for
            a collision skip. None otherwise.
        reason: Warning or error message for skipped and failed records.
    """

    name: str
    status: str
    variant: str | None = None
    output_path: Path | None = None
    reason: str | None = None


@dataclass(frozen=True)
class BatchResult:
    """Summary of a complete generation run.

    Attributes:
        processed: Number of recipe files written.
        skipped: Number of records skipped with a warning.
        failed: Number of records aborted by an error.
        output_dir: Directory the recipes were written to.
        results: Per-record results in input order.
    """

    processed: int
    skipped: int
    failed: int
    output_dir: Path
    results: tuple[RecordResult, ...]

    @property
    def total(self) -> int:
        return len(self.results)


@dataclass(frozen=True)
class PlannedRecipe:
    """Dry-run classification of one record.

    Attributes:
        name: Record display name.
        variant: "MSI" or "Script" when the record is usable.
        file_name: Recipe file name the record would produce.
        issues: Reasons the record would be skipped (empty if usable).
    """

    name: str
    variant: str | None
    file_name: str | None
    issues: tuple[str, ...]


@dataclass(frozen=True)
class ValidationReport:
    """Result from validating a record source without writing recipes.

    Attributes:
        status: "valid" if every record would produce a recipe, else "invalid".
        planned: Per-record classification in input order.
        output_dir: Directory that was checked for collisions.
    """

    status: str
    planned: tuple[PlannedRecipe, ...]
    output_dir: Path

    @property
    def usable_count(self) -> int:
        return sum(1 for p in self.planned if not p.issues)
