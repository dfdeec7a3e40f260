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

"""Exception hierarchy for recipegen.

Errors fall into two families that map directly onto how a batch run
treats them:

- StartupError: Problems that stop the run before any record is processed
  (unreadable settings, missing templates, unreachable input source).
- RecordError: Problems confined to one package record. The batch logs
  them and moves on to the next record.

RecordError subclasses carry a ``skipped`` flag. Skips (invalid record,
unsupported installer type, existing output file) are reported as
warnings; everything else is reported as a failure.

All exceptions inherit from RecipeGenError, allowing users to catch all
recipegen errors with a single except clause if needed.

Example:
    Catching startup errors:
        ```python
        from recipegen.core import generate_recipes
        from recipegen.exceptions import StartupError

        try:
            summary = generate_recipes(records, Path("./Recipes"))
        except StartupError as e:
            print(f"Cannot start: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "RecipeGenError",
    "StartupError",
    "ConfigError",
    "NetworkError",
    "RecordError",
    "ValidationError",
    "UnsupportedVariantError",
    "CollisionError",
    "StructuralError",
]


class RecipeGenError(Exception):
    """Base exception for all recipegen errors."""

    pass


class StartupError(RecipeGenError):
    """Raised when the run cannot begin.

    Nothing has been written when this is raised. The CLI reports it and
    exits with status 1.
    """

    pass


class ConfigError(StartupError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML settings parsing (syntax errors, invalid structure)
    - Template documents that are missing or not well-formed XML
    - Input record files that are missing or have the wrong shape

    Example:
        Catching configuration errors:
            ```python
            from recipegen.config import load_settings
            from recipegen.exceptions import ConfigError

            try:
                settings = load_settings(Path("settings.yaml"))
            except ConfigError as e:
                print(f"Config error: {e}")
            ```
    """

    pass


class NetworkError(StartupError):
    """Raised when remote package metadata cannot be fetched."""

    pass


class RecordError(RecipeGenError):
    """Base class for errors scoped to a single package record.

    Attributes:
        record_name: Display name of the record, when known.
        skipped: True if the record is skipped with a warning rather than
            counted as a failure.
    """

    skipped = False

    def __init__(self, message: str, record_name: str | None = None) -> None:
        super().__init__(message)
        self.record_name = record_name


class ValidationError(RecordError):
    """Raised when a record lacks Name or InstallerType."""

    skipped = True


class UnsupportedVariantError(RecordError):
    """Raised when InstallerType maps to neither the MSI nor Script recipe."""

    skipped = True


class CollisionError(RecordError):
    """Raised when the recipe file already exists. Files are never overwritten."""

    skipped = True


class StructuralError(RecordError):
    """Raised when a template lacks an element the generator must fill.

    This indicates a corrupted or incompatible template document. Only the
    current record is aborted.
    """

    pass
