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

"""Package metadata records.

The external metadata source emits one mapping per package, keyed with
PascalCase field names. Optional fields may be omitted, or may carry a
reserved sentinel string (``"N/A"`` by default) meaning the source
explicitly reported the value as unavailable.

Both cases are normalized to ``None`` here, at ingestion, so nothing
downstream compares strings against the sentinel. The record still
remembers which fields were explicitly reported unavailable in its
``unavailable`` set, which keeps the distinction visible in debug output.

Example:
    Build and validate a record:
        ```python
        from recipegen.records import PackageRecord, validate_record, value_or

        raw = {"Name": "7-Zip", "InstallerType": "msi", "Publisher": "N/A"}
        validate_record(raw)
        record = PackageRecord.from_mapping(raw)
        record.publisher             # None
        "Publisher" in record.unavailable  # True
        value_or(record.publisher, "Unknown")  # "Unknown"
        ```
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from recipegen.exceptions import ValidationError

__all__ = [
    "DEFAULT_SENTINEL",
    "PackageRecord",
    "available",
    "record_display_name",
    "validate_record",
    "value_or",
]

DEFAULT_SENTINEL = "N/A"

# Source key -> attribute name
FIELD_KEYS: dict[str, str] = {
    "Name": "name",
    "Description": "description",
    "Publisher": "publisher",
    "HomePage": "home_page",
    "InstallerType": "installer_type",
    "InstallerURL": "installer_url",
    "APIUrl": "api_url",
    "SilentSwitches": "silent_switches",
    "SilentWithProgressSwitches": "silent_with_progress_switches",
}

REQUIRED_KEYS = ("Name", "InstallerType")


def available(value: Any, sentinel: str = DEFAULT_SENTINEL) -> str | None:
    """Return value as a string, or None if it is absent, blank or the sentinel.

    Non-string scalars (numbers) are converted with str().
    """
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    if not text.strip() or text == sentinel:
        return None
    return text


def value_or(value: str | None, default: str) -> str:
    """Return value unless it is None, else default."""
    return default if value is None else value


def record_display_name(raw: Any) -> str:
    """Best-effort name for messages about a record that may be malformed."""
    if isinstance(raw, PackageRecord):
        return raw.name
    if isinstance(raw, Mapping):
        name = raw.get("Name")
        if isinstance(name, str) and name.strip():
            return name
    return "<unnamed>"


@dataclass(frozen=True)
class PackageRecord:
    """Package metadata for one application.

    Attributes:
        name: Display name (required).
        installer_type: Raw installer classification, e.g. "msi",
            "nullsoft" (required). Case is preserved.
        description: Free-text description.
        publisher: Publisher or vendor name.
        home_page: Product home page URL.
        installer_url: Direct installer download URL.
        api_url: Endpoint the deployment pipeline queries for the latest
            installer URL.
        silent_switches: Switches for a fully silent install.
        silent_with_progress_switches: Switches for a silent install that
            shows progress.
        unavailable: Source keys explicitly reported as the sentinel.
    """

    name: str
    installer_type: str
    description: str | None = None
    publisher: str | None = None
    home_page: str | None = None
    installer_url: str | None = None
    api_url: str | None = None
    silent_switches: str | None = None
    silent_with_progress_switches: str | None = None
    unavailable: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_mapping(
        cls, data: Mapping[str, Any], sentinel: str = DEFAULT_SENTINEL
    ) -> PackageRecord:
        """Build a record from a source mapping.

        Unknown keys are ignored.

        Raises:
            ValidationError: Under the same conditions as validate_record().
        """
        validate_record(data, sentinel)

        values: dict[str, Any] = {}
        unavailable = set()
        for key, attr in FIELD_KEYS.items():
            raw = data.get(key)
            if raw == sentinel:
                unavailable.add(key)
            values[attr] = available(raw, sentinel)

        return cls(unavailable=frozenset(unavailable), **values)


def validate_record(data: Any, sentinel: str = DEFAULT_SENTINEL) -> None:
    """Check that a raw record can be turned into a recipe.

    Only Name and InstallerType are mandatory. A required field that is
    missing, blank, or the sentinel counts as missing.

    Raises:
        ValidationError: If the record is not a mapping or lacks a
            required field.
    """
    name = record_display_name(data)
    if not isinstance(data, Mapping):
        raise ValidationError(
            f"record is not a mapping (got {type(data).__name__})", name
        )

    missing = [key for key in REQUIRED_KEYS if available(data.get(key), sentinel) is None]
    if missing:
        raise ValidationError(f"missing required field(s): {', '.join(missing)}", name)
