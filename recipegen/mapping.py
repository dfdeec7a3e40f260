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

"""Field mapping from package metadata to recipe values.

This module decides every value written into a recipe. It is pure: no
files are touched, and the same record and settings always give the same
RecipeFields.

Mapping Rules:

- Application: Name is copied verbatim. Description falls back to Name,
  Publisher to "Unknown", UserDocumentation to empty. Icon is the
  sanitized name with a .png suffix.
- Download: a record with an APIUrl gets a PrefetchScript that resolves
  the installer URL at download time, and an empty URL. Otherwise the
  PrefetchScript is empty and URL is the InstallerURL (or empty).
- DownloadFileName: basename of the InstallerURL path, else
  ``<sanitized name>.<installer type>``.
- DeploymentType: fixed behavior defaults for every recipe, plus
  variant-specific install and uninstall commands.
- Text: characters XML cannot represent are removed from every value.

Example:
    >>> from recipegen.records import PackageRecord
    >>> record = PackageRecord(name="7-Zip", installer_type="msi")
    >>> from recipegen.variants import MSI
    >>> fields = map_fields(record, MSI)
    >>> fields.values["DeploymentType.InstallProgram"]
    'msiexec.exe /i 7Zip.msi /qn /norestart /l*v install.log'
"""

from __future__ import annotations

from dataclasses import dataclass
import posixpath
import re
from typing import Any
from urllib.parse import urlparse

from recipegen.config import DEFAULT_SETTINGS
from recipegen.logging import Logger, get_global_logger
from recipegen.records import PackageRecord, value_or
from recipegen.variants import InstallerVariant

__all__ = [
    "DEPLOYMENT_DEFAULTS",
    "RecipeFields",
    "download_file_name",
    "map_fields",
    "recipe_file_name",
    "sanitize",
    "select_switches",
    "strip_xml_illegal",
]

UNKNOWN_PUBLISHER = "Unknown"

MSI_VERSION_CHECK = (
    "$Version = (Get-MSIInfo -Path $DownloadFile -Property ProductVersion).Trim()"
)

# Identical for every recipe. Detection logic is completed by an operator.
DEPLOYMENT_DEFAULTS: dict[str, str] = {
    "DeploymentType.CacheContent": "false",
    "DeploymentType.BranchCache": "true",
    "DeploymentType.ContentFallback": "true",
    "DeploymentType.OnSlowNetwork": "Download",
    "DeploymentType.InstallationBehaviorType": "InstallForSystem",
    "DeploymentType.LogonReqType": "WhetherOrNotUserLoggedOn",
    "DeploymentType.UserInteractionMode": "Hidden",
    "DeploymentType.EstRuntimeMins": "15",
    "DeploymentType.MaxRuntimeMins": "30",
    "DeploymentType.RebootBehavior": "BasedOnExitCode",
    "DeploymentType.DetectionMethodType": "Custom",
}

_DISALLOWED_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATORS = re.compile(r"[\s-]+", re.ASCII)

# Characters XML 1.0 cannot represent, even as character references
_XML_ILLEGAL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


@dataclass(frozen=True)
class RecipeFields:
    """Everything needed to fill one template.

    Attributes:
        variant: Selected recipe variant.
        values: Leaf text keyed by logical field name
            (e.g. "Application.Name"), applied in insertion order.
        msi_file_reference: File name for the InstallationMSI element
            (MSI variant only, else None).
    """

    variant: InstallerVariant
    values: dict[str, str]
    msi_file_reference: str | None = None


def sanitize(name: str) -> str:
    """Derive a file-system-safe identifier from a display name.

    Removes every character other than ASCII letters, digits, underscore,
    whitespace and hyphen, then removes the whitespace and hyphens
    themselves, leaving only [A-Za-z0-9_]. Idempotent.

    Example:
        >>> sanitize("7-Zip")
        '7Zip'
        >>> sanitize("Notepad++ (x64)")
        'Notepadx64'
    """
    return _SEPARATORS.sub("", _DISALLOWED_CHARS.sub("", name))


def strip_xml_illegal(text: str) -> str:
    """Remove characters that cannot appear in an XML 1.0 document.

    Tab, CR and LF are kept; other C0 controls, lone surrogates and the
    U+FFFE/U+FFFF non-characters are dropped.
    """
    return _XML_ILLEGAL_CHARS.sub("", text)


def recipe_file_name(record: PackageRecord) -> str:
    """Return the recipe file name for a record, e.g. "7Zip.xml"."""
    return f"{sanitize(record.name)}.xml"


def download_file_name(record: PackageRecord) -> str:
    """Name the downloaded installer will be saved as.

    The basename of the InstallerURL path wins; query strings and fragments
    are ignored. A URL with no basename, or no URL at all, falls back to
    the sanitized name plus the installer type (trimmed, case kept) as the
    extension.
    """
    if record.installer_url is not None:
        basename = posixpath.basename(urlparse(record.installer_url).path)
        if basename:
            return basename
    return f"{sanitize(record.name)}.{record.installer_type.strip()}"


def select_switches(record: PackageRecord, default: str = "/S") -> str:
    """Pick silent switches: SilentSwitches, then SilentWithProgressSwitches, then default."""
    if record.silent_switches is not None:
        return record.silent_switches
    return value_or(record.silent_with_progress_switches, default)


def _prefetch_script(resolver: str, api_url: str) -> str:
    return f'$URL = {resolver} -ApiUrl "{api_url}"'


def map_fields(
    record: PackageRecord,
    variant: InstallerVariant,
    settings: dict[str, Any] | None = None,
    *,
    logger: Logger | None = None,
) -> RecipeFields:
    """Map a package record to recipe field values.

    Args:
        record: Validated package record.
        variant: Variant chosen by select_variant().
        settings: Effective settings (resolvers, default_switches).
            Defaults to the built-in settings.
        logger: Logger for debug output. Defaults to the global logger.

    Returns:
        RecipeFields for the mutator.
    """
    if settings is None:
        settings = DEFAULT_SETTINGS
    if logger is None:
        logger = get_global_logger()

    for key in sorted(record.unavailable):
        logger.debug("MAP", f"{record.name}: {key} reported unavailable by source")

    safe_name = sanitize(record.name)
    file_name = download_file_name(record)

    values: dict[str, str] = {
        "Application.Name": record.name,
        "Application.Description": value_or(record.description, record.name),
        "Application.Publisher": value_or(record.publisher, UNKNOWN_PUBLISHER),
        "Application.UserDocumentation": value_or(record.home_page, ""),
        "Application.Icon": f"{safe_name}.png",
    }

    if record.api_url is not None:
        resolver = settings["resolvers"][variant.key]
        values["Download.PrefetchScript"] = _prefetch_script(resolver, record.api_url)
        values["Download.URL"] = ""
        logger.debug("MAP", f"{record.name}: URL resolved at download time via {resolver}")
    else:
        values["Download.PrefetchScript"] = ""
        values["Download.URL"] = value_or(record.installer_url, "")

    values["Download.DownloadFileName"] = file_name
    values["Download.DownloadVersionCheck"] = MSI_VERSION_CHECK if variant.is_msi else ""

    values["DeploymentType.InstallationType"] = variant.installation_type
    values.update(DEPLOYMENT_DEFAULTS)

    if variant.is_msi:
        values["DeploymentType.InstallProgram"] = (
            f"msiexec.exe /i {file_name} /qn /norestart /l*v install.log"
        )
        values["DeploymentType.UninstallCmd"] = (
            f"msiexec.exe /x {file_name} /qn /norestart /l*v uninstall.log"
        )
        msi_file_reference: str | None = file_name
    else:
        switches = select_switches(record, settings.get("default_switches", "/S"))
        values["DeploymentType.InstallProgram"] = f"{file_name} {switches}"
        values["DeploymentType.UninstallCmd"] = ""
        msi_file_reference = None

    for key, value in values.items():
        cleaned = strip_xml_illegal(value)
        if cleaned != value:
            logger.warning(
                "MAP", f"{record.name}: removed characters not allowed in XML from {key}"
            )
            values[key] = cleaned
    if msi_file_reference is not None:
        msi_file_reference = strip_xml_illegal(msi_file_reference)

    return RecipeFields(variant=variant, values=values, msi_file_reference=msi_file_reference)
