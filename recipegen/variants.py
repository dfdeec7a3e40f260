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

"""Installer variant selection.

The metadata source reports many installer technologies, but the
deployment pipeline only distinguishes two recipe shapes:

- MSI: Windows Installer packages, installed through msiexec.exe
- Script: self-contained executables (exe, Inno Setup, Nullsoft, WiX Burn
  bundles, WiX-built setup executables) run with silent switches

Anything else (msix, appx, zip, portable, ...) is unsupported.

Example:
    >>> select_variant("MSI").installation_type
    'MSI'
    >>> select_variant("nullsoft").key
    'script'
"""

from __future__ import annotations

from dataclasses import dataclass

from recipegen.exceptions import UnsupportedVariantError

__all__ = ["InstallerVariant", "MSI", "SCRIPT", "SCRIPT_INSTALLER_TYPES", "select_variant"]


@dataclass(frozen=True)
class InstallerVariant:
    """One of the two recipe shapes.

    Attributes:
        key: Settings key for this variant's template and resolver
            ("msi" or "script").
        installation_type: Value written to DeploymentType/InstallationType.
    """

    key: str
    installation_type: str

    @property
    def is_msi(self) -> bool:
        return self.key == MSI.key


MSI = InstallerVariant(key="msi", installation_type="MSI")
SCRIPT = InstallerVariant(key="script", installation_type="Script")

MSI_INSTALLER_TYPE = "msi"
SCRIPT_INSTALLER_TYPES = frozenset({"exe", "inno", "nullsoft", "burn", "wix"})


def select_variant(installer_type: str) -> InstallerVariant:
    """Classify a raw installer type into a recipe variant.

    Matching is case-insensitive and ignores surrounding whitespace.

    Args:
        installer_type: InstallerType as reported by the metadata source.

    Returns:
        MSI or SCRIPT.

    Raises:
        UnsupportedVariantError: If the type is outside both sets.
    """
    normalized = installer_type.strip().lower()
    if normalized == MSI_INSTALLER_TYPE:
        return MSI
    if normalized in SCRIPT_INSTALLER_TYPES:
        return SCRIPT
    raise UnsupportedVariantError(f"unsupported installer type '{installer_type}'")
