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

"""Recipe template loading and document mutation.

A recipe starts as one of two template documents (MSI or Script). The
template files are read once at startup and kept as raw bytes; every
record then gets its own freshly parsed tree, so nothing a record does can
leak into the next one.

Fields are addressed by logical name through a fixed path table
(FIELD_PATHS) rather than ad hoc element paths. Setting a field only
replaces leaf text. The single structural change a recipe may receive is
the InstallationMSI element, inserted right before InstallProgram for MSI
recipes when the template does not already have it.

Design Principles:
    - Template files remain pristine; mutation happens on parsed copies
    - Template structure is trusted, not schema-validated
    - A field whose element is missing is a StructuralError for that record

Example:
    from pathlib import Path
    from recipegen.document import load_template
    from recipegen.variants import MSI

    template = load_template(Path("templates/msi.xml"), MSI)
    document = template.instantiate()
    document.set_field("Application.Name", "7-Zip")
    document.ensure_msi_reference("7z.msi")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import xml.etree.ElementTree as ET

from recipegen.exceptions import ConfigError, StructuralError
from recipegen.mapping import RecipeFields
from recipegen.variants import MSI, SCRIPT, InstallerVariant

__all__ = [
    "FIELD_PATHS",
    "RecipeDocument",
    "RecipeTemplate",
    "apply_fields",
    "load_template",
    "load_templates",
]

ROOT_TAG = "ApplicationDef"
DEPLOYMENT_TYPE_PATH = "DeploymentTypes/DeploymentType"
MSI_REFERENCE_TAG = "InstallationMSI"
INSTALL_PROGRAM_TAG = "InstallProgram"

_APPLICATION_FIELDS = (
    "Name",
    "Description",
    "Publisher",
    "AutoInstall",
    "UserDocumentation",
    "Icon",
)
_DOWNLOAD_FIELDS = (
    "PrefetchScript",
    "URL",
    "DownloadFileName",
    "DownloadVersionCheck",
    "Version",
    "FullVersion",
    "ExtraCopyFunctions",
)
_DEPLOYMENT_FIELDS = (
    "InstallationType",
    "CacheContent",
    "BranchCache",
    "ContentFallback",
    "OnSlowNetwork",
    "InstallationBehaviorType",
    "LogonReqType",
    "UserInteractionMode",
    "EstRuntimeMins",
    "MaxRuntimeMins",
    "RebootBehavior",
    INSTALL_PROGRAM_TAG,
    "UninstallCmd",
    "DetectionMethodType",
)

# Logical field name -> element path relative to the ApplicationDef root
FIELD_PATHS: dict[str, str] = {
    **{f"Application.{f}": f"Application/{f}" for f in _APPLICATION_FIELDS},
    **{f"Download.{f}": f"Downloads/Download/{f}" for f in _DOWNLOAD_FIELDS},
    **{f"DeploymentType.{f}": f"{DEPLOYMENT_TYPE_PATH}/{f}" for f in _DEPLOYMENT_FIELDS},
}


class RecipeDocument:
    """Mutable recipe tree owned by a single record.

    Do not construct directly; use RecipeTemplate.instantiate().
    """

    def __init__(self, root: ET.Element, variant: InstallerVariant) -> None:
        self.root = root
        self.variant = variant

    def _find(self, path: str) -> ET.Element:
        element = self.root.find(path)
        if element is None:
            raise StructuralError(
                f"{self.variant.installation_type} template has no <{path}> element"
            )
        return element

    def get_field(self, field: str) -> str:
        """Return the text of a field ("" for an empty element)."""
        return self._find(FIELD_PATHS[field]).text or ""

    def set_field(self, field: str, value: str) -> None:
        """Replace the text of a field.

        Raises:
            KeyError: If field is not in FIELD_PATHS.
            StructuralError: If the template lacks the element.
        """
        self._find(FIELD_PATHS[field]).text = value

    def has_msi_reference(self) -> bool:
        deployment = self.root.find(DEPLOYMENT_TYPE_PATH)
        return deployment is not None and deployment.find(MSI_REFERENCE_TAG) is not None

    def ensure_msi_reference(self, file_name: str) -> bool:
        """Make sure InstallationMSI sits immediately before InstallProgram.

        An existing element in that position is reused, so calling this
        repeatedly never duplicates it.

        Args:
            file_name: Installer file name to reference.

        Returns:
            True if the element was inserted, False if it already existed.

        Raises:
            StructuralError: If DeploymentType or InstallProgram is missing.
        """
        deployment = self._find(DEPLOYMENT_TYPE_PATH)
        children = list(deployment)
        anchor = deployment.find(INSTALL_PROGRAM_TAG)
        if anchor is None:
            raise StructuralError(
                f"{self.variant.installation_type} template has no "
                f"<{INSTALL_PROGRAM_TAG}> element to anchor <{MSI_REFERENCE_TAG}>"
            )

        index = children.index(anchor)
        if index > 0 and children[index - 1].tag == MSI_REFERENCE_TAG:
            children[index - 1].text = file_name
            return False

        reference = ET.Element(MSI_REFERENCE_TAG)
        reference.text = file_name
        deployment.insert(index, reference)
        return True

    def element_paths(self) -> list[str]:
        """List every element path in document order (for structure checks)."""
        paths: list[str] = []

        def walk(element: ET.Element, prefix: str) -> None:
            path = f"{prefix}/{element.tag}" if prefix else element.tag
            paths.append(path)
            for child in element:
                walk(child, path)

        walk(self.root, "")
        return paths


@dataclass(frozen=True)
class RecipeTemplate:
    """Immutable template document for one variant.

    Attributes:
        variant: Variant this template produces.
        path: File the template was read from.
        data: Raw template bytes, parsed anew for every record.
    """

    variant: InstallerVariant
    path: Path
    data: bytes

    def instantiate(self) -> RecipeDocument:
        """Parse a fresh, independent copy of the template."""
        return RecipeDocument(ET.fromstring(self.data), self.variant)


def load_template(path: Path, variant: InstallerVariant) -> RecipeTemplate:
    """Read a template document and check that it is usable.

    Raises:
        ConfigError: If the file cannot be read, is not well-formed XML, or
            its root element is not ApplicationDef.
    """
    try:
        data = path.read_bytes()
    except OSError as err:
        raise ConfigError(
            f"cannot read {variant.installation_type} template {path}: {err}"
        ) from err

    try:
        root = ET.fromstring(data)
    except ET.ParseError as err:
        raise ConfigError(
            f"{variant.installation_type} template is not valid XML: {path}: {err}"
        ) from err

    if root.tag != ROOT_TAG:
        raise ConfigError(
            f"{variant.installation_type} template root must be <{ROOT_TAG}>, "
            f"got <{root.tag}>: {path}"
        )

    return RecipeTemplate(variant=variant, path=path, data=data)


def load_templates(
    msi_path: Path, script_path: Path
) -> dict[str, RecipeTemplate]:
    """Load both templates, keyed by variant key ("msi", "script")."""
    return {
        MSI.key: load_template(msi_path, MSI),
        SCRIPT.key: load_template(script_path, SCRIPT),
    }


def apply_fields(document: RecipeDocument, fields: RecipeFields) -> RecipeDocument:
    """Write mapped values into a document.

    For MSI recipes the InstallationMSI reference is ensured before the
    leaf values are applied.

    Raises:
        StructuralError: If the template lacks an element being written.
    """
    if fields.msi_file_reference is not None:
        document.ensure_msi_reference(fields.msi_file_reference)
    for field, value in fields.values.items():
        document.set_field(field, value)
    return document
