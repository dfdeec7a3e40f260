"""
Tests for recipegen.document module.

Tests template handling and recipe mutation including:
- Template loading and startup errors
- Per-record isolation of parsed templates
- Leaf field assignment through the path table
- Idempotent InstallationMSI insertion
- Structural errors for corrupted templates
"""

from __future__ import annotations

from pathlib import Path

import pytest

from recipegen.document import (
    FIELD_PATHS,
    apply_fields,
    load_template,
    load_templates,
)
from recipegen.exceptions import ConfigError, StructuralError
from recipegen.mapping import map_fields
from recipegen.records import PackageRecord
from recipegen.variants import MSI, SCRIPT

MINIMAL_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<ApplicationDef>
  <DeploymentTypes>
    <DeploymentType>
      <InstallationType />
      {body}
    </DeploymentType>
  </DeploymentTypes>
</ApplicationDef>
"""


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadTemplate:
    """Tests for reading template documents."""

    def test_bundled_templates_load(self, msi_template_path, script_template_path):
        templates = load_templates(msi_template_path, script_template_path)

        assert templates["msi"].variant is MSI
        assert templates["script"].variant is SCRIPT

    def test_missing_template(self, tmp_test_dir):
        with pytest.raises(ConfigError, match="cannot read MSI template"):
            load_template(tmp_test_dir / "missing.xml", MSI)

    def test_malformed_template(self, tmp_test_dir):
        path = _write(tmp_test_dir, "bad.xml", "<ApplicationDef><Application>")
        with pytest.raises(ConfigError, match="not valid XML"):
            load_template(path, SCRIPT)

    def test_wrong_root(self, tmp_test_dir):
        path = _write(tmp_test_dir, "wrong.xml", "<Recipe />")
        with pytest.raises(ConfigError, match="ApplicationDef"):
            load_template(path, MSI)

    def test_bundled_templates_cover_path_table(self, templates):
        """Test that every mapped field exists in both bundled templates."""
        for template in templates.values():
            document = template.instantiate()
            for path in FIELD_PATHS.values():
                assert document.root.find(path) is not None, path


class TestInstantiate:
    """Tests for fresh per-record documents."""

    def test_documents_are_independent(self, templates):
        template = templates["script"]
        first = template.instantiate()
        first.set_field("Application.Name", "First")

        second = template.instantiate()

        assert second.get_field("Application.Name") == ""
        assert first.root is not second.root

    def test_template_bytes_unchanged(self, templates):
        template = templates["msi"]
        before = template.data
        document = template.instantiate()
        document.ensure_msi_reference("app.msi")
        assert template.data == before
        assert not template.instantiate().has_msi_reference()


class TestSetField:
    """Tests for leaf assignment."""

    def test_set_and_get(self, templates):
        document = templates["script"].instantiate()
        document.set_field("Download.URL", "https://example.com/app.exe")
        assert document.get_field("Download.URL") == "https://example.com/app.exe"

    def test_unknown_field(self, templates):
        document = templates["script"].instantiate()
        with pytest.raises(KeyError):
            document.set_field("Application.Colour", "blue")

    def test_missing_element_is_structural(self, tmp_test_dir):
        path = _write(tmp_test_dir, "t.xml", MINIMAL_TEMPLATE.format(body=""))
        document = load_template(path, SCRIPT).instantiate()
        with pytest.raises(StructuralError, match="Application/Name"):
            document.set_field("Application.Name", "App")


class TestMsiReference:
    """Tests for the InstallationMSI insertion."""

    def test_inserted_before_install_program(self, templates):
        document = templates["msi"].instantiate()
        assert not document.has_msi_reference()

        inserted = document.ensure_msi_reference("7z.msi")

        deployment = document.root.find("DeploymentTypes/DeploymentType")
        tags = [child.tag for child in deployment]
        index = tags.index("InstallProgram")
        assert inserted is True
        assert tags[index - 1] == "InstallationMSI"
        assert deployment[index - 1].text == "7z.msi"

    def test_idempotent(self, templates):
        document = templates["msi"].instantiate()
        document.ensure_msi_reference("a.msi")
        inserted = document.ensure_msi_reference("b.msi")

        deployment = document.root.find("DeploymentTypes/DeploymentType")
        references = deployment.findall("InstallationMSI")
        assert inserted is False
        assert len(references) == 1
        assert references[0].text == "b.msi"

    def test_existing_reference_in_template_reused(self, tmp_test_dir):
        body = "<InstallationMSI>old.msi</InstallationMSI><InstallProgram />"
        path = _write(tmp_test_dir, "t.xml", MINIMAL_TEMPLATE.format(body=body))
        document = load_template(path, MSI).instantiate()

        assert document.ensure_msi_reference("new.msi") is False
        assert len(document.root.findall("DeploymentTypes/DeploymentType/InstallationMSI")) == 1

    def test_missing_anchor_is_structural(self, tmp_test_dir):
        path = _write(tmp_test_dir, "t.xml", MINIMAL_TEMPLATE.format(body="<UninstallCmd />"))
        document = load_template(path, MSI).instantiate()
        with pytest.raises(StructuralError, match="InstallProgram"):
            document.ensure_msi_reference("app.msi")


class TestApplyFields:
    """Tests for applying mapped values."""

    def test_msi_document(self, templates, msi_record):
        fields = map_fields(PackageRecord.from_mapping(msi_record), MSI)
        document = apply_fields(templates["msi"].instantiate(), fields)

        assert document.get_field("Application.Name") == "7-Zip"
        assert document.get_field("DeploymentType.InstallationType") == "MSI"
        assert document.has_msi_reference()

    def test_only_msi_reference_added(self, templates, msi_record):
        """Test that the node set changes only by the InstallationMSI element."""
        template = templates["msi"]
        before = template.instantiate().element_paths()

        fields = map_fields(PackageRecord.from_mapping(msi_record), MSI)
        after = apply_fields(template.instantiate(), fields).element_paths()

        extra = list(after)
        extra.remove("ApplicationDef/DeploymentTypes/DeploymentType/InstallationMSI")
        assert extra == before

    def test_script_structure_unchanged(self, templates, script_record):
        template = templates["script"]
        before = template.instantiate().element_paths()

        fields = map_fields(PackageRecord.from_mapping(script_record), SCRIPT)
        document = apply_fields(template.instantiate(), fields)

        assert document.element_paths() == before
        assert not document.has_msi_reference()
        assert document.get_field("DeploymentType.InstallationType") == "Script"

    def test_detection_clause_left_blank(self, templates, script_record):
        fields = map_fields(PackageRecord.from_mapping(script_record), SCRIPT)
        document = apply_fields(templates["script"].instantiate(), fields)

        clause = document.root.find(
            "DeploymentTypes/DeploymentType/CustomDetectionMethods/DetectionClause"
        )
        assert clause is not None
        assert all(not (child.text or "").strip() for child in clause)
