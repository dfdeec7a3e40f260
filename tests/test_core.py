"""
Tests for recipegen.core module.

Tests orchestration including:
- One outcome per record (MSI, Script or skipped)
- Skip and failure isolation
- Collision handling on re-runs
- Batch summary
- Dry-run planning
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch
import xml.etree.ElementTree as ET

import pytest

from recipegen.core import generate_recipe, generate_recipes, plan_recipes
from recipegen.document import load_templates
from recipegen.exceptions import ConfigError
from recipegen.mapping import map_fields as real_map_fields
from recipegen.results import CREATED, FAILED, SKIPPED


def _read(path: Path) -> ET.Element:
    return ET.fromstring(path.read_bytes())


class TestGenerateRecipe:
    """Tests for processing a single record."""

    def test_msi_recipe(self, msi_record, templates, output_dir, settings):
        """Test the 7-Zip MSI example end to end."""
        result = generate_recipe(msi_record, templates, output_dir, settings)

        assert result.status == CREATED
        assert result.variant == "MSI"
        assert result.output_path == output_dir / "7Zip.xml"

        root = _read(result.output_path)
        assert root.find("Application/Name").text == "7-Zip"
        assert root.find("DeploymentTypes/DeploymentType/InstallationType").text == "MSI"
        assert root.find("DeploymentTypes/DeploymentType/InstallationMSI") is not None

    def test_script_recipe(self, script_record, templates, output_dir, settings):
        result = generate_recipe(script_record, templates, output_dir, settings)

        assert result.status == CREATED
        assert result.variant == "Script"

        root = _read(output_dir / "Notepad.xml")
        install = root.find("DeploymentTypes/DeploymentType/InstallProgram").text
        assert install.endswith(" /S")
        assert root.find("DeploymentTypes/DeploymentType/InstallationMSI") is None

    def test_api_url_record(self, templates, output_dir, settings):
        record = {
            "Name": "Zoom",
            "InstallerType": "exe",
            "APIUrl": "https://api.example.com/zoom/latest",
            "InstallerURL": "https://zoom.example.com/ZoomInstaller.exe",
        }
        generate_recipe(record, templates, output_dir, settings)

        root = _read(output_dir / "Zoom.xml")
        assert root.find("Downloads/Download/PrefetchScript").text
        assert not root.find("Downloads/Download/URL").text
        assert root.find("Downloads/Download/DownloadFileName").text == "ZoomInstaller.exe"

    def test_installer_url_record(self, templates, output_dir, settings):
        record = {
            "Name": "Zoom",
            "InstallerType": "exe",
            "InstallerURL": "https://zoom.example.com/ZoomInstaller.exe",
        }
        generate_recipe(record, templates, output_dir, settings)

        root = _read(output_dir / "Zoom.xml")
        assert not root.find("Downloads/Download/PrefetchScript").text
        assert root.find("Downloads/Download/URL").text == (
            "https://zoom.example.com/ZoomInstaller.exe"
        )

    def test_description_sentinel(self, msi_record, templates, output_dir, settings):
        msi_record["Description"] = "N/A"
        generate_recipe(msi_record, templates, output_dir, settings)

        root = _read(output_dir / "7Zip.xml")
        assert root.find("Application/Description").text == "7-Zip"

    def test_control_characters_give_parseable_recipe(self, templates, output_dir, settings):
        record = {"Name": "App", "InstallerType": "exe", "Description": "bad\x0bchar"}

        result = generate_recipe(record, templates, output_dir, settings)

        assert result.status == CREATED
        root = _read(output_dir / "App.xml")
        assert root.find("Application/Description").text == "badchar"

    def test_document_logged(self, msi_record, templates, output_dir, settings, recording_logger):
        generate_recipe(msi_record, templates, output_dir, settings, logger=recording_logger)

        debug = [m for k, p, m in recording_logger.messages if k == "debug" and p == "RECIPE"]
        assert "InstallationMSI present" in debug[0]
        assert "InstallProgram: msiexec.exe /i 7z2408-x64.msi" in debug[0]

    def test_missing_name_skipped(self, templates, output_dir, settings, recording_logger):
        result = generate_recipe(
            {"InstallerType": "msi"}, templates, output_dir, settings, logger=recording_logger
        )

        assert result.status == SKIPPED
        assert "Name" in result.reason
        assert recording_logger.of_kind("warning")
        assert not output_dir.exists()

    def test_unsupported_skipped(self, templates, output_dir, settings, recording_logger):
        record = {"Name": "Store App", "InstallerType": "msix"}
        result = generate_recipe(record, templates, output_dir, settings, logger=recording_logger)

        assert result.status == SKIPPED
        assert result.variant is None
        assert "Store App" in recording_logger.of_kind("warning")[0]

    def test_unusable_name_skipped(self, templates, output_dir, settings):
        result = generate_recipe(
            {"Name": "+++", "InstallerType": "exe"}, templates, output_dir, settings
        )
        assert result.status == SKIPPED
        assert "file name" in result.reason

    def test_collision_skipped(self, msi_record, templates, output_dir, settings, recording_logger):
        first = generate_recipe(msi_record, templates, output_dir, settings)
        before = first.output_path.read_bytes()

        msi_record["Publisher"] = "Someone Else"
        second = generate_recipe(
            msi_record, templates, output_dir, settings, logger=recording_logger
        )

        assert second.status == SKIPPED
        assert second.variant == "MSI"
        assert second.output_path == first.output_path
        assert first.output_path.read_bytes() == before
        assert any("already exists" in m for m in recording_logger.of_kind("warning"))

    def test_structural_error_fails(
        self, tmp_test_dir, script_template_path, output_dir, settings, recording_logger
    ):
        broken = tmp_test_dir / "broken-msi.xml"
        broken.write_text(
            "<ApplicationDef><DeploymentTypes><DeploymentType>"
            "<UninstallCmd /></DeploymentType></DeploymentTypes></ApplicationDef>",
            encoding="utf-8",
        )
        templates = load_templates(broken, script_template_path)

        result = generate_recipe(
            {"Name": "App", "InstallerType": "msi"},
            templates,
            output_dir,
            settings,
            logger=recording_logger,
        )

        assert result.status == FAILED
        assert "InstallProgram" in result.reason
        assert any("App" in m for m in recording_logger.of_kind("error"))

    def test_write_failure_fails(self, msi_record, templates, output_dir, settings):
        with patch("recipegen.core.write_recipe", side_effect=PermissionError("denied")):
            result = generate_recipe(msi_record, templates, output_dir, settings)

        assert result.status == FAILED
        assert result.variant == "MSI"
        assert "denied" in result.reason

    def test_unexpected_error_fails(self, msi_record, templates, output_dir, settings):
        with patch("recipegen.core.map_fields", side_effect=RuntimeError("boom")):
            result = generate_recipe(msi_record, templates, output_dir, settings)

        assert result.status == FAILED
        assert "RuntimeError: boom" == result.reason


class TestGenerateRecipes:
    """Tests for batch runs."""

    def test_batch_outcomes(self, msi_record, script_record, templates, output_dir, settings):
        records = [
            msi_record,
            {"Name": "Missing Type"},
            script_record,
            {"Name": "Portable", "InstallerType": "portable"},
            "not a record",
        ]

        summary = generate_recipes(
            records, output_dir, settings=settings, templates=templates
        )

        assert [r.status for r in summary.results] == [
            CREATED,
            SKIPPED,
            CREATED,
            SKIPPED,
            SKIPPED,
        ]
        assert summary.processed == 2
        assert summary.skipped == 3
        assert summary.failed == 0
        assert summary.total == 5
        assert summary.output_dir == output_dir
        assert sorted(p.name for p in output_dir.iterdir()) == ["7Zip.xml", "Notepad.xml"]

    def test_failure_does_not_stop_batch(self, msi_record, script_record, templates, output_dir, settings):
        def flaky(record, variant, *args, **kwargs):
            if record.name == "7-Zip":
                raise RuntimeError("boom")
            return real_map_fields(record, variant, *args, **kwargs)

        with patch("recipegen.core.map_fields", side_effect=flaky):
            summary = generate_recipes(
                [msi_record, script_record], output_dir, settings=settings, templates=templates
            )

        assert summary.failed == 1
        assert summary.processed == 1
        assert summary.results[1].status == CREATED

    def test_second_run_changes_nothing(self, msi_record, templates, output_dir, settings, recording_logger):
        generate_recipes([msi_record], output_dir, settings=settings, templates=templates)
        before = (output_dir / "7Zip.xml").read_bytes()

        summary = generate_recipes(
            [msi_record],
            output_dir,
            settings=settings,
            templates=templates,
            logger=recording_logger,
        )

        assert summary.processed == 0
        assert summary.skipped == 1
        assert (output_dir / "7Zip.xml").read_bytes() == before
        assert recording_logger.of_kind("warning")

    def test_duplicate_names_in_one_run(self, msi_record, templates, output_dir, settings):
        summary = generate_recipes(
            [msi_record, dict(msi_record)], output_dir, settings=settings, templates=templates
        )
        assert [r.status for r in summary.results] == [CREATED, SKIPPED]

    def test_progress_and_summary(self, msi_record, templates, output_dir, settings, recording_logger):
        generate_recipes(
            [msi_record], output_dir, settings=settings, templates=templates, logger=recording_logger
        )

        assert recording_logger.of_kind("step") == ["7-Zip"]
        summary = [m for k, p, m in recording_logger.messages if p == "SUMMARY"]
        assert summary and "1 recipe(s) created" in summary[0]
        assert str(output_dir) in summary[0]

    def test_loads_templates_from_settings(self, msi_record, output_dir, settings):
        summary = generate_recipes([msi_record], output_dir, settings=settings)
        assert summary.processed == 1

    def test_missing_template_aborts_before_records(self, msi_record, output_dir, settings, tmp_test_dir):
        settings["templates"]["script"] = str(tmp_test_dir / "missing.xml")

        with pytest.raises(ConfigError):
            generate_recipes([msi_record], output_dir, settings=settings)

        assert not output_dir.exists()

    def test_default_output_dir(self, msi_record, settings, templates, tmp_test_dir, monkeypatch):
        monkeypatch.chdir(tmp_test_dir)
        summary = generate_recipes([msi_record], settings=settings, templates=templates)

        assert summary.output_dir == Path("Recipes")
        assert (tmp_test_dir / "Recipes" / "7Zip.xml").exists()

    def test_empty_input(self, templates, output_dir, settings):
        summary = generate_recipes([], output_dir, settings=settings, templates=templates)
        assert summary.processed == 0
        assert summary.results == ()


class TestPlanRecipes:
    """Tests for dry-run classification."""

    def test_plan(self, msi_record, script_record, output_dir, settings):
        report = plan_recipes(
            [msi_record, script_record, {"Name": "X", "InstallerType": "appx"}],
            output_dir,
            settings=settings,
        )

        assert report.status == "invalid"
        assert report.usable_count == 2
        assert report.planned[0].variant == "MSI"
        assert report.planned[0].file_name == "7Zip.xml"
        assert report.planned[1].variant == "Script"
        assert report.planned[2].issues
        assert not output_dir.exists()

    def test_plan_detects_existing_and_duplicates(self, msi_record, output_dir, settings):
        output_dir.mkdir()
        (output_dir / "7Zip.xml").write_text("existing")

        report = plan_recipes([msi_record, dict(msi_record)], output_dir, settings=settings)

        assert "already exists" in report.planned[0].issues[0]
        assert any("earlier record" in issue for issue in report.planned[1].issues)

    def test_plan_valid(self, msi_record, output_dir, settings):
        report = plan_recipes([msi_record], output_dir, settings=settings)
        assert report.status == "valid"
