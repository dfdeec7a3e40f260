"""
Settings loading and merging for recipegen.

Two layers are merged with "last wins" semantics:

1. **Built-in defaults** (DEFAULT_SETTINGS)
   - Conventional "Recipes" output directory
   - Bundled MSI and Script template documents
   - Standard resolver function names and silent switches

2. **Settings file** (any YAML mapping, passed with --config)
   - Overrides any subset of the defaults

Merge Behavior
--------------
  - **Dicts**: Recursively merged (keys from overlay override base)
  - **Lists**: Completely replaced (NOT appended/extended)
  - **Scalars**: Overwritten (strings, numbers, booleans)

Path Resolution
---------------
Relative template paths in a settings file are resolved against the
SETTINGS FILE location, so a settings file and its templates can be moved
together. Currently resolved paths:
  - templates.msi
  - templates.script

Error Handling
--------------
- ConfigError: settings file missing, unparsable, or not a mapping
- All errors are chained with "from err" for better debugging
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

from recipegen.exceptions import ConfigError
from recipegen.logging import Logger, get_global_logger

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

DEFAULT_SETTINGS: dict[str, Any] = {
    "output_dir": "Recipes",
    "sentinel": "N/A",
    "default_switches": "/S",
    "templates": {
        "msi": str(TEMPLATES_DIR / "msi.xml"),
        "script": str(TEMPLATES_DIR / "script.xml"),
    },
    "resolvers": {
        "msi": "Get-MSIInstallerUrl",
        "script": "Get-EXEInstallerUrl",
    },
}

# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> Any:
    """
    Load a YAML file and return the parsed Python object.

    Raises:
      ConfigError - when the file does not exist, cannot be parsed, or is empty
    """
    if not p.exists():
        raise ConfigError(f"settings file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"error parsing YAML: {p}: {err}") from err
    except OSError as err:
        raise ConfigError(f"cannot read settings file: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two dicts with "overlay wins".

    Rules:
      - dict + dict -> deep merge
      - list + list -> overlay REPLACES base (not concatenated)
      - everything else -> overlay overwrites base

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


# -------------------------------
# Path resolution
# -------------------------------


def _resolve_known_paths(cfg: dict[str, Any], settings_dir: Path) -> None:
    """
    Resolve relative template paths against 'settings_dir'. Modifies cfg in place.
    """
    templates = cfg.get("templates")
    if not isinstance(templates, dict):
        return
    for key in ("msi", "script"):
        raw_path = templates.get(key)
        if isinstance(raw_path, str) and raw_path:
            p = Path(raw_path)
            if not p.is_absolute():
                templates[key] = str((settings_dir / p).resolve())


def _print_yaml_content(logger: Logger, data: dict[str, Any]) -> None:
    """Dump settings as YAML through the debug channel."""
    yaml_str = yaml.dump(data, default_flow_style=False, sort_keys=False)
    for line in yaml_str.split("\n"):
        if line.strip():
            logger.debug("CONFIG", "  " + line)


# -------------------------------
# Public API
# -------------------------------


def load_settings(
    settings_path: Path | None = None,
    *,
    logger: Logger | None = None,
) -> dict[str, Any]:
    """
    Load the effective settings for a run.

    Steps
      1) Start from a deep copy of DEFAULT_SETTINGS.
      2) If settings_path is given, read it (must be a YAML mapping).
      3) Resolve relative template paths against the settings file.
      4) Merge: defaults -> settings file (dicts deep-merge, lists replace).

    Returns
      A merged settings dict.

    Raises
      ConfigError on a missing file, YAML parse errors, or a non-mapping
      top level.
    """
    if logger is None:
        logger = get_global_logger()

    merged = copy.deepcopy(DEFAULT_SETTINGS)

    if settings_path is None:
        logger.verbose("CONFIG", "Using built-in settings")
        return merged

    settings_path = settings_path.resolve()
    logger.verbose("CONFIG", f"Loading settings: {settings_path}")

    overlay = _load_yaml_file(settings_path)
    if not isinstance(overlay, dict):
        raise ConfigError(
            f"top-level YAML must be a mapping (dict): {settings_path}"
        )

    _resolve_known_paths(overlay, settings_path.parent)
    merged = _deep_merge_dicts(merged, overlay)

    logger.debug("CONFIG", "--- Effective Settings ---")
    _print_yaml_content(logger, merged)

    return merged
