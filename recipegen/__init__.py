"""
recipegen - deployment recipe scaffolding

A Python CLI tool that turns package metadata records (name, publisher,
installer type, download URLs, silent switches) into XML deployment
recipes for an application packaging pipeline.

recipegen provides:
  - Two recipe shapes: MSI (msiexec) and Script (exe, Inno, Nullsoft,
    Burn, WiX setup executables)
  - Fallback-aware field mapping from incomplete metadata
  - Dynamic download URLs via PrefetchScript when an API URL is known
  - Byte-exact recipe output (tabs, CRLF, UTF-8) that never overwrites
  - Batch runs where one bad record never stops the rest

Quick Start
-----------
Check what a metadata export would produce:

    $ recipegen validate exports/packages.json

Generate recipes into ./Recipes:

    $ recipegen generate exports/packages.json

For full CLI documentation:

    $ recipegen --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    Batch orchestration and per-record pipeline.
config : package
    YAML settings loading and merging.
records : module
    Package records and the "unavailable" sentinel.
variants : module
    MSI / Script classification.
mapping : module
    Field mapping and name sanitization.
document : module
    Template loading and recipe mutation.
writer : module
    Recipe serialization and no-overwrite output.
io : package
    Record input from files and HTTP(S).

Public API
----------
    from recipegen.core import generate_recipes, plan_recipes
    from recipegen.io import load_records
    from recipegen.config import load_settings
    from recipegen.mapping import sanitize
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "Deployment recipe scaffolding from package metadata"

# Re-export commonly used functions for convenience
from recipegen.config import load_settings
from recipegen.core import generate_recipes, plan_recipes
from recipegen.io import load_records
from recipegen.mapping import sanitize

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "generate_recipes",
    "plan_recipes",
    "load_records",
    "load_settings",
    "sanitize",
]
