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

"""Recipe serialization and output.

The deployment pipeline that consumes recipes expects a fixed byte
format, so serialization is not configurable:

- XML declaration ``<?xml version="1.0" encoding="utf-8"?>``
- One tab per indentation level
- CRLF line endings, no trailing newline
- UTF-8 encoding
- Empty elements written as ``<Tag></Tag>``

Existing recipes are never overwritten. A collision skips the record so
hand-edited recipes (detection clauses in particular) survive re-runs.
"""

from __future__ import annotations

from pathlib import Path
import xml.etree.ElementTree as ET

from recipegen.document import RecipeDocument
from recipegen.exceptions import CollisionError

__all__ = ["XML_DECLARATION", "serialize", "write_recipe"]

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'


def serialize(document: RecipeDocument) -> bytes:
    """Serialize a recipe to its on-disk byte form.

    Indentation is rebuilt from scratch, so whitespace in the template and
    any inserted elements do not affect the output.
    """
    ET.indent(document.root, space="\t")
    body = ET.tostring(document.root, encoding="unicode", short_empty_elements=False)
    text = f"{XML_DECLARATION}\n{body}"
    return text.replace("\r\n", "\n").replace("\n", "\r\n").encode("utf-8")


def write_recipe(document: RecipeDocument, destination: Path) -> Path:
    """Write a recipe, refusing to replace an existing file.

    The parent directory is created if needed. The file is opened in
    exclusive-create mode, so a file appearing between the existence check
    and the write is also reported as a collision.

    Args:
        document: Populated recipe.
        destination: Target file path.

    Returns:
        The destination path.

    Raises:
        CollisionError: If destination already exists.
        OSError: If the directory or file cannot be written.
    """
    if destination.exists():
        raise CollisionError(f"recipe already exists: {destination}")

    data = serialize(document)
    destination.parent.mkdir(parents=True, exist_ok=True)
    try:
        with destination.open("xb") as f:
            f.write(data)
    except FileExistsError as err:
        raise CollisionError(f"recipe already exists: {destination}") from err

    return destination
