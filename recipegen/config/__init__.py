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

"""
Settings loading for recipegen.

Settings come from built-in defaults, optionally overlaid by a YAML file:

    output_dir:        default destination for recipe files
    sentinel:          marker the metadata source uses for "unavailable"
    default_switches:  silent switches for Script recipes with none known
    templates.msi / templates.script:  template document paths
    resolvers.msi / resolvers.script:  PrefetchScript resolver functions

Example:
    >>> from recipegen.config import load_settings
    >>> settings = load_settings()
    >>> settings["output_dir"]
    'Recipes'
"""

from .loader import DEFAULT_SETTINGS, load_settings

__all__ = ["DEFAULT_SETTINGS", "load_settings"]
