"""
Package metadata input for recipegen.

Records come from an external discovery tool, either as a file it wrote or
as JSON served over HTTP(S). The accepted payload shapes are:

    [ {"Name": ..., "InstallerType": ...}, ... ]
    {"packages": [ {...}, ... ]}

Files ending in .yaml/.yml are read with PyYAML, everything else as JSON.
Individual entries are not inspected here; malformed entries are rejected
one at a time by record validation so the rest of the batch still runs.

Examples
--------
Local export:

    >>> from recipegen.io import load_records
    >>> records = load_records("exports/packages.json")

Remote export:

    >>> records = load_records("https://inventory.example.com/packages.json")

Notes
-----
- HTTP retries use exponential backoff on transient status codes
- All errors are chained with "from err" for better debugging
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
import yaml

from recipegen import __version__
from recipegen.exceptions import ConfigError, NetworkError
from recipegen.logging import Logger, get_global_logger

DEFAULT_TIMEOUT = 30
YAML_SUFFIXES = (".yaml", ".yml")


def make_session() -> requests.Session:
    """
    Create a requests.Session with sane retry/backoff defaults.

    - Retries on common transient status codes.
    - Applies exponential backoff.
    - Sets a User-Agent identifying the tool.
    """
    s = requests.Session()
    retries = Retry(
        total=5,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
        raise_on_status=False,
    )
    s.headers.update(
        {
            "User-Agent": f"recipegen/{__version__}",
            "Accept": "application/json",
        }
    )
    s.mount("http://", HTTPAdapter(max_retries=retries))
    s.mount("https://", HTTPAdapter(max_retries=retries))
    return s


def is_remote(source: str | Path) -> bool:
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))


def _extract_records(payload: Any, origin: str) -> list[Any]:
    """Return the record list from a parsed payload."""
    if isinstance(payload, dict) and "packages" in payload:
        payload = payload["packages"]
    if not isinstance(payload, list):
        raise ConfigError(
            f"expected a list of package records (or a 'packages' list) in {origin}"
        )
    return payload


def fetch_records(
    url: str,
    *,
    timeout: int = DEFAULT_TIMEOUT,
    session: requests.Session | None = None,
    logger: Logger | None = None,
) -> list[Any]:
    """
    Fetch package records from an HTTP(S) endpoint returning JSON.

    Raises
      NetworkError on connection failures and HTTP errors,
      ConfigError if the body is not JSON or has the wrong shape.
    """
    if logger is None:
        logger = get_global_logger()
    sess = session or make_session()

    logger.verbose("HTTP", f"GET {url}")
    try:
        resp = sess.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as err:
        raise NetworkError(f"failed to fetch package records from {url}: {err}") from err

    logger.verbose("HTTP", f"Response: {resp.status_code} {resp.reason}")

    try:
        payload = resp.json()
    except ValueError as err:
        raise ConfigError(f"response from {url} is not valid JSON: {err}") from err

    return _extract_records(payload, url)


def read_records(path: Path, *, logger: Logger | None = None) -> list[Any]:
    """
    Read package records from a JSON or YAML file.

    Raises
      ConfigError if the file is missing, unreadable, unparsable, or has
      the wrong shape.
    """
    if logger is None:
        logger = get_global_logger()

    if not path.exists():
        raise ConfigError(f"records file not found: {path}")

    logger.verbose("INPUT", f"Reading records: {path}")
    try:
        with path.open("r", encoding="utf-8-sig") as f:
            if path.suffix.lower() in YAML_SUFFIXES:
                payload = yaml.safe_load(f)
            else:
                payload = json.load(f)
    except (yaml.YAMLError, json.JSONDecodeError) as err:
        raise ConfigError(f"error parsing records file {path}: {err}") from err
    except OSError as err:
        raise ConfigError(f"cannot read records file {path}: {err}") from err

    return _extract_records(payload, str(path))


def load_records(
    source: str | Path,
    *,
    session: requests.Session | None = None,
    logger: Logger | None = None,
) -> list[Any]:
    """
    Load package records from a local file or an HTTP(S) URL.

    Returns
      The raw record mappings in source order.
    """
    if is_remote(source):
        return fetch_records(str(source), session=session, logger=logger)
    return read_records(Path(source), logger=logger)
