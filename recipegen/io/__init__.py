"""Input operations for recipegen.

Modules:

source : module
    Package metadata loading from JSON/YAML files or HTTP(S) endpoints.

Public API:

load_records : function
    Load raw package records from a path or URL.
make_session : function
    requests.Session with retry/backoff for remote sources.

Example:
    from recipegen.io import load_records

    records = load_records("exports/packages.json")
    print(f"Loaded {len(records)} record(s)")

"""

from .source import fetch_records, load_records, make_session, read_records

__all__ = ["fetch_records", "load_records", "make_session", "read_records"]
