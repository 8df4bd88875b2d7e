"""
Shared utility functions for the entity store.

All JSON writes use atomic temp-file-then-os.replace() so that a crash
mid-write never leaves a truncated data store behind.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def now_iso() -> str:
    """Return the current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# JSON I/O (atomic writes)
# ---------------------------------------------------------------------------

def safe_write_json(path, data, *, indent=2):
    """Atomically write *data* as JSON to *path*.

    Uses a temporary file in the same directory followed by
    ``os.replace()`` so that readers never see a partially-written file.
    Parent directories are created if they do not exist.

    Parameters
    ----------
    path : str or pathlib.Path
        Path to the target JSON file.
    data
        JSON-serialisable object to write.
    indent : int, optional
        JSON indentation level (default 2).

    Raises
    ------
    OSError
        If the directory or file cannot be written.
    TypeError, ValueError
        If *data* is not JSON-serialisable.  The target file is untouched.
    """
    path = os.path.abspath(str(path))
    parent = os.path.dirname(path)
    os.makedirs(parent, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=indent, ensure_ascii=False)
            fh.flush()
            os.fsync(fh.fileno())
        # mkstemp creates 0600; keep the permissions of the file we replace
        if os.path.exists(path):
            os.chmod(tmp_path, os.stat(path).st_mode & 0o777)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def safe_append_jsonl(path, record):
    """Append a single JSON record to a JSONL (JSON Lines) file.

    The append is a single ``write`` call followed by ``fsync`` to
    minimise partial-write risk.

    Parameters
    ----------
    path : str or pathlib.Path
        Path to the JSONL file.  Parent directories are created.
    record
        JSON-serialisable object to append as one line.
    """
    path = os.path.abspath(str(path))
    os.makedirs(os.path.dirname(path), exist_ok=True)

    line = json.dumps(record, ensure_ascii=False) + "\n"
    with open(path, "a", encoding="utf-8") as fh:
        fh.write(line)
        fh.flush()
        os.fsync(fh.fileno())


# ---------------------------------------------------------------------------
# Validation error formatting
# ---------------------------------------------------------------------------

def humanize_validation_errors(errors) -> list[str]:
    """Turn pydantic / jsonschema error records into readable sentences.

    Accepts either the ``errors()`` list of a ``pydantic.ValidationError``
    (dicts with ``loc`` and ``msg``) or an iterable of
    ``jsonschema.ValidationError`` objects.
    """
    messages = []
    for error in errors:
        if isinstance(error, dict):
            location = ".".join(str(part) for part in error.get("loc", ())) or "(root)"
            messages.append(f"'{location}': {error.get('msg', 'invalid value')}")
        else:
            location = ".".join(str(part) for part in error.absolute_path) or "(root)"
            messages.append(f"'{location}': {error.message}")
    return messages
