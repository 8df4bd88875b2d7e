"""
entity_store/data_store.py -- Whole-file JSON persistence for entity records.

Holds every record in memory as a two-level mapping and writes the complete
structure back to a single file on ``flush()``::

    {
        "<TypeName>": {
            "<primaryKey>": {"<field>": <value>, ...},
            ...
        },
        ...
    }

An empty file is a valid, empty store.  Writes go through a temp file and
``os.replace()`` so a failed flush leaves the previous contents intact.

The auto-increment counter handing out surrogate IDs lives here but is never
written to disk: every process starts numbering at 1 again, so only primary
keys are stable across restarts.

Usage::

    from entity_store.data_store import DataStore

    store = DataStore("inventory.json")
    store.put("InventoryItem", "abc-4589", {"sku": "abc-4589", "qoh": 4})
    store.flush()
"""

from __future__ import annotations

import copy
import json
import logging
import os
from typing import Any

import jsonschema

from entity_store.errors import StoreCorrupt, StoreUnavailable, StoreWriteFailed
from entity_store.utils import humanize_validation_errors, safe_write_json

logger = logging.getLogger(__name__)

# Mode given to a freshly created store file
_NEW_FILE_MODE = 0o666

STORE_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Entity store document",
    "description": "Type name -> primary key -> attribute bag.",
    "type": "object",
    "additionalProperties": {
        "type": "object",
        "additionalProperties": {
            "type": "object",
            "additionalProperties": {
                "type": ["string", "number", "boolean", "null"],
            },
        },
    },
}

_validator = jsonschema.Draft202012Validator(STORE_SCHEMA)


class DataStore:
    """In-memory record map persisted to one JSON file.

    Parameters
    ----------
    path : str or pathlib.Path
        Location of the store file.  Created empty if it does not exist.

    Raises
    ------
    StoreUnavailable
        If the file cannot be created, is not readable/writable, or cannot
        be read.
    StoreCorrupt
        If a non-empty file does not decode to a valid record structure.
    """

    def __init__(self, path):
        self._path = os.path.abspath(str(path))
        self._auto_increment = 1
        self._records: dict[str, dict[str, dict[str, Any]]] = {}

        self._ensure_file_exists()
        self._check_permissions()
        self._records = self._load()
        logger.debug(
            "Opened data store %s (%d types, %d records)",
            self._path, len(self._records), len(self),
        )

    @classmethod
    def open(cls, path) -> DataStore:
        return cls(path)

    @property
    def path(self) -> str:
        return self._path

    # ------------------------------------------------------------------
    # Opening
    # ------------------------------------------------------------------

    def _ensure_file_exists(self) -> None:
        if os.path.exists(self._path):
            return
        try:
            parent = os.path.dirname(self._path)
            os.makedirs(parent, exist_ok=True)
            with open(self._path, "x", encoding="utf-8"):
                pass
        except FileExistsError:
            return
        except OSError as exc:
            raise StoreUnavailable(self._path, f"could not create file: {exc}") from exc

        try:
            os.chmod(self._path, _NEW_FILE_MODE)
        except OSError as exc:
            raise StoreUnavailable(
                self._path, f"could not set read/write permissions: {exc}"
            ) from exc
        logger.info("Created empty data store %s", self._path)

    def _check_permissions(self) -> None:
        if not os.path.isfile(self._path):
            raise StoreUnavailable(self._path, "path is not a regular file")
        if not os.access(self._path, os.R_OK | os.W_OK):
            raise StoreUnavailable(self._path, "file must be readable and writable")

    def _load(self) -> dict:
        try:
            with open(self._path, "r", encoding="utf-8") as fh:
                raw = fh.read()
        except UnicodeDecodeError as exc:
            raise StoreCorrupt(self._path, str(exc)) from exc
        except OSError as exc:
            raise StoreUnavailable(self._path, f"read failed: {exc}") from exc

        if not raw.strip():
            return {}

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreCorrupt(self._path, str(exc)) from exc

        errors = sorted(
            _validator.iter_errors(document),
            key=lambda e: [str(p) for p in e.absolute_path],
        )
        if errors:
            detail = "; ".join(humanize_validation_errors(errors[:5]))
            raise StoreCorrupt(self._path, detail)
        return document

    # ------------------------------------------------------------------
    # Surrogate IDs
    # ------------------------------------------------------------------

    def next_auto_id(self) -> int:
        """Return the next surrogate ID.  IDs are never reused in a process."""
        next_id = self._auto_increment
        self._auto_increment += 1
        return next_id

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def put(self, type_name: str, primary_key: str, attributes: dict[str, Any]) -> None:
        """Insert or replace the record at ``(type_name, primary_key)``."""
        self._records.setdefault(type_name, {})[str(primary_key)] = copy.deepcopy(dict(attributes))

    def get_record(self, type_name: str, primary_key: str) -> dict[str, Any] | None:
        """Return a copy of a record, or ``None`` if there is none."""
        record = self._records.get(type_name, {}).get(str(primary_key))
        return copy.deepcopy(record) if record is not None else None

    def delete(self, type_name: str, primary_key: str) -> None:
        """Remove a record if present.  Missing records are ignored."""
        bucket = self._records.get(type_name)
        if bucket is None or str(primary_key) not in bucket:
            return
        del bucket[str(primary_key)]
        if not bucket:
            del self._records[type_name]

    def list_types(self) -> list[str]:
        return list(self._records)

    def list_keys(self, type_name: str) -> list[str]:
        return list(self._records.get(type_name, {}))

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._records.values())

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def flush(self) -> None:
        """Write every record to the store file, replacing its contents.

        Raises
        ------
        StoreWriteFailed
            If the file cannot be written or a value is not serialisable.
            The file on disk keeps its previous contents.
        """
        try:
            safe_write_json(self._path, self._records)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Write of data store file %s failed: %s", self._path, exc)
            raise StoreWriteFailed(self._path, str(exc)) from exc
        logger.debug("Flushed %d records to %s", len(self), self._path)
