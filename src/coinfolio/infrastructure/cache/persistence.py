# src/coinfolio/infrastructure/cache/persistence.py
"""
Whole-category snapshot files.

One JSON document per category, rewritten in full on every save:

    {"format": 1, "category": "price", "saved_at_ms": ...,
     "entries": {"bitcoin_price": {"value": 65000.0, "created_at_ms": ..., "source_key": "bitcoin"}}}

Writes go to a temp file in the target directory and are moved into place
with `os.replace`, so a crash mid-save leaves the previous snapshot intact.
Reads never raise: a missing, unreadable or foreign file is an empty cache.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Mapping

from pydantic import TypeAdapter, ValidationError

from coinfolio.domain.entities import CacheEntry
from .policy import CategoryPolicy

log = logging.getLogger(__name__)

FILE_FORMAT_VERSION = 1


class CacheFile:
    """Loads and saves one category's mapping as a single unit."""

    def __init__(self, path: Path, policy: CategoryPolicy):
        self.path = Path(path)
        self.policy = policy
        self._adapter = TypeAdapter(policy.value_type)
        self._write_lock = threading.Lock()

    def load(self) -> Dict[str, CacheEntry]:
        """Return every entry that decodes cleanly. Never raises."""
        if not self.path.exists():
            log.debug("No %s cache file at %s, starting empty", self.policy.name, self.path)
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            log.warning("Failed to read %s cache from %s: %s - starting with empty cache", self.policy.name, self.path, e)
            return {}

        if not isinstance(document, dict) or document.get("format") != FILE_FORMAT_VERSION:
            log.warning(
                "Unsupported %s cache file format in %s (format=%r) - starting with empty cache",
                self.policy.name, self.path, document.get("format") if isinstance(document, dict) else None,
            )
            return {}
        if document.get("category") != self.policy.name:
            log.warning(
                "Cache file %s belongs to category %r, expected %r - ignoring it",
                self.path, document.get("category"), self.policy.name,
            )
            return {}

        raw_entries = document.get("entries")
        if not isinstance(raw_entries, dict):
            log.warning("Cache file %s has no entries mapping - starting with empty cache", self.path)
            return {}

        entries: Dict[str, CacheEntry] = {}
        skipped = 0
        for key, raw in raw_entries.items():
            try:
                entries[key] = self._decode_entry(raw)
            except (KeyError, TypeError, ValueError, ValidationError) as e:
                skipped += 1
                log.debug("Skipping undecodable %s entry %r: %s", self.policy.name, key, e)
        if skipped:
            log.warning("Skipped %d undecodable %s entries in %s", skipped, self.policy.name, self.path)
        return entries

    def save(self, entries: Mapping[str, CacheEntry], now_ms: int) -> bool:
        """Atomically replace the file with `entries`. Returns False on failure, never raises."""
        try:
            document = {
                "format": FILE_FORMAT_VERSION,
                "category": self.policy.name,
                "saved_at_ms": now_ms,
                "entries": {key: self._encode_entry(entry) for key, entry in entries.items()},
            }
            payload = json.dumps(document, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            log.error("Failed to encode %s cache: %s", self.policy.name, e)
            return False

        with self._write_lock:
            tmp_path = None
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp")
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
                tmp_path = None
            except OSError as e:
                log.error("Failed to save %s cache to %s: %s", self.policy.name, self.path, e)
                return False
            finally:
                if tmp_path is not None:
                    try:
                        os.unlink(tmp_path)
                    except OSError:
                        pass
        log.debug("Saved %s cache to disk (%d entries)", self.policy.name, len(entries))
        return True

    def _encode_entry(self, entry: CacheEntry) -> dict:
        return {
            "value": self._adapter.dump_python(entry.value, mode="json"),
            "created_at_ms": entry.created_at_ms,
            "source_key": entry.source_key,
        }

    def _decode_entry(self, raw: dict) -> CacheEntry:
        if not isinstance(raw, dict):
            raise TypeError(f"entry must be an object, got {type(raw).__name__}")
        value = self._adapter.validate_python(raw["value"])
        if not self.policy.validator(value):
            raise ValueError("stored value no longer satisfies the category rules")
        created_at_ms = raw["created_at_ms"]
        if isinstance(created_at_ms, bool) or not isinstance(created_at_ms, int):
            raise TypeError("created_at_ms must be an integer")
        return CacheEntry(value=value, created_at_ms=created_at_ms, source_key=str(raw.get("source_key", "")))
