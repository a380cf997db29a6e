"""Persist captured jobs as one JSON blob in a locked key-value file."""
from __future__ import annotations

import fcntl
import json
from pathlib import Path
from typing import IO, Callable

from jobcollector.config import STORAGE_KEY
from jobcollector.errors import StoreError
from jobcollector.log import get_logger
from jobcollector.models import JobRecord

log = get_logger(__name__)


def _lock(f: IO, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f: IO) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


def _decode(raw: str, path: Path) -> dict[str, str]:
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError as exc:
        log.error("Storage file %s is not valid JSON (%s); treating as empty", path.name, exc)
        return {}
    if not isinstance(data, dict):
        log.error("Storage file %s is not a JSON object; treating as empty", path.name)
        return {}
    return {str(k): v for k, v in data.items() if isinstance(v, str)}


class KeyValueFile:
    """String values under string keys, kept in a single JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def get(self, key: str) -> str | None:
        if not self.path.exists():
            return None
        with open(self.path, "r", encoding="utf-8") as f:
            _lock(f, exclusive=False)
            try:
                raw = f.read()
            finally:
                _unlock(f)
        return _decode(raw, self.path).get(key)

    def update(self, key: str, fn: Callable[[str | None], str | None]) -> str | None:
        """Read-modify-write *key* under one exclusive lock.

        *fn* gets the value currently on disk and returns the new one; returning
        ``None`` leaves the file untouched. Errors raised by *fn* propagate.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a+", encoding="utf-8") as f:
                _lock(f)
                try:
                    f.seek(0)
                    data = _decode(f.read(), self.path)
                    value = fn(data.get(key))
                    if value is not None:
                        data[key] = value
                        f.seek(0)
                        f.truncate()
                        json.dump(data, f, ensure_ascii=False, indent=2)
                        f.flush()
                finally:
                    _unlock(f)
        except OSError as exc:
            raise StoreError(f"Cannot write {self.path}: {exc}") from exc
        return value

    def set(self, key: str, value: str) -> None:
        self.update(key, lambda _current: value)


def _parse_records(raw: str | None) -> list[JobRecord]:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError as exc:
        log.error("Stored job list is not valid JSON (%s); treating as empty", exc)
        return []
    if not isinstance(data, list):
        log.error("Stored job list is not an array; treating as empty")
        return []

    records: list[JobRecord] = []
    seen: set[str] = set()
    for item in data:
        try:
            rec = JobRecord.from_dict(item)
        except (ValueError, TypeError) as exc:
            log.warning("Skipping unreadable stored record: %s", exc)
            continue
        if rec.id in seen:
            log.warning("Skipping duplicate stored record %s", rec.id)
            continue
        seen.add(rec.id)
        records.append(rec)
    return records


class RecordStore:
    """Owns the job list; every mutation writes the whole list back.

    Several stores may share one file (each browser session plus the CLI), so
    reads go to disk and each mutation is applied to the list currently on
    disk under the file lock. Lists are never edited in place: callers holding
    ``records()`` keep a stable view.
    """

    def __init__(self, backend: KeyValueFile, key: str = STORAGE_KEY) -> None:
        self.backend = backend
        self.key = key
        self._records: tuple[JobRecord, ...] = ()
        log.info("Loaded %d job record(s)", len(self.records()))

    def _mutate(self, change: Callable[[list[JobRecord]], list[JobRecord] | None]) -> bool:
        """Apply *change* to the on-disk list; ``None`` from *change* means no-op."""
        result: list[tuple[JobRecord, ...]] = []

        def apply(raw: str | None) -> str | None:
            current = _parse_records(raw)
            updated = change(current)
            result.append(tuple(current if updated is None else updated))
            if updated is None:
                return None
            return json.dumps([r.to_dict() for r in updated], ensure_ascii=False)

        written = self.backend.update(self.key, apply)
        self._records = result[0]
        return written is not None

    def records(self) -> tuple[JobRecord, ...]:
        self._records = tuple(_parse_records(self.backend.get(self.key)))
        return self._records

    def get(self, record_id: str) -> JobRecord | None:
        for r in self.records():
            if r.id == record_id:
                return r
        return None

    def __len__(self) -> int:
        return len(self.records())

    def add(self, record: JobRecord) -> None:
        """Store *record* at the front of the list (newest first)."""
        def prepend(current: list[JobRecord]) -> list[JobRecord]:
            if any(r.id == record.id for r in current):
                raise ValueError(f"Duplicate record id {record.id}")
            return [record, *current]

        self._mutate(prepend)
        log.debug("Stored: %s @ %s [%s]", record.title, record.company, record.id)

    def replace(self, record: JobRecord) -> bool:
        def swap(current: list[JobRecord]) -> list[JobRecord] | None:
            if not any(r.id == record.id for r in current):
                return None
            return [record if r.id == record.id else r for r in current]

        if not self._mutate(swap):
            return False
        log.debug("Updated %s -> %s", record.id, record.status)
        return True

    def remove(self, record_id: str) -> bool:
        def drop(current: list[JobRecord]) -> list[JobRecord] | None:
            kept = [r for r in current if r.id != record_id]
            return None if len(kept) == len(current) else kept

        if not self._mutate(drop):
            return False
        log.debug("Removed %s", record_id)
        return True

    def clear(self) -> None:
        self._mutate(lambda _current: [])
        log.info("Cleared all job records")


def open_store(path: Path, key: str = STORAGE_KEY) -> RecordStore:
    return RecordStore(KeyValueFile(path), key=key)
