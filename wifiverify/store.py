"""Location stores recording which fixes have been verified and when."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

from wifiverify.fix import Fix

log = logging.getLogger(__name__)


class StoreError(Exception):
    """A verification write or read could not be completed."""


class StoreEditor(Protocol):
    def put(self, fix: Fix) -> None: ...

    def end(self) -> None: ...


class LocationStore(Protocol):
    def edit(self) -> StoreEditor: ...


@contextmanager
def store_session(store: LocationStore) -> Iterator[StoreEditor]:
    """Open one edit session and always end it, even if submitting fails."""
    editor = store.edit()
    try:
        yield editor
    finally:
        editor.end()


def _newer(existing: Fix | None, fix: Fix) -> bool:
    if existing is None or existing.verified_at is None:
        return True
    if fix.verified_at is None:
        return False
    return fix.verified_at >= existing.verified_at


class _BufferedEditor:
    """Collects puts and hands them to the owning store on end()."""

    def __init__(self, apply) -> None:
        self._apply = apply
        self._pending: dict[str, Fix] = {}
        self._ended = False

    def put(self, fix: Fix) -> None:
        if self._ended:
            raise StoreError("edit session already ended")
        if not fix.source_id:
            log.debug("not storing verification of a fix without source id")
            return
        self._pending[fix.source_id] = fix

    def end(self) -> None:
        if self._ended:
            raise StoreError("edit session already ended")
        self._ended = True
        self._apply(list(self._pending.values()))


class MemoryLocationStore:
    """In-process store keyed by source id."""

    def __init__(self, fixes: Iterable[Fix] = ()) -> None:
        self._fixes: dict[str, Fix] = {}
        self._upsert(fixes)

    def edit(self) -> _BufferedEditor:
        return _BufferedEditor(self._upsert)

    def get(self, source_id: str) -> Fix | None:
        return self._fixes.get(source_id)

    def annotate(self, fixes: Iterable[Fix]) -> list[Fix]:
        return _annotate(self._fixes, fixes)

    def __len__(self) -> int:
        return len(self._fixes)

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._fixes

    def _upsert(self, fixes: Iterable[Fix]) -> None:
        for fix in fixes:
            if fix.source_id and _newer(self._fixes.get(fix.source_id), fix):
                self._fixes[fix.source_id] = fix


class JsonLocationStore:
    """Store persisted as a JSON document: {"fixes": {source_id: fix}}."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def edit(self) -> _BufferedEditor:
        return _BufferedEditor(self._commit)

    def load(self) -> dict[str, Fix]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
            return {
                source_id: Fix.from_dict(d)
                for source_id, d in data.get("fixes", {}).items()
                if source_id
            }
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise StoreError(f"cannot read {self.path}: {e}") from e

    def get(self, source_id: str) -> Fix | None:
        return self.load().get(source_id)

    def annotate(self, fixes: Iterable[Fix]) -> list[Fix]:
        return _annotate(self.load(), fixes)

    def _commit(self, fixes: list[Fix]) -> None:
        if not fixes:
            return
        records = self.load()
        for fix in fixes:
            if _newer(records.get(fix.source_id), fix):
                records[fix.source_id] = fix
        payload = {"fixes": {k: v.to_dict() for k, v in sorted(records.items())}}
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, indent=2) + "\n")
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreError(f"cannot write {self.path}: {e}") from e
        log.debug("stored %d verified fixes in %s", len(fixes), self.path)


def _annotate(records: dict[str, Fix], fixes: Iterable[Fix]) -> list[Fix]:
    """Fill verified_at from stored records that are newer than the fix's own.

    Fixes without a source id cannot be matched to a record and are left as is.
    """
    annotated: list[Fix] = []
    for fix in fixes:
        if not fix.source_id:
            annotated.append(fix)
            continue
        stored = records.get(fix.source_id)
        if (
            stored is not None
            and stored.verified_at is not None
            and (fix.verified_at is None or stored.verified_at > fix.verified_at)
        ):
            fix = fix.with_verified_at(stored.verified_at)
        annotated.append(fix)
    return annotated
