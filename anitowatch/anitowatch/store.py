"""
JSON-backed persistence for the personal lists.

Each list kind lives in its own file as a JSON array. Every mutation reads the
whole file, changes the array in memory and rewrites the whole file. There is
no lock: two interleaved mutations of one list can lose an update.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .constants import JSON_INDENT
from .logging import StorageError, UnsupportedOperationError, ValidationError
from .models import CatalogRecord, ListKind, coerce_record, project_record, utc_now

logger = logging.getLogger(__name__)

EntryDict = Dict[str, Any]


# Pure list operations shared by every backend -------------------------------

def only_objects(items: List[Any]) -> List[EntryDict]:
    """Keeps the items that are JSON objects; anything else cannot be an entry."""
    return [item for item in items if isinstance(item, dict)]


def find_entry(entries: List[EntryDict], mal_id: int) -> Optional[EntryDict]:
    return next((e for e in entries if e.get("mal_id") == mal_id), None)


def append_unique(entries: List[EntryDict], entry: EntryDict) -> bool:
    """Appends entry unless its mal_id is already present. Returns True if added."""
    if find_entry(entries, entry.get("mal_id")) is not None:
        return False
    entries.append(entry)
    return True


def without_entry(entries: List[EntryDict], mal_id: int) -> List[EntryDict]:
    return [e for e in entries if e.get("mal_id") != mal_id]


def merge_entry(entries: List[EntryDict], mal_id: int, fields: Mapping[str, Any]) -> bool:
    """
    Shallow-merges fields into the entry with mal_id, in place.
    Returns False if no such entry exists.
    """
    for index, entry in enumerate(entries):
        if entry.get("mal_id") == mal_id:
            entries[index] = {**entry, **fields}
            return True
    return False


def check_update_fields(kind: ListKind, fields: Any) -> None:
    kind = ListKind(kind)
    if not kind.supports_update:
        raise UnsupportedOperationError(f"{kind.value} entries cannot be updated")
    if not isinstance(fields, Mapping):
        raise ValidationError(f"Update fields must be an object, got {type(fields).__name__}")


def label_of(entry: Optional[Mapping[str, Any]]) -> str:
    if not entry:
        return "?"
    return str(entry.get("title") or entry.get("name") or entry.get("mal_id"))


# File-backed store ----------------------------------------------------------

class ListStore:
    """
    Owns one JSON array file per list kind and the CRUD operations on it.

    All operations are coroutines so they can sit behind any bridge, but the
    file I/O inside them is synchronous: a single operation runs its
    read-modify-write without yielding to another.
    """

    def __init__(
        self,
        data_dir: Union[str, Path],
        indent: int = JSON_INDENT,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.data_dir = Path(data_dir)
        self.indent = indent
        self.clock = clock or utc_now

    def path_for(self, kind: ListKind) -> Path:
        return self.data_dir / ListKind(kind).filename

    async def get(self, kind: ListKind) -> List[EntryDict]:
        """
        Returns the stored entries for a kind.

        A missing file is created empty. Unparsable content is logged and
        the file is reset to an empty array; the caller just sees []. Items
        that are not objects are dropped. A failed repair is logged, never
        raised.
        """
        kind = ListKind(kind)
        path = self.path_for(kind)
        logger.debug(f"Reading {kind.value} from: {path}")

        if not path.exists():
            logger.info(f"File not found, creating empty {kind.value}")
            await self._reset(kind, [])
            return []

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Error reading {kind.value} from {path}: {e}")
            await self._reset(kind, [])
            return []

        if not raw.strip():
            logger.info(f"Empty file, returning empty array for {kind.value}")
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupt {kind.value} file {path} ({e}); resetting to empty")
            await self._reset(kind, [])
            return []

        if not isinstance(data, list):
            logger.warning(f"{path} does not hold a JSON array; resetting {kind.value} to empty")
            await self._reset(kind, [])
            return []

        entries = only_objects(data)
        if len(entries) != len(data):
            logger.warning(f"Dropping {len(data) - len(entries)} malformed item(s) from {path}")
            await self._reset(kind, entries)

        logger.debug(f"Successfully loaded {len(entries)} items from {kind.value}")
        return entries

    async def add(self, kind: ListKind, record: Union[CatalogRecord, Mapping[str, Any]]) -> List[EntryDict]:
        """
        Adds a catalog record unless an entry with its mal_id exists.
        Returns the full collection either way.
        """
        kind = ListKind(kind)
        record = coerce_record(record)
        entries = await self.get(kind)
        entry = project_record(kind, record, self.clock())

        if append_unique(entries, entry):
            await self.persist(kind, entries)
            logger.info(f"Added \"{record.display_name}\" to {kind.value}")
        else:
            logger.info(f"\"{record.display_name}\" already exists in {kind.value}")
        return entries

    async def remove(self, kind: ListKind, mal_id: int) -> List[EntryDict]:
        kind = ListKind(kind)
        entries = await self.get(kind)
        removed = find_entry(entries, mal_id)
        entries = without_entry(entries, mal_id)
        await self.persist(kind, entries)

        if removed:
            logger.info(f"Removed \"{label_of(removed)}\" from {kind.value}")
        return entries

    async def update(self, kind: ListKind, mal_id: int, fields: Mapping[str, Any]) -> List[EntryDict]:
        """
        Overwrites the supplied fields on the entry with mal_id and keeps the
        rest. Nothing is written when the entry does not exist.
        """
        kind = ListKind(kind)
        check_update_fields(kind, fields)
        entries = await self.get(kind)

        if merge_entry(entries, mal_id, fields):
            await self.persist(kind, entries)
            logger.info(f"Updated \"{label_of(find_entry(entries, mal_id))}\" in {kind.value}: {dict(fields)}")
        else:
            logger.info(f"Item with ID {mal_id} not found in {kind.value}")
        return entries

    async def _reset(self, kind: ListKind, entries: List[EntryDict]) -> None:
        # Repairs after a bad read are best effort; the caller still gets entries
        try:
            await self.persist(kind, entries)
        except StorageError as e:
            logger.error(f"Could not repair {kind.value}: {e}")

    async def persist(self, kind: ListKind, entries: List[EntryDict]) -> None:
        """Rewrites the whole file for a kind. Raises StorageError on failure."""
        kind = ListKind(kind)
        path = self.path_for(kind)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps(entries, indent=self.indent, ensure_ascii=False),
                encoding="utf-8"
            )
        except OSError as e:
            logger.error(f"Error saving {kind.value} to {path}: {e}")
            raise StorageError(f"Could not save {kind.value}: {e}") from e
        logger.debug(f"Successfully saved {len(entries)} items to {path}")
