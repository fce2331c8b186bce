from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from .constants import (
    DEFAULT_LIST_STATUS,
    LIST_FILENAMES,
    LOCAL_STORAGE_KEY_PREFIX,
    UNKNOWN_WORK_TITLE,
)
from .logging import ValidationError


class ListKind(str, Enum):
    """The three personal lists, each with its own file and entry shape."""
    WATCHLIST = "watchlist"
    READINGLIST = "readinglist"
    FAVORITES = "favorites"

    @property
    def filename(self) -> str:
        return LIST_FILENAMES[self.value]

    @property
    def storage_key(self) -> str:
        """Key used by the local key/value fallback storage."""
        return f"{LOCAL_STORAGE_KEY_PREFIX}{self.value}"

    @property
    def supports_update(self) -> bool:
        return self is not ListKind.FAVORITES


class WatchStatus(str, Enum):
    PLANNING = "planning"
    WATCHING = "watching"
    COMPLETED = "completed"
    DROPPED = "dropped"


class ReadStatus(str, Enum):
    PLANNING = "planning"
    READING = "reading"
    COMPLETED = "completed"
    DROPPED = "dropped"


def _dig(data: Any, *path: Union[str, int]) -> Any:
    """Walks nested dicts/lists, returning None as soon as a step is missing."""
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or len(current) <= step:
                return None
        elif not isinstance(current, dict):
            return None
        current = current[step] if isinstance(step, int) else current.get(step)
        if current is None:
            return None
    return current


@dataclass
class CatalogRecord:
    """
    A raw anime, manga or character record from the Jikan API, reduced to
    the fields the lists care about.

    Only mal_id is guaranteed. Everything else is optional because Jikan
    omits or nulls fields freely (airing shows have no episode count,
    characters have no title, and so on).
    """
    mal_id: int
    title: Optional[str] = None
    name: Optional[str] = None
    image_url: Optional[str] = None
    episodes: Optional[int] = None
    chapters: Optional[int] = None
    score: Optional[float] = None
    favorites: Optional[int] = None
    work_title: Optional[str] = None

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> 'CatalogRecord':
        """
        Parses a Jikan record. Raises ValidationError when the record is
        not a mapping or has no usable mal_id.
        """
        if not isinstance(data, Mapping):
            raise ValidationError(f"Catalog record must be an object, got {type(data).__name__}")

        mal_id = data.get("mal_id")
        if isinstance(mal_id, bool) or not isinstance(mal_id, int):
            raise ValidationError(f"Catalog record has no valid mal_id: {mal_id!r}")

        return cls(
            mal_id=mal_id,
            title=data.get("title"),
            name=data.get("name"),
            image_url=_dig(data, "images", "jpg", "image_url"),
            episodes=data.get("episodes"),
            chapters=data.get("chapters"),
            score=data.get("score"),
            favorites=data.get("favorites"),
            work_title=_dig(data, "anime", 0, "anime", "title"),
        )

    def to_api(self) -> Dict[str, Any]:
        """Rebuilds the Jikan-shaped record, so from_api(to_api()) is lossless."""
        data: Dict[str, Any] = {
            "mal_id": self.mal_id,
            "title": self.title,
            "name": self.name,
            "images": {"jpg": {"image_url": self.image_url}},
            "episodes": self.episodes,
            "chapters": self.chapters,
            "score": self.score,
            "favorites": self.favorites,
        }
        if self.work_title is not None:
            data["anime"] = [{"anime": {"title": self.work_title}}]
        return data

    @property
    def display_name(self) -> str:
        return self.title or self.name or f"#{self.mal_id}"


@dataclass
class WatchlistEntry:
    """An anime on the watchlist."""
    mal_id: int
    id: str = ""
    title: Optional[str] = None
    image: Optional[str] = None
    episodes: int = 0
    score: float = 0
    episodes_watched: int = 0
    status: str = WatchStatus.PLANNING.value
    rating: float = 0
    notes: str = ""
    added_date: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReadingListEntry:
    """A manga on the reading list."""
    mal_id: int
    id: str = ""
    title: Optional[str] = None
    image: Optional[str] = None
    chapters: int = 0
    score: float = 0
    chapters_read: int = 0
    status: str = ReadStatus.PLANNING.value
    rating: float = 0
    notes: str = ""
    added_date: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FavoriteEntry:
    """A favorite character. Favorites are only ever added or removed."""
    mal_id: int
    id: str = ""
    name: Optional[str] = None
    image: Optional[str] = None
    anime: str = UNKNOWN_WORK_TITLE
    favorites: int = 0
    added_date: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


Entry = Union[WatchlistEntry, ReadingListEntry, FavoriteEntry]


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a trailing Z."""
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def coerce_record(record: Union[CatalogRecord, Mapping[str, Any]]) -> CatalogRecord:
    if isinstance(record, CatalogRecord):
        return record
    return CatalogRecord.from_api(record)


def project_record(
    kind: ListKind,
    record: Union[CatalogRecord, Mapping[str, Any]],
    now: datetime
) -> Dict[str, Any]:
    """
    Projects a catalog record into the entry shape for a list kind.

    Absent numeric fields become 0, progress and rating start at 0, notes
    start empty and status starts as planning. The id is the creation time
    in epoch milliseconds.
    """
    record = coerce_record(record)
    kind = ListKind(kind)
    entry_id = str(int(now.timestamp() * 1000))
    added_date = format_timestamp(now)

    if kind is ListKind.WATCHLIST:
        entry: Entry = WatchlistEntry(
            id=entry_id,
            mal_id=record.mal_id,
            title=record.title,
            image=record.image_url,
            episodes=record.episodes or 0,
            score=record.score or 0,
            episodes_watched=0,
            status=DEFAULT_LIST_STATUS,
            rating=0,
            notes="",
            added_date=added_date,
        )
    elif kind is ListKind.READINGLIST:
        entry = ReadingListEntry(
            id=entry_id,
            mal_id=record.mal_id,
            title=record.title,
            image=record.image_url,
            chapters=record.chapters or 0,
            score=record.score or 0,
            chapters_read=0,
            status=DEFAULT_LIST_STATUS,
            rating=0,
            notes="",
            added_date=added_date,
        )
    else:
        entry = FavoriteEntry(
            id=entry_id,
            mal_id=record.mal_id,
            name=record.name,
            image=record.image_url,
            anime=record.work_title or UNKNOWN_WORK_TITLE,
            favorites=record.favorites or 0,
            added_date=added_date,
        )
    return entry.to_dict()
