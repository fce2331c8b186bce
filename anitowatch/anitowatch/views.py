"""
Presentation-time helpers for the lists: filtering, sorting and summaries.

Nothing here touches storage; the order on disk is always insertion order.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from .constants import DEFAULT_SORT_KEY, SORT_KEYS, STATUS_LABELS
from .logging import ValidationError
from .models import ListKind


@dataclass
class ListSummary:
    total: int
    progress: int
    completed: int


PROGRESS_FIELDS = {
    ListKind.WATCHLIST: "episodes_watched",
    ListKind.READINGLIST: "chapters_read",
}


def filter_by_status(entries: List[Mapping[str, Any]], status: Optional[str]) -> List[Mapping[str, Any]]:
    if not status or status == "all":
        return list(entries)
    return [e for e in entries if e.get("status") == status]


def _number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def sort_entries(kind: ListKind, entries: List[Mapping[str, Any]], key: str = DEFAULT_SORT_KEY) -> List[Mapping[str, Any]]:
    """
    Returns a sorted copy. 'added' puts the newest first, title/name sort
    A-Z ignoring case, every numeric key sorts highest first.
    """
    kind = ListKind(kind)
    if key not in SORT_KEYS[kind.value]:
        raise ValidationError(f"Cannot sort {kind.value} by '{key}'")

    if key == "added":
        # ISO-8601 strings in UTC sort chronologically as text
        return sorted(entries, key=lambda e: e.get("added_date") or "", reverse=True)
    if key in ("title", "name"):
        return sorted(entries, key=lambda e: str(e.get(key) or "").casefold())
    return sorted(entries, key=lambda e: _number(e.get(key)), reverse=True)


def summarize(kind: ListKind, entries: List[Mapping[str, Any]]) -> ListSummary:
    kind = ListKind(kind)
    progress_field = PROGRESS_FIELDS.get(kind)
    progress = 0
    if progress_field:
        progress = sum(int(_number(e.get(progress_field))) for e in entries)
    completed = sum(1 for e in entries if e.get("status") == "completed")
    return ListSummary(total=len(entries), progress=progress, completed=completed)


def format_status(status: Optional[str]) -> str:
    if not status:
        return "Unknown"
    return STATUS_LABELS.get(status, status)


def format_progress(entry: Mapping[str, Any], done_field: str, total_field: str) -> str:
    """'3/12', with '?' when the total is unknown (0)."""
    done = int(_number(entry.get(done_field)))
    total = int(_number(entry.get(total_field)))
    return f"{done}/{total or '?'}"
