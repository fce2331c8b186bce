"""
Tests for list sorting, filtering and summaries.
"""

import pytest

from anitowatch.anitowatch.logging import ValidationError
from anitowatch.anitowatch.models import ListKind
from anitowatch.anitowatch.views import (
    ListSummary,
    filter_by_status,
    format_progress,
    format_status,
    sort_entries,
    summarize,
)

WATCHLIST = [
    {"mal_id": 1, "title": "cowboy Bebop", "score": 8.75, "episodes": 26, "episodes_watched": 26,
     "status": "completed", "added_date": "2024-01-05T10:00:00.000Z"},
    {"mal_id": 2, "title": "Akira", "score": 8.16, "episodes": 1, "episodes_watched": 0,
     "status": "planning", "added_date": "2024-03-01T12:00:00.000Z"},
    {"mal_id": 3, "title": "Frieren", "score": 0, "episodes": 0, "episodes_watched": 7,
     "status": "watching", "added_date": "2023-12-31T23:59:59.999Z"},
]


def titles(entries):
    return [e["title"] for e in entries]


def test_sort_added_newest_first():
    """The default sort puts the newest entry first."""
    assert titles(sort_entries(ListKind.WATCHLIST, WATCHLIST)) == ["Akira", "cowboy Bebop", "Frieren"]


def test_sort_title_ignores_case():
    """Title sorting is case-insensitive."""
    assert titles(sort_entries(ListKind.WATCHLIST, WATCHLIST, "title")) == ["Akira", "cowboy Bebop", "Frieren"]


def test_sort_numeric_highest_first():
    """Numeric keys sort highest first."""
    assert titles(sort_entries(ListKind.WATCHLIST, WATCHLIST, "score")) == ["cowboy Bebop", "Akira", "Frieren"]
    assert titles(sort_entries(ListKind.WATCHLIST, WATCHLIST, "episodes")) == ["cowboy Bebop", "Akira", "Frieren"]


def test_sort_does_not_mutate():
    """Sorting returns a copy."""
    before = list(WATCHLIST)
    sort_entries(ListKind.WATCHLIST, WATCHLIST, "title")
    assert WATCHLIST == before


def test_sort_key_must_fit_kind():
    """Sort keys are checked against the list kind."""
    with pytest.raises(ValidationError):
        sort_entries(ListKind.FAVORITES, [], "score")
    with pytest.raises(ValidationError):
        sort_entries(ListKind.WATCHLIST, [], "chapters")


def test_filter_by_status():
    """Status filtering keeps matches; 'all' keeps everything."""
    assert titles(filter_by_status(WATCHLIST, "watching")) == ["Frieren"]
    assert len(filter_by_status(WATCHLIST, "all")) == 3
    assert len(filter_by_status(WATCHLIST, None)) == 3
    assert filter_by_status(WATCHLIST, "dropped") == []


def test_summarize():
    """Summaries count entries, progress and completions."""
    assert summarize(ListKind.WATCHLIST, WATCHLIST) == ListSummary(total=3, progress=33, completed=1)
    assert summarize(ListKind.FAVORITES, [{"mal_id": 1}]) == ListSummary(total=1, progress=0, completed=0)
    assert summarize(ListKind.READINGLIST, [{"chapters_read": "12"}, {"chapters_read": None}]).progress == 12


def test_format_helpers():
    """Statuses and progress are formatted for display."""
    assert format_status("watching") == "Watching"
    assert format_status("on_hold") == "on_hold"
    assert format_status(None) == "Unknown"
    assert format_progress(WATCHLIST[0], "episodes_watched", "episodes") == "26/26"
    assert format_progress(WATCHLIST[2], "episodes_watched", "episodes") == "7/?"
