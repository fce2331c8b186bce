"""
Tests for catalog record parsing and the projection into list entries.
"""

from datetime import datetime, timedelta, timezone

import pytest

from anitowatch.anitowatch.logging import ValidationError
from anitowatch.anitowatch.models import (
    CatalogRecord,
    FavoriteEntry,
    ListKind,
    format_timestamp,
    project_record,
)

from conftest import FIXED_DATE, FIXED_ID, FIXED_NOW


class TestCatalogRecord:
    """Test parsing of raw Jikan records at the boundary."""

    def test_from_api_reads_nested_image(self, anime_record):
        """The image URL is read from images.jpg.image_url."""
        record = CatalogRecord.from_api(anime_record)
        assert record.mal_id == 1
        assert record.title == "Cowboy Bebop"
        assert record.image_url.endswith("19644.jpg")
        assert record.episodes == 26

    def test_from_api_character_work_title(self, character_record):
        """A character's first anime appearance becomes its work title."""
        record = CatalogRecord.from_api(character_record)
        assert record.name == "Spike Spiegel"
        assert record.work_title == "Cowboy Bebop"
        assert record.display_name == "Spike Spiegel"

    def test_missing_images_is_tolerated(self):
        """Records without images parse with no image URL."""
        record = CatalogRecord.from_api({"mal_id": 5, "title": "No Art"})
        assert record.image_url is None

    @pytest.mark.parametrize("bad", [{}, {"mal_id": None}, {"mal_id": "1"}, {"mal_id": True}])
    def test_rejects_records_without_valid_mal_id(self, bad):
        """Only integer mal_ids are accepted."""
        with pytest.raises(ValidationError):
            CatalogRecord.from_api(bad)

    def test_rejects_non_mapping(self):
        """A record must be a JSON object."""
        with pytest.raises(ValidationError):
            CatalogRecord.from_api(["mal_id", 1])

    def test_to_api_feeds_back_into_from_api(self, character_record):
        """to_api produces a record that parses to the same values."""
        record = CatalogRecord.from_api(character_record)
        assert CatalogRecord.from_api(record.to_api()) == record


class TestProjection:
    """Test projecting catalog records into list entries."""

    def test_watchlist_entry_shape(self, anime_record):
        """A watchlist entry carries catalog fields plus fresh progress fields."""
        entry = project_record(ListKind.WATCHLIST, anime_record, FIXED_NOW)
        assert entry == {
            "mal_id": 1,
            "id": FIXED_ID,
            "title": "Cowboy Bebop",
            "image": "https://cdn.myanimelist.net/images/anime/4/19644.jpg",
            "episodes": 26,
            "score": 8.75,
            "episodes_watched": 0,
            "status": "planning",
            "rating": 0,
            "notes": "",
            "added_date": FIXED_DATE,
        }

    def test_absent_numbers_default_to_zero(self, airing_record):
        """Null episode counts and scores are stored as 0."""
        entry = project_record(ListKind.WATCHLIST, airing_record, FIXED_NOW)
        assert entry["episodes"] == 0
        assert entry["score"] == 0
        assert entry["image"] is None

    def test_readinglist_entry_shape(self, manga_record):
        """Reading list entries track chapters, not episodes."""
        entry = project_record(ListKind.READINGLIST, manga_record, FIXED_NOW)
        assert entry["chapters"] == 0
        assert entry["chapters_read"] == 0
        assert entry["score"] == 9.47
        assert entry["status"] == "planning"
        assert "episodes" not in entry

    def test_favorite_entry_shape(self, character_record):
        """Favorites keep the character name, work and favorite count only."""
        entry = project_record(ListKind.FAVORITES, character_record, FIXED_NOW)
        assert entry["name"] == "Spike Spiegel"
        assert entry["anime"] == "Cowboy Bebop"
        assert entry["favorites"] == 48000
        assert "status" not in entry
        assert "notes" not in entry

    def test_favorite_without_appearances_is_unknown(self):
        """A character with no anime appearances gets 'Unknown'."""
        entry = project_record(ListKind.FAVORITES, {"mal_id": 9, "name": "Extra", "anime": []}, FIXED_NOW)
        assert entry["anime"] == "Unknown"
        assert entry["favorites"] == 0

    def test_kind_may_be_given_as_string(self, anime_record):
        """List kinds can be passed by value."""
        entry = project_record("watchlist", anime_record, FIXED_NOW)
        assert entry["episodes_watched"] == 0


def test_format_timestamp_converts_to_utc():
    """Timestamps are written in UTC with milliseconds and a Z suffix."""
    moment = datetime(2024, 3, 1, 21, 0, 0, 123456, tzinfo=timezone(timedelta(hours=9)))
    assert format_timestamp(moment) == "2024-03-01T12:00:00.123Z"


def test_list_kind_files_and_keys():
    """Each kind knows its file, storage key and whether it can be updated."""
    assert ListKind.WATCHLIST.filename == "watchlist.json"
    assert ListKind.READINGLIST.storage_key == "anitowatch-readinglist"
    assert ListKind.FAVORITES.supports_update is False
    assert ListKind.READINGLIST.supports_update is True


def test_entry_defaults():
    """Entry dataclasses start with the documented defaults."""
    assert FavoriteEntry(mal_id=3).to_dict()["anime"] == "Unknown"
