"""
Shared fixtures: a frozen clock and Jikan-shaped records.
"""

from datetime import datetime, timezone

import pytest

FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
FIXED_ID = "1709294400000"
FIXED_DATE = "2024-03-01T12:00:00.000Z"


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def anime_record():
    return {
        "mal_id": 1,
        "title": "Cowboy Bebop",
        "images": {"jpg": {"image_url": "https://cdn.myanimelist.net/images/anime/4/19644.jpg"}},
        "episodes": 26,
        "score": 8.75,
        "type": "TV",
    }


@pytest.fixture
def airing_record():
    # Airing shows come back with no episode count and no score yet
    return {
        "mal_id": 52991,
        "title": "Sousou no Frieren",
        "images": {"jpg": {"image_url": None}},
        "episodes": None,
        "score": None,
    }


@pytest.fixture
def manga_record():
    return {
        "mal_id": 2,
        "title": "Berserk",
        "images": {"jpg": {"image_url": "https://cdn.myanimelist.net/images/manga/1/157897.jpg"}},
        "chapters": None,
        "score": 9.47,
    }


@pytest.fixture
def character_record():
    return {
        "mal_id": 1,
        "name": "Spike Spiegel",
        "images": {"jpg": {"image_url": "https://cdn.myanimelist.net/images/characters/4/50197.jpg"}},
        "favorites": 48000,
        "anime": [{"role": "Main", "anime": {"mal_id": 1, "title": "Cowboy Bebop"}}],
    }
