"""Test the rating database"""

import json
import math
from datetime import datetime, timezone

import pytest

from spotility.core.exceptions import CorruptStoreError, InvalidRatingError
from spotility.core.ratings import (
    DEFAULT_RATING,
    RatingStore,
    describe_rating,
    parse_rating,
    validate_rating,
)


LIKED_AT = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def disk_full(src, dst):
    raise OSError(28, "No space left on device")


class TestRatingStore:
    """Test loading, mutating and persisting ratings"""

    def test_load_missing_file_is_empty(self, db_path):
        """A missing database is an empty store, not an error"""
        store = RatingStore.load(db_path)

        assert len(store) == 0
        assert list(store.all()) == []
        assert not db_path.exists()

    @pytest.mark.parametrize("rating", [1, 2.5, 3.0, 5])
    def test_set_then_get(self, db_path, rating):
        """set() followed by get() returns the same rating"""
        store = RatingStore.load(db_path)
        store.set("track1", rating)

        assert store.get("track1") == rating

    def test_get_unrated_returns_none(self, db_path):
        store = RatingStore.load(db_path)
        assert store.get("unknown") is None
        assert "unknown" not in store

    def test_set_persists_immediately(self, db_path):
        """Every mutation is on disk without an explicit save()"""
        store = RatingStore.load(db_path)
        store.set("track1", 4)

        reloaded = RatingStore.load(db_path)
        assert reloaded.get("track1") == 4.0

    def test_set_overwrites_and_keeps_added_at(self, db_path):
        """Last write wins, the original added_at survives"""
        store = RatingStore.load(db_path)
        store.add_missing([("track1", LIKED_AT)])
        store.set("track1", 5)

        entry = RatingStore.load(db_path).entry("track1")
        assert entry.rating == 5.0
        assert entry.added_at == LIKED_AT
        assert entry.updated_at >= LIKED_AT
        assert len(store) == 1

    def test_set_rejects_out_of_range(self, db_path):
        store = RatingStore.load(db_path)

        with pytest.raises(InvalidRatingError):
            store.set("track1", 6)

        assert not db_path.exists()

    def test_all_is_lazy_and_complete(self, db_path):
        store = RatingStore.load(db_path)
        store.set("a", 1)
        store.set("b", 5)

        pairs = store.all()
        assert iter(pairs) is pairs
        assert dict(pairs) == {"a": 1.0, "b": 5.0}

    def test_save_leaves_no_temp_file(self, db_path):
        store = RatingStore.load(db_path)
        store.set("track1", 3)

        assert [p.name for p in db_path.parent.iterdir()] == ["ratings.json"]

    def test_file_format(self, db_path):
        """Entries are stored as a JSON object keyed by track id"""
        store = RatingStore.load(db_path)
        store.add_missing([("track1", LIKED_AT)])

        data = json.loads(db_path.read_text(encoding="utf-8"))
        assert data == {
            "track1": {
                "rating": 3.0,
                "added_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        }


class TestAddMissing:
    """Test bulk insertion used by update-db"""

    def test_adds_only_new_tracks(self, db_path):
        store = RatingStore.load(db_path)
        store.set("track1", 5)

        added = store.add_missing([("track1", LIKED_AT), ("track2", LIKED_AT)])

        assert added == 1
        assert store.get("track1") == 5.0
        assert store.get("track2") == DEFAULT_RATING

    def test_idempotent_bytes(self, db_path):
        """Running twice with the same input leaves the file byte-identical"""
        tracks = [("track1", LIKED_AT), ("track2", LIKED_AT)]

        RatingStore.load(db_path).add_missing(tracks)
        first = db_path.read_bytes()

        added = RatingStore.load(db_path).add_missing(tracks)

        assert added == 0
        assert db_path.read_bytes() == first

    def test_creates_file_even_when_nothing_added(self, db_path):
        store = RatingStore.load(db_path)
        assert store.add_missing([]) == 0
        assert json.loads(db_path.read_text(encoding="utf-8")) == {}


class TestCorruptDatabase:
    """A damaged database is fatal"""

    def _write(self, db_path, content):
        db_path.parent.mkdir(parents=True, exist_ok=True)
        db_path.write_text(content, encoding="utf-8")

    def test_invalid_json(self, db_path):
        self._write(db_path, '{"track1": {"rating": 3.0,')
        with pytest.raises(CorruptStoreError) as exc_info:
            RatingStore.load(db_path)
        assert exc_info.value.details["path"] == str(db_path)

    def test_not_an_object(self, db_path):
        self._write(db_path, '[1, 2, 3]')
        with pytest.raises(CorruptStoreError):
            RatingStore.load(db_path)

    @pytest.mark.parametrize("entry", [
        {"added_at": "2024-01-15T10:30:00Z"},
        {"rating": "good", "added_at": "2024-01-15T10:30:00Z"},
        {"rating": 9.0, "added_at": "2024-01-15T10:30:00Z"},
        {"rating": 3.0, "added_at": "yesterday"},
        "3.0",
    ])
    def test_bad_entry(self, db_path, entry):
        self._write(db_path, json.dumps({"track1": entry}))
        with pytest.raises(CorruptStoreError) as exc_info:
            RatingStore.load(db_path)
        assert exc_info.value.details["track_id"] == "track1"

    def test_entry_without_updated_at_loads(self, db_path):
        """Older databases only carry added_at"""
        self._write(db_path, json.dumps({
            "track1": {"rating": 1.0, "added_at": "2024-01-15T10:30:00Z"}
        }))

        entry = RatingStore.load(db_path).entry("track1")
        assert entry.rating == 1.0
        assert entry.updated_at == entry.added_at == LIKED_AT


class TestFailedWrite:
    """A write that fails leaves both the file and the store as they were"""

    @pytest.fixture
    def failing_replace(self, monkeypatch):
        monkeypatch.setattr("spotility.core.ratings.os.replace", disk_full)

    def test_set_keeps_previous_file(self, db_path, monkeypatch):
        store = RatingStore.load(db_path)
        store.set("track1", 2)
        before = db_path.read_bytes()
        monkeypatch.setattr("spotility.core.ratings.os.replace", disk_full)

        with pytest.raises(CorruptStoreError) as exc_info:
            store.set("track1", 5)

        assert exc_info.value.details["path"] == str(db_path)
        assert db_path.read_bytes() == before
        assert not db_path.with_name("ratings.json.tmp").exists()
        assert store.get("track1") == 2.0

    def test_set_new_track_not_kept_in_memory(self, db_path, failing_replace):
        store = RatingStore.load(db_path)

        with pytest.raises(CorruptStoreError):
            store.set("track1", 5)

        assert store.get("track1") is None
        assert len(store) == 0
        assert not db_path.exists()

    def test_add_missing_not_kept_in_memory(self, db_path, failing_replace):
        store = RatingStore.load(db_path)

        with pytest.raises(CorruptStoreError):
            store.add_missing([("track1", LIKED_AT), ("track2", LIKED_AT)])

        assert len(store) == 0
        assert list(store.all()) == []

    def test_database_directory_is_a_file(self, temp_dir):
        blocker = temp_dir / "spotility"
        blocker.write_text("not a directory", encoding="utf-8")
        store = RatingStore.load(blocker / "ratings.json")

        with pytest.raises(CorruptStoreError):
            store.set("a", 5)

        assert store.get("a") is None
        assert len(store) == 0


class TestRatingParsing:
    """Test rating names, numbers and validation"""

    @pytest.mark.parametrize("text,expected", [
        ("bad", 1.0),
        ("meh", 2.0),
        ("ok", 3.0),
        ("Good", 4.0),
        (" great ", 5.0),
        ("3.5", 3.5),
        ("1", 1.0),
    ])
    def test_parse_rating(self, text, expected):
        assert parse_rating(text) == expected

    @pytest.mark.parametrize("text", ["awesome", "", "0", "5.1", "nan", "-3"])
    def test_parse_rating_invalid(self, text):
        with pytest.raises(InvalidRatingError) as exc_info:
            parse_rating(text)
        assert exc_info.value.value is not None

    @pytest.mark.parametrize("value", [True, None, "3", math.nan, math.inf, 0.99])
    def test_validate_rating_invalid(self, value):
        with pytest.raises(InvalidRatingError):
            validate_rating(value)

    def test_describe_rating(self):
        assert describe_rating(None) == "unrated"
        assert describe_rating(5.0) == "great"
        assert describe_rating(3) == "ok"
        assert describe_rating(3.5) == "3.5"
