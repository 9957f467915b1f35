"""
Rating database for spotility.

The rating database maps Spotify track ids to a rating entry and lives in
a single JSON file:

    {
      "4cOdK2wGLETKBW3PvgPWqT": {
        "added_at": "2024-01-15T10:30:00Z",
        "rating": 4.0,
        "updated_at": "2024-02-01T18:02:11Z"
      }
    }

Rating Scale:
    Ratings are floats from 1.0 to 5.0, higher is better. The named
    ratings accepted on the command line are:

        bad = 1, meh = 2, ok = 3, good = 4, great = 5

    Tracks added by update-db start at "ok".

Persistence:
    The store is loaded once per invocation and written back after every
    mutation. Writes go to a temporary file in the same directory which
    then replaces the database with os.replace(), so a crash never leaves
    a truncated file behind. Keys are sorted and timestamps normalized,
    so the same content always produces the same bytes.

Usage:
    store = RatingStore.load(Path("spotility/ratings.json"))
    store.set("4cOdK2wGLETKBW3PvgPWqT", parse_rating("good"))
    for track_id, rating in store.all():
        ...
"""

import json
import math
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Iterator

from spotility.core.exceptions import CorruptStoreError, InvalidRatingError
from spotility.core.logger import get_logger
from spotility.utils import ensure_directory, format_timestamp, parse_timestamp, utc_now

logger = get_logger(__name__)


RATING_MIN = 1.0
RATING_MAX = 5.0

RATING_NAMES: dict[str, float] = {
    "bad": 1.0,
    "meh": 2.0,
    "ok": 3.0,
    "good": 4.0,
    "great": 5.0,
}

DEFAULT_RATING = RATING_NAMES["ok"]


def validate_rating(value: Any) -> float:
    """
    Check that a value is a usable rating and return it as float.

    Raises:
        InvalidRatingError: If value is not a real number (bools excluded),
                            is NaN, or lies outside [RATING_MIN, RATING_MAX].
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidRatingError(f"Rating must be a number, got {value!r}", value=value)

    rating = float(value)
    if math.isnan(rating) or not RATING_MIN <= rating <= RATING_MAX:
        raise InvalidRatingError(
            f"Rating must be between {RATING_MIN:g} and {RATING_MAX:g}, got {value!r}",
            value=value
        )
    return rating


def parse_rating(text: str) -> float:
    """
    Parse a rating given on the command line.

    Accepts a rating name (case-insensitive) or a number.

    Examples:
        parse_rating("great")  # 5.0
        parse_rating("3.5")    # 3.5

    Raises:
        InvalidRatingError: If text is neither a known name nor a valid number.
    """
    normalized = text.strip().lower()
    if normalized in RATING_NAMES:
        return RATING_NAMES[normalized]

    try:
        value = float(normalized)
    except ValueError:
        names = ", ".join(RATING_NAMES)
        raise InvalidRatingError(
            f"Unknown rating '{text}': use a number from {RATING_MIN:g} to "
            f"{RATING_MAX:g} or one of: {names}",
            value=text
        ) from None

    return validate_rating(value)


def describe_rating(rating: float | None) -> str:
    """Render a rating by name when it has one ("ok"), else as a number."""
    if rating is None:
        return "unrated"
    for name, value in RATING_NAMES.items():
        if value == rating:
            return name
    return f"{rating:g}"


@dataclass(frozen=True)
class RatingEntry:
    """
    One rated track.

    Attributes:
        rating: Rating in [RATING_MIN, RATING_MAX].
        added_at: When the track was added to Liked Songs
                  (or first rated, for tracks rated before update-db saw them).
        updated_at: When the rating was last written.
    """
    rating: float
    added_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "rating": self.rating,
            "added_at": format_timestamp(self.added_at),
            "updated_at": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "RatingEntry":
        """
        Build an entry from its JSON form.

        Databases written before updated_at existed only carry added_at;
        for those the two timestamps are the same.

        Raises:
            ValueError, TypeError, KeyError: If the data is malformed.
                The store turns these into CorruptStoreError.
        """
        if not isinstance(data, dict):
            raise TypeError(f"entry must be an object, got {type(data).__name__}")

        rating = data["rating"]
        if isinstance(rating, bool) or not isinstance(rating, (int, float)):
            raise TypeError(f"rating must be a number, got {rating!r}")
        if math.isnan(rating) or not RATING_MIN <= rating <= RATING_MAX:
            raise ValueError(f"rating out of range: {rating!r}")

        added_at = parse_timestamp(data["added_at"])
        updated_raw = data.get("updated_at")
        updated_at = parse_timestamp(updated_raw) if updated_raw is not None else added_at

        return cls(rating=float(rating), added_at=added_at, updated_at=updated_at)


class RatingStore:
    """
    Track id to rating mapping persisted as a JSON file.

    Create it with RatingStore.load(); a fresh store for a path that does
    not exist yet is empty and creates the file on the first write.
    The store is passed explicitly to every command that needs it.
    """

    def __init__(self, path: Path, entries: dict[str, RatingEntry] | None = None) -> None:
        self.path = path
        self._entries: dict[str, RatingEntry] = dict(entries or {})

    @classmethod
    def load(cls, path: Path) -> "RatingStore":
        """
        Load the rating database from disk.

        Args:
            path: Path of the JSON file.

        Returns:
            The loaded store. Empty if the file does not exist.

        Raises:
            CorruptStoreError: If the file cannot be read, is not valid JSON,
                               is not a JSON object, or holds a malformed entry.
        """
        if not path.exists():
            logger.debug(f"No rating database at {path}, starting empty")
            return cls(path)

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CorruptStoreError(
                f"Failed to read rating database {path}: {e}",
                details={"path": str(path), "original_error": str(e)}
            ) from e

        try:
            raw = json.loads(content)
        except json.JSONDecodeError as e:
            raise CorruptStoreError(
                f"Rating database corrupted: invalid JSON at line {e.lineno} of {path}",
                details={"path": str(path), "line": e.lineno, "original_error": str(e)}
            ) from e

        if not isinstance(raw, dict):
            raise CorruptStoreError(
                f"Rating database corrupted: {path} must contain a JSON object",
                details={"path": str(path)}
            )

        entries: dict[str, RatingEntry] = {}
        for track_id, data in raw.items():
            try:
                entries[track_id] = RatingEntry.from_dict(data)
            except (KeyError, TypeError, ValueError) as e:
                raise CorruptStoreError(
                    f"Rating database corrupted: bad entry for track {track_id}: {e}",
                    details={"path": str(path), "track_id": track_id, "original_error": str(e)}
                ) from e

        logger.debug(f"Loaded {len(entries)} ratings from {path}")
        return cls(path, entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._entries

    def get(self, track_id: str) -> float | None:
        """Return the rating of a track, or None if it is not rated."""
        entry = self._entries.get(track_id)
        return entry.rating if entry is not None else None

    def entry(self, track_id: str) -> RatingEntry | None:
        return self._entries.get(track_id)

    def set(self, track_id: str, rating: float) -> RatingEntry:
        """
        Rate a track and persist the database immediately.

        An existing entry keeps its added_at; a new one is stamped now.

        Raises:
            InvalidRatingError: If rating is outside the scale.
            CorruptStoreError: If the database cannot be written.
        """
        value = validate_rating(rating)
        now = utc_now()

        existing = self._entries.get(track_id)
        added_at = existing.added_at if existing is not None else now

        entry = RatingEntry(rating=value, added_at=added_at, updated_at=now)
        self._commit({**self._entries, track_id: entry})
        return entry

    def all(self) -> Iterator[tuple[str, float]]:
        """Lazily yield (track_id, rating) pairs. Order is not significant."""
        for track_id, entry in self._entries.items():
            yield track_id, entry.rating

    def entries(self) -> Iterator[tuple[str, RatingEntry]]:
        """Lazily yield (track_id, RatingEntry) pairs."""
        yield from self._entries.items()

    def add_missing(
        self,
        tracks: Iterable[tuple[str, datetime]],
        rating: float = DEFAULT_RATING
    ) -> int:
        """
        Add unrated tracks with a default rating, leaving existing ones alone.

        The liked timestamp is used for both added_at and updated_at so the
        result depends only on the input; running it twice with the same
        tracks leaves the file byte-identical.

        Args:
            tracks: (track_id, added_at) pairs, e.g. from the Liked Songs.
            rating: Rating given to the new entries.

        Returns:
            Number of entries added.

        Raises:
            InvalidRatingError: If rating is outside the scale.
            CorruptStoreError: If the database cannot be written.
        """
        value = validate_rating(rating)

        updated = dict(self._entries)
        added = 0
        for track_id, added_at in tracks:
            if track_id in updated:
                continue
            updated[track_id] = RatingEntry(
                rating=value, added_at=added_at, updated_at=added_at
            )
            added += 1

        if added or not self.path.exists():
            self._commit(updated)
        return added

    def to_json(self) -> str:
        """Serialize the store. Equal contents give equal strings."""
        return _serialize(self._entries)

    def save(self) -> None:
        """
        Write the database atomically.

        Raises:
            CorruptStoreError: If the file cannot be written.
        """
        self._write(self._entries)

    def _commit(self, entries: dict[str, RatingEntry]) -> None:
        """Write entries to disk, then make them the store's contents."""
        self._write(entries)
        self._entries = entries

    def _write(self, entries: dict[str, RatingEntry]) -> None:
        """
        Replace the file with entries via a temp file and os.replace().

        On failure the previous file and the in-memory entries are untouched.
        """
        content = _serialize(entries)
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        try:
            ensure_directory(self.path.parent)
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path.is_file():
                tmp_path.unlink()
            raise CorruptStoreError(
                f"Failed to write rating database {self.path}: {e}",
                details={"path": str(self.path), "original_error": str(e)}
            ) from e

        logger.debug(f"Saved {len(entries)} ratings to {self.path}")


def _serialize(entries: dict[str, RatingEntry]) -> str:
    data = {track_id: entry.to_dict() for track_id, entry in entries.items()}
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n"
