"""
Data models for Spotify entities.

Immutable dataclasses built from Spotify Web API responses. Only the
fields the commands need are kept; everything else in the response is
dropped at the client boundary.

Usage:
    from spotility.spotify.models import LikedTrack, PlayingItem

    track = LikedTrack.from_spotify_api(saved_track_item)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from spotility.utils import parse_timestamp


def _first_artist(track_data: dict[str, Any]) -> str:
    artists = track_data.get("artists") or []
    if artists and artists[0].get("name"):
        return artists[0]["name"]
    return "Unknown Artist"


@dataclass(frozen=True)
class LikedTrack:
    """
    A track from the user's Liked Songs.

    Attributes:
        track_id: Spotify track ID (22-character base62 string).
                  Example: "4cOdK2wGLETKBW3PvgPWqT"
        name: Track title.
        artist: Primary artist name.
        added_at: When the user liked the track (UTC).
    """
    track_id: str
    name: str
    artist: str
    added_at: datetime

    @classmethod
    def from_spotify_api(cls, item: dict[str, Any]) -> "LikedTrack | None":
        """
        Create a LikedTrack from a saved track object.

        Args:
            item: One element of current_user_saved_tracks()["items"]:
                  {"added_at": "...", "track": {...}}

        Returns:
            LikedTrack, or None if the item has no usable track
            (removed from the catalog, local file without id).
        """
        track_data = item.get("track")
        if not track_data or not track_data.get("id"):
            return None

        return cls(
            track_id=track_data["id"],
            name=track_data.get("name") or "Unknown",
            artist=_first_artist(track_data),
            added_at=parse_timestamp(item["added_at"]),
        )

    @property
    def display_name(self) -> str:
        return f"{self.artist} - {self.name}"


@dataclass(frozen=True)
class PlayingItem:
    """
    The item currently playing on the user's active device.

    Attributes:
        item_id: Spotify ID of the track or episode.
        name: Track or episode title.
        artist: Primary artist (tracks) or show name (episodes).
        is_track: False for podcast episodes, which cannot be rated.
    """
    item_id: str
    name: str
    artist: str
    is_track: bool

    @classmethod
    def from_spotify_api(cls, item: dict[str, Any]) -> "PlayingItem | None":
        """
        Create a PlayingItem from the "item" of currently_playing().

        Returns:
            PlayingItem, or None if the item carries no id (local files).
        """
        if not item.get("id"):
            return None

        is_track = item.get("type", "track") == "track"
        if is_track:
            artist = _first_artist(item)
        else:
            artist = (item.get("show") or {}).get("name") or "Unknown Show"

        return cls(
            item_id=item["id"],
            name=item.get("name") or "Unknown",
            artist=artist,
            is_track=is_track,
        )

    @property
    def display_name(self) -> str:
        return f"{self.artist} - {self.name}"
