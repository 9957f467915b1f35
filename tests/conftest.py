"""Test configuration and fixtures"""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import Mock

import pytest

from spotility.spotify.client import SpotifyClient
from spotility.spotify.models import LikedTrack, PlayingItem


BASE_TIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_saved_item(index: int) -> dict:
    """Saved track object as returned by current_user_saved_tracks(), newest first"""
    added_at = BASE_TIME - timedelta(minutes=index)
    return {
        'added_at': added_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
        'track': {
            'id': f'track{index:03d}',
            'name': f'Song {index}',
            'type': 'track',
            'artists': [{'id': 'artist_123', 'name': 'Test Artist'}],
        }
    }


def make_liked_track(index: int) -> LikedTrack:
    return LikedTrack.from_spotify_api(make_saved_item(index))


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def db_path(temp_dir):
    """Rating database path inside a directory that does not exist yet"""
    return temp_dir / "spotility" / "ratings.json"


@pytest.fixture
def liked_tracks():
    """Five liked tracks, newest first"""
    return [make_liked_track(i) for i in range(5)]


@pytest.fixture
def playing_track():
    return PlayingItem(
        item_id='track_playing',
        name='Now Playing',
        artist='Test Artist',
        is_track=True
    )


@pytest.fixture
def mock_client(liked_tracks, playing_track):
    """SpotifyClient stand-in with canned responses"""
    client = Mock(spec=SpotifyClient)
    client.list_liked_tracks.side_effect = lambda amount: liked_tracks[:amount]
    client.get_currently_playing.return_value = playing_track
    client.create_or_update_playlist.return_value = 'playlist_123'
    return client


@pytest.fixture
def mock_spotipy():
    """spotipy.Spotify stand-in for SpotifyClient tests"""
    spotify = Mock()
    spotify.current_user.return_value = {'id': 'user1'}
    spotify.current_user_playlists.return_value = {'items': [], 'next': None}
    spotify.user_playlist_create.return_value = {'id': 'new_playlist'}
    return spotify


@pytest.fixture
def saved_item():
    """Factory for saved track objects"""
    return make_saved_item
