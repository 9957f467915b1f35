"""
Spotify module for spotility.

This module wraps the Spotify Web API (through spotipy):
    - client: SpotifyClient with the operations the commands use
    - models: LikedTrack and PlayingItem dataclasses

Usage:
    from spotility.spotify import SpotifyClient, LikedTrack
"""

from spotility.spotify.client import SpotifyClient, translate_error
from spotility.spotify.models import LikedTrack, PlayingItem

__all__ = [
    "SpotifyClient",
    "translate_error",
    "LikedTrack",
    "PlayingItem",
]
