"""
Spotify API client for spotility.

This module wraps the spotipy library behind the few operations the
commands need, and converts every spotipy/requests failure into the
spotility exception hierarchy at this boundary.

Authentication:
    The OAuth authorization code flow is used (Liked Songs, playback state
    and playlist changes all need user consent). On the first run spotipy
    opens the browser and asks for the redirected URL; the token is then
    cached next to the rating database and refreshed automatically.

Usage:
    client = SpotifyClient.connect(
        client_id=config.spotify.client_id,
        client_secret=config.spotify.client_secret,
        redirect_uri=config.spotify.redirect_uri,
        cache_path=config.storage.token_cache_path,
    )

    tracks = client.list_liked_tracks(50)
    client.create_or_update_playlist("Top 50", [t.track_id for t in tracks])

The client is an ordinary object: commands receive it as an argument,
which is also how tests substitute a fake.
"""

from pathlib import Path
from typing import Any, Callable, Sequence

import requests
import spotipy
from spotipy.cache_handler import CacheFileHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError
from tqdm import tqdm

from spotility.core.config import DEFAULT_REDIRECT_URI
from spotility.core.exceptions import AuthenticationError, NetworkError, SpotifyError
from spotility.core.logger import get_logger
from spotility.spotify.models import LikedTrack, PlayingItem
from spotility.utils import chunked, ensure_directory

logger = get_logger(__name__)


SCOPES = (
    "playlist-modify-public "
    "playlist-modify-private "
    "user-library-read "
    "playlist-read-private "
    "user-read-currently-playing"
)

# Per-request limits given by the Spotify Web API
SAVED_TRACKS_PAGE_SIZE = 50
PLAYLISTS_PAGE_SIZE = 50
PLAYLIST_ITEMS_BATCH_SIZE = 100

REQUESTS_TIMEOUT = 10


def translate_error(error: Exception, action: str, details: dict | None = None) -> SpotifyError:
    """
    Convert a spotipy/requests exception into a spotility exception.

    Args:
        error: The exception raised by spotipy or requests.
        action: What was being done, for the message ("fetch Liked Songs").
        details: Extra context to attach.

    Returns:
        AuthenticationError for OAuth failures and HTTP 401/403,
        NetworkError for connection problems and timeouts,
        SpotifyError for everything else.
    """
    details = dict(details or {})
    details["original_error"] = str(error)

    if isinstance(error, SpotifyOauthError):
        return AuthenticationError(f"Spotify authentication failed: {error}", details=details)

    if isinstance(error, spotipy.SpotifyException):
        details["http_status"] = error.http_status
        if error.http_status in (401, 403):
            return AuthenticationError(
                f"Not authorized to {action} (HTTP {error.http_status}): {error.msg}",
                details=details
            )
        return SpotifyError(f"Failed to {action}: {error.msg}", details=details)

    if isinstance(error, requests.exceptions.RequestException):
        return NetworkError(f"Could not reach Spotify to {action}: {error}", details=details)

    return SpotifyError(f"Failed to {action}: {error}", details=details)


class SpotifyClient:
    """
    Thin wrapper around spotipy.Spotify.

    Attributes:
        _spotify: The underlying spotipy.Spotify instance.
        _user_id: Cached id of the authenticated user.
    """

    def __init__(self, spotify_instance: spotipy.Spotify) -> None:
        self._spotify = spotify_instance
        self._user_id: str | None = None

    @classmethod
    def connect(
        cls,
        client_id: str,
        client_secret: str,
        redirect_uri: str = DEFAULT_REDIRECT_URI,
        cache_path: Path | None = None,
        open_browser: bool = True
    ) -> "SpotifyClient":
        """
        Authenticate with Spotify and return a ready client.

        Args:
            client_id: Spotify application client ID.
            client_secret: Spotify application client secret.
            redirect_uri: Redirect URI registered for the application.
            cache_path: Token cache file. None uses spotipy's default (.cache).
            open_browser: Whether spotipy may open the browser for consent.

        Raises:
            AuthenticationError: If the credentials or the token are rejected.
            NetworkError: If Spotify cannot be reached.
        """
        cache_handler = None
        if cache_path is not None:
            ensure_directory(cache_path.parent)
            cache_handler = CacheFileHandler(cache_path=str(cache_path))

        auth_manager = SpotifyOAuth(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            scope=SCOPES,
            cache_handler=cache_handler,
            open_browser=open_browser
        )
        client = cls(spotipy.Spotify(auth_manager=auth_manager, requests_timeout=REQUESTS_TIMEOUT))

        # Forces the OAuth flow now instead of in the middle of a command
        user_id = client.current_user_id()
        logger.debug(f"Authenticated as {user_id}")
        return client

    def _call(self, action: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run a spotipy call, translating its exceptions."""
        try:
            return func(*args, **kwargs)
        except (spotipy.SpotifyException, SpotifyOauthError, requests.exceptions.RequestException) as e:
            raise translate_error(e, action) from e

    # =========================================================================
    # User
    # =========================================================================

    def current_user_id(self) -> str:
        """Return the id of the authenticated user (cached after the first call)."""
        if self._user_id is None:
            user = self._call("read the current user", self._spotify.current_user)
            if not user or not user.get("id"):
                raise AuthenticationError("Spotify did not return the current user")
            self._user_id = user["id"]
        return self._user_id

    # =========================================================================
    # Liked Songs
    # =========================================================================

    def list_liked_tracks(self, amount: int) -> list[LikedTrack]:
        """
        Get the newest Liked Songs, newest first.

        Args:
            amount: Maximum number of tracks to return.

        Returns:
            Up to amount tracks. Fewer if the library is smaller or some
            saved items have no usable track.

        Pagination:
            Requests pages of 50 (the API maximum) until amount tracks are
            collected or the library ends.
        """
        tracks: list[LikedTrack] = []
        offset = 0

        with tqdm(
            total=amount,
            desc="Liked Songs",
            unit="track",
            leave=False,
            disable=amount <= SAVED_TRACKS_PAGE_SIZE
        ) as progress:
            while len(tracks) < amount:
                limit = min(SAVED_TRACKS_PAGE_SIZE, amount - len(tracks))
                response = self._call(
                    "fetch Liked Songs",
                    self._spotify.current_user_saved_tracks,
                    limit=limit,
                    offset=offset
                ) or {}

                items = response.get("items") or []
                for item in items:
                    track = LikedTrack.from_spotify_api(item)
                    if track is None:
                        logger.debug(f"Skipping saved item without track id at offset {offset}")
                        continue
                    tracks.append(track)
                progress.update(len(items))

                if not items or response.get("next") is None:
                    break
                offset += len(items)

        logger.debug(f"Fetched {len(tracks)} liked tracks")
        return tracks[:amount]

    # =========================================================================
    # Playback
    # =========================================================================

    def get_currently_playing(self) -> PlayingItem | None:
        """
        Get the item playing on the user's active device.

        Episodes are requested explicitly; without additional_types the API
        reports a playing podcast as item null.

        Returns:
            PlayingItem, or None if nothing is playing (or an ad / local file is).
        """
        response = self._call(
            "read the currently playing track",
            self._spotify.currently_playing,
            additional_types="episode"
        )
        if not response or not response.get("item"):
            return None
        return PlayingItem.from_spotify_api(response["item"])

    # =========================================================================
    # Playlists
    # =========================================================================

    def find_playlist(self, name: str, owner_id: str | None = None) -> str | None:
        """
        Find a playlist by exact name among the user's playlists.

        Only playlists owned by owner_id (default: the authenticated user)
        are considered, since only those can be modified.

        Returns:
            The playlist id, or None if there is no such playlist.
        """
        owner_id = owner_id or self.current_user_id()
        offset = 0

        while True:
            response = self._call(
                "list playlists",
                self._spotify.current_user_playlists,
                limit=PLAYLISTS_PAGE_SIZE,
                offset=offset
            ) or {}

            items = response.get("items") or []
            for playlist in items:
                if not playlist:
                    continue
                owner = (playlist.get("owner") or {}).get("id")
                if playlist.get("name") == name and owner == owner_id:
                    return playlist["id"]

            if not items or response.get("next") is None:
                return None
            offset += len(items)

    def create_or_update_playlist(
        self,
        name: str,
        track_ids: Sequence[str],
        user_id: str | None = None
    ) -> str:
        """
        Make the playlist called name contain exactly track_ids, in order.

        An existing owned playlist with that name is emptied and refilled;
        otherwise a new private playlist is created.

        Args:
            name: Playlist name.
            track_ids: Spotify track IDs.
            user_id: Owner of the playlist. Defaults to the authenticated user.

        Returns:
            The playlist id.
        """
        owner_id = user_id or self.current_user_id()
        playlist_id = self.find_playlist(name, owner_id)

        if playlist_id is None:
            created = self._call(
                f"create playlist '{name}'",
                self._spotify.user_playlist_create,
                owner_id,
                name,
                public=False,
                description="Created by spotility"
            )
            playlist_id = created["id"]
            logger.info(f"Created playlist '{name}'")
        else:
            logger.info(f"Replacing the tracks of playlist '{name}'")

        batches = list(chunked(list(track_ids), PLAYLIST_ITEMS_BATCH_SIZE))

        # Replacing with the first batch also empties the playlist
        self._call(
            f"update playlist '{name}'",
            self._spotify.playlist_replace_items,
            playlist_id,
            batches[0] if batches else []
        )
        for batch in batches[1:]:
            self._call(
                f"update playlist '{name}'",
                self._spotify.playlist_add_items,
                playlist_id,
                batch
            )

        logger.debug(f"Playlist {playlist_id} now holds {len(track_ids)} tracks")
        return playlist_id
