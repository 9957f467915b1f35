"""
Command handlers for spotility.

One function per subcommand. Each is a straight sequence of steps over an
explicit SpotifyClient and RatingStore; the CLI builds those objects,
calls the handler and reports errors. Errors from the client propagate
unchanged.

Usage:
    client = SpotifyClient.connect(...)
    store = RatingStore.load(config.storage.db_path)

    update_db(client, store, limit=50)
    text = weights(store)
"""

from typing import Callable

from spotility.core.exceptions import SpotifyError
from spotility.core.logger import format_rating_change, get_logger
from spotility.core.ratings import (
    DEFAULT_RATING,
    RatingEntry,
    RatingStore,
    describe_rating,
    validate_rating,
)
from spotility.spotify.client import SpotifyClient
from spotility.spotify.models import PlayingItem
from spotility.weights import DEFAULT_SCALE, format_weights, generate_weights

logger = get_logger(__name__)


def default_playlist_name(amount: int) -> str:
    return f"Top {amount}"


def top(
    client: SpotifyClient,
    amount: int,
    playlist_name: str | None = None,
    username: str | None = None
) -> str:
    """
    Put the newest Liked Songs into a playlist.

    Args:
        client: Authenticated Spotify client.
        amount: Number of newest liked tracks to extract.
        playlist_name: Playlist to create or overwrite. Defaults to "Top {amount}".
        username: Playlist owner. Defaults to the authenticated user.

    Returns:
        The playlist id.
    """
    name = playlist_name or default_playlist_name(amount)

    logger.info(f"Fetching the {amount} newest Liked Songs")
    tracks = client.list_liked_tracks(amount)
    if not tracks:
        logger.warning("No Liked Songs found, the playlist will be empty")

    playlist_id = client.create_or_update_playlist(
        name,
        [track.track_id for track in tracks],
        user_id=username
    )
    logger.info(f"Playlist '{name}' now holds {len(tracks)} tracks")
    return playlist_id


def rate(
    client: SpotifyClient,
    store: RatingStore,
    rating: float,
    confirm: Callable[[PlayingItem], bool] | None = None
) -> RatingEntry | None:
    """
    Rate the currently playing track.

    Tracks missing from the database (liked after the last update-db, or
    not liked at all) are added.

    Args:
        client: Authenticated Spotify client.
        store: Rating database.
        rating: New rating.
        confirm: Optional callback asked before writing; returning False
                 cancels without touching the database.

    Returns:
        The written entry, or None if the user cancelled.

    Raises:
        InvalidRatingError: If rating is outside the scale.
        SpotifyError: If nothing is playing or the item is not a track.
    """
    value = validate_rating(rating)

    item = client.get_currently_playing()
    if item is None:
        raise SpotifyError("No track is currently playing")
    if not item.is_track:
        raise SpotifyError(
            f"'{item.display_name}' is not a track and cannot be rated",
            details={"item_id": item.item_id}
        )

    if confirm is not None:
        if not confirm(item):
            logger.info("Rating cancelled")
            return None
    else:
        logger.info(f"Rating song {item.display_name}")

    previous = store.get(item.item_id)
    if previous is None:
        logger.warning(f"'{item.display_name}' was not in the rating database, adding it")

    entry = store.set(item.item_id, value)
    logger.info(format_rating_change(describe_rating(previous), describe_rating(entry.rating)))
    return entry


def weights(store: RatingStore, scale: float = DEFAULT_SCALE) -> str:
    """
    Build the weight string for the shuffle plugin.

    Args:
        store: Rating database.
        scale: Upper bound of the rendered weights.

    Returns:
        The "<id>:<weight>|..." text. Empty if nothing is rated.
    """
    if len(store) == 0:
        logger.warning("Rating database is empty, run 'spotility update-db' first")

    logger.info("Creating weights")
    entries = generate_weights(store.entries())
    logger.info(f"Created weights for {len(entries)} tracks")
    return format_weights(entries, scale=scale)


def update_db(client: SpotifyClient, store: RatingStore, limit: int) -> int:
    """
    Add the newest Liked Songs to the rating database.

    Tracks already in the database keep their rating. New tracks get the
    default rating ("ok").

    Args:
        client: Authenticated Spotify client.
        store: Rating database.
        limit: Number of newest liked tracks to look at.

    Returns:
        Number of tracks added.
    """
    if not store.path.exists():
        logger.info("No local database, creating new one")

    logger.info(f"Fetching the {limit} newest Liked Songs")
    tracks = client.list_liked_tracks(limit)

    added = store.add_missing(
        ((track.track_id, track.added_at) for track in tracks),
        rating=DEFAULT_RATING
    )
    logger.info(f"Added {added} new tracks ({len(store)} tracks in the database)")
    return added
