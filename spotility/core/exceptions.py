"""
Exception classes for spotility.

This module defines all custom exceptions used throughout the application.
Every failure is terminal for the current invocation: the CLI reports the
message, logs the details and exits with a non-zero code.

Exception Hierarchy:
    SpotilityError (base)
        ConfigError - Configuration file or credential issues
        CorruptStoreError - Rating database cannot be read or parsed
        InvalidRatingError - Rating value outside the accepted scale
        SpotifyError - Spotify API issues
            AuthenticationError - OAuth / token failures
            NetworkError - Connection or timeout failures
"""


class SpotilityError(Exception):
    """
    Base exception for all spotility errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch every spotility error with a single
    except clause.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., track id, path).

    Example:
        try:
            store = RatingStore.load(path)
        except SpotilityError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'track_id': Spotify track ID involved in the error
                     - 'path': File that caused the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(SpotilityError):
    """
    Raised when there's an issue with the configuration.

    Common causes:
        - Explicitly given config file not found
        - Config file has invalid YAML syntax
        - Wrongly typed fields (e.g., numeric client_id)
        - Spotify credentials missing from options, environment and file

    Example:
        raise ConfigError(
            "'spotify.client_id' must be a non-empty string",
            details={'field': 'spotify.client_id'}
        )
    """
    pass


class CorruptStoreError(SpotilityError):
    """
    Raised when the rating database cannot be used.

    No partial recovery is attempted: the file holds every rating the
    user ever gave, so guessing at its content would lose data silently.

    Common causes:
        - ratings.json is not valid JSON
        - An entry has no numeric rating or an unparsable timestamp
        - Permission denied when reading or writing
        - Disk full

    Example:
        raise CorruptStoreError(
            "Rating database corrupted: invalid JSON syntax",
            details={'path': '/path/to/ratings.json', 'line': 3}
        )
    """
    pass


class InvalidRatingError(SpotilityError):
    """
    Raised when a rating is not a known name or lies outside the scale.

    Attributes:
        value: The rejected input, as given by the user.
    """

    def __init__(self, message: str, value: object = None) -> None:
        super().__init__(message, details={"value": value})
        self.value = value


class SpotifyError(SpotilityError):
    """
    Raised when there's an issue with the Spotify API.

    Also used for API-level conditions the commands cannot work with,
    such as nothing currently playing.

    Common causes:
        - Playlist or track not found
        - Unexpected API response
        - Rate limiting (spotipy already retried)

    Example:
        raise SpotifyError(
            "Failed to create playlist: quota exceeded",
            details={'playlist_name': 'Top 50', 'http_status': 429}
        )
    """
    pass


class AuthenticationError(SpotifyError):
    """
    Raised when authentication with Spotify fails.

    Common causes:
        - Invalid client_id or client_secret
        - Redirect URI not registered in the Developer Dashboard
        - Token expired and refresh failed
        - Missing OAuth scope (HTTP 403)
    """
    pass


class NetworkError(SpotifyError):
    """
    Raised when Spotify cannot be reached.

    Common causes:
        - No network connectivity
        - DNS failure
        - Request timed out
    """
    pass
