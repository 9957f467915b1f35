"""
Configuration management for spotility.

This module handles loading, validating, and providing access to the
application configuration stored in spotility.yaml.

The configuration file is optional. Every value can also be given on the
command line or through environment variables (which may live in a .env
file), and those take precedence over the file.

The configuration file contains:
    - Spotify API credentials (client_id, client_secret)
    - OAuth redirect URI registered for the application
    - Optional Spotify username used as playlist owner
    - Path of the rating database

Configuration File Location:
    By default spotility.yaml is looked up in the current working directory.
    A missing default file simply means "use defaults".

Example spotility.yaml:
    spotify:
      client_id: "your_client_id_here"
      client_secret: "your_client_secret_here"
      redirect_uri: "http://127.0.0.1:8888/callback"
      username: null

    storage:
      db_path: "spotility/ratings.json"
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from spotility.core.exceptions import ConfigError


# Default configuration file name (in current working directory)
CONFIG_FILENAME = "spotility.yaml"

DEFAULT_DB_PATH = "spotility/ratings.json"
DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"

# Environment variables read by the CLI options
ENV_CLIENT_ID = "SPOTIFY_API_ID"
ENV_CLIENT_SECRET = "SPOTIFY_API_SECRET"
ENV_USERNAME = "SPOTIFY_API_USERNAME"


@dataclass(frozen=True)
class SpotifyConfig:
    """
    Spotify API configuration.

    Credentials are obtained from the Spotify Developer Dashboard:
    https://developer.spotify.com/dashboard

    Attributes:
        client_id: The Spotify application client ID, or None if not configured.
        client_secret: The Spotify application client secret, or None.
        redirect_uri: Redirect URI registered for the application.
        username: Spotify user id owning created playlists.
                  None means "the authenticated user".
    """
    client_id: str | None
    client_secret: str | None
    redirect_uri: str
    username: str | None


@dataclass(frozen=True)
class StorageConfig:
    """
    Local storage configuration.

    Attributes:
        db_path: Path of the rating database (JSON file).
                 ~ is expanded. The parent directory is created on first write.
    """
    db_path: Path

    @property
    def data_dir(self) -> Path:
        """Directory holding the database, the token cache and the logs."""
        return self.db_path.parent

    @property
    def log_dir(self) -> Path:
        return self.data_dir / "logs"

    @property
    def token_cache_path(self) -> Path:
        return self.data_dir / ".spotify_token_cache"


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable. Use
    with_overrides() to apply command line values on top.

    Attributes:
        spotify: Spotify API settings.
        storage: Local storage settings.
    """
    spotify: SpotifyConfig
    storage: StorageConfig

    def with_overrides(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        username: str | None = None,
        db_path: Path | str | None = None,
    ) -> "Config":
        """
        Return a copy with the given non-None values replacing file values.
        """
        spotify = self.spotify
        if client_id:
            spotify = replace(spotify, client_id=client_id)
        if client_secret:
            spotify = replace(spotify, client_secret=client_secret)
        if username:
            spotify = replace(spotify, username=username)

        storage = self.storage
        if db_path is not None:
            storage = StorageConfig(db_path=Path(db_path).expanduser())

        return Config(spotify=spotify, storage=storage)

    def require_credentials(self) -> tuple[str, str]:
        """
        Return (client_id, client_secret) or fail if either is missing.

        Raises:
            ConfigError: If a credential is not set anywhere.
        """
        if not self.spotify.client_id:
            raise ConfigError(
                f"Spotify client id missing: pass --id, set {ENV_CLIENT_ID} "
                f"or add spotify.client_id to {CONFIG_FILENAME}",
                details={"field": "spotify.client_id"}
            )
        if not self.spotify.client_secret:
            raise ConfigError(
                f"Spotify client secret missing: pass --secret, set {ENV_CLIENT_SECRET} "
                f"or add spotify.client_secret to {CONFIG_FILENAME}",
                details={"field": "spotify.client_secret"}
            )
        return self.spotify.client_id, self.spotify.client_secret


def default_config() -> Config:
    """Configuration used when no file is present."""
    return Config(
        spotify=SpotifyConfig(
            client_id=None,
            client_secret=None,
            redirect_uri=DEFAULT_REDIRECT_URI,
            username=None,
        ),
        storage=StorageConfig(db_path=Path(DEFAULT_DB_PATH)),
    )


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from spotility.yaml.

    Args:
        config_path: Optional explicit path to the config file.
                     If None, looks for spotility.yaml in the current
                     working directory and falls back to defaults when
                     it does not exist.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicit config file is not found, the file has
                     invalid YAML syntax, or contains invalid values.
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        if explicit:
            raise ConfigError(
                f"Configuration file not found: {config_path}",
                details={"file_path": str(config_path)}
            )
        return default_config()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file is allowed and means "defaults"
    if raw_config is None:
        return default_config()

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    _validate_config(raw_config)

    return Config(
        spotify=_parse_spotify_config(raw_config.get("spotify")),
        storage=_parse_storage_config(raw_config.get("storage")),
    )


def _validate_config(raw_config: dict[str, Any]) -> None:
    """
    Check that every known section, when present, is a dictionary.

    Raises:
        ConfigError: If a section has the wrong type.
    """
    for section in ("spotify", "storage"):
        value = raw_config.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )


def _optional_string(section: dict[str, Any], key: str, field: str) -> str | None:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(
            f"'{field}' must be a non-empty string or null",
            details={"field": field}
        )
    return value.strip()


def _parse_spotify_config(spotify_section: dict[str, Any] | None) -> SpotifyConfig:
    """
    Parse and validate the Spotify configuration section.

    Credentials are optional here because they can come from the
    command line; Config.require_credentials() enforces them later.

    Raises:
        ConfigError: If a field is present but not a non-empty string.
    """
    section = spotify_section or {}

    redirect_uri = _optional_string(section, "redirect_uri", "spotify.redirect_uri")

    return SpotifyConfig(
        client_id=_optional_string(section, "client_id", "spotify.client_id"),
        client_secret=_optional_string(section, "client_secret", "spotify.client_secret"),
        redirect_uri=redirect_uri or DEFAULT_REDIRECT_URI,
        username=_optional_string(section, "username", "spotify.username"),
    )


def _parse_storage_config(storage_section: dict[str, Any] | None) -> StorageConfig:
    """
    Parse and validate the storage configuration section.

    Expands ~ to the home directory. Does NOT create the directory
    (that happens when the database is first written).

    Raises:
        ConfigError: If db_path is present but empty or not a string.
    """
    section = storage_section or {}

    db_path = _optional_string(section, "db_path", "storage.db_path")
    if db_path is None:
        db_path = DEFAULT_DB_PATH

    return StorageConfig(db_path=Path(db_path).expanduser())
