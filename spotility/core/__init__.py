"""
Core module for spotility.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - ratings: The rating database
    - logger: Logging system with console and file outputs

Usage:
    from spotility.core import (
        Config, load_config,
        RatingStore, parse_rating,
        setup_logging, get_logger,
        SpotilityError, ConfigError, CorruptStoreError
    )
"""

from spotility.core.config import (
    Config,
    SpotifyConfig,
    StorageConfig,
    load_config,
)
from spotility.core.exceptions import (
    AuthenticationError,
    ConfigError,
    CorruptStoreError,
    InvalidRatingError,
    NetworkError,
    SpotifyError,
    SpotilityError,
)
from spotility.core.logger import (
    get_logger,
    setup_logging,
    shutdown_logging,
)
from spotility.core.ratings import (
    DEFAULT_RATING,
    RATING_NAMES,
    RatingEntry,
    RatingStore,
    describe_rating,
    parse_rating,
    validate_rating,
)

__all__ = [
    # Config
    "Config",
    "SpotifyConfig",
    "StorageConfig",
    "load_config",
    # Exceptions
    "SpotilityError",
    "ConfigError",
    "CorruptStoreError",
    "InvalidRatingError",
    "SpotifyError",
    "AuthenticationError",
    "NetworkError",
    # Logger
    "setup_logging",
    "get_logger",
    "shutdown_logging",
    # Ratings
    "RatingStore",
    "RatingEntry",
    "RATING_NAMES",
    "DEFAULT_RATING",
    "parse_rating",
    "validate_rating",
    "describe_rating",
]
