"""
spotility: A CLI for managing your Spotify 'Liked Songs'.

This package provides a few small workflows around the user's Liked Songs:

    top         Extract the newest Liked Songs into a playlist
    rate        Rate the currently playing track
    update-db   Add new Liked Songs to the local rating database
    weights     Turn the ratings into weights for a shuffle weighting plugin

Modules:
    core/       - Configuration, rating database, logging, exceptions
    spotify/    - Spotify API client (spotipy) and models
    weights.py  - Rating to weight transform
    commands.py - One handler per subcommand
    cli.py      - Command-line interface

Usage:
    Command Line:
        spotility update-db --limit 200
        spotility rate great
        spotility weights --output-file weights.txt
        spotility top 50

    Python API:
        from spotility.core import RatingStore, load_config
        from spotility.weights import generate_weights, format_weights

        config = load_config()
        store = RatingStore.load(config.storage.db_path)
        print(format_weights(generate_weights(store.entries())))

Dependencies:
    - spotipy: Spotify API client
    - rich-click / click: CLI framework
    - pyyaml: Configuration file parsing
    - python-dotenv: Credentials from .env files
    - tqdm: Progress bars
    - pyperclip: Clipboard access for the weights command
"""

__version__ = "0.1.0"
__author__ = "spotility"
__license__ = "MIT"

from spotility.core import (
    Config,
    ConfigError,
    CorruptStoreError,
    InvalidRatingError,
    RatingStore,
    SpotifyError,
    SpotilityError,
    get_logger,
    load_config,
    setup_logging,
)
from spotility.weights import WeightEntry, format_weights, generate_weights

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "RatingStore",
    "setup_logging",
    "get_logger",
    # Exceptions
    "SpotilityError",
    "ConfigError",
    "CorruptStoreError",
    "InvalidRatingError",
    "SpotifyError",
    # Weights
    "WeightEntry",
    "generate_weights",
    "format_weights",
]
