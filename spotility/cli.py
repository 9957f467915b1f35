"""
Command-line interface for spotility.

This module implements the CLI using Click, with rich-click for the
help output colors.

Commands:
    spotility top <amount>              Newest Liked Songs into a playlist
    spotility rate <rating>             Rate the currently playing track
    spotility weights                   Generate weights for the shuffle plugin
    spotility update-db                 Add new Liked Songs to the rating database
    spotility help [command]            Show help

Usage:
    # Put the 50 newest Liked Songs into "Top 50"
    spotility top 50

    # Same, into a playlist with another name
    spotility top 100 --name "Fresh"

    # Rate what is playing right now, asking for confirmation first
    spotility rate great --ask

    # Copy the weights to the clipboard, or write them to a file / stdout
    spotility weights
    spotility weights --output-file weights.txt
    spotility weights --output-file -

    # Add the 200 newest Liked Songs to the rating database
    spotility update-db --limit 200

Configuration:
    Spotify credentials are taken from --id/--secret, then from the
    SPOTIFY_API_ID/SPOTIFY_API_SECRET environment variables (a .env file
    in the current directory is read too), then from spotility.yaml.

Exit Codes:
    0 success, 1 configuration or other error, 2 rating database error,
    3 Spotify error, 4 invalid rating, 130 interrupted.
"""

import sys
from pathlib import Path
from typing import Callable, Optional

import pyperclip
import rich_click as click
from dotenv import load_dotenv

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.MAX_WIDTH = 100

from spotility import __version__, commands
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
    parse_rating,
    setup_logging,
    shutdown_logging,
)
from spotility.core.config import ENV_CLIENT_ID, ENV_CLIENT_SECRET, ENV_USERNAME
from spotility.spotify import PlayingItem, SpotifyClient
from spotility.weights import DEFAULT_SCALE

logger = get_logger(__name__)


EXIT_ERROR = 1
EXIT_STORE = 2
EXIT_SPOTIFY = 3
EXIT_RATING = 4
EXIT_INTERRUPTED = 130


def spotify_auth_options(func: Callable) -> Callable:
    """Add the --id/--secret options shared by commands that talk to Spotify."""
    func = click.option(
        "--secret",
        "client_secret",
        envvar=ENV_CLIENT_SECRET,
        show_envvar=True,
        default=None,
        metavar="<secret>",
        help="Spotify API client secret"
    )(func)
    func = click.option(
        "--id",
        "client_id",
        envvar=ENV_CLIENT_ID,
        show_envvar=True,
        default=None,
        metavar="<id>",
        help="Spotify API client ID"
    )(func)
    return func


def db_path_option(func: Callable) -> Callable:
    """Add the --db-path option shared by commands using the rating database."""
    return click.option(
        "--db-path",
        "db_path",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        metavar="<path>",
        help="Path of the rating database [default: spotility/ratings.json]"
    )(func)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<file.yaml>",
    help="Configuration file [default: ./spotility.yaml]"
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Show debug messages"
)
@click.version_option(__version__, "--version", prog_name="spotility")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """
    spotility: A CLI for managing your 'Liked Songs'.

    \b
    COMMANDS:
        spotility top 50                 # Newest 50 Liked Songs into "Top 50"
        spotility rate good              # Rate the currently playing song
        spotility update-db              # Add new Liked Songs to the rating database
        spotility weights                # Weights for the shuffle plugin

    \b
    RATINGS:
        bad (1), meh (2), ok (3), good (4), great (5), or any number from 1 to 5
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


def _execute(ctx: click.Context, action: Callable[[Config], None], **overrides) -> None:
    """
    Load configuration, set up logging, run an action and report errors.

    Args:
        ctx: Click context carrying the group options.
        action: Callable receiving the final Config.
        overrides: Command line values applied on top of the config file.

    Raises:
        SystemExit: On any error, with the matching exit code.
    """
    try:
        config = load_config(ctx.obj.get("config_path")).with_overrides(**overrides)
        setup_logging(config.storage.log_dir, verbose=ctx.obj.get("verbose", False))
        logger.debug(f"spotility {__version__} running '{ctx.info_name}'")

        action(config)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(EXIT_ERROR)

    except CorruptStoreError as e:
        click.echo(f"Rating database error: {e.message}", err=True)
        logger.error(f"Rating database error: {e.message}", exc_info=True)
        sys.exit(EXIT_STORE)

    except InvalidRatingError as e:
        click.echo(f"Invalid rating: {e.message}", err=True)
        sys.exit(EXIT_RATING)

    except SpotifyError as e:
        click.echo(f"Spotify error: {e.message}", err=True)
        logger.error(f"Spotify error: {e.message}", exc_info=True)
        sys.exit(EXIT_SPOTIFY)

    except SpotilityError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(EXIT_ERROR)

    except click.Abort:
        click.echo("Aborted", err=True)
        sys.exit(EXIT_ERROR)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(EXIT_INTERRUPTED)

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(EXIT_ERROR)

    finally:
        shutdown_logging()


def _connect_spotify(config: Config) -> SpotifyClient:
    """
    Authenticate with Spotify using the resolved credentials.

    Raises:
        ConfigError: If credentials are missing.
        AuthenticationError: If Spotify rejects them.
    """
    client_id, client_secret = config.require_credentials()
    return SpotifyClient.connect(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=config.spotify.redirect_uri,
        cache_path=config.storage.token_cache_path
    )


@cli.command("top")
@click.argument("amount", type=click.IntRange(min=1))
@click.option(
    "--name",
    "playlist_name",
    default=None,
    metavar="<name>",
    help="Name of the playlist [default: Top <amount>]"
)
@click.option(
    "--username",
    envvar=ENV_USERNAME,
    show_envvar=True,
    default=None,
    metavar="<user>",
    help="Spotify user owning the playlist [default: authenticated user]"
)
@spotify_auth_options
@click.pass_context
def top_command(
    ctx: click.Context,
    amount: int,
    playlist_name: Optional[str],
    username: Optional[str],
    client_id: Optional[str],
    client_secret: Optional[str]
) -> None:
    """Extracts the newest 'Liked Songs' into a playlist."""
    def action(config: Config) -> None:
        client = _connect_spotify(config)
        commands.top(client, amount, playlist_name, username=config.spotify.username)

    _execute(ctx, action, client_id=client_id, client_secret=client_secret, username=username)


@cli.command("rate")
@click.argument("rating", metavar="RATING")
@click.option(
    "--ask",
    is_flag=True,
    help="Ask for confirmation that the right song is playing"
)
@db_path_option
@spotify_auth_options
@click.pass_context
def rate_command(
    ctx: click.Context,
    rating: str,
    ask: bool,
    db_path: Optional[Path],
    client_id: Optional[str],
    client_secret: Optional[str]
) -> None:
    """
    Rates the currently playing song (for use with the weights command).

    RATING is bad, meh, ok, good, great or a number from 1 to 5.
    """
    def confirm(item: PlayingItem) -> bool:
        return click.confirm(f"Rating song {item.display_name} -- Continue?", default=False)

    def action(config: Config) -> None:
        value = parse_rating(rating)
        store = RatingStore.load(config.storage.db_path)
        client = _connect_spotify(config)
        commands.rate(client, store, value, confirm=confirm if ask else None)

    _execute(ctx, action, client_id=client_id, client_secret=client_secret, db_path=db_path)


@cli.command("weights")
@db_path_option
@click.option(
    "--output-file",
    "output_file",
    type=click.Path(dir_okay=False, allow_dash=True, path_type=Path),
    default=None,
    metavar="<path>",
    help="Write the weights to a file ('-' for stdout) instead of the clipboard"
)
@click.option(
    "--scale",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_SCALE,
    show_default=True,
    help="Value given to the best rated song"
)
@click.pass_context
def weights_command(
    ctx: click.Context,
    db_path: Optional[Path],
    output_file: Optional[Path],
    scale: float
) -> None:
    """Generates weights for use with the weighting Spotify plugin."""
    def action(config: Config) -> None:
        store = RatingStore.load(config.storage.db_path)
        text = commands.weights(store, scale=scale)
        _write_weights(text, output_file)

    _execute(ctx, action, db_path=db_path)


def _write_weights(text: str, output_file: Optional[Path]) -> None:
    """
    Deliver the weights to stdout, a file or the clipboard.

    Raises:
        SpotilityError: If no clipboard is available.
    """
    if output_file is not None and str(output_file) == "-":
        click.echo(text)
        return

    if output_file is not None:
        logger.info(f"Writing weights to {output_file}")
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(text, encoding="utf-8")
        return

    logger.info("Copying weights to clipboard")
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        raise SpotilityError(
            "No clipboard available, use --output-file instead",
            details={"original_error": str(e)}
        ) from e


@cli.command("update-db")
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=50,
    show_default=True,
    help="Number of newest Liked Songs to add"
)
@db_path_option
@spotify_auth_options
@click.pass_context
def update_db_command(
    ctx: click.Context,
    limit: int,
    db_path: Optional[Path],
    client_id: Optional[str],
    client_secret: Optional[str]
) -> None:
    """Updates the rating database with new 'Liked Songs'."""
    def action(config: Config) -> None:
        store = RatingStore.load(config.storage.db_path)
        client = _connect_spotify(config)
        commands.update_db(client, store, limit)

    _execute(ctx, action, client_id=client_id, client_secret=client_secret, db_path=db_path)


@cli.command("help")
@click.argument("command_name", metavar="[COMMAND]", required=False)
@click.pass_context
def help_command(ctx: click.Context, command_name: Optional[str]) -> None:
    """Shows help for spotility or one of its commands."""
    parent = ctx.parent
    if command_name is None:
        click.echo(parent.get_help())
        return

    command = cli.get_command(parent, command_name)
    if command is None:
        raise click.UsageError(f"No such command '{command_name}'", ctx=ctx)

    with command.context_class(command, info_name=command_name, parent=parent) as sub_ctx:
        click.echo(command.get_help(sub_ctx))


def main() -> None:
    """
    Entry point for the CLI.

    Reads a .env file from the current directory first, so that the
    SPOTIFY_API_* variables it defines are seen by the options.
    """
    load_dotenv()
    cli()


if __name__ == "__main__":
    main()
