"""
Weight generation for the shuffle weighting plugin.

The plugin biases shuffle probability with one weight per track, given as
a single line of "<track_id>:<weight>" pairs joined by "|":

    4cOdK2wGLETKBW3PvgPWqT:10.00|7ouMYWpwJ422jRcDASZB7P:6.67|...

Normalization:
    Weights are rank based. Tracks are ordered by rating (best first);
    equal ratings put the more recently added track first, and the track
    id settles anything left. With n tracks, the track at rank i gets

        weight = 1 - i / n

    so weights lie in (0, 1], the best track always gets 1.0, a single
    track gets 1.0 and an empty database gives no weights at all.
    A higher rating always gives a strictly higher weight.
"""

from dataclasses import dataclass
from typing import Iterable

from spotility.core.ratings import RatingEntry


DEFAULT_SCALE = 10.0
DEFAULT_PRECISION = 2


@dataclass(frozen=True)
class WeightEntry:
    """Weight of one track, in (0, 1]."""
    track_id: str
    weight: float


def _rank_key(item: tuple[str, RatingEntry]) -> tuple[float, float, str]:
    track_id, entry = item
    return (-entry.rating, -entry.added_at.timestamp(), track_id)


def generate_weights(entries: Iterable[tuple[str, RatingEntry]]) -> list[WeightEntry]:
    """
    Compute one weight per rated track.

    Args:
        entries: (track_id, RatingEntry) pairs, e.g. RatingStore.entries().

    Returns:
        Weights ordered from highest to lowest.
    """
    ranked = sorted(entries, key=_rank_key)
    total = len(ranked)

    return [
        WeightEntry(track_id=track_id, weight=1.0 - rank / total)
        for rank, (track_id, _) in enumerate(ranked)
    ]


def format_weights(
    weights: Iterable[WeightEntry],
    scale: float = DEFAULT_SCALE,
    precision: int = DEFAULT_PRECISION
) -> str:
    """
    Render weights in the plugin's "<id>:<weight>|..." format.

    Args:
        weights: Weights to render, in the order they should appear.
        scale: Factor applied to every weight (the plugin reads 0-10).
        precision: Decimal places.

    Raises:
        ValueError: If scale is not positive or precision is negative.
    """
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale}")
    if precision < 0:
        raise ValueError(f"precision must not be negative, got {precision}")

    return "|".join(
        f"{entry.track_id}:{entry.weight * scale:.{precision}f}"
        for entry in weights
    )
