"""
Utility Functions
=================

Common utilities used across the Objectify Recs system.
"""

import html
import math
import re
from typing import Any, Optional

import numpy as np

from .config import (
    DEFAULT_FEATURE_VALUE,
    FEATURES_TO_NORMALIZE,
    SPOTIFY_TRACK_URL,
)

# Leading decimal number, optionally signed, optionally in exponent form
_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_number(value: Any) -> Optional[float]:
    """
    Parse the leading number of a value.

    Trailing text is ignored, so ``"-5 dB"`` parses as ``-5.0``.

    Args:
        value: String, number or None

    Returns:
        Parsed float, or None when no finite number leads the value
    """
    if value is None:
        return None

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
        return number if math.isfinite(number) else None

    match = _NUMBER_PREFIX.match(str(value).strip())
    if not match:
        return None

    number = float(match.group(0))
    return number if math.isfinite(number) else None


def parse_feature(value: Any, default: float = DEFAULT_FEATURE_VALUE) -> float:
    """Parse a feature value, falling back to the neutral default."""
    number = parse_number(value)
    return default if number is None else number


def normalize_feature(name: str, value):
    """Map a feature (scalar or array) onto [0, 1] when it lives on another scale."""
    if name in FEATURES_TO_NORMALIZE:
        bounds = FEATURES_TO_NORMALIZE[name]
        normalized = (value - bounds["min"]) / (bounds["max"] - bounds["min"])
        return np.clip(normalized, 0, 1)
    return value


def track_url(track_id: str) -> str:
    """
    Build the Spotify web link for a track.

    Args:
        track_id: Spotify track ID

    Returns:
        Track URL
    """
    return SPOTIFY_TRACK_URL.format(track_id=track_id.strip())


def track_card_html(index: int, url: str, track_name: str, artists: str) -> str:
    """HTML card for one matched song; every catalog value is escaped."""
    return (
        '<div class="track-card">'
        f'<div class="track-name">{index}. '
        f'<a href="{html.escape(url, quote=True)}" target="_blank">{html.escape(track_name)}</a></div>'
        f'<div class="artist-name">{html.escape(artists)}</div>'
        '</div>'
    )


def validate_track_id(track_id: str) -> bool:
    """
    Validate Spotify track ID format.

    Args:
        track_id: Track ID to validate

    Returns:
        True if valid format
    """
    if not track_id:
        return False

    # Spotify IDs are 22 characters, base62
    if len(track_id) != 22:
        return False

    valid_chars = set("0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz")
    return all(c in valid_chars for c in track_id)
