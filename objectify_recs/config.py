"""
Configuration and constants for Objectify Recs.
"""
import os
from dataclasses import dataclass
from typing import Dict, Optional

# =============================================================================
# GEMINI API CONFIGURATION
# =============================================================================
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
GEMINI_TIMEOUT = float(os.environ.get("GEMINI_TIMEOUT", "60"))

DEFAULT_MIME_TYPE = "image/jpeg"

# =============================================================================
# CATALOG CONFIGURATION
# =============================================================================
CATALOG_PATH = os.environ.get(
    "OBJECTIFY_CATALOG",
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data", "catalog.csv"),
)

TEXT_COLUMNS = ["track_id", "track_name", "artists"]

# Region header changed between catalog revisions
REGION_COLUMNS = ["region", "Region", "continent", "Continent"]

REGIONS = [
    "Latin-America",
    "Asia",
    "Anglo-America",
    "Europe",
    "Africa",
    "Oceania",
]

# =============================================================================
# AUDIO FEATURE CONFIGURATION
# =============================================================================
# Order matters: the descriptor text lists them in exactly this order
AUDIO_FEATURES = [
    "danceability",
    "energy",
    "loudness",
    "speechiness",
    "acousticness",
    "valence",
]

# Features that need normalization onto [0, 1] before comparison
FEATURES_TO_NORMALIZE = {
    "loudness": {"min": -60, "max": 0},  # dB
}

# Ranges quoted to the descriptor service
FEATURE_RANGES = {
    "danceability": (0.073, 0.985),
    "energy": (0.005, 0.996),
    "loudness": (-60.0, 0.0),
    "speechiness": (0.022, 0.966),
    "acousticness": (0.0, 0.994),
    "valence": (0.26, 0.982),
}

# Substituted whenever a numeric value can't be parsed
DEFAULT_FEATURE_VALUE = 0.5

# =============================================================================
# MATCHING CONFIGURATION
# =============================================================================
DEFAULT_TOLERANCE = 0.15
NUM_RECOMMENDATIONS = 5


@dataclass
class MatchConfig:
    """Tolerance bands for the catalog filter."""
    danceability: float = DEFAULT_TOLERANCE
    energy: float = DEFAULT_TOLERANCE
    loudness: float = DEFAULT_TOLERANCE  # on the normalized scale
    valence: float = DEFAULT_TOLERANCE

    # Computed but not filtered on unless a band is set
    speechiness: Optional[float] = None
    acousticness: Optional[float] = None

    # Require region equality when the target names one
    match_region: bool = True

    # Maximum number of matches returned
    limit: int = NUM_RECOMMENDATIONS

    @classmethod
    def uniform(cls, tolerance: float, **kwargs) -> "MatchConfig":
        """Same tolerance for every enforced feature."""
        return cls(
            danceability=tolerance,
            energy=tolerance,
            loudness=tolerance,
            valence=tolerance,
            **kwargs,
        )

    def enforced(self) -> Dict[str, float]:
        """Feature name -> tolerance for every feature the filter applies."""
        bands = {name: getattr(self, name) for name in AUDIO_FEATURES}
        return {name: tol for name, tol in bands.items() if tol is not None}


DEFAULT_MATCH_CONFIG = MatchConfig()

# =============================================================================
# OUTPUT CONFIGURATION
# =============================================================================
OUTPUT_FORMAT = "json"  # json, csv or simple

SPOTIFY_TRACK_URL = "https://open.spotify.com/track/{track_id}"

FAILURE_MESSAGE = "Failed to analyze image. Please try again."
