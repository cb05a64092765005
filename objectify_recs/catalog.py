"""
Song Catalog
============

Loads the static song catalog (CSV with a header row) into immutable
records. The catalog is read once per session and never mutated.

A catalog that can't be read is not fatal: it is logged and replaced by an
empty catalog, which simply never matches anything.
"""

import logging
import math
import os
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

import numpy as np
import pandas as pd

from .config import (
    AUDIO_FEATURES,
    CATALOG_PATH,
    DEFAULT_FEATURE_VALUE,
    REGION_COLUMNS,
    TEXT_COLUMNS,
)
from .utils import normalize_feature, parse_number, track_url, validate_track_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    """One song with its precomputed audio features."""
    track_id: str
    track_name: str
    artists: str
    region: str = ""

    # NaN when the cell couldn't be parsed
    danceability: float = math.nan
    energy: float = math.nan
    loudness: float = math.nan
    speechiness: float = math.nan
    acousticness: float = math.nan
    valence: float = math.nan

    @property
    def url(self) -> str:
        return track_url(self.track_id)

    def feature(self, name: str, default: float = DEFAULT_FEATURE_VALUE) -> float:
        """Feature value with the neutral default substituted for NaN."""
        value = getattr(self, name)
        return default if math.isnan(value) else value

    def to_dict(self) -> dict:
        data = {
            "track_id": self.track_id,
            "track_name": self.track_name,
            "artists": self.artists,
            "region": self.region,
            "url": self.url,
        }
        for name in AUDIO_FEATURES:
            value = getattr(self, name)
            data[name] = None if math.isnan(value) else value
        return data


class Catalog(Sequence):
    """
    Read-only, ordered collection of catalog entries.

    Attributes:
        source: Where the catalog was read from
        has_regions: Whether the catalog carries region labels at all
        feature_matrix: (n_entries, n_features) array in AUDIO_FEATURES
            order, normalized and with NaN replaced by the neutral default
    """

    def __init__(
        self,
        entries: Sequence[CatalogEntry] = (),
        source: Optional[str] = None,
        has_regions: Optional[bool] = None,
    ):
        self._entries = tuple(entries)
        self.source = source
        if has_regions is None:
            has_regions = any(e.region for e in self._entries)
        self.has_regions = has_regions
        self.feature_matrix = self._build_matrix(self._entries)
        self.regions = np.array([e.region for e in self._entries], dtype=object)

    @staticmethod
    def _build_matrix(entries: Sequence[CatalogEntry]) -> np.ndarray:
        if not entries:
            return np.zeros((0, len(AUDIO_FEATURES)))

        columns = []
        for name in AUDIO_FEATURES:
            raw = np.array([getattr(e, name) for e in entries], dtype=float)
            filled = np.where(np.isnan(raw), DEFAULT_FEATURE_VALUE, raw)
            columns.append(normalize_feature(name, filled))

        matrix = np.column_stack(columns)
        matrix.setflags(write=False)
        return matrix

    def __getitem__(self, index):
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"Catalog({len(self)} entries, source={self.source!r})"


def _find_region_column(columns: Sequence[str]) -> Optional[str]:
    for name in REGION_COLUMNS:
        if name in columns:
            return name
    return None


def _clean_text(value) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip()


def catalog_from_dataframe(df: pd.DataFrame, source: Optional[str] = None) -> Catalog:
    """
    Build a catalog from a raw (string-typed) DataFrame.

    Missing text columns become empty strings, missing or malformed numeric
    cells become NaN. Every row is kept.

    Args:
        df: Catalog table, one row per song
        source: Optional description of where the table came from

    Returns:
        Catalog in row order
    """
    region_column = _find_region_column(list(df.columns))
    if region_column is None:
        logger.info("Catalog has no region column; every song matches any region")

    missing = [c for c in TEXT_COLUMNS + AUDIO_FEATURES if c not in df.columns]
    if missing:
        logger.warning("Catalog is missing columns: %s", ", ".join(missing))

    entries: List[CatalogEntry] = []
    for row in df.to_dict(orient="records"):
        numeric = {}
        for name in AUDIO_FEATURES:
            value = parse_number(row.get(name))
            numeric[name] = math.nan if value is None else value

        entries.append(CatalogEntry(
            track_id=_clean_text(row.get("track_id")),
            track_name=_clean_text(row.get("track_name")),
            artists=_clean_text(row.get("artists")),
            region=_clean_text(row.get(region_column)) if region_column else "",
            **numeric,
        ))

    bad_ids = [e.track_id for e in entries if not validate_track_id(e.track_id)]
    if bad_ids:
        logger.warning(
            "%d catalog rows have track ids that won't make a Spotify link (first: %r)",
            len(bad_ids),
            bad_ids[0],
        )

    return Catalog(entries, source=source, has_regions=region_column is not None)


def load_catalog(source: Union[str, os.PathLike, None] = None) -> Catalog:
    """
    Load the song catalog from a local path or an http(s) URL.

    Args:
        source: Path or URL (defaults to CATALOG_PATH)

    Returns:
        Loaded catalog, or an empty one when the resource can't be read
    """
    source = str(source or CATALOG_PATH)

    try:
        df = pd.read_csv(source, sep=",", dtype=str, keep_default_na=False)
    except (OSError, ValueError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error("Error loading catalog from %s: %s", source, e)
        return Catalog(source=source)

    catalog = catalog_from_dataframe(df, source=source)
    logger.info("Loaded %d catalog entries from %s", len(catalog), source)
    return catalog
