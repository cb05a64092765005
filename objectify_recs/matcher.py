"""
Catalog Matcher
===============

Selects catalog songs whose audio features sit within fixed tolerance
bands of the target vector:

    keep(song) = AND over enforced features f of |song_f - target_f| <= tol_f
                 AND (target.region == "" OR song.region == target.region)

A catalog without region data matches any region.

Loudness is compared on its normalized [0, 1] scale. Speechiness and
acousticness differences are reported but only filtered on when a band is
configured for them.

The filter is stable: matches keep catalog order and the first ``limit``
are returned. There is no ranking and no widening when few songs match.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from .catalog import Catalog, CatalogEntry
from .config import AUDIO_FEATURES, DEFAULT_MATCH_CONFIG, MatchConfig
from .features import TargetFeatureVector
from .utils import normalize_feature

# Floating point slack so a difference of exactly the tolerance passes
_EPSILON = 1e-9


@dataclass
class MatchDetail:
    """One match plus the per-feature distances behind it."""
    entry: CatalogEntry
    feature_diffs: Dict[str, float]


class FeatureMatcher:
    """
    Tolerance-band filter over a loaded catalog.

    Stateless apart from the catalog it reads; calling ``match`` twice with
    the same target returns the same ordered list.
    """

    def __init__(self, catalog: Catalog, config: MatchConfig = DEFAULT_MATCH_CONFIG):
        """
        Args:
            catalog: Loaded, read-only catalog
            config: Tolerance bands, region handling and result limit
        """
        self.catalog = catalog
        self.config = config

    def target_vector(self, target: TargetFeatureVector) -> np.ndarray:
        """Target features in AUDIO_FEATURES order, on the comparison scale."""
        return np.array(
            [normalize_feature(name, getattr(target, name)) for name in AUDIO_FEATURES],
            dtype=float,
        )

    def distances(self, target: TargetFeatureVector) -> np.ndarray:
        """Absolute per-feature differences, one row per catalog entry."""
        return np.abs(self.catalog.feature_matrix - self.target_vector(target))

    def mask(self, target: TargetFeatureVector) -> np.ndarray:
        """Boolean array marking every catalog entry that matches."""
        n = len(self.catalog)
        if n == 0:
            return np.zeros(0, dtype=bool)

        diffs = self.distances(target)
        keep = np.ones(n, dtype=bool)
        for name, tolerance in self.config.enforced().items():
            column = AUDIO_FEATURES.index(name)
            keep &= diffs[:, column] <= tolerance + _EPSILON

        region = (target.region or "").strip()
        if self.config.match_region and region:
            if self.catalog.has_regions:
                keep &= self.catalog.regions == region

        return keep

    def match_indices(self, target: TargetFeatureVector, limit: Optional[int] = None) -> List[int]:
        """Catalog positions of the first ``limit`` matches."""
        limit = self.config.limit if limit is None else limit
        limit = max(limit, 0)
        return [int(i) for i in np.flatnonzero(self.mask(target))[:limit]]

    def match(self, target: TargetFeatureVector, limit: Optional[int] = None) -> List[CatalogEntry]:
        """
        Filter the catalog against a target.

        Args:
            target: Feature targets from the descriptor
            limit: Maximum matches (defaults to config.limit)

        Returns:
            Matching entries in catalog order, at most ``limit`` of them
        """
        return [self.catalog[i] for i in self.match_indices(target, limit)]

    def match_with_details(self, target: TargetFeatureVector, limit: Optional[int] = None) -> List[MatchDetail]:
        """Like ``match`` but with the per-feature differences attached."""
        indices = self.match_indices(target, limit)
        if not indices:
            return []

        diffs = self.distances(target)
        return [
            MatchDetail(
                entry=self.catalog[i],
                feature_diffs={
                    name: round(float(diffs[i, col]), 4)
                    for col, name in enumerate(AUDIO_FEATURES)
                },
            )
            for i in indices
        ]


def match_catalog(
    target: TargetFeatureVector,
    catalog: Catalog,
    config: MatchConfig = DEFAULT_MATCH_CONFIG,
) -> List[CatalogEntry]:
    """Convenience wrapper: filter ``catalog`` against ``target``."""
    return FeatureMatcher(catalog, config).match(target)
