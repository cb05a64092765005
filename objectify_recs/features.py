"""
Feature Extraction
==================

Turns the descriptor service's answer into a target feature vector:
six audio features on the Spotify scale plus a region label.

The line-per-value answer is read positionally from the end:

    line[n-7] .. line[n-2]   danceability, energy, loudness,
                             speechiness, acousticness, valence
    line[n-1]                region

Anything before those seven lines is free-form description. A value that
can't be read falls back to the neutral default (0.5) unless strict parsing
is requested, in which case the mismatch is raised.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .config import AUDIO_FEATURES, DEFAULT_FEATURE_VALUE
from .exceptions import DescriptorFormatError
from .utils import parse_number

logger = logging.getLogger(__name__)

# Six features plus the trailing region label
TRAILING_LINES = len(AUDIO_FEATURES) + 1


@dataclass(frozen=True)
class TargetFeatureVector:
    """Feature targets derived from one image analysis."""
    danceability: float = DEFAULT_FEATURE_VALUE
    energy: float = DEFAULT_FEATURE_VALUE
    loudness: float = DEFAULT_FEATURE_VALUE
    speechiness: float = DEFAULT_FEATURE_VALUE
    acousticness: float = DEFAULT_FEATURE_VALUE
    valence: float = DEFAULT_FEATURE_VALUE

    # Empty means "any region"
    region: str = ""

    # Features that fell back to the default
    defaulted_fields: Tuple[str, ...] = field(default=(), compare=False)

    def as_dict(self) -> Dict[str, float]:
        """Numeric features in AUDIO_FEATURES order."""
        return {name: getattr(self, name) for name in AUDIO_FEATURES}

    def to_dict(self) -> Dict:
        data: Dict = dict(self.as_dict())
        data["region"] = self.region
        data["defaulted_fields"] = list(self.defaulted_fields)
        return data


def split_lines(text: str) -> List[str]:
    """Non-blank lines of a response, in order."""
    return [line for line in (text or "").splitlines() if line.strip()]


def parse_descriptor(text: str, strict: bool = False) -> TargetFeatureVector:
    """
    Read the feature targets from the last seven lines of a description.

    Args:
        text: Raw response text
        strict: Raise instead of defaulting when lines are missing or
            not numeric

    Returns:
        TargetFeatureVector

    Raises:
        DescriptorFormatError: In strict mode, when the layout doesn't hold
    """
    lines = split_lines(text)
    count = len(lines)

    if strict and count < TRAILING_LINES:
        raise DescriptorFormatError(
            f"Expected at least {TRAILING_LINES} lines, got {count}",
            fields=list(AUDIO_FEATURES) + ["region"],
        )

    values: Dict[str, float] = {}
    defaulted: List[str] = []
    for offset, name in enumerate(AUDIO_FEATURES):
        index = count - TRAILING_LINES + offset
        number = parse_number(lines[index]) if index >= 0 else None
        if number is None:
            defaulted.append(name)
            number = DEFAULT_FEATURE_VALUE
        values[name] = number

    region = lines[-1].strip() if count >= 1 else ""

    if strict and defaulted:
        raise DescriptorFormatError(
            f"Non-numeric feature lines: {', '.join(defaulted)}",
            fields=defaulted,
        )

    if defaulted:
        logger.warning(
            "Descriptor text had no usable value for %s; using %.1f",
            ", ".join(defaulted),
            DEFAULT_FEATURE_VALUE,
        )

    return TargetFeatureVector(region=region, defaulted_fields=tuple(defaulted), **values)


def parse_structured_descriptor(text: str, strict: bool = False) -> TargetFeatureVector:
    """
    Read the feature targets from a JSON answer.

    Accepts the object on its own or wrapped in a markdown code fence.

    Args:
        text: Raw response text holding one JSON object
        strict: Raise instead of defaulting on missing or invalid values

    Returns:
        TargetFeatureVector

    Raises:
        DescriptorFormatError: If the text isn't a JSON object, or in strict
            mode when a feature is missing or not numeric
    """
    body = (text or "").strip()
    if body.startswith("```"):
        body = body.strip("`")
        if body.lower().startswith("json"):
            body = body[4:]

    try:
        data = json.loads(body)
    except ValueError as e:
        raise DescriptorFormatError(f"Descriptor answer is not JSON: {e}") from e

    if not isinstance(data, dict):
        raise DescriptorFormatError("Descriptor answer is not a JSON object")

    values: Dict[str, float] = {}
    defaulted: List[str] = []
    for name in AUDIO_FEATURES:
        number = parse_number(data.get(name))
        if number is None:
            defaulted.append(name)
            number = DEFAULT_FEATURE_VALUE
        values[name] = number

    if strict and defaulted:
        raise DescriptorFormatError(
            f"Missing or non-numeric features: {', '.join(defaulted)}",
            fields=defaulted,
        )

    region: Optional[str] = data.get("region")
    return TargetFeatureVector(
        region=region.strip() if isinstance(region, str) else "",
        defaulted_fields=tuple(defaulted),
        **values,
    )
