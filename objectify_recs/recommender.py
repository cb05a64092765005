"""
Main Recommendation Engine
==========================

Orchestrates one image analysis:
1. Send the image to the descriptor service
2. Parse the feature targets out of the answer
3. Filter the catalog against those targets
4. Return the raw answer plus up to five matching songs

A descriptor failure never propagates: the output carries a fixed
user-facing message instead of an answer, and no songs.
"""

import itertools
import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .catalog import Catalog, CatalogEntry, load_catalog
from .config import (
    DEFAULT_MATCH_CONFIG,
    DEFAULT_MIME_TYPE,
    FAILURE_MESSAGE,
    MatchConfig,
)
from .exceptions import DescriptorFormatError, DescriptorServiceError
from .features import TargetFeatureVector, parse_descriptor, parse_structured_descriptor
from .gemini_client import GeminiClient
from .matcher import FeatureMatcher

logger = logging.getLogger(__name__)


@dataclass
class RecommendationOutput:
    """Complete result of one image analysis."""
    response_text: str
    recommendations: List[CatalogEntry] = field(default_factory=list)
    target: Optional[TargetFeatureVector] = None
    request_id: int = 0
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "request_id": self.request_id,
            "response_text": self.response_text,
            "target": self.target.to_dict() if self.target else None,
            "error": self.error,
            "recommendations": [
                {
                    "track_id": r.track_id,
                    "track_name": r.track_name,
                    "artists": r.artists,
                    "region": r.region,
                    "url": r.url,
                }
                for r in self.recommendations
            ],
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


class AnalysisSession:
    """
    Holds the result currently on display.

    Every analysis takes a ticket from ``begin()``; a finished analysis is
    only shown if its ticket is still the newest one issued, so a slow
    earlier request can't overwrite a later one.
    """

    def __init__(self):
        self._counter = itertools.count(1)
        self._lock = threading.Lock()
        self._latest_id = 0
        self.current: Optional[RecommendationOutput] = None

    @property
    def latest_id(self) -> int:
        return self._latest_id

    def begin(self) -> int:
        """Issue the id for a new analysis."""
        with self._lock:
            self._latest_id = next(self._counter)
            return self._latest_id

    def is_current(self, request_id: int) -> bool:
        return request_id == self._latest_id

    def submit(self, output: RecommendationOutput) -> bool:
        """
        Replace the displayed result if ``output`` belongs to the newest request.

        Returns:
            True if the result was applied, False if it was stale
        """
        with self._lock:
            if output.request_id != self._latest_id:
                logger.info(
                    "Dropping stale result for request %d (latest is %d)",
                    output.request_id,
                    self._latest_id,
                )
                return False
            self.current = output
            return True


class RecommendationEngine:
    """
    Main recommendation engine orchestrating the complete pipeline.

    Usage:
        engine = RecommendationEngine()
        result = engine.analyze(encoded.data, encoded.mime_type)
        print(result.to_json())
    """

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        client: Optional[GeminiClient] = None,
        match_config: MatchConfig = DEFAULT_MATCH_CONFIG,
        structured: bool = False,
        strict: bool = False,
    ):
        """
        Initialize recommendation engine.

        Args:
            catalog: Loaded catalog (loads the configured one if None)
            client: Descriptor client (creates one from the environment if None)
            match_config: Tolerance bands and limits for the matcher
            structured: Ask the service for JSON instead of one value per line
            strict: Treat a malformed answer as a failure instead of defaulting
        """
        self.catalog = catalog if catalog is not None else load_catalog()
        self.client = client or GeminiClient()
        self.matcher = FeatureMatcher(self.catalog, match_config)
        self.structured = structured
        self.strict = strict

    def parse(self, response_text: str) -> TargetFeatureVector:
        """Parse a descriptor answer using the engine's mode."""
        if self.structured:
            return parse_structured_descriptor(response_text, strict=self.strict)
        return parse_descriptor(response_text, strict=self.strict)

    def recommend(self, target: TargetFeatureVector) -> List[CatalogEntry]:
        """Match an already-parsed target against the catalog."""
        return self.matcher.match(target)

    def recommend_from_text(self, response_text: str, request_id: int = 0) -> RecommendationOutput:
        """
        Run parse and match on a descriptor answer.

        Args:
            response_text: Raw answer from the descriptor service
            request_id: Id of the analysis this belongs to

        Returns:
            RecommendationOutput
        """
        try:
            target = self.parse(response_text)
        except DescriptorFormatError as e:
            logger.error("Descriptor answer has an unexpected layout: %s", e)
            return RecommendationOutput(
                response_text=response_text,
                request_id=request_id,
                error=str(e),
            )

        matches = self.recommend(target)
        logger.info("Matched %d of %d catalog songs", len(matches), len(self.catalog))

        return RecommendationOutput(
            response_text=response_text,
            recommendations=matches,
            target=target,
            request_id=request_id,
        )

    def analyze(
        self,
        image_b64: str,
        mime_type: str = DEFAULT_MIME_TYPE,
        request_id: int = 0,
    ) -> RecommendationOutput:
        """
        Describe an image and recommend songs for it.

        Args:
            image_b64: Base64-encoded image
            mime_type: MIME type of the image
            request_id: Id of this analysis (see AnalysisSession)

        Returns:
            RecommendationOutput; on service failure its response text is
            the fixed failure message and it holds no songs
        """
        try:
            response_text = self.client.describe_image(
                image_b64,
                mime_type=mime_type,
                structured=self.structured,
            )
        except DescriptorServiceError as e:
            logger.error("Error analyzing image: %s", e, exc_info=True)
            return RecommendationOutput(
                response_text=FAILURE_MESSAGE,
                request_id=request_id,
                error=str(e),
            )

        return self.recommend_from_text(response_text, request_id=request_id)

    def analyze_in_session(
        self,
        session: AnalysisSession,
        image_b64: str,
        mime_type: str = DEFAULT_MIME_TYPE,
    ) -> RecommendationOutput:
        """Run ``analyze`` under a fresh session ticket and submit the result."""
        request_id = session.begin()
        output = self.analyze(image_b64, mime_type=mime_type, request_id=request_id)
        session.submit(output)
        return output
