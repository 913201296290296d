"""
Match handler
Runs one detector/matcher family per configured name pair against a shared
reference image and stacks the per-family visualizations.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import cv2
import numpy as np

from featmatch.algorithms import FeatureType, MatcherType, ResizePolicy
from featmatch.detection.detector import Detector
from featmatch.matching.matcher import (
    DEFAULT_ACCEPT_RATIO,
    Matcher,
    MatcherResult,
    clamp_accept_ratio,
)
from featmatch.utils.visualization import draw_match_pair, limit_height, stack_vertical

logger = logging.getLogger(__name__)


class MatchHandler:
    """Owns reference detectors, input detectors and matchers indexed in lockstep."""

    def __init__(self, features: Sequence[Union[str, FeatureType]],
                 matchers: Sequence[Union[str, MatcherType]],
                 accept_ratio: float = DEFAULT_ACCEPT_RATIO,
                 min_matches: int = 0,
                 resize_policy: Union[str, ResizePolicy] = ResizePolicy.NONE):
        """
        Build one family per (feature, matcher) name pair.

        Args:
            features: Detector names, one per family
            matchers: Matcher names, same length as features
            accept_ratio: Fraction of best matches kept, clamped to [0, 1]
            min_matches: Absolute floor on kept matches (0 disables it)
            resize_policy: How draw_match_result shrinks an oversized result
        """
        assert len(features) == len(matchers), \
            f"features ({len(features)}) and matchers ({len(matchers)}) must have the same length"

        self.refer_detectors: List[Detector] = [Detector.factory(f) for f in features]
        self.input_detectors: List[Detector] = [Detector.factory(f) for f in features]
        self.matchers: List[Matcher] = [
            Matcher.factory(m, det.descriptor_kind, min_matches=min_matches)
            for m, det in zip(matchers, self.refer_detectors)
        ]
        self._accept_ratio = clamp_accept_ratio(accept_ratio)
        self.resize_policy = ResizePolicy.from_name(resize_policy)

        logger.info("Match handler ready: %s", ", ".join(
            f"{d.name}/{m.name}" for d, m in zip(self.refer_detectors, self.matchers)))

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'MatchHandler':
        """Build a handler from a configuration dictionary (see featmatch.config)."""
        matching = config["matching"]
        return cls(
            matching["features"],
            matching["matchers"],
            accept_ratio=matching.get("accept_ratio", DEFAULT_ACCEPT_RATIO),
            min_matches=matching.get("min_matches", 0),
            resize_policy=config.get("visualization", {}).get("resize_policy", ResizePolicy.NONE),
        )

    def __len__(self) -> int:
        return len(self.matchers)

    @property
    def accept_ratio(self) -> float:
        return self._accept_ratio

    def change_accept_ratio(self, delta: float) -> float:
        """Shift the accept ratio by delta, clamped to [0, 1]. Returns the new value."""
        self._accept_ratio = clamp_accept_ratio(self._accept_ratio + delta)
        logger.info("Accept ratio set to %.2f", self._accept_ratio)
        return self._accept_ratio

    def set_ref_image(self, image: np.ndarray) -> None:
        """Detect features on the reference image for every family."""
        for det in self.refer_detectors:
            det.detect_and_compute(image)
        # Earlier matches index the previous reference keypoints
        for matcher in self.matchers:
            matcher.clear()
        logger.debug("Reference set: %s", self._keypoint_counts(self.refer_detectors))

    def match_image(self, image: np.ndarray) -> List[MatcherResult]:
        """Detect features on an input image and match each family against the reference."""
        for det in self.input_detectors:
            det.detect_and_compute(image)

        for refer, inp, matcher in zip(self.refer_detectors, self.input_detectors, self.matchers):
            matcher.match_descriptors(refer.get_result().descriptors,
                                      inp.get_result().descriptors,
                                      self._accept_ratio)
        return [matcher.get_result() for matcher in self.matchers]

    def draw_match_result(self, max_height: int = 1000) -> Optional[np.ndarray]:
        """
        Render every family and stack the images vertically.

        A family that fails to render is logged and left out. Returns None when
        no family could be drawn.
        """
        rendered = []
        for refer, inp, matcher in zip(self.refer_detectors, self.input_detectors, self.matchers):
            try:
                rendered.append(self.draw_single_result(refer, inp, matcher))
            except (cv2.error, IndexError, ValueError, TypeError) as e:
                logger.warning("Could not draw %s/%s result: %s", inp.name, matcher.name, e)

        stacked = stack_vertical(rendered)
        if stacked is None:
            logger.warning("No match result could be drawn")
            return None
        return limit_height(stacked, max_height, self.resize_policy)

    @staticmethod
    def draw_single_result(refer: Detector, inp: Detector, matcher: Matcher) -> np.ndarray:
        """Draw input | reference with correspondence lines for one family."""
        refer_result = refer.get_result()
        input_result = inp.get_result()
        if refer_result.image is None or input_result.image is None:
            raise ValueError("reference and input images must both be set")

        return draw_match_pair(input_result.image, input_result.keypoints,
                               refer_result.image, refer_result.keypoints,
                               matcher.get_result().matches,
                               label=input_result.name)

    def summary(self) -> List[Dict[str, Any]]:
        """Per-family keypoint and match statistics of the latest run."""
        stats = []
        for refer, inp, matcher in zip(self.refer_detectors, self.input_detectors, self.matchers):
            matches = matcher.get_result().matches
            stats.append({
                "feature": inp.name,
                "matcher": matcher.name,
                "refer_keypoints": len(refer.keypoints),
                "input_keypoints": len(inp.keypoints),
                "matches": len(matches),
                "mean_distance": float(np.mean([m.distance for m in matches])) if matches else None,
            })
        return stats

    @staticmethod
    def _keypoint_counts(detectors: Sequence[Detector]) -> str:
        return ", ".join(f"{d.name}={len(d.keypoints)}" for d in detectors)
