"""Descriptor matching with ratio-based truncation."""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import cv2
import numpy as np

from featmatch.algorithms import DescriptorKind, FeatureType, MatcherType

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT_RATIO = 0.5

FLANN_INDEX_KDTREE = 1
FLANN_INDEX_LSH = 6


@dataclass(frozen=True)
class MatcherResult:
    """Read-only view of a matcher's most recent output."""
    name: str
    matches: Tuple[cv2.DMatch, ...]

    def __len__(self) -> int:
        return len(self.matches)


def clamp_accept_ratio(value: float) -> float:
    """Clamp an accept ratio into [0, 1]."""
    return max(min(float(value), 1.0), 0.0)


def create_matcher(matcher_type: MatcherType,
                   descriptor_kind: DescriptorKind) -> cv2.DescriptorMatcher:
    """Instantiate the OpenCV matcher suited to a descriptor kind."""
    binary = descriptor_kind is DescriptorKind.BINARY

    if matcher_type is MatcherType.FLANN:
        if binary:
            index_params = dict(algorithm=FLANN_INDEX_LSH,
                                table_number=12,
                                key_size=20,
                                multi_probe_level=2)
        else:
            index_params = dict(algorithm=FLANN_INDEX_KDTREE, trees=4)
        return cv2.FlannBasedMatcher(index_params, dict(checks=32))

    return cv2.BFMatcher(cv2.NORM_HAMMING if binary else cv2.NORM_L1, crossCheck=False)


def resolve_descriptor_kind(companion: Union[str, FeatureType, DescriptorKind]) -> DescriptorKind:
    """Accept a descriptor kind directly or derive it from a detector name."""
    if isinstance(companion, DescriptorKind):
        return companion
    return FeatureType.from_name(companion).descriptor_kind


class Matcher:
    """Matches input descriptors against reference descriptors and keeps the best ones."""

    def __init__(self, matcher_type: MatcherType, descriptor_kind: DescriptorKind,
                 matcher: cv2.DescriptorMatcher, min_matches: int = 0):
        self.matcher_type = matcher_type
        self.descriptor_kind = descriptor_kind
        self.matcher = matcher
        self.min_matches = min_matches
        self.matches = ()

    @classmethod
    def factory(cls, name: Union[str, MatcherType],
                companion: Union[str, FeatureType, DescriptorKind],
                min_matches: int = 0) -> 'Matcher':
        """
        Create a matcher for the descriptors of a companion detector.

        Args:
            name: flann or bf
            companion: Descriptor kind of the paired detector, or its algorithm name
            min_matches: Keep at least this many matches regardless of the ratio

        Returns:
            flann uses an LSH index for binary descriptors and a KD-tree otherwise;
            bf uses Hamming distance for binary descriptors and L1 otherwise.
        """
        matcher_type = MatcherType.from_name(name)
        descriptor_kind = resolve_descriptor_kind(companion)
        return cls(matcher_type, descriptor_kind,
                   create_matcher(matcher_type, descriptor_kind), min_matches)

    @property
    def name(self) -> str:
        return self.matcher_type.value

    def get_name(self) -> str:
        return self.name

    def match_descriptors(self, refer_descriptors: Optional[np.ndarray],
                          input_descriptors: Optional[np.ndarray],
                          accept_ratio: float = DEFAULT_ACCEPT_RATIO) -> List[cv2.DMatch]:
        """
        Match every input descriptor to its nearest reference descriptor.

        Matches are sorted by distance and the best floor(count * accept_ratio)
        are kept. queryIdx indexes the input keypoints, trainIdx the reference ones.
        Empty or incompatible descriptor matrices produce no matches.
        """
        if not self._compatible(refer_descriptors, input_descriptors):
            self.clear()
            return []

        query, train = input_descriptors, refer_descriptors
        if self.matcher_type is MatcherType.FLANN and self.descriptor_kind is DescriptorKind.FLOAT:
            query = np.asarray(query, dtype=np.float32)
            train = np.asarray(train, dtype=np.float32)

        matches = sorted(self.matcher.match(query, train), key=lambda m: m.distance)
        keep = self.count_to_keep(len(matches), accept_ratio)

        self.matches = tuple(matches[:keep])
        logger.debug("%s: kept %d of %d matches (ratio %.2f)",
                     self.name, keep, len(matches), accept_ratio)
        return list(self.matches)

    def count_to_keep(self, count: int, accept_ratio: float) -> int:
        """Number of sorted matches that survive truncation."""
        keep = int(math.floor(count * clamp_accept_ratio(accept_ratio)))
        if self.min_matches > 0:
            keep = max(keep, min(self.min_matches, count))
        return keep

    def get_result(self) -> MatcherResult:
        return MatcherResult(name=self.name, matches=self.matches)

    def clear(self) -> None:
        """Forget the last match list."""
        self.matches = ()

    def _compatible(self, refer: Optional[np.ndarray], query: Optional[np.ndarray]) -> bool:
        for desc in (refer, query):
            if desc is None or desc.size == 0 or desc.ndim != 2:
                return False
        if refer.shape[1] != query.shape[1]:
            logger.warning("%s: descriptor width mismatch (%d vs %d), no matches",
                           self.name, refer.shape[1], query.shape[1])
            return False
        if refer.dtype != query.dtype:
            logger.warning("%s: descriptor dtype mismatch (%s vs %s), no matches",
                           self.name, refer.dtype, query.dtype)
            return False
        if refer.dtype not in self._accepted_dtypes():
            logger.warning("%s: %s descriptors cannot be matched as %s, no matches",
                           self.name, refer.dtype, self.descriptor_kind.value)
            return False
        return True

    def _accepted_dtypes(self) -> Tuple[np.dtype, ...]:
        # Hamming distance and the LSH index work on packed bytes only
        if self.descriptor_kind is DescriptorKind.BINARY:
            return (np.dtype(np.uint8),)
        # FLANN float input is cast to float32 before matching
        if self.matcher_type is MatcherType.FLANN:
            return (np.dtype(np.float32), np.dtype(np.float64), np.dtype(np.uint8))
        return (np.dtype(np.float32), np.dtype(np.uint8))
