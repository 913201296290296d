"""
featmatch - feature matching demonstration harness

Detects keypoints with several OpenCV feature families, matches an input
stream against a reference image and renders the correspondences.
"""

from .algorithms import DescriptorKind, FeatureType, MatcherType, ResizePolicy
from .detection.detector import DetectResult, Detector
from .exceptions import (
    AlgorithmUnavailableError,
    ConfigError,
    FeatMatchError,
    ImageLoadError,
    UnknownAlgorithmError,
)
from .matching.handler import MatchHandler
from .matching.matcher import DEFAULT_ACCEPT_RATIO, Matcher, MatcherResult

__all__ = [
    'DescriptorKind',
    'FeatureType',
    'MatcherType',
    'ResizePolicy',
    'Detector',
    'DetectResult',
    'Matcher',
    'MatcherResult',
    'MatchHandler',
    'DEFAULT_ACCEPT_RATIO',
    'FeatMatchError',
    'UnknownAlgorithmError',
    'AlgorithmUnavailableError',
    'ImageLoadError',
    'ConfigError',
]
__version__ = '1.0.0'
