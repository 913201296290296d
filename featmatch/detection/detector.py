"""Keypoint detection and descriptor extraction."""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from featmatch.algorithms import DescriptorKind, FeatureType
from featmatch.exceptions import AlgorithmUnavailableError

logger = logging.getLogger(__name__)

CONSTRUCTORS = {
    FeatureType.SIFT: "SIFT_create",
    FeatureType.SURF: "SURF_create",
    FeatureType.ORB: "ORB_create",
    FeatureType.KAZE: "KAZE_create",
    FeatureType.BRISK: "BRISK_create",
}


@dataclass(frozen=True)
class DetectResult:
    """Read-only view of a detector's most recent output."""
    name: str
    image: Optional[np.ndarray]
    keypoints: Tuple[cv2.KeyPoint, ...]
    descriptors: np.ndarray
    descriptor_kind: DescriptorKind

    def __len__(self) -> int:
        return len(self.keypoints)


def create_feature(feature_type: FeatureType, **params) -> cv2.Feature2D:
    """Instantiate the OpenCV Feature2D for a feature type."""
    constructor_name = CONSTRUCTORS[feature_type]
    # Some builds only ship an algorithm in the xfeatures2d contrib module
    constructor = getattr(cv2, constructor_name, None)
    if constructor is None and hasattr(cv2, "xfeatures2d"):
        constructor = getattr(cv2.xfeatures2d, constructor_name, None)
    if constructor is None:
        raise AlgorithmUnavailableError(
            f"{feature_type.value} is not available in this OpenCV build ({cv2.__version__})")

    if feature_type is not FeatureType.SURF:
        return constructor(**params)

    # SURF is only built with OPENCV_ENABLE_NONFREE and fails at creation otherwise
    try:
        return constructor(**params)
    except cv2.error as e:
        raise AlgorithmUnavailableError(
            f"{feature_type.value} is not available in this OpenCV build: {e}") from e


class Detector:
    """Holds one feature algorithm and the result of its last run."""

    def __init__(self, feature_type: FeatureType, feature: cv2.Feature2D):
        self.feature_type = feature_type
        self.feature = feature
        self.image = None
        self.keypoints = ()
        self.descriptors = self._empty_descriptors()

    @classmethod
    def factory(cls, name: Union[str, FeatureType], **params) -> 'Detector':
        """
        Create a detector from its algorithm name.

        Args:
            name: One of sift, surf, orb, kaze, brisk
            **params: Forwarded to the OpenCV constructor (e.g. nfeatures for orb)

        Raises:
            UnknownAlgorithmError: name is not a supported detector
            AlgorithmUnavailableError: OpenCV was built without the algorithm
        """
        feature_type = FeatureType.from_name(name)
        return cls(feature_type, create_feature(feature_type, **params))

    @property
    def name(self) -> str:
        return self.feature_type.value

    def get_name(self) -> str:
        return self.name

    @property
    def descriptor_kind(self) -> DescriptorKind:
        return self.feature_type.descriptor_kind

    def detect_and_compute(self, image: np.ndarray) -> None:
        """Detect keypoints and compute descriptors, replacing the previous result."""
        self.image = image
        if image is None or image.size == 0:
            self.keypoints = ()
            self.descriptors = self._empty_descriptors()
            return

        keypoints, descriptors = self.feature.detectAndCompute(image, None)
        self.keypoints = tuple(keypoints)
        self.descriptors = descriptors if descriptors is not None else self._empty_descriptors()
        logger.debug("%s: %d keypoints on %s image", self.name, len(self.keypoints), image.shape)

    def get_result(self) -> DetectResult:
        return DetectResult(
            name=self.name,
            image=self.image,
            keypoints=self.keypoints,
            descriptors=self.descriptors,
            descriptor_kind=self.descriptor_kind,
        )

    def _empty_descriptors(self) -> np.ndarray:
        dtype = np.uint8 if self.descriptor_kind is DescriptorKind.BINARY else np.float32
        return np.empty((0, self.feature.descriptorSize()), dtype=dtype)
