"""Shared fixtures."""

import pytest
import numpy as np
import cv2


def make_textured_image(height: int = 240, width: int = 320, seed: int = 0) -> np.ndarray:
    """Random blocky texture with a few shapes so every detector finds keypoints."""
    rng = np.random.default_rng(seed)
    small = rng.integers(0, 256, (height // 8, width // 8, 3), dtype=np.uint8)
    image = cv2.resize(small, (width, height), interpolation=cv2.INTER_NEAREST)
    cv2.circle(image, (width // 3, height // 2), 30, (255, 255, 255), 3)
    cv2.rectangle(image, (width // 2, height // 4), (width - 40, height - 40), (0, 0, 0), 4)
    return cv2.GaussianBlur(image, (3, 3), 0)


@pytest.fixture
def textured_image():
    return make_textured_image()


@pytest.fixture
def other_image():
    return make_textured_image(seed=1)
