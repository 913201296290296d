"""Visualization utilities for debugging and display."""

import cv2
import numpy as np
from typing import List, Optional, Sequence, Tuple, Union

from featmatch.algorithms import ResizePolicy


def draw_match_pair(input_image: np.ndarray, input_keypoints: Sequence[cv2.KeyPoint],
                    refer_image: np.ndarray, refer_keypoints: Sequence[cv2.KeyPoint],
                    matches: Sequence[cv2.DMatch], label: str = None,
                    color: Tuple[int, int, int] = (0, 0, 0)) -> np.ndarray:
    """Draw input | reference side by side with correspondence lines and an optional label."""
    output = cv2.drawMatches(input_image, list(input_keypoints),
                             refer_image, list(refer_keypoints),
                             list(matches), None)
    if label:
        cv2.putText(output, label, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 1, color, 2)
    return output


def to_bgr(image: np.ndarray) -> np.ndarray:
    """Return a 3-channel copy of image."""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image.copy()


def stack_vertical(images: List[np.ndarray]) -> Optional[np.ndarray]:
    """Stack images top to bottom, padding narrower ones on the right with black."""
    if not images:
        return None

    images = [to_bgr(img) for img in images]
    width = max(img.shape[1] for img in images)
    padded = []
    for img in images:
        if img.shape[1] < width:
            canvas = np.zeros((img.shape[0], width, 3), dtype=img.dtype)
            canvas[:, :img.shape[1]] = img
            img = canvas
        padded.append(img)
    return cv2.vconcat(padded)


def limit_height(image: np.ndarray, max_height: int,
                 policy: Union[str, ResizePolicy] = ResizePolicy.NONE) -> np.ndarray:
    """Apply a resize policy when image is taller than max_height."""
    policy = ResizePolicy.from_name(policy)
    h, w = image.shape[:2]
    if policy is ResizePolicy.NONE or max_height <= 0 or h <= max_height:
        return image

    if policy is ResizePolicy.HALVE:
        new_w, new_h = max(w // 2, 1), max(h // 2, 1)
    else:
        scale = max_height / h
        new_w, new_h = max(int(w * scale), 1), max_height
    return cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)
