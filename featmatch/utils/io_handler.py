"""I/O handling for images and frame streams."""

import logging
from pathlib import Path
from typing import Iterator, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from featmatch.exceptions import ImageLoadError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.bmp', '.tif', '.tiff', '.webp')


class VideoReader:
    """Read frames from a video file or a camera index."""

    def __init__(self, source: Union[str, int]):
        self.source = source
        self.cap = cv2.VideoCapture(source)
        if not self.cap.isOpened():
            raise ImageLoadError(f"Cannot open video source {source!r}")
        self.fps = self.cap.get(cv2.CAP_PROP_FPS)
        self.frame_count = int(self.cap.get(cv2.CAP_PROP_FRAME_COUNT))

    def read_frame(self, frame_number: Optional[int] = None) -> Optional[np.ndarray]:
        """Read a specific frame or next frame."""
        if frame_number is not None:
            self.cap.set(cv2.CAP_PROP_POS_FRAMES, frame_number)

        ret, frame = self.cap.read()
        return frame if ret else None

    def frames(self) -> Iterator[Tuple[str, np.ndarray]]:
        """Yield (frame id, frame) until the stream ends."""
        index = 0
        while True:
            frame = self.read_frame()
            if frame is None:
                return
            yield f"frame_{index:06d}", frame
            index += 1

    def release(self):
        """Release video capture."""
        self.cap.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()


def list_images(paths: Sequence[str]) -> list:
    """Expand directories into their image files; keep plain file paths as given."""
    result = []
    for path in paths:
        p = Path(path)
        if p.is_dir():
            result.extend(sorted(str(f) for f in p.iterdir()
                                 if f.suffix.lower() in IMAGE_EXTENSIONS))
        else:
            result.append(str(p))
    return result


def iter_images(paths: Sequence[str]) -> Iterator[Tuple[str, np.ndarray]]:
    """Yield (file stem, image) for each path, skipping files that cannot be decoded."""
    for path in list_images(paths):
        try:
            yield Path(path).stem, load_image(path)
        except ImageLoadError as e:
            logger.warning("Skipping %s", e)


def save_image(image: np.ndarray, output_path: str):
    """Save image to file."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(output_path), image):
        raise ImageLoadError(f"Could not write image to {output_path}")


def load_image(image_path: str, flags: int = cv2.IMREAD_COLOR) -> np.ndarray:
    """Load image from file."""
    image = cv2.imread(str(image_path), flags)
    if image is None:
        raise ImageLoadError(f"Failed to load image from {image_path}")
    return image
