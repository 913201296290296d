"""
Feature matching demo
Matches a stream of images (files, a video or a camera) against a reference
image and shows or saves the stacked per-family visualization.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import cv2
import numpy as np

from featmatch.algorithms import FeatureType, MatcherType, ResizePolicy
from featmatch.config import load_config
from featmatch.exceptions import FeatMatchError
from featmatch.matching.handler import MatchHandler
from featmatch.utils.io_handler import VideoReader, iter_images, load_image, save_image
from featmatch.utils.logger import create_session_log_file, setup_logger

logger = logging.getLogger(__name__)

WINDOW_NAME = "featmatch"

# Actions returned by handle_key
CONTINUE = "continue"
REDRAW = "redraw"
NEXT = "next"
QUIT = "quit"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Match input images against a reference image with several feature families")
    parser.add_argument("reference", help="reference image path")
    parser.add_argument("inputs", nargs="*", help="input images or directories of images")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--video", help="read input frames from a video file")
    source.add_argument("--camera", type=int, help="read input frames from a camera index")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--features", nargs="+", choices=FeatureType.names(),
                        help="detector per family")
    parser.add_argument("--matchers", nargs="+", choices=MatcherType.names(),
                        help="matcher per family (one per feature, or one for all)")
    parser.add_argument("--accept-ratio", type=float, help="fraction of best matches kept")
    parser.add_argument("--max-height", type=int, help="height limit of the stacked result")
    parser.add_argument("--resize-policy", choices=ResizePolicy.names(),
                        help="how to shrink a result taller than --max-height")
    parser.add_argument("--output-dir", help="save every result image here")
    parser.add_argument("--show", action="store_true", help="display results in a window")
    parser.add_argument("--log-file", help="also write logs to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Dict[str, Any]:
    """Load the config file and apply command line overrides."""
    config = load_config(args.config)
    matching = config["matching"]
    visualization = config["visualization"]

    if args.features:
        matching["features"] = list(args.features)
    if args.matchers:
        matching["matchers"] = list(args.matchers)
    # A single matcher name applies to every family
    if len(matching["matchers"]) == 1 and len(matching["features"]) > 1:
        matching["matchers"] = matching["matchers"] * len(matching["features"])
    if args.accept_ratio is not None:
        matching["accept_ratio"] = args.accept_ratio
    if args.max_height is not None:
        visualization["max_height"] = args.max_height
    if args.resize_policy:
        visualization["resize_policy"] = args.resize_policy
    if args.verbose:
        config["logging"]["level"] = "DEBUG"
    return config


def open_frames(args: argparse.Namespace) -> Tuple[Iterator[Tuple[str, np.ndarray]], Optional[VideoReader]]:
    """Return the input frame iterator and the reader to release afterwards, if any."""
    if args.video is not None or args.camera is not None:
        reader = VideoReader(args.video if args.video is not None else args.camera)
        return reader.frames(), reader
    return iter_images(args.inputs), None


def handle_key(key: int, handler: MatchHandler, step: float) -> str:
    """Map a key press to an action, adjusting the accept ratio when asked."""
    if key < 0:
        return CONTINUE
    char = chr(key & 0xFF)
    if char in ("q", "\x1b"):
        return QUIT
    if char in ("+", "="):
        handler.change_accept_ratio(step)
        return REDRAW
    if char == "-":
        handler.change_accept_ratio(-step)
        return REDRAW
    return NEXT


def log_summary(frame_id: str, handler: MatchHandler):
    for stats in handler.summary():
        mean = stats["mean_distance"]
        logger.info("%s %s/%s: %d ref kp, %d input kp, %d matches%s",
                    frame_id, stats["feature"], stats["matcher"],
                    stats["refer_keypoints"], stats["input_keypoints"], stats["matches"],
                    f", mean distance {mean:.1f}" if mean is not None else "")


def run(handler: MatchHandler, frames: Iterator[Tuple[str, np.ndarray]],
        max_height: int, step: float, output_dir: Optional[str] = None,
        show: bool = False, wait_ms: int = 0) -> int:
    """
    Match every frame against the handler's reference.

    Interactive keys when showing: + / - change the accept ratio, r makes the
    current frame the reference, s saves the current result, q or Esc quits
    and any other key moves on to the next frame.

    Returns:
        Number of frames processed
    """
    processed = 0
    for frame_id, frame in frames:
        handler.match_image(frame)
        processed += 1
        log_summary(frame_id, handler)

        result = handler.draw_match_result(max_height)
        if output_dir and result is not None:
            save_image(result, str(Path(output_dir) / f"{frame_id}_matches.jpg"))

        while show and result is not None:
            cv2.imshow(WINDOW_NAME, result)
            key = cv2.waitKey(wait_ms)
            if key >= 0 and chr(key & 0xFF) == "r":
                logger.info("Using %s as the new reference", frame_id)
                handler.set_ref_image(frame)
                action = REDRAW
            elif key >= 0 and chr(key & 0xFF) == "s":
                save_image(result, str(Path(output_dir or "output") / f"{frame_id}_saved.jpg"))
                action = CONTINUE
            else:
                action = handle_key(key, handler, step)

            if action == QUIT:
                return processed
            if action == REDRAW:
                handler.match_image(frame)
                result = handler.draw_match_result(max_height)
                continue
            if action == NEXT or wait_ms > 0:
                break

    return processed


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = build_config(args)
    except FeatMatchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    log_file = args.log_file
    if log_file is None and config["logging"]["log_dir"]:
        log_file = create_session_log_file(config["logging"]["log_dir"])
    setup_logger("featmatch", config["logging"]["level"], log_file)

    try:
        handler = MatchHandler.from_config(config)
        handler.set_ref_image(load_image(args.reference))
        frames, reader = open_frames(args)
    except (FeatMatchError, AssertionError) as e:
        logger.error("%s", e)
        return 1

    live = reader is not None
    try:
        processed = run(handler, frames,
                        max_height=config["visualization"]["max_height"],
                        step=config["matching"]["accept_ratio_step"],
                        output_dir=args.output_dir,
                        show=args.show,
                        wait_ms=1 if live else 0)
    finally:
        if reader is not None:
            reader.release()
        if args.show:
            cv2.destroyAllWindows()

    logger.info("Processed %d frame(s), final accept ratio %.2f", processed, handler.accept_ratio)
    return 0


if __name__ == "__main__":
    sys.exit(main())
