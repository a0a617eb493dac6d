"""Frame normalization before recognition.

WHY: The camera delivers full-resolution frames in the sensor's
orientation. The overlay is drawn on top of the on-screen preview, so
the recognized coordinates must live in the preview's coordinate
space, and a smaller frame recognizes faster.

HOW: Rotate by a fixed right angle with cv2.rotate, compute one scale
factor that fits the rotated frame into the target size, then resize
both dimensions by it with cv2.resize.

RULES:
- s = max(frame_w / target_w, frame_h / target_h); both sides divided by s
- Aspect ratio is preserved
- A zero or negative target size raises PreprocessError
- Only multiples of 90 degrees are accepted as rotations
"""

from __future__ import annotations

import cv2
import numpy as np

from read_aloud.core.models import NormalizedFrame
from read_aloud.errors import PreprocessError

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def rotate(frame: np.ndarray, degrees: int) -> np.ndarray:
    """Rotate frame clockwise by degrees (a multiple of 90)."""
    degrees = degrees % 360
    if degrees == 0:
        return frame
    code = _ROTATIONS.get(degrees)
    if code is None:
        raise PreprocessError(
            "Rotation must be a multiple of 90 degrees, got {}".format(degrees)
        )
    return cv2.rotate(frame, code)


def _check_target(target_width: int, target_height: int) -> None:
    if target_width <= 0 or target_height <= 0:
        raise PreprocessError(
            "Target size must be positive, got {}x{} "
            "(preview not laid out yet?)".format(target_width, target_height)
        )


def compute_scale_factor(
    frame_width: int,
    frame_height: int,
    target_width: int,
    target_height: int,
) -> float:
    """Return the uniform factor that fits the frame inside the target.

    RULES:
    - Raises PreprocessError if either target dimension is not positive
    """
    _check_target(target_width, target_height)
    return max(frame_width / target_width, frame_height / target_height)


def normalize(
    frame: np.ndarray,
    target_width: int,
    target_height: int,
    rotation_degrees: int = 90,
) -> NormalizedFrame:
    """Rotate and downscale a raw frame to the preview size.

    Args:
        frame: Raw BGR image from the capture device.
        target_width: Preview width in pixels.
        target_height: Preview height in pixels.
        rotation_degrees: Clockwise correction for the mounted camera.

    Returns:
        NormalizedFrame whose coordinate space matches the preview.
    """
    _check_target(target_width, target_height)
    if frame is None or getattr(frame, "size", 0) == 0:
        raise PreprocessError("Captured frame is empty")

    rotated = rotate(frame, rotation_degrees)
    height, width = rotated.shape[:2]
    scale = compute_scale_factor(width, height, target_width, target_height)

    new_width = max(int(width / scale), 1)
    new_height = max(int(height / scale), 1)
    if (new_width, new_height) == (width, height):
        resized = rotated
    else:
        interpolation = cv2.INTER_AREA if scale > 1 else cv2.INTER_LINEAR
        resized = cv2.resize(rotated, (new_width, new_height), interpolation=interpolation)

    return NormalizedFrame(
        image=resized,
        width=new_width,
        height=new_height,
        scale=scale,
    )
