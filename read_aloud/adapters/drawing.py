"""OpenCV bounding-box surface.

WHY: Every recognized token gets a labelled box over the frame it came
from so the user sees what was read and what was ignored.

HOW: FrameOverlaySurface remembers the boxes handed to it by
OverlayState and draws them onto a copy of an image with
cv2.rectangle and cv2.putText on demand.

RULES:
- Spoken tokens are drawn in green, silent ones in red
- render() never modifies the input image
"""

from __future__ import annotations

import threading
from typing import List, Optional

import cv2
import numpy as np

from read_aloud.adapters.base import OverlaySurface
from read_aloud.core.models import RecognizedToken
from read_aloud.core.words import WordSet

SPOKEN_COLOR = (0, 200, 0)
SILENT_COLOR = (0, 0, 255)


class FrameOverlaySurface(OverlaySurface):
    def __init__(self, words: Optional[WordSet] = None, thickness: int = 2) -> None:
        self._words = words
        self._thickness = thickness
        self._tokens: List[RecognizedToken] = []
        self._lock = threading.Lock()

    def clear(self) -> None:
        with self._lock:
            self._tokens = []

    def add(self, token: RecognizedToken) -> None:
        with self._lock:
            self._tokens.append(token)

    @property
    def tokens(self) -> List[RecognizedToken]:
        with self._lock:
            return list(self._tokens)

    def render(self, image: np.ndarray) -> np.ndarray:
        """Return a copy of image with every box and label drawn."""
        canvas = image.copy()
        for token in self.tokens:
            spoken = self._words is not None and self._words.contains(token.text)
            color = SPOKEN_COLOR if spoken else SILENT_COLOR
            box = token.box
            cv2.rectangle(canvas, (box.left, box.top), (box.right, box.bottom), color, self._thickness)
            cv2.putText(
                canvas,
                token.text,
                (box.left, max(box.top - 4, 10)),
                cv2.FONT_HERSHEY_SIMPLEX,
                0.5,
                color,
                1,
            )
        return canvas
