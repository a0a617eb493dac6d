"""OpenCV camera binding.

WHY: The controller needs single frames on demand from a local camera.
OpenCV's VideoCapture covers USB webcams and most laptop cameras.

HOW: start_preview() opens the device lazily; request_frame() reads
one frame in a worker thread so the event loop never blocks on the
driver. A lock serializes reads because VideoCapture is not safe for
concurrent use.

RULES:
- start_preview, stop_preview and release are idempotent
- request_frame opens the device if it is not open yet
- A failed open or read raises CaptureError
- Each request returns a fresh frame, not one buffered since the last
  request (buffer size 1 plus a couple of dropped grabs)
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Optional

import cv2
import numpy as np

from read_aloud.adapters.base import CaptureDevice
from read_aloud.errors import CaptureError

logger = logging.getLogger(__name__)

# Buffered frames dropped before each read; drivers may ignore CAP_PROP_BUFFERSIZE
STALE_FRAMES = 2


class OpenCVCamera(CaptureDevice):
    def __init__(
        self,
        index: int = 0,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> None:
        self._index = index
        self._width = width
        self._height = height
        self._capture: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()
        self.previewing = False

    def _open(self) -> cv2.VideoCapture:
        if self._capture is not None and self._capture.isOpened():
            return self._capture

        capture = cv2.VideoCapture(self._index)
        if not capture.isOpened():
            capture.release()
            raise CaptureError("Camera {} could not be opened".format(self._index))
        capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        if self._width:
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        if self._height:
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
        self._capture = capture
        logger.info("Opened camera %d", self._index)
        return capture

    def _read(self) -> np.ndarray:
        with self._lock:
            capture = self._open()
            # Frames queued since the last capture show the old scene
            for _ in range(STALE_FRAMES):
                capture.grab()
            ok, frame = capture.read()
        if not ok or frame is None:
            raise CaptureError("Camera {} returned no frame".format(self._index))
        return frame

    async def request_frame(self) -> np.ndarray:
        return await asyncio.to_thread(self._read)

    def start_preview(self) -> None:
        if self.previewing:
            return
        with self._lock:
            self._open()
        self.previewing = True

    def stop_preview(self) -> None:
        self.previewing = False

    def release(self) -> None:
        self.previewing = False
        with self._lock:
            if self._capture is not None:
                self._capture.release()
                self._capture = None
                logger.info("Released camera %d", self._index)
