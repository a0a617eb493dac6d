"""Wire real adapters into a controller from Settings.

WHY: The CLI's serve and once commands need the same assembly: word
list, camera, recognizer, speech, box surface, controller. Doing it in
one place keeps the entry points thin.

HOW: build_runtime() constructs every binding from a Settings snapshot
and returns them in a Runtime bundle so callers can start, stop and
release what they need.

RULES:
- The word list is loaded once; an unreadable list yields an empty WordSet
- The overlay surface shares the controller's WordSet for colouring
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from read_aloud.adapters.camera import OpenCVCamera
from read_aloud.adapters.drawing import FrameOverlaySurface
from read_aloud.adapters.speech import Pyttsx3Speech
from read_aloud.adapters.tesseract import TesseractRecognizer
from read_aloud.adapters.word_list import FileWordListSource
from read_aloud.config import Settings
from read_aloud.core.controller import CaptureCycleController, PreviewSize
from read_aloud.core.models import CycleReport
from read_aloud.core.overlay import OverlayState
from read_aloud.core.timer import AutoCaptureTimer
from read_aloud.core.words import WordSet, load_word_set

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    controller: CaptureCycleController
    timer: AutoCaptureTimer
    camera: OpenCVCamera
    speech: Pyttsx3Speech
    surface: FrameOverlaySurface
    words: WordSet

    def close(self) -> None:
        self.speech.close()
        self.camera.release()


def build_runtime(
    settings: Settings,
    on_report: Optional[Callable[[CycleReport], None]] = None,
) -> Runtime:
    words = load_word_set(FileWordListSource(settings.word_list_path))
    camera = OpenCVCamera(index=settings.camera_index)
    recognizer = TesseractRecognizer(
        lang=settings.tesseract_lang,
        min_confidence=settings.min_confidence,
        tesseract_cmd=settings.tesseract_cmd,
    )
    speech = Pyttsx3Speech(rate=settings.speech_rate, voice=settings.speech_voice)
    surface = FrameOverlaySurface(words)

    controller = CaptureCycleController(
        camera=camera,
        recognizer=recognizer,
        speech=speech,
        words=words,
        overlay=OverlayState(surface),
        preview=PreviewSize(settings.preview_width, settings.preview_height),
        rotation_degrees=settings.rotation_degrees,
        auto_capture_enabled=settings.auto_start,
        on_report=on_report,
    )
    timer = AutoCaptureTimer(controller, settings.capture_interval_ms)
    logger.info(
        "Runtime ready: camera %d, preview %dx%d, %d known words",
        settings.camera_index,
        settings.preview_width,
        settings.preview_height,
        len(words),
    )
    return Runtime(
        controller=controller,
        timer=timer,
        camera=camera,
        speech=speech,
        surface=surface,
        words=words,
    )
