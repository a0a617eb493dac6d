"""Shared fixtures and test doubles for the read_aloud test suite.

WHY: The controller is only meaningful against collaborators whose
timing the test controls: a camera that can be held mid-capture, a
recognizer that can be held mid-recognition, a speech queue that
records every call. Centralizing the doubles keeps every test module
using the same ones.

HOW: Small classes implementing the adapters.base ABCs. Each can be
"gated" with an asyncio.Event so a test can inspect the controller
while a cycle is in flight, and each records what it was asked to do.

RULES:
- Doubles never sleep; gating is explicit via asyncio.Event
- Gates are created inside the test's event loop (asyncio.run)
- The sample batch is Cat / Xzq / Dog against {"cat", "dog"}
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

import numpy as np
import pytest

from read_aloud.adapters.base import (
    CaptureDevice,
    OverlaySurface,
    RecognitionEngine,
    SpeechEngine,
    SpeechMode,
)
from read_aloud.core.controller import CaptureCycleController, PreviewSize
from read_aloud.core.models import BoundingBox, NormalizedFrame, RecognizedToken
from read_aloud.core.overlay import OverlayState
from read_aloud.core.words import WordSet


def make_token(text: str, left: int = 0, top: int = 0, width: int = 40, height: int = 12) -> RecognizedToken:
    return RecognizedToken(text=text, box=BoundingBox(left, top, width, height), confidence=90.0)


SAMPLE_TOKENS = [
    make_token("Cat", left=10, top=10),
    make_token("Xzq", left=60, top=10),
    make_token("Dog", left=110, top=10),
]


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeCamera(CaptureDevice):
    def __init__(self, frame: Optional[np.ndarray] = None, error: Optional[Exception] = None) -> None:
        self.frame = frame if frame is not None else np.zeros((640, 480, 3), dtype=np.uint8)
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.requests = 0
        self.preview_starts = 0
        self.preview_stops = 0
        self.released = False

    async def request_frame(self) -> np.ndarray:
        self.requests += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.frame

    def start_preview(self) -> None:
        self.preview_starts += 1

    def stop_preview(self) -> None:
        self.preview_stops += 1

    def release(self) -> None:
        self.released = True


class FakeRecognizer(RecognitionEngine):
    def __init__(self, tokens: Optional[List[RecognizedToken]] = None, error: Optional[Exception] = None) -> None:
        self.tokens = list(tokens) if tokens is not None else []
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.frames: List[NormalizedFrame] = []

    async def recognize(self, frame: NormalizedFrame) -> List[RecognizedToken]:
        self.frames.append(frame)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.tokens)


class FakeSpeech(SpeechEngine):
    def __init__(self) -> None:
        self.speaking = False
        self.enqueued: List[tuple] = []
        self.stops = 0
        self.calls: List[str] = []
        self.closed = False

    def enqueue(self, texts: Sequence[str], mode: SpeechMode = SpeechMode.APPEND) -> None:
        self.calls.append("enqueue")
        self.enqueued.append((list(texts), mode))

    def is_speaking(self) -> bool:
        return self.speaking

    def stop(self) -> None:
        self.calls.append("stop")
        self.stops += 1

    def close(self) -> None:
        self.closed = True


class FakeSurface(OverlaySurface):
    def __init__(self) -> None:
        self.ops: List[tuple] = []

    def clear(self) -> None:
        self.ops.append(("clear", None))

    def add(self, token: RecognizedToken) -> None:
        self.ops.append(("add", token.text))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def words():
    return WordSet.load(["cat", "dog"])


@pytest.fixture
def camera():
    return FakeCamera()


@pytest.fixture
def recognizer():
    return FakeRecognizer(SAMPLE_TOKENS)


@pytest.fixture
def speech():
    return FakeSpeech()


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def reports():
    return []


@pytest.fixture
def controller(camera, recognizer, speech, surface, words, reports):
    return CaptureCycleController(
        camera=camera,
        recognizer=recognizer,
        speech=speech,
        words=words,
        overlay=OverlayState(surface),
        preview=PreviewSize(480, 640),
        on_report=reports.append,
    )
