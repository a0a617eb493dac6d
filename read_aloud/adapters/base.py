"""Abstract interfaces for the collaborators the capture loop drives.

WHY: The controller's job is sequencing, not talking to hardware. It
only needs a camera that returns frames, a recognizer that returns
tokens, a speech queue, a surface to draw boxes on and a source of
dictionary lines. Defining those as ABCs lets real bindings and test
doubles be swapped at construction time.

HOW: One ABC per collaborator. Asynchronous operations (frame capture,
recognition) are coroutines; everything else is a plain method that
must return quickly.

RULES:
- CaptureDevice lifecycle calls (start_preview, stop_preview, release)
  are idempotent
- request_frame raises CaptureError, recognize raises RecognitionError,
  read_lines raises LoadError; nothing else is expected to escape
- SpeechEngine.is_speaking must never block
- To add a new binding: subclass the ABC in a new module under adapters/
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from typing import List, Sequence

import numpy as np

from read_aloud.core.models import NormalizedFrame, RecognizedToken


class SpeechMode(str, enum.Enum):
    """How enqueued text relates to what is already queued.

    RULES:
    - append: add after the words already waiting
    - flush: drop anything queued or playing, then speak the new words
    """

    APPEND = "append"
    FLUSH = "flush"


class CaptureDevice(ABC):
    """A camera that can deliver one still frame on request."""

    @abstractmethod
    async def request_frame(self) -> np.ndarray:
        """Capture one frame. Raises CaptureError if the device can't."""

    @abstractmethod
    def start_preview(self) -> None:
        """Start (or restart) the live preview."""

    @abstractmethod
    def stop_preview(self) -> None:
        """Stop the live preview."""

    @abstractmethod
    def release(self) -> None:
        """Free the device."""


class RecognitionEngine(ABC):
    """Opaque text recognizer: image in, located tokens out."""

    @abstractmethod
    async def recognize(self, frame: NormalizedFrame) -> List[RecognizedToken]:
        """Return tokens in reading order. Raises RecognitionError on failure."""


class SpeechEngine(ABC):
    """Queue of words to utter."""

    @abstractmethod
    def enqueue(self, texts: Sequence[str], mode: SpeechMode = SpeechMode.APPEND) -> None:
        """Queue texts for speaking, appending or replacing per mode."""

    @abstractmethod
    def is_speaking(self) -> bool:
        """True while an utterance plays or words are still queued."""

    @abstractmethod
    def stop(self) -> None:
        """Interrupt the current utterance and drop the queue."""


class OverlaySurface(ABC):
    """Something that draws labelled bounding boxes."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every box."""

    @abstractmethod
    def add(self, token: RecognizedToken) -> None:
        """Draw a box labelled with token.text."""


class WordListSource(ABC):
    """Where the dictionary lines come from."""

    @abstractmethod
    def read_lines(self) -> List[str]:
        """Return raw lines. Raises LoadError if the source is unreadable."""
