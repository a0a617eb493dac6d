"""Dataclasses shared by the capture loop and its collaborators.

WHY: The recognizer, the filter, the overlay and the controller all
pass the same few shapes around: a located piece of text, a normalized
frame, the controller's state, and the report of a finished cycle.
Defining them once keeps every stage speaking the same types.

HOW: Plain dataclasses and str-backed enums:
  BoundingBox     position + size in normalized-frame pixels
  RecognizedToken one recognized run of text and its box
  NormalizedFrame the rotated, downscaled image handed to recognition
  CyclePhase      IDLE / CAPTURE_IN_FLIGHT / RECOGNIZING
  CycleState      the controller-owned mutable state
  CycleReport     the one-shot notification for a finished cycle

RULES:
- Token coordinates are in the normalized frame's space, never the raw frame's
- Tokens live for one cycle; nothing here is cached across cycles
- Enums inherit from str so values serialize cleanly to JSON
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in normalized-frame pixels."""

    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height


@dataclass(frozen=True)
class RecognizedToken:
    """A single recognized run of text with its location.

    RULES:
    - text: the recognized characters, surrounding whitespace stripped
    - box: where the text sits in the normalized frame
    - confidence: recognizer confidence (0-100) or None when not reported
    """

    text: str
    box: BoundingBox
    confidence: Optional[float] = None


@dataclass
class NormalizedFrame:
    """A frame rotated and scaled to the preview size.

    RULES:
    - width/height equal image.shape[1]/image.shape[0]
    - scale is the factor the rotated frame was divided by
    """

    image: Any
    width: int
    height: int
    scale: float


class CyclePhase(str, enum.Enum):
    """Phases of the capture state machine.

    RULES:
    - idle: ready to start a cycle
    - capture_in_flight: frame requested, not yet normalized
    - recognizing: normalized frame handed to the recognizer
    """

    IDLE = "idle"
    CAPTURE_IN_FLIGHT = "capture_in_flight"
    RECOGNIZING = "recognizing"


class CycleTrigger(str, enum.Enum):
    MANUAL = "manual"
    AUTO = "auto"


class CycleOutcome(str, enum.Enum):
    """Terminal outcome of one capture cycle."""

    SPOKEN = "spoken"
    NO_TEXT_FOUND = "no_text_found"
    PREPROCESS_FAILED = "preprocess_failed"
    CAPTURE_FAILED = "capture_failed"
    RECOGNITION_FAILED = "recognition_failed"


@dataclass
class CycleState:
    """Mutable state owned by the CaptureCycleController.

    WHY: The auto-capture flag and the in-flight marker used to be
    free-floating fields touched from several callbacks. Holding them
    in one value, mutated only by the controller, makes the
    non-overlap invariant checkable in one place.

    RULES:
    - phase != IDLE means a cycle is in flight
    - cycle_id counts started cycles, starting at 1 for the first one
    """

    auto_capture_enabled: bool = False
    phase: CyclePhase = CyclePhase.IDLE
    cycle_id: int = 0

    @property
    def capture_in_flight(self) -> bool:
        return self.phase is not CyclePhase.IDLE


@dataclass
class CycleReport:
    """What happened in one finished cycle.

    RULES:
    - Emitted exactly once per started cycle
    - spoken lists the words sent to speech, in reading order
    - message is a short human-readable summary (toast text)
    """

    cycle_id: int
    trigger: CycleTrigger
    outcome: CycleOutcome
    message: str
    started_at: float
    finished_at: float
    token_count: int = 0
    spoken: List[str] = field(default_factory=list)
