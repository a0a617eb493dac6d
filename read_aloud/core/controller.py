"""The capture → recognize → filter → speak state machine.

WHY: Capturing, recognizing and speaking are all slow and asynchronous.
Left uncoordinated they overlap: two captures race, words from two
frames interleave, and boxes on screen stop matching what is being
read. The controller sequences one cycle at a time and decides when
the next one may start.

HOW: CaptureCycleController holds a CycleState and the injected
collaborators. trigger_capture() (manual) and on_timer_tick() (auto)
both funnel into _start_cycle(), which checks the phase and flips it to
CAPTURE_IN_FLIGHT without yielding to the event loop, then schedules
the cycle coroutine as a task. The cycle awaits the camera, normalizes
the frame, awaits the recognizer, filters, and finally replaces the
overlay and flushes speech. Every path ends in IDLE with exactly one
CycleReport.

RULES:
- At most one cycle in flight; a trigger while busy is dropped, never queued
- Timer ticks start a cycle only if auto-capture is on, speech is silent
  and the phase is IDLE
- Manual triggers ignore the auto-capture flag but not the busy check
- Toggling auto-capture never touches an in-flight cycle
- Zero tokens: NO_TEXT_FOUND reported, overlay and speech untouched
- N tokens: speech stopped, overlay replaced, spoken subset enqueued with FLUSH
- Any failure: report it, leave overlay and speech alone, return to IDLE
- Preview restart after a capture is fire-and-forget; it never gates the cycle
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from collections.abc import Callable
from typing import Optional

import numpy as np

from read_aloud.adapters.base import (
    CaptureDevice,
    RecognitionEngine,
    SpeechEngine,
    SpeechMode,
)
from read_aloud.config import DEFAULT_PREVIEW_HEIGHT, DEFAULT_PREVIEW_WIDTH, DEFAULT_ROTATION_DEGREES
from read_aloud.core.filtering import filter_tokens
from read_aloud.core.models import (
    CycleOutcome,
    CyclePhase,
    CycleReport,
    CycleState,
    CycleTrigger,
    NormalizedFrame,
)
from read_aloud.core.overlay import OverlayState
from read_aloud.core.preprocess import normalize
from read_aloud.core.words import WordSet
from read_aloud.errors import CaptureError, NoTextFound, PreprocessError, RecognitionError

logger = logging.getLogger(__name__)


class PreviewSize:
    """Current on-screen preview size, read at the start of every cycle.

    The preview may be resized (or not laid out yet) after the
    controller is built, so the size is looked up per cycle.
    """

    def __init__(self, width: int = DEFAULT_PREVIEW_WIDTH, height: int = DEFAULT_PREVIEW_HEIGHT) -> None:
        self.width = width
        self.height = height

    def update(self, width: int, height: int) -> None:
        self.width = width
        self.height = height


class CaptureCycleController:
    """Owns CycleState and drives one capture cycle at a time.

    Args:
        camera: Frame source.
        recognizer: Text recognizer.
        speech: Speech queue.
        words: Vocabulary deciding which tokens are spoken.
        overlay: Displayed boxes; created empty when omitted.
        preview: Target size for normalization.
        rotation_degrees: Fixed rotation applied to every frame.
        auto_capture_enabled: Initial value of the auto-capture flag.
        on_report: Called once with the CycleReport of every finished cycle.
    """

    def __init__(
        self,
        camera: CaptureDevice,
        recognizer: RecognitionEngine,
        speech: SpeechEngine,
        words: WordSet,
        overlay: Optional[OverlayState] = None,
        preview: Optional[PreviewSize] = None,
        rotation_degrees: int = DEFAULT_ROTATION_DEGREES,
        auto_capture_enabled: bool = False,
        on_report: Optional[Callable[[CycleReport], None]] = None,
    ) -> None:
        self._camera = camera
        self._recognizer = recognizer
        self._speech = speech
        self._words = words
        self._overlay = overlay if overlay is not None else OverlayState()
        self._preview = preview if preview is not None else PreviewSize()
        self._rotation_degrees = rotation_degrees
        self._on_report = on_report

        self._state = CycleState(auto_capture_enabled=auto_capture_enabled)
        self._current_task: Optional[asyncio.Task] = None
        self._last_report: Optional[CycleReport] = None
        self._last_frame: Optional[NormalizedFrame] = None
        self._outcome_counts: Counter = Counter()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def phase(self) -> CyclePhase:
        return self._state.phase

    @property
    def auto_capture_enabled(self) -> bool:
        return self._state.auto_capture_enabled

    @property
    def busy(self) -> bool:
        return self._state.capture_in_flight

    @property
    def cycles_started(self) -> int:
        return self._state.cycle_id

    @property
    def overlay(self) -> OverlayState:
        return self._overlay

    @property
    def preview(self) -> PreviewSize:
        return self._preview

    @property
    def words(self) -> WordSet:
        return self._words

    @property
    def last_report(self) -> Optional[CycleReport]:
        return self._last_report

    @property
    def last_frame(self) -> Optional[NormalizedFrame]:
        """The normalized frame behind the current overlay."""
        return self._last_frame

    @property
    def current_task(self) -> Optional[asyncio.Task]:
        return self._current_task

    def outcome_counts(self) -> dict:
        return {outcome.value: self._outcome_counts[outcome] for outcome in CycleOutcome}

    def is_speaking(self) -> bool:
        return self._speech.is_speaking()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def toggle_auto_capture(self) -> bool:
        """Flip the auto-capture flag and return the new value."""
        self._state.auto_capture_enabled = not self._state.auto_capture_enabled
        logger.info(
            "Auto-capture %s",
            "enabled" if self._state.auto_capture_enabled else "disabled",
        )
        return self._state.auto_capture_enabled

    def trigger_capture(self) -> Optional[asyncio.Task]:
        """Start a cycle on user request, regardless of the auto flag.

        Returns the cycle task, or None if a cycle is already in flight.
        Must be called from the running event loop.
        """
        return self._start_cycle(CycleTrigger.MANUAL)

    def on_timer_tick(self) -> Optional[asyncio.Task]:
        """Start an automatic cycle if the backpressure gate allows it.

        Returns the cycle task, or None when the tick was a no-op.
        """
        if not self._state.auto_capture_enabled:
            return None
        if self._state.capture_in_flight:
            return None
        if self._speech.is_speaking():
            logger.debug("Tick skipped: previous frame still being spoken")
            return None
        return self._start_cycle(CycleTrigger.AUTO)

    async def capture_once(self) -> Optional[CycleReport]:
        """Run one manual cycle to completion and return its report.

        Returns None if a cycle was already in flight.
        """
        task = self.trigger_capture()
        if task is None:
            return None
        return await task

    async def wait_idle(self) -> None:
        """Wait for the in-flight cycle, if any, to finish."""
        task = self._current_task
        if task is not None and not task.done():
            await asyncio.shield(task)

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    def _start_cycle(self, trigger: CycleTrigger) -> Optional[asyncio.Task]:
        # The busy check and the phase change happen with no await in
        # between; callers on the same loop cannot interleave here.
        if self._state.capture_in_flight:
            logger.debug("%s trigger dropped: cycle %d in flight", trigger.value, self._state.cycle_id)
            return None

        self._state.phase = CyclePhase.CAPTURE_IN_FLIGHT
        self._state.cycle_id += 1
        cycle_id = self._state.cycle_id
        logger.debug("Cycle %d started (%s)", cycle_id, trigger.value)

        task = asyncio.get_running_loop().create_task(self._run_cycle(cycle_id, trigger))
        self._current_task = task
        return task

    async def _run_cycle(self, cycle_id: int, trigger: CycleTrigger) -> CycleReport:
        started_at = time.time()
        try:
            outcome, message, token_count, spoken = await self._cycle_body(cycle_id)
        except Exception as exc:
            # Anything a collaborator raises outside its declared error
            # still ends the cycle
            logger.exception("Cycle %d crashed in phase %s", cycle_id, self._state.phase.value)
            if self._state.phase is CyclePhase.RECOGNIZING:
                outcome = CycleOutcome.RECOGNITION_FAILED
            else:
                outcome = CycleOutcome.CAPTURE_FAILED
            message = "Unexpected error: {}".format(exc)
            token_count, spoken = 0, []
        finally:
            self._state.phase = CyclePhase.IDLE

        report = CycleReport(
            cycle_id=cycle_id,
            trigger=trigger,
            outcome=outcome,
            message=message,
            started_at=started_at,
            finished_at=time.time(),
            token_count=token_count,
            spoken=spoken,
        )
        self._finish(report)
        return report

    async def _cycle_body(self, cycle_id: int):
        # CAPTURE_IN_FLIGHT
        try:
            raw = await self._camera.request_frame()
        except CaptureError as exc:
            logger.warning("Cycle %d: capture failed: %s", cycle_id, exc)
            return CycleOutcome.CAPTURE_FAILED, "Capture failed: {}".format(exc), 0, []

        self._restart_preview()

        try:
            frame = self._normalize(raw)
        except PreprocessError as exc:
            logger.warning("Cycle %d: preprocessing failed: %s", cycle_id, exc)
            return CycleOutcome.PREPROCESS_FAILED, "Preprocessing failed: {}".format(exc), 0, []

        # RECOGNIZING
        self._state.phase = CyclePhase.RECOGNIZING
        try:
            tokens = await self._recognizer.recognize(frame)
        except RecognitionError as exc:
            logger.warning("Cycle %d: recognition failed: %s", cycle_id, exc)
            return CycleOutcome.RECOGNITION_FAILED, "Recognition failed: {}".format(exc), 0, []

        try:
            result = filter_tokens(tokens, self._words)
        except NoTextFound:
            logger.info("Cycle %d: no text found", cycle_id)
            return CycleOutcome.NO_TEXT_FOUND, "No text found", 0, []

        # New frame's words take priority over the stale frame's speech
        self._speech.stop()
        self._overlay.replace(result.all_tokens, cycle_id)
        self._last_frame = frame
        spoken = result.spoken_texts
        if spoken:
            self._speech.enqueue(spoken, SpeechMode.FLUSH)

        logger.info(
            "Cycle %d: %d tokens, speaking %d: %s",
            cycle_id,
            len(result.all_tokens),
            len(spoken),
            " ".join(spoken),
        )
        message = "Read {} of {} words".format(len(spoken), len(result.all_tokens))
        return CycleOutcome.SPOKEN, message, len(result.all_tokens), spoken

    def _normalize(self, raw: np.ndarray) -> NormalizedFrame:
        return normalize(
            raw,
            self._preview.width,
            self._preview.height,
            self._rotation_degrees,
        )

    def _restart_preview(self) -> None:
        try:
            self._camera.start_preview()
        except Exception:
            logger.warning("Preview restart failed", exc_info=True)

    def _finish(self, report: CycleReport) -> None:
        self._last_report = report
        self._outcome_counts[report.outcome] += 1
        if self._on_report is None:
            return
        try:
            self._on_report(report)
        except Exception:
            logger.exception("Report callback failed for cycle %d", report.cycle_id)
