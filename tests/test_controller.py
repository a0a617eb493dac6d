"""Unit tests for the capture cycle state machine.

WHY: The controller is the part of the assistant that can go subtly
wrong: overlapping captures, speech from two frames interleaving,
boxes that don't match the voice, or a failure that leaves the machine
stuck busy. These tests pin each transition and policy.

HOW: Tests drive the controller with the doubles from conftest inside
asyncio.run(). Gated doubles hold a cycle in CAPTURE_IN_FLIGHT or
RECOGNIZING so triggers arriving mid-cycle can be checked.

RULES:
- Each test builds its own controller through the fixtures
- Cycles are always awaited to completion before assertions on results
"""

from __future__ import annotations

import asyncio

import numpy as np

from read_aloud.adapters.base import SpeechMode
from read_aloud.core.controller import CaptureCycleController, PreviewSize
from read_aloud.core.models import CycleOutcome, CyclePhase, CycleTrigger
from read_aloud.core.overlay import OverlayState
from read_aloud.errors import CaptureError, RecognitionError

from tests.conftest import FakeCamera, make_token


# ---------------------------------------------------------------------------
# Successful cycles
# ---------------------------------------------------------------------------


class TestSpokenCycle:
    """Recognition with tokens replaces the overlay and flushes speech."""

    def test_overlay_gets_all_tokens_in_order(self, controller, surface):
        report = asyncio.run(controller.capture_once())
        assert report.outcome == CycleOutcome.SPOKEN
        assert [t.text for t in controller.overlay.tokens] == ["Cat", "Xzq", "Dog"]
        assert surface.ops == [("clear", None), ("add", "Cat"), ("add", "Xzq"), ("add", "Dog")]

    def test_speech_gets_known_words_with_flush(self, controller, speech):
        asyncio.run(controller.capture_once())
        assert speech.enqueued == [(["Cat", "Dog"], SpeechMode.FLUSH)]

    def test_previous_speech_stopped_before_enqueue(self, controller, speech):
        asyncio.run(controller.capture_once())
        assert speech.calls == ["stop", "enqueue"]

    def test_report_lists_spoken_words(self, controller, reports):
        report = asyncio.run(controller.capture_once())
        assert reports == [report]
        assert report.spoken == ["Cat", "Dog"]
        assert report.token_count == 3
        assert report.trigger == CycleTrigger.MANUAL
        assert report.cycle_id == 1

    def test_returns_to_idle(self, controller):
        asyncio.run(controller.capture_once())
        assert controller.phase == CyclePhase.IDLE
        assert not controller.busy

    def test_overlay_tagged_with_cycle_id(self, controller):
        async def _run():
            await controller.capture_once()
            await controller.capture_once()

        asyncio.run(_run())
        assert controller.overlay.cycle_id == 2

    def test_new_cycle_replaces_not_appends(self, controller, recognizer, speech):
        async def _run():
            await controller.capture_once()
            recognizer.tokens = [make_token("dog")]
            await controller.capture_once()

        asyncio.run(_run())
        assert [t.text for t in controller.overlay.tokens] == ["dog"]
        assert speech.enqueued[-1] == (["dog"], SpeechMode.FLUSH)

    def test_no_known_words_clears_speech_and_draws_boxes(self, controller, recognizer, speech):
        recognizer.tokens = [make_token("Xzq"), make_token("Qwv")]
        report = asyncio.run(controller.capture_once())
        assert report.outcome == CycleOutcome.SPOKEN
        assert report.spoken == []
        assert speech.stops == 1
        assert speech.enqueued == []
        assert len(controller.overlay) == 2

    def test_recognizer_receives_normalized_frame(self, controller, recognizer):
        asyncio.run(controller.capture_once())
        frame = recognizer.frames[0]
        # 480x640 portrait sensor frame rotated to 640x480, fit into 480x640
        assert (frame.width, frame.height) == (480, 360)
        assert controller.last_frame is frame

    def test_preview_restarted_after_capture(self, controller, camera):
        asyncio.run(controller.capture_once())
        assert camera.preview_starts == 1

    def test_preview_restart_failure_does_not_fail_cycle(self, controller, camera):
        def _boom():
            raise RuntimeError("preview surface gone")

        camera.start_preview = _boom
        report = asyncio.run(controller.capture_once())
        assert report.outcome == CycleOutcome.SPOKEN


# ---------------------------------------------------------------------------
# No text
# ---------------------------------------------------------------------------


class TestNoTextFound:
    """Zero tokens leave overlay and speech exactly as they were."""

    def test_overlay_and_speech_untouched(self, controller, recognizer, speech, surface):
        async def _run():
            await controller.capture_once()
            recognizer.tokens = []
            return await controller.capture_once()

        report = asyncio.run(_run())
        assert report.outcome == CycleOutcome.NO_TEXT_FOUND
        assert [t.text for t in controller.overlay.tokens] == ["Cat", "Xzq", "Dog"]
        assert controller.overlay.cycle_id == 1
        assert speech.enqueued == [(["Cat", "Dog"], SpeechMode.FLUSH)]
        assert speech.stops == 1
        assert len(surface.ops) == 4

    def test_notification_emitted_once(self, controller, recognizer, reports):
        recognizer.tokens = []
        asyncio.run(controller.capture_once())
        assert [r.outcome for r in reports] == [CycleOutcome.NO_TEXT_FOUND]
        assert reports[0].message == "No text found"

    def test_returns_to_idle(self, controller, recognizer):
        recognizer.tokens = []
        asyncio.run(controller.capture_once())
        assert controller.phase == CyclePhase.IDLE


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    """Every failure is reported and returns the machine to IDLE."""

    def test_capture_error(self, controller, camera, speech, surface):
        camera.error = CaptureError("camera busy")
        report = asyncio.run(controller.capture_once())
        assert report.outcome == CycleOutcome.CAPTURE_FAILED
        assert "camera busy" in report.message
        assert controller.phase == CyclePhase.IDLE
        assert speech.calls == []
        assert surface.ops == []

    def test_recognition_error(self, controller, recognizer, speech, surface):
        recognizer.error = RecognitionError("engine crashed")
        report = asyncio.run(controller.capture_once())
        assert report.outcome == CycleOutcome.RECOGNITION_FAILED
        assert controller.phase == CyclePhase.IDLE
        assert speech.calls == []
        assert surface.ops == []

    def test_zero_target_width_fails_preprocessing(self, controller, recognizer, speech, surface):
        controller.preview.update(0, 640)
        report = asyncio.run(controller.capture_once())
        assert report.outcome == CycleOutcome.PREPROCESS_FAILED
        assert controller.phase == CyclePhase.IDLE
        assert not controller.busy
        assert recognizer.frames == []
        assert speech.calls == []
        assert surface.ops == []

    def test_unexpected_recognizer_exception(self, controller, recognizer):
        recognizer.error = ValueError("bad model")
        report = asyncio.run(controller.capture_once())
        assert report.outcome == CycleOutcome.RECOGNITION_FAILED
        assert controller.phase == CyclePhase.IDLE

    def test_unexpected_camera_exception(self, controller, camera):
        camera.error = RuntimeError("driver fault")
        report = asyncio.run(controller.capture_once())
        assert report.outcome == CycleOutcome.CAPTURE_FAILED
        assert controller.phase == CyclePhase.IDLE

    def test_failure_does_not_disable_auto_capture(self, controller, camera):
        controller.toggle_auto_capture()
        camera.error = CaptureError("busy")
        asyncio.run(controller.capture_once())
        assert controller.auto_capture_enabled is True

    def test_next_trigger_after_failure_gets_fresh_attempt(self, controller, camera):
        async def _run():
            camera.error = CaptureError("busy")
            first = await controller.capture_once()
            camera.error = None
            second = await controller.capture_once()
            return first, second

        first, second = asyncio.run(_run())
        assert first.outcome == CycleOutcome.CAPTURE_FAILED
        assert second.outcome == CycleOutcome.SPOKEN

    def test_report_callback_failure_is_contained(self, camera, recognizer, speech, words):
        def _bad_callback(report):
            raise RuntimeError("ui gone")

        controller = CaptureCycleController(
            camera=camera,
            recognizer=recognizer,
            speech=speech,
            words=words,
            on_report=_bad_callback,
        )
        report = asyncio.run(controller.capture_once())
        assert report.outcome == CycleOutcome.SPOKEN
        assert controller.phase == CyclePhase.IDLE

    def test_outcome_counts(self, controller, camera):
        async def _run():
            await controller.capture_once()
            camera.error = CaptureError("busy")
            await controller.capture_once()

        asyncio.run(_run())
        counts = controller.outcome_counts()
        assert counts["spoken"] == 1
        assert counts["capture_failed"] == 1
        assert counts["no_text_found"] == 0


# ---------------------------------------------------------------------------
# Non-overlap
# ---------------------------------------------------------------------------


class TestNonOverlap:
    """A trigger while a cycle is in flight is a no-op."""

    def test_trigger_during_capture_is_dropped(self, controller, camera):
        async def _run():
            camera.gate = asyncio.Event()
            first = controller.trigger_capture()
            await asyncio.sleep(0)
            assert controller.phase == CyclePhase.CAPTURE_IN_FLIGHT
            second = controller.trigger_capture()
            camera.gate.set()
            await first
            return second

        second = asyncio.run(_run())
        assert second is None
        assert camera.requests == 1
        assert controller.cycles_started == 1

    def test_trigger_during_recognition_is_dropped(self, controller, camera, recognizer):
        async def _run():
            recognizer.gate = asyncio.Event()
            first = controller.trigger_capture()
            for _ in range(5):
                await asyncio.sleep(0)
            assert controller.phase == CyclePhase.RECOGNIZING
            second = controller.trigger_capture()
            recognizer.gate.set()
            await first
            return second

        second = asyncio.run(_run())
        assert second is None
        assert camera.requests == 1

    def test_phase_set_before_trigger_returns(self, controller):
        async def _run():
            task = controller.trigger_capture()
            phase = controller.phase
            await task
            return phase

        assert asyncio.run(_run()) == CyclePhase.CAPTURE_IN_FLIGHT

    def test_timer_tick_during_cycle_is_dropped(self, controller, camera):
        controller.toggle_auto_capture()

        async def _run():
            camera.gate = asyncio.Event()
            first = controller.on_timer_tick()
            tick = controller.on_timer_tick()
            camera.gate.set()
            await first
            return tick

        assert asyncio.run(_run()) is None
        assert camera.requests == 1

    def test_capture_once_while_busy_returns_none(self, controller, camera):
        async def _run():
            camera.gate = asyncio.Event()
            first = controller.trigger_capture()
            second = await controller.capture_once()
            camera.gate.set()
            await first
            return second

        assert asyncio.run(_run()) is None

    def test_wait_idle(self, controller, camera):
        async def _run():
            camera.gate = asyncio.Event()
            controller.trigger_capture()
            asyncio.get_running_loop().call_soon(camera.gate.set)
            await controller.wait_idle()
            return controller.phase

        assert asyncio.run(_run()) == CyclePhase.IDLE


# ---------------------------------------------------------------------------
# Auto-capture policy
# ---------------------------------------------------------------------------


class TestAutoCapturePolicy:
    """Timer ticks are gated by the auto flag, speech and the phase."""

    def test_tick_ignored_when_disabled(self, controller, camera):
        async def _run():
            return controller.on_timer_tick()

        assert asyncio.run(_run()) is None
        assert camera.requests == 0

    def test_tick_ignored_while_speaking(self, controller, camera, speech):
        controller.toggle_auto_capture()
        speech.speaking = True

        async def _run():
            return controller.on_timer_tick()

        assert asyncio.run(_run()) is None
        assert camera.requests == 0

    def test_tick_starts_exactly_one_cycle_when_idle_and_silent(self, controller, camera, reports):
        controller.toggle_auto_capture()

        async def _run():
            task = controller.on_timer_tick()
            assert task is not None
            return await task

        report = asyncio.run(_run())
        assert camera.requests == 1
        assert report.trigger == CycleTrigger.AUTO
        assert len(reports) == 1

    def test_manual_trigger_ignores_auto_flag(self, controller):
        assert controller.auto_capture_enabled is False
        report = asyncio.run(controller.capture_once())
        assert report.outcome == CycleOutcome.SPOKEN

    def test_manual_trigger_ignores_speaking(self, controller, speech):
        speech.speaking = True
        report = asyncio.run(controller.capture_once())
        assert report is not None

    def test_toggle_flips_flag(self, controller):
        assert controller.toggle_auto_capture() is True
        assert controller.toggle_auto_capture() is False

    def test_toggle_mid_cycle_does_not_change_outcome(self, controller, camera, speech):
        controller.toggle_auto_capture()

        async def _run():
            camera.gate = asyncio.Event()
            task = controller.on_timer_tick()
            controller.toggle_auto_capture()
            camera.gate.set()
            return await task

        report = asyncio.run(_run())
        assert report.outcome == CycleOutcome.SPOKEN
        assert speech.enqueued == [(["Cat", "Dog"], SpeechMode.FLUSH)]
        assert controller.auto_capture_enabled is False

    def test_initial_flag_from_constructor(self, camera, recognizer, speech, words):
        controller = CaptureCycleController(
            camera=camera,
            recognizer=recognizer,
            speech=speech,
            words=words,
            auto_capture_enabled=True,
        )
        assert controller.auto_capture_enabled is True


class TestConstruction:
    def test_defaults(self, camera, recognizer, speech, words):
        controller = CaptureCycleController(camera, recognizer, speech, words)
        assert controller.phase == CyclePhase.IDLE
        assert isinstance(controller.overlay, OverlayState)
        assert controller.cycles_started == 0
        assert controller.last_report is None
        assert controller.last_frame is None

    def test_rotation_is_applied(self, recognizer, speech, words):
        camera = FakeCamera(np.zeros((100, 200, 3), dtype=np.uint8))
        controller = CaptureCycleController(
            camera, recognizer, speech, words,
            preview=PreviewSize(200, 100),
            rotation_degrees=0,
        )
        asyncio.run(controller.capture_once())
        frame = recognizer.frames[0]
        assert (frame.width, frame.height) == (200, 100)
