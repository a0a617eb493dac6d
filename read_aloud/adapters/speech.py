"""pyttsx3 speech binding.

WHY: The controller needs a speech queue it can flush when a new frame
arrives and poll for "still speaking" without blocking. pyttsx3's
runAndWait() blocks, so it cannot run on the event loop.

HOW: A single daemon worker thread owns the pyttsx3 engine (the engine
must stay on the thread that created it). Words wait in a deque
guarded by a Condition; the worker pops one word at a time, says it
and waits for it to finish. FLUSH and stop() clear the deque and bump
a generation counter. The worker tags each utterance with the
generation it was popped under; pyttsx3's started-utterance and
started-word callbacks fire on the worker thread, and there the worker
calls engine.stop() on any utterance whose generation is stale.

RULES:
- is_speaking() is True while a word plays OR words are still queued
- FLUSH drops queued words and stops the current one before queueing
- APPEND adds after what is already queued
- engine.stop() is only ever called on the worker thread
- A word popped before a flush is never spoken in full
- Engine failures are logged; the worker keeps running
- close() stops the worker; further enqueues are ignored
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from typing import Any, List, Optional, Sequence

import pyttsx3

from read_aloud.adapters.base import SpeechEngine, SpeechMode
from read_aloud.config import DEFAULT_SPEECH_RATE

logger = logging.getLogger(__name__)


class Pyttsx3Speech(SpeechEngine):
    def __init__(
        self,
        rate: int = DEFAULT_SPEECH_RATE,
        voice: Optional[str] = None,
        engine_factory: Callable[[], Any] = pyttsx3.init,
        autostart: bool = True,
    ) -> None:
        self._rate = rate
        self._voice = voice
        self._engine_factory = engine_factory
        self._autostart = autostart

        self._queue: deque = deque()
        self._cond = threading.Condition()
        self._speaking = False
        self._closed = False
        self._generation = 0
        self._utterance_generation: Optional[int] = None
        self._engine: Any = None
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # SpeechEngine
    # ------------------------------------------------------------------

    def enqueue(self, texts: Sequence[str], mode: SpeechMode = SpeechMode.APPEND) -> None:
        with self._cond:
            if self._closed:
                logger.debug("Speech closed; dropping %d words", len(texts))
                return
            if mode is SpeechMode.FLUSH:
                self._queue.clear()
                self._invalidate_locked()
            self._queue.extend(t for t in texts if t)
            self._cond.notify()
        if self._autostart:
            self.start()

    def is_speaking(self) -> bool:
        with self._cond:
            return self._speaking or bool(self._queue)

    def stop(self) -> None:
        with self._cond:
            self._queue.clear()
            self._invalidate_locked()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the worker thread if it is not running."""
        with self._cond:
            if self._closed or (self._thread is not None and self._thread.is_alive()):
                return
            self._thread = threading.Thread(
                target=self._worker, name="read-aloud-speech", daemon=True
            )
            self._thread.start()

    def close(self, timeout: float = 2.0) -> None:
        with self._cond:
            self._closed = True
            self._queue.clear()
            self._invalidate_locked()
            self._cond.notify_all()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def pending(self) -> List[str]:
        """Snapshot of the words still waiting to be spoken."""
        with self._cond:
            return list(self._queue)

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _invalidate_locked(self) -> None:
        # The worker notices the new generation and stops the engine itself
        self._generation += 1

    def _is_stale(self, generation: Optional[int]) -> bool:
        with self._cond:
            return generation is None or generation != self._generation

    def _on_progress(self, **kwargs: Any) -> None:
        """started-utterance / started-word callback, run on the worker thread."""
        if self._engine is not None and self._is_stale(self._utterance_generation):
            logger.debug("Interrupting stale utterance")
            try:
                self._engine.stop()
            except Exception:
                logger.warning("Speech engine failed to stop", exc_info=True)

    def _init_engine(self) -> Any:
        engine = self._engine_factory()
        engine.setProperty("rate", self._rate)
        if self._voice:
            engine.setProperty("voice", self._voice)
        engine.connect("started-utterance", self._on_progress)
        engine.connect("started-word", self._on_progress)
        return engine

    def _worker(self) -> None:
        try:
            engine = self._init_engine()
        except Exception:
            logger.exception("Speech engine initialization failed; speech disabled")
            with self._cond:
                self._closed = True
                self._queue.clear()
            return

        with self._cond:
            self._engine = engine

        while True:
            with self._cond:
                while not self._queue and not self._closed:
                    self._cond.wait()
                if self._closed:
                    break
                text = self._queue.popleft()
                self._utterance_generation = self._generation
                self._speaking = True

            logger.debug("Speaking %r", text)
            try:
                engine.say(text)
                engine.runAndWait()
            except Exception:
                logger.exception("Speech failed for %r", text)
            finally:
                with self._cond:
                    self._speaking = False
                    self._utterance_generation = None
