"""Error taxonomy for the capture/recognize/speak loop.

WHY: Every collaborator the controller drives can fail in its own way
(word list unreadable, preview not laid out, camera busy, recognizer
crashed). Typed exceptions let the controller map each failure to a
cycle outcome without inspecting messages.

HOW: One common base, ReadAloudError, with one subclass per failure
source. NoTextFound deliberately does NOT inherit from it: an empty
frame is a normal terminal outcome of a cycle, not a failure.

RULES:
- LoadError: word list unreadable (caller degrades to an empty WordSet)
- PreprocessError: invalid target size or frame (cycle aborted)
- CaptureError: device busy or unavailable (cycle aborted)
- RecognitionError: recognizer failure (cycle aborted)
- NoTextFound: zero tokens recognized (not an error)
"""

from __future__ import annotations


class ReadAloudError(Exception):
    """Base class for failures raised by read_aloud components."""


class LoadError(ReadAloudError):
    """Raised when the word list cannot be read."""


class PreprocessError(ReadAloudError):
    """Raised when a frame cannot be normalized for recognition."""


class CaptureError(ReadAloudError):
    """Raised when the capture device cannot deliver a frame."""


class RecognitionError(ReadAloudError):
    """Raised when the text recognizer fails on a frame."""


class NoTextFound(Exception):
    """Raised by token filtering when a recognition batch is empty.

    Not a ReadAloudError: the controller treats it as a normal outcome
    and leaves overlay and speech untouched.
    """
