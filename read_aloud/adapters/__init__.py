"""Bindings for the collaborators the capture loop drives.

WHY: Camera, recognizer, speech, box drawing and word-list storage are
external concerns. The controller only sees the ABCs in base.py; this
package also ships concrete bindings built on OpenCV, Tesseract and
pyttsx3.

HOW: base.py holds the interfaces. Each concrete binding lives in its
own module (camera.py, tesseract.py, speech.py, drawing.py,
word_list.py) and is imported explicitly by whoever wires the app, so
importing the interfaces never loads a hardware library.

RULES:
- Bindings translate library errors into read_aloud.errors types
- Blocking library calls run off the event loop
"""

from read_aloud.adapters.base import (
    CaptureDevice,
    OverlaySurface,
    RecognitionEngine,
    SpeechEngine,
    SpeechMode,
    WordListSource,
)

__all__ = [
    "CaptureDevice",
    "OverlaySurface",
    "RecognitionEngine",
    "SpeechEngine",
    "SpeechMode",
    "WordListSource",
]
