"""Read-aloud assistant: camera frames in, known words spoken out.

WHY: A camera pointed at printed text should read the real words on it
aloud and show boxes around everything it recognized, without
stuttering, overlapping frames or boxes that lag behind the voice.

HOW: A small state machine (core.controller) sequences capture,
normalization, recognition, word filtering, overlay replacement and
speech. Hardware and engines sit behind the ABCs in adapters.base;
OpenCV, Tesseract and pyttsx3 bindings ship alongside. A FastAPI
control surface and an argparse CLI wire it all together.

RULES:
- One cycle in flight at a time
- No automatic capture while the previous frame is still being spoken
- The overlay always shows the boxes of the most recently spoken frame
"""

__version__ = "0.1.0"
