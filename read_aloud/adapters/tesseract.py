"""Tesseract text recognizer binding.

WHY: The controller treats recognition as image in, located words out.
Tesseract's word-level data output gives exactly that: one row per
word with its box and confidence, already in reading order.

HOW: pytesseract.image_to_data(..., output_type=Output.DICT) runs in a
worker thread. Rows with confidence -1 are layout rows (blocks, lines),
rows with empty text are dropped, the rest become RecognizedTokens.

RULES:
- Token order is Tesseract's (block, paragraph, line, word) order
- Rows below min_confidence are skipped
- TesseractError, TesseractNotFoundError and OSError become RecognitionError
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import pytesseract

from read_aloud.adapters.base import RecognitionEngine
from read_aloud.core.models import BoundingBox, NormalizedFrame, RecognizedToken
from read_aloud.errors import RecognitionError

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return -1.0


def tokens_from_data(data: Dict[str, List[Any]], min_confidence: float = 0.0) -> List[RecognizedToken]:
    """Convert an image_to_data DICT into tokens in reading order."""
    tokens: List[RecognizedToken] = []
    for i, raw_text in enumerate(data.get("text", [])):
        conf = _to_float(data["conf"][i])
        if conf < 0:
            continue
        text = str(raw_text).strip()
        if not text:
            continue
        if conf < min_confidence:
            continue
        box = BoundingBox(
            left=int(data["left"][i]),
            top=int(data["top"][i]),
            width=int(data["width"][i]),
            height=int(data["height"][i]),
        )
        tokens.append(RecognizedToken(text=text, box=box, confidence=conf))
    return tokens


class TesseractRecognizer(RecognitionEngine):
    def __init__(
        self,
        lang: str = "eng",
        config: str = "--psm 3",
        min_confidence: float = 0.0,
        tesseract_cmd: Optional[str] = None,
    ) -> None:
        self._lang = lang
        self._config = config
        self._min_confidence = min_confidence
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def _recognize_sync(self, frame: NormalizedFrame) -> List[RecognizedToken]:
        try:
            data = pytesseract.image_to_data(
                frame.image,
                lang=self._lang,
                config=self._config,
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as exc:
            raise RecognitionError(str(exc)) from exc
        return tokens_from_data(data, self._min_confidence)

    async def recognize(self, frame: NormalizedFrame) -> List[RecognizedToken]:
        tokens = await asyncio.to_thread(self._recognize_sync, frame)
        logger.debug("Tesseract found %d tokens", len(tokens))
        return tokens
