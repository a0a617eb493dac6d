"""Currently displayed bounding boxes.

WHY: The boxes on screen must always belong to the frame whose words
are being spoken. A cycle's boxes therefore replace the previous
cycle's wholesale; they are never appended.

HOW: OverlayState keeps an immutable tuple of tokens and the id of the
cycle that produced them. replace() clears the attached surface,
redraws every token in order and swaps the tuple in one assignment.

RULES:
- Only the controller calls replace()
- tokens is always a tuple from a single cycle
- cycle_id is None until the first successful cycle
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from read_aloud.core.models import RecognizedToken

if TYPE_CHECKING:
    from read_aloud.adapters.base import OverlaySurface

logger = logging.getLogger(__name__)


class OverlayState:
    def __init__(self, surface: Optional[OverlaySurface] = None) -> None:
        self._surface = surface
        self._tokens: Tuple[RecognizedToken, ...] = ()
        self._cycle_id: Optional[int] = None

    @property
    def tokens(self) -> Tuple[RecognizedToken, ...]:
        return self._tokens

    @property
    def cycle_id(self) -> Optional[int]:
        return self._cycle_id

    def replace(self, tokens: Sequence[RecognizedToken], cycle_id: int) -> None:
        """Replace the displayed boxes with tokens from cycle_id."""
        new_tokens = tuple(tokens)
        if self._surface is not None:
            self._surface.clear()
            for token in new_tokens:
                self._surface.add(token)
        self._tokens = new_tokens
        self._cycle_id = cycle_id
        logger.debug("Overlay now shows %d boxes from cycle %d", len(new_tokens), cycle_id)

    def __len__(self) -> int:
        return len(self._tokens)
