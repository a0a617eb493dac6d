"""Split a recognition batch into spoken and silent tokens.

WHY: Every recognized token gets a box on screen, but only real words
are read aloud. The split must keep the recognizer's reading order so
speech runs left-to-right, top-to-bottom.

HOW: One pass over the batch; a token is spoken iff the WordSet
contains its text.

RULES:
- all_tokens is the input batch unchanged, in order
- spoken keeps the relative order of the input
- An empty batch raises NoTextFound
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from read_aloud.core.models import RecognizedToken
from read_aloud.core.words import WordSet
from read_aloud.errors import NoTextFound


@dataclass
class FilterResult:
    spoken: List[RecognizedToken]
    all_tokens: List[RecognizedToken]

    @property
    def spoken_texts(self) -> List[str]:
        return [token.text for token in self.spoken]


def filter_tokens(tokens: Sequence[RecognizedToken], words: WordSet) -> FilterResult:
    """Partition tokens into those to speak and those to only draw."""
    if not tokens:
        raise NoTextFound("No text found")

    spoken = [token for token in tokens if words.contains(token.text)]
    return FilterResult(spoken=spoken, all_tokens=list(tokens))
