"""Case-insensitive word list used to decide which tokens are spoken.

WHY: The recognizer returns plenty of noise (stray glyphs, partial
words, logos). Only tokens that are real words should be read aloud,
so every token is checked against a fixed vocabulary loaded once at
startup.

HOW: WordSet wraps a frozenset of lowercase entries. load() normalizes
and deduplicates the raw lines; contains() lowercases the query before
the lookup. load_word_set() pulls lines from a WordListSource and
degrades to an empty set when the source is unreadable.

RULES:
- Entries are lowercased however the set is built; load() also strips
  and skips blank lines
- Duplicates collapse to one entry
- The set is immutable: there is no add/remove API
- An unreadable source logs a warning and yields an empty WordSet
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Iterator

from read_aloud.errors import LoadError

if TYPE_CHECKING:
    from read_aloud.adapters.base import WordListSource

logger = logging.getLogger(__name__)


class WordSet:
    """Immutable, case-insensitive membership index over a vocabulary."""

    __slots__ = ("_words",)

    def __init__(self, words: Iterable[str] = frozenset()) -> None:
        self._words = frozenset(w.lower() for w in words)

    @classmethod
    def load(cls, raw_lines: Iterable[str]) -> WordSet:
        """Build a WordSet from raw word-list lines.

        RULES:
        - Each line is stripped of surrounding whitespace and lowercased
        - Empty lines are ignored
        """
        words = set()
        for line in raw_lines:
            word = line.strip().lower()
            if word:
                words.add(word)
        return cls(frozenset(words))

    @classmethod
    def empty(cls) -> WordSet:
        return cls()

    def contains(self, word: str) -> bool:
        """Return True if the lowercase form of word is in the set."""
        return word.lower() in self._words

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and self.contains(word)

    def __len__(self) -> int:
        return len(self._words)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._words))

    def __repr__(self) -> str:
        return "WordSet({} words)".format(len(self._words))


def load_word_set(source: WordListSource) -> WordSet:
    """Load a WordSet from source, falling back to an empty set.

    WHY: A missing dictionary must not stop the camera loop; boxes are
    still drawn, nothing is spoken.
    """
    try:
        lines = source.read_lines()
    except LoadError as exc:
        logger.warning("Word list unavailable, continuing with an empty set: %s", exc)
        return WordSet.empty()

    words = WordSet.load(lines)
    logger.info("Loaded %d words", len(words))
    return words
