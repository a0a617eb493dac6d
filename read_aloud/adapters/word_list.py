"""Plain-text word list source.

RULES:
- One word per line, UTF-8
- Any OSError or decoding error is raised as LoadError
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Union

from read_aloud.adapters.base import WordListSource
from read_aloud.errors import LoadError


class FileWordListSource(WordListSource):
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def read_lines(self) -> List[str]:
        try:
            return self.path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError("Cannot read word list {}: {}".format(self.path, exc)) from exc
