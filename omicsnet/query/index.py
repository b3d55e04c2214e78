"""Fuzzy lookup tables used by the query engine."""

from __future__ import annotations

from dataclasses import dataclass
from difflib import SequenceMatcher
import re
from typing import Dict, FrozenSet, Iterable, List, Sequence, Tuple

WORD_PATTERN = re.compile(r"[a-z0-9]+(?:[-'][a-z0-9]+)*")
SYMBOL_PATTERN = re.compile(r"[A-Za-z0-9]+(?:[-'][A-Za-z0-9]+)*")


def tokenize(text: str) -> List[str]:
    """Lower-case word tokens; hyphenated words stay whole (``long-term``)."""

    return WORD_PATTERN.findall(text.lower())


def similarity(first: str, second: str) -> float:
    return SequenceMatcher(None, first, second).ratio()


@dataclass(frozen=True)
class FuzzyMatch:
    """One index entry and its distance to the query (``0`` is identical)."""

    entry: str
    distance: float


class FuzzyIndex:
    """Approximate phrase lookup over a fixed list of names.

    Each entry is compared against every window of consecutive query words
    whose length is within one word of the entry's own length, and the best
    :class:`difflib.SequenceMatcher` ratio wins.  This keeps a three-word
    pathway name from being diluted by a ten-word question.
    """

    def __init__(self, entries: Iterable[str]) -> None:
        self.entries: Tuple[str, ...] = tuple(dict.fromkeys(entry for entry in entries if entry))
        self._normalised: Dict[str, Tuple[str, int]] = {}
        for entry in self.entries:
            words = tokenize(entry)
            self._normalised[entry] = (" ".join(words), len(words))

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, entry: object) -> bool:
        return entry in self._normalised

    def distance(self, query_words: Sequence[str], entry: str) -> float:
        phrase, width = self._normalised[entry]
        if not phrase or not query_words:
            return 1.0
        sizes = [size for size in range(max(1, width - 1), width + 2) if size <= len(query_words)]
        best = 0.0
        for size in sizes or [len(query_words)]:
            for start in range(len(query_words) - size + 1):
                window = " ".join(query_words[start : start + size])
                best = max(best, similarity(window, phrase))
                if best == 1.0:
                    return 0.0
        return 1.0 - best

    def search(self, text: str, *, max_distance: float, limit: int) -> List[FuzzyMatch]:
        """Return up to ``limit`` entries closer than ``max_distance``, best first."""

        words = tokenize(text)
        scored = [FuzzyMatch(entry, self.distance(words, entry)) for entry in self.entries]
        hits = [match for match in scored if match.distance < max_distance]
        hits.sort(key=lambda match: match.distance)
        return hits[: max(limit, 0)]


class SymbolIndex:
    """Exact, case-insensitive lookup of gene symbols present in a graph."""

    def __init__(self, symbols: Iterable[str]) -> None:
        self._symbols: FrozenSet[str] = frozenset(symbol.upper() for symbol in symbols if symbol)

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and symbol.upper() in self._symbols

    def mentioned_in(self, text: str) -> List[str]:
        """Symbols written in ``text`` the way symbols are written.

        Only tokens that are upper case or contain a digit (and at least one
        letter) are considered, so ordinary words such as ``genes`` or
        ``Show`` never resolve to a symbol.
        """

        found: List[str] = []
        for token in SYMBOL_PATTERN.findall(text):
            if not any(char.isalpha() for char in token):
                continue
            if not (token.isupper() or any(char.isdigit() for char in token)):
                continue
            symbol = token.upper()
            if symbol in self._symbols and symbol not in found:
                found.append(symbol)
        return found


__all__ = ["FuzzyIndex", "FuzzyMatch", "SymbolIndex", "similarity", "tokenize"]
