"""
VaultMCP Simple Matcher
-----------------------
Case-insensitive multi-term substring matching used by the simple search tool.

Every whitespace-separated query term must occur in the document. Matches are
reported as (start, end) offsets into the original text, which is possible
because normalization lower-cases character by character without changing
the text length.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

# Weight of the "first match appears early" tie-breaker relative to one match.
EARLY_MATCH_WEIGHT = 1.0


def normalize(text: str) -> str:
    """Lower-case text without changing its length."""
    out = []
    for ch in text:
        lowered = ch.lower()
        out.append(lowered if len(lowered) == 1 else ch)
    return "".join(out)


@dataclass
class MatchResult:
    score: float
    matches: List[Tuple[int, int]]


class SimpleMatcher:
    """Prepared query; call match() once per document."""

    def __init__(self, query: str):
        self.query = query
        terms = normalize(query).split()
        self.terms: List[str] = sorted(set(terms), key=lambda t: (-len(t), t))

    def match(self, text: str) -> Optional[MatchResult]:
        if not self.terms:
            return None
        haystack = normalize(text)
        spans: List[Tuple[int, int]] = []
        for term in self.terms:
            found = False
            start = haystack.find(term)
            while start != -1:
                found = True
                spans.append((start, start + len(term)))
                start = haystack.find(term, start + len(term))
            if not found:
                return None

        # At equal starts the longer span wins.
        spans.sort(key=lambda span: (span[0], -span[1]))
        merged: List[Tuple[int, int]] = []
        for span in spans:
            if merged and span[0] < merged[-1][1]:
                continue
            merged.append(span)

        first = merged[0][0]
        score = len(merged) + EARLY_MATCH_WEIGHT / (1 + first)
        return MatchResult(score=score, matches=merged)


def expand_context(
    text: str, start: int, end: int, context_length: int
) -> Tuple[str, int, int]:
    """
    Slice `context_length` characters around [start, end), clamped to the text.

    Returns (context, relative_start, relative_end).
    """
    lo = max(0, start - context_length)
    hi = min(len(text), end + context_length)
    return text[lo:hi], start - lo, end - lo
