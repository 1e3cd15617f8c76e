"""
Task title similarity and duplicate detection

Similarity is a pluggable strategy; the aggregator only talks to
TaskDeduplicator, so a stronger scorer can replace WordOverlapSimilarity
without touching the ranking code.
"""

from collections.abc import Iterable
from typing import Protocol

DUPLICATE_THRESHOLD = 0.7


class SimilarityStrategy(Protocol):
    """Scores two task titles on a 0..1 scale."""

    def similarity(self, first: str, second: str) -> float: ...


def calculate_similarity(first: str, second: str) -> float:
    """
    Score two titles.

    - 1.0 when equal after lowercasing and trimming
    - 0.8 when one contains the other
    - otherwise 2 * shared words (longer than 3 chars) / total word count
    """
    s1 = first.lower().strip()
    s2 = second.lower().strip()

    if s1 == s2:
        return 1.0

    if s1 in s2 or s2 in s1:
        return 0.8

    words1 = s1.split()
    words2 = s2.split()
    common = [word for word in words1 if word in words2 and len(word) > 3]
    return (2 * len(common)) / (len(words1) + len(words2))


class WordOverlapSimilarity:
    """Exact / substring / word-overlap heuristic."""

    def similarity(self, first: str, second: str) -> float:
        return calculate_similarity(first, second)


class TaskDeduplicator:
    """
    Tracks the titles already on a board and rejects near-duplicates.

    Titles accepted through add() count against later candidates, so a
    batch cannot duplicate itself.
    """

    def __init__(
        self,
        existing_titles: Iterable[str] = (),
        strategy: SimilarityStrategy | None = None,
        threshold: float = DUPLICATE_THRESHOLD,
    ):
        self.titles = list(existing_titles)
        self.strategy = strategy or WordOverlapSimilarity()
        self.threshold = threshold

    def is_duplicate(self, title: str) -> bool:
        return any(self.strategy.similarity(title, existing) >= self.threshold for existing in self.titles)

    def add(self, title: str) -> None:
        self.titles.append(title)


def is_duplicate_task(
    title: str,
    existing_titles: Iterable[str],
    threshold: float = DUPLICATE_THRESHOLD,
) -> bool:
    """True if title is at least threshold-similar to any existing title."""
    return TaskDeduplicator(existing_titles, threshold=threshold).is_duplicate(title)
