"""Transposition and time-shift invariant exact pattern matching.

Based on the exact matching algorithm of Ukkonen, Lemström and Mäkinen:
"Geometric Algorithms for Transposition Invariant Content-Based Music
Retrieval", ISMIR 2003.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from geometric_patterns.exceptions import InvalidArgumentError, PreconditionViolatedError
from geometric_patterns.models.core import PatternPosition
from geometric_patterns.models.geometry import PointPattern
from geometric_patterns.patterns.point_set import PointSet, extract_points, is_sorted

if TYPE_CHECKING:
    from collections.abc import Sequence

    from geometric_patterns.models.core import Durational, Score
    from geometric_patterns.models.geometry import Point
    from geometric_patterns.models.hashing import HashContext

logger = logging.getLogger(__name__)


def _as_pattern(query: PointPattern | Sequence[Point]) -> PointPattern:
    return query if isinstance(query, PointPattern) else PointPattern(query)


class PatternMatcher:
    """Finds every translated occurrence of a query in a sorted point set."""

    def find_matches(
        self,
        point_set: PointSet | Sequence[Point],
        query: PointPattern | Sequence[Point],
    ) -> list[list[int]]:
        """Find all time-shifted and transposed occurrences of a query.

        Args:
            point_set: Lexicographically sorted points to search.
            query: Non-empty query pattern in lexicographic order.

        Returns:
            One list of point set indices per occurrence, each as long as
            the query.

        Raises:
            InvalidArgumentError: If the query is empty.
            PreconditionViolatedError: If the points are not sorted.
        """
        query = _as_pattern(query)
        if query.size() == 0:
            raise InvalidArgumentError("Query pattern must not be empty")

        if not isinstance(point_set, PointSet) and not is_sorted(point_set):
            raise PreconditionViolatedError("Point set must be sorted lexicographically")

        points = point_set.points if isinstance(point_set, PointSet) else point_set
        matches: list[list[int]] = []
        query_size = query.size()

        for i in range(len(points) - query_size):
            translator = points[i].subtract(query[0])
            translated = query.translate(translator)

            indices: list[int] = []
            query_index = 0

            for scan_index in range(i, len(points)):
                target = translated[query_index]
                point = points[scan_index]
                if point == target:
                    indices.append(scan_index)
                    query_index += 1

                # Sorted points: nothing after a greater point can equal the target.
                if target < point or query_index >= query_size:
                    break

            if len(indices) == query_size:
                matches.append(indices)

        logger.debug(f"Found {len(matches)} matches for query of {query_size} points")
        return matches

    def find_positions(
        self,
        point_set: PointSet,
        query: PointPattern | Sequence[Point],
    ) -> list[PatternPosition]:
        """Find the score positions of every occurrence of a query.

        Args:
            point_set: Point set extracted from a score.
            query: Query pattern.

        Returns:
            PatternPosition for each occurrence with positions for all points.
        """
        positions = []
        for indices in self.find_matches(point_set, query):
            occurrence = [point_set.position_at(i) for i in indices]
            if any(p is None for p in occurrence):
                continue
            positions.append(PatternPosition(tuple(occurrence)))
        return positions


def find_matches(
    point_set: PointSet | Sequence[Point],
    query: PointPattern | Sequence[Point],
) -> list[list[int]]:
    """Convenience function to find index lists of all occurrences of a query.

    Args:
        point_set: Sorted points to search.
        query: Non-empty query pattern.

    Returns:
        Index lists, one per occurrence.
    """
    return PatternMatcher().find_matches(point_set, query)


def find_positions(point_set: PointSet, query: PointPattern | Sequence[Point]) -> list[PatternPosition]:
    """Convenience function to find score positions of all occurrences of a query."""
    return PatternMatcher().find_positions(point_set, query)


class PointSetSearch:
    """Search on a score using point set pattern matching.

    This class is immutable and may be shared between threads.
    """

    def __init__(self, score: Score, hash_context: HashContext | None = None) -> None:
        """Initialize the search.

        Args:
            score: Score to search.
            hash_context: Hashing context for the point set.
        """
        self.score = score
        self.point_set = extract_points(score, hash_context=hash_context)
        self._matcher = PatternMatcher()

    @classmethod
    def of(cls, score: Score) -> PointSetSearch:
        """Create a search instance for a score."""
        return cls(score)

    def _query_pattern(self, query: PointPattern | Sequence[Durational]) -> PointPattern:
        if isinstance(query, PointPattern):
            return query
        return PointPattern.from_durationals(query, hash_context=self.point_set.hash_context)

    def find_positions(self, query: PointPattern | Sequence[Durational]) -> list[PatternPosition]:
        """Find positions of all occurrences of a query.

        Args:
            query: Point pattern, or notes, chords and rests in time order.

        Returns:
            Positions of every occurrence.
        """
        return self._matcher.find_positions(self.point_set, self._query_pattern(query))

    def find_occurrences(self, query: PointPattern | Sequence[Durational]) -> list[list[Durational]]:
        """Find the notes of all occurrences of a query."""
        return [self.score.get_pattern_at(p) for p in self.find_positions(query)]
