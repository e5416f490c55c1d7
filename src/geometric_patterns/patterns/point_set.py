"""Point set representation of a score."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from geometric_patterns.exceptions import InvalidArgumentError
from geometric_patterns.models.core import Chord, Note, PatternPosition
from geometric_patterns.models.geometry import Point
from geometric_patterns.models.hashing import default_hash_context

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from geometric_patterns.models.core import Durational, Position
    from geometric_patterns.models.geometry import PointPattern
    from geometric_patterns.models.hashing import HashContext

logger = logging.getLogger(__name__)


class ScoreTraversal(Protocol):
    """What point extraction needs from a score."""

    def partwise(self) -> Iterator[tuple[Durational, Position]]:
        """Yield (durational, position) in part, measure, staff, voice order."""
        ...

    def measure_duration(self, part_index: int, staff_number: int, measure_number: int) -> float:
        """Full-bar duration of a measure in whole notes."""
        ...


class PointSet:
    """Lexicographically sorted points with their score positions.

    Duplicates are allowed. When several positions produce the same point,
    position lookup by point returns the one inserted last; lookup by index
    is exact.

    This class is immutable.
    """

    def __init__(
        self,
        points: Iterable[Point],
        positions: Iterable[Position | None] | None = None,
        hash_context: HashContext | None = None,
    ) -> None:
        """Initialize the point set.

        Args:
            points: Points in any order.
            positions: Optional originating position for each point (same order).
            hash_context: Context every point is hashed with. Defaults to the
                context of the first point.
        """
        point_list = list(points)
        position_list = list(positions) if positions is not None else [None] * len(point_list)
        if len(point_list) != len(position_list):
            raise InvalidArgumentError("Points and positions must have same length")

        if hash_context is None:
            hash_context = point_list[0].hash_context if point_list else default_hash_context()
        self._hash_context = hash_context

        entries = [
            (point.with_hash_context(hash_context), position)
            for point, position in zip(point_list, position_list)
        ]
        entries.sort(key=lambda entry: entry[0])

        self._points: tuple[Point, ...] = tuple(entry[0] for entry in entries)
        self._positions: tuple[Position | None, ...] = tuple(entry[1] for entry in entries)

        position_map: dict[Point, Position] = {}
        for point, position in entries:
            if position is not None:
                position_map[point] = position
        self._position_map = position_map
        self._members = frozenset(self._points)

    @property
    def hash_context(self) -> HashContext:
        return self._hash_context

    @property
    def points(self) -> tuple[Point, ...]:
        return self._points

    def size(self) -> int:
        """Number of points in the set."""
        return len(self._points)

    def get(self, index: int) -> Point:
        """Get the point at an index."""
        return self._points[index]

    def position_of(self, point: Point) -> Position | None:
        """Get the score position that produced a point, if any."""
        return self._position_map.get(point.with_hash_context(self._hash_context))

    def position_at(self, index: int) -> Position | None:
        """Get the score position of the point at an index."""
        return self._positions[index]

    def pattern_position(self, pattern: PointPattern, translator: Point) -> PatternPosition | None:
        """Get the positions of a translated pattern.

        Args:
            pattern: Pattern to locate.
            translator: Vector added to every point of the pattern.

        Returns:
            PatternPosition, or None if some translated point has no position.
        """
        positions = []
        for point in pattern:
            position = self.position_of(point.add(translator))
            if position is None:
                return None
            positions.append(position)
        return PatternPosition(tuple(positions))

    def __len__(self) -> int:
        return len(self._points)

    def __getitem__(self, index: int) -> Point:
        return self._points[index]

    def __iter__(self) -> Iterator[Point]:
        return iter(self._points)

    def __contains__(self, point: object) -> bool:
        if not isinstance(point, Point):
            return False
        return point.with_hash_context(self._hash_context) in self._members

    def __repr__(self) -> str:
        return f"PointSet(size={len(self._points)})"

    def __str__(self) -> str:
        return "\n".join(str(p) for p in self._points)


def is_sorted(points: Sequence[Point]) -> bool:
    """Check that points are in non-decreasing lexicographic order."""
    return all(points[i] <= points[i + 1] for i in range(len(points) - 1))


def _has_onset(durational: Durational) -> bool:
    if durational.is_rest:
        return False
    if isinstance(durational, Note) and durational.tied_from_previous:
        return False
    return True


class PointExtractor:
    """Converts a score into its point set representation.

    Each sounding note becomes an (onset, pitch) point. Onsets are measured in
    whole notes from the start of the part.
    """

    def __init__(self, hash_context: HashContext | None = None) -> None:
        """Initialize the extractor.

        Args:
            hash_context: Context the extracted points hash with.
        """
        self.hash_context = hash_context or default_hash_context()

    def extract(self, score: ScoreTraversal) -> PointSet:
        """Extract the point set of a score.

        Args:
            score: Score traversal with measure duration lookup.

        Returns:
            Sorted PointSet with positions.

        Raises:
            InvalidArgumentError: If a non-positive or malformed duration is met.
        """
        points: list[Point] = []
        positions: list[Position] = []

        prev_pos: Position | None = None
        full_measures_offset = 0.0
        offset_within_measure = 0.0

        for durational, pos in score.partwise():
            duration = durational.duration
            if not isinstance(duration, (int, float)) or not duration > 0:
                raise InvalidArgumentError(f"Invalid duration {duration!r} at {pos}")

            if prev_pos is not None:
                if prev_pos.part_index != pos.part_index:
                    full_measures_offset = 0.0
                    offset_within_measure = 0.0
                elif prev_pos.measure_number != pos.measure_number:
                    full_measures_offset += score.measure_duration(
                        prev_pos.part_index, prev_pos.staff_number, prev_pos.measure_number
                    )
                    offset_within_measure = 0.0
                elif (
                    prev_pos.voice_number != pos.voice_number
                    or prev_pos.staff_number != pos.staff_number
                ):
                    offset_within_measure = 0.0

            if _has_onset(durational):
                onset = full_measures_offset + offset_within_measure
                if isinstance(durational, Chord):
                    for chord_index, note in enumerate(durational.notes):
                        if note.tied_from_previous:
                            continue
                        points.append(Point(onset, note.pitch, hash_context=self.hash_context))
                        positions.append(pos.in_chord(chord_index))
                else:
                    points.append(Point(onset, durational.pitch, hash_context=self.hash_context))
                    positions.append(pos)

            offset_within_measure += duration
            prev_pos = pos

        logger.debug(f"Extracted {len(points)} points")
        return PointSet(points, positions, hash_context=self.hash_context)


def extract_points(score: ScoreTraversal, hash_context: HashContext | None = None) -> PointSet:
    """Convenience function to extract the point set of a score.

    Args:
        score: Score to extract from.
        hash_context: Optional hashing context for the points.

    Returns:
        Sorted PointSet with positions.
    """
    return PointExtractor(hash_context=hash_context).extract(score)
