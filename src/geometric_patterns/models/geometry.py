"""Geometric data models: points, point patterns and translational equivalence classes."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from functools import total_ordering
from typing import TYPE_CHECKING, Any

from geometric_patterns.exceptions import InvalidArgumentError
from geometric_patterns.models.core import Chord, Note
from geometric_patterns.models.hashing import HashContext, default_hash_context

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from geometric_patterns.models.core import Durational

# Onsets are compared and hashed with this many decimal places.
ONSET_PLACES = 8
ROUNDING_FACTOR = 10.0**ONSET_PLACES


def round_onset(onset: float) -> float:
    """Round an onset half-up to ONSET_PLACES decimal places.

    Onsets that differ only by floating-point accumulation error, such as
    repeated additions of triplet durations, round to the same value.
    """
    return math.floor(onset * ROUNDING_FACTOR + 0.5) / ROUNDING_FACTOR


@total_ordering
class Point:
    """An immutable note event vector.

    The first component is the onset and the second the pitch number. Points
    of any dimensionality are supported, but all points combined in one
    operation must share it.

    The raw onset is only used as an operand for addition and subtraction.
    Comparisons and hashes use the rounded onset. Equal points only hash
    alike when they share a hash context, so collections that mix contexts
    should rebind them first (PointSet does).
    """

    __slots__ = ("_raw", "_key", "_hash_context", "_hash")

    def __init__(self, *components: float, hash_context: HashContext | None = None) -> None:
        """Initialize the point.

        Args:
            *components: Onset, pitch and any further components.
            hash_context: Multipliers used for hashing. Defaults to the
                process-wide context.

        Raises:
            InvalidArgumentError: If no components are given.
        """
        if not components:
            raise InvalidArgumentError("A point needs at least one component")

        raw = tuple(float(c) + 0.0 for c in components)
        self._raw = raw
        self._key = (round_onset(raw[0]),) + raw[1:]
        self._hash_context = hash_context or default_hash_context()
        self._hash: int | None = None

    @classmethod
    def zero(cls, dimensionality: int = 2, hash_context: HashContext | None = None) -> Point:
        """Get the identity element of the given dimensionality."""
        return cls(*([0.0] * dimensionality), hash_context=hash_context)

    @property
    def dimensionality(self) -> int:
        """Number of components."""
        return len(self._raw)

    @property
    def onset(self) -> float:
        """Rounded onset."""
        return self._key[0]

    @property
    def pitch(self) -> float:
        """Pitch number (second component)."""
        if len(self._key) < 2:
            raise InvalidArgumentError("Point has no pitch component")
        return self._key[1]

    @property
    def components(self) -> tuple[float, ...]:
        """Components as compared and hashed (onset rounded)."""
        return self._key

    @property
    def hash_context(self) -> HashContext:
        return self._hash_context

    def with_hash_context(self, hash_context: HashContext) -> Point:
        """Get an equal point that hashes with the given context."""
        if hash_context is self._hash_context:
            return self
        return Point(*self._raw, hash_context=hash_context)

    def _check_dimensionality(self, other: Point) -> None:
        if other.dimensionality != self.dimensionality:
            raise InvalidArgumentError(
                f"Dimensionality mismatch: {self.dimensionality} != {other.dimensionality}"
            )

    def add(self, other: Point) -> Point:
        """Component-wise sum."""
        self._check_dimensionality(other)
        return Point(
            *(a + b for a, b in zip(self._raw, other._raw)),
            hash_context=self._hash_context,
        )

    def subtract(self, other: Point) -> Point:
        """Component-wise difference."""
        self._check_dimensionality(other)
        return Point(
            *(a - b for a, b in zip(self._raw, other._raw)),
            hash_context=self._hash_context,
        )

    def compare_to(self, other: Point) -> int:
        """Lexicographic comparison returning -1, 0 or 1."""
        if self._key < other._key:
            return -1
        if self._key > other._key:
            return 1
        return 0

    def __add__(self, other: Point) -> Point:
        return self.add(other)

    def __sub__(self, other: Point) -> Point:
        return self.subtract(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        return self._key == other._key

    def __lt__(self, other: Point) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        return self._key < other._key

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = self._hash_context.hash_components(self._key)
        return self._hash

    def __iter__(self) -> Iterator[float]:
        return iter(self._key)

    def __repr__(self) -> str:
        return f"Point{self._key}"

    def __str__(self) -> str:
        return "(" + ", ".join(repr(c) for c in self._key) + ")"


class PointPattern:
    """An ordered, immutable sequence of points.

    Used both for search queries and for discovered shapes. The points are
    kept in the given order and are not required to be sorted.
    """

    __slots__ = ("_points", "_hash")

    def __init__(self, points: Iterable[Point]) -> None:
        self._points: tuple[Point, ...] = tuple(points)
        self._hash: int | None = None

    @classmethod
    def from_durationals(
        cls,
        events: Iterable[Durational],
        hash_context: HashContext | None = None,
    ) -> PointPattern:
        """Build a pattern from a sequence of notes, chords and rests.

        Onsets accumulate over every event's duration. Rests and notes tied
        from the previous event emit no point; chords emit one point per
        constituent in bottom-up order.

        Args:
            events: Durational events in time order.
            hash_context: Context for the created points.

        Returns:
            Pattern of (onset, pitch) points starting at onset 0.
        """
        points: list[Point] = []
        offset = 0.0
        for event in events:
            if event.duration <= 0:
                raise InvalidArgumentError(f"Non-positive duration: {event.duration}")

            if isinstance(event, Note):
                if not event.tied_from_previous:
                    points.append(Point(offset, event.pitch, hash_context=hash_context))
            elif isinstance(event, Chord):
                for note in event.notes:
                    if not note.tied_from_previous:
                        points.append(Point(offset, note.pitch, hash_context=hash_context))

            offset += event.duration

        return cls(points)

    @classmethod
    def from_vectorized(cls, start: Point, vectorized: Iterable[Point]) -> PointPattern:
        """Rebuild a pattern from its first point and its vectorized form."""
        points = [start]
        for vector in vectorized:
            points.append(points[-1].add(vector))
        return cls(points)

    @property
    def points(self) -> tuple[Point, ...]:
        return self._points

    def size(self) -> int:
        """Number of points in the pattern."""
        return len(self._points)

    def get(self, index: int) -> Point:
        return self._points[index]

    def vectorized(self) -> PointPattern:
        """Get the differences between consecutive points.

        Two patterns with equal vectorized forms are translations of each
        other. Patterns with fewer than two points vectorize to an empty
        pattern.
        """
        return PointPattern(
            self._points[i].subtract(self._points[i - 1]) for i in range(1, len(self._points))
        )

    def is_vector_equal(self, other: PointPattern) -> bool:
        """Check whether the patterns are translations of each other."""
        return self.vectorized() == other.vectorized()

    def translate(self, translator: Point) -> PointPattern:
        """Get the pattern with every point moved by the translator."""
        return PointPattern(point.add(translator) for point in self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __getitem__(self, index: int) -> Point:
        return self._points[index]

    def __iter__(self) -> Iterator[Point]:
        return iter(self._points)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PointPattern):
            return NotImplemented
        return self._points == other._points

    def __hash__(self) -> int:
        if self._hash is None:
            context = self._points[0].hash_context if self._points else default_hash_context()
            self._hash = context.hash_components(c for p in self._points for c in p.components)
        return self._hash

    def __repr__(self) -> str:
        return "PointPattern{" + ", ".join(str(p) for p in self._points) + "}"


@dataclass(frozen=True)
class Tec:
    """A translational equivalence class.

    A pattern together with every translator that maps the whole pattern
    onto points of the dataset (Meredith, Lemström and Wiggins, 2002). The
    translators include the zero vector for the pattern's own occurrence.

    Attributes:
        pattern: The maximal translatable pattern.
        translators: Ordered, deduplicated translation vectors.
    """

    pattern: PointPattern
    translators: tuple[Point, ...] = field(default_factory=tuple)

    def occurrences(self) -> list[PointPattern]:
        """Get the pattern translated by each translator."""
        return [self.pattern.translate(t) for t in self.translators]

    def covered_points(self) -> set[Point]:
        """Get every dataset point covered by some occurrence."""
        return {point.add(t) for t in self.translators for point in self.pattern}

    def compression_ratio(self) -> float:
        """Covered points divided by the points needed to encode the TEC.

        Encoding needs the pattern plus every translator except the zero
        vector.
        """
        encoding_size = self.pattern.size() + len(self.translators) - 1
        if encoding_size <= 0:
            return 0.0
        return len(self.covered_points()) / encoding_size

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "pattern": [list(p.components) for p in self.pattern],
            "translators": [list(t.components) for t in self.translators],
            "compression_ratio": round(self.compression_ratio(), 4),
        }

    def __str__(self) -> str:
        pattern = ", ".join(str(p) for p in self.pattern)
        translators = ", ".join(str(t) for t in self.translators)
        return f"pattern: {{{pattern}}}, translators: {{{translators}}}"
