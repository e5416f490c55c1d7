"""Repeated pattern discovery with SIATECH.

Finds every maximal translatable pattern (MTP) of a point set and its
translational equivalence class (TEC), optionally keeping only TECs whose
compression ratio reaches a minimum as in SIATECHF (Björklund, "Improving the
running time of repeated pattern discovery in multidimensional
representations of music", 2015).

The difference-indexing step is quadratic in time and space. It can be split
into ranges of first indices with compute_mtp_map and recombined with
merge_mtp_maps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from geometric_patterns.config import DiscoveryConfig
from geometric_patterns.exceptions import InvalidArgumentError, PreconditionViolatedError
from geometric_patterns.models.geometry import Point, PointPattern, Tec
from geometric_patterns.patterns.point_set import PointSet, extract_points, is_sorted

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from geometric_patterns.models.core import PatternPosition, Score
    from geometric_patterns.models.hashing import HashContext

logger = logging.getLogger(__name__)


class IndexPairs:
    """Ordered-append list of (first, second) index pairs for one difference vector.

    Pairs are appended in ascending order of the first index, which the
    translator merge relies on.
    """

    __slots__ = ("firsts", "seconds")

    def __init__(self) -> None:
        self.firsts: list[int] = []
        self.seconds: list[int] = []

    def append(self, first: int, second: int) -> None:
        self.firsts.append(first)
        self.seconds.append(second)

    def extend(self, other: IndexPairs) -> None:
        self.firsts.extend(other.firsts)
        self.seconds.extend(other.seconds)

    def __len__(self) -> int:
        return len(self.firsts)

    def __iter__(self) -> Iterator[tuple[int, int]]:
        return zip(self.firsts, self.seconds)

    def __repr__(self) -> str:
        return f"IndexPairs({list(self)})"


MtpMap = dict[Point, IndexPairs]


def compute_mtp_map(points: Sequence[Point], start: int = 0, stop: int | None = None) -> MtpMap:
    """Index every pairwise difference vector.

    For each pair i < j with start <= i < stop, the pair (i, j) is appended
    to the entry of points[j] - points[i]. Difference vectors hash with the
    context of the first point, whatever contexts the points carry.

    Args:
        points: Sorted points.
        start: First origin index (inclusive).
        stop: Last origin index (exclusive). Defaults to len(points) - 1.

    Returns:
        Map from difference vector to its index pairs.
    """
    size = len(points)
    if stop is None:
        stop = size - 1
    mtp_map: MtpMap = {}
    if size == 0:
        return mtp_map

    context = points[0].hash_context
    for i in range(start, min(stop, size - 1)):
        origin = points[i]
        for j in range(i + 1, size):
            diff = points[j].with_hash_context(context).subtract(origin)
            pairs = mtp_map.get(diff)
            if pairs is None:
                pairs = mtp_map[diff] = IndexPairs()
            pairs.append(i, j)

    return mtp_map


def merge_mtp_maps(maps: Iterable[MtpMap]) -> MtpMap:
    """Combine MTP maps computed over consecutive, ascending origin ranges.

    Pair lists are concatenated in the given order, so the maps must be
    passed in ascending order of their ranges.
    """
    merged: MtpMap = {}
    for mtp_map in maps:
        for diff, pairs in mtp_map.items():
            target = merged.get(diff)
            if target is None:
                target = merged[diff] = IndexPairs()
            target.extend(pairs)
    return merged


def compute_mtp(pairs: IndexPairs, points: Sequence[Point]) -> PointPattern:
    """Get the MTP of a difference vector: the origins of all its pairs."""
    return PointPattern(points[i] for i in pairs.firsts)


def find_translators(pattern: PointPattern, mtp_map: MtpMap, points: Sequence[Point]) -> list[Point]:
    """Find every translator that maps the pattern into the point set.

    Follows each vectorized component through the MTP map, intersecting the
    current end indices with the next component's first indices. Both lists
    are sorted, so the intersection is a linear merge.

    Args:
        pattern: MTP with points in ascending order.
        mtp_map: Map of all difference vectors of the point set.
        points: Sorted points.

    Returns:
        Deduplicated translators in order of occurrence, including the zero vector.
    """
    context = points[0].hash_context if points else pattern[0].hash_context
    pattern = _rebind(pattern, context)

    if pattern.size() == 1:
        first = pattern[0]
        return _unique(point.with_hash_context(context).subtract(first) for point in points)

    vectorized = pattern.vectorized()
    pairs = mtp_map.get(vectorized[0])
    if pairs is None:
        raise PreconditionViolatedError(f"Difference {vectorized[0]} missing from MTP map")
    target_indices = list(pairs.seconds)

    for vector in vectorized.points[1:]:
        pairs = mtp_map.get(vector)
        if pairs is None:
            raise PreconditionViolatedError(f"Difference {vector} missing from MTP map")

        firsts = pairs.firsts
        seconds = pairs.seconds
        new_target_indices: list[int] = []
        j = 0
        k = 0
        while j < len(target_indices) and k < len(firsts):
            if target_indices[j] == firsts[k]:
                new_target_indices.append(seconds[k])
                j += 1
                k += 1
            elif target_indices[j] < firsts[k]:
                j += 1
            else:
                k += 1

        target_indices = new_target_indices

    last_point = pattern[pattern.size() - 1]
    return _unique(points[i].with_hash_context(context).subtract(last_point) for i in target_indices)


def _rebind(pattern: PointPattern, context: HashContext) -> PointPattern:
    return PointPattern(p.with_hash_context(context) for p in pattern)


def _unique(translators: Iterable[Point]) -> list[Point]:
    return list(dict.fromkeys(translators))


def compression_ratio_upper_bound(pattern: PointPattern, mtp_map: MtpMap) -> float:
    """Upper bound on the compression ratio of a pattern's TEC.

    Uses the number of pairs with the difference between the last and first
    pattern points as a bound on the number of occurrences.
    """
    size = pattern.size()
    if size == 1:
        return 1.0

    pairs = mtp_map.get(pattern[size - 1].subtract(pattern[0]))
    occurrence_bound = len(pairs) if pairs is not None else 1
    coverage_bound = occurrence_bound * size
    return coverage_bound / (size + occurrence_bound - 1)


class PatternDiscoverer:
    """Computes the TECs of all maximal translatable patterns in a point set.

    Output order follows the first appearance of each difference vector
    during indexing. Use sort_tecs for an order independent of that.
    """

    def __init__(self, min_compression_ratio: float = 0.0) -> None:
        """Initialize the discoverer.

        Args:
            min_compression_ratio: Minimum compression ratio of returned TECs.
                0.0 returns every TEC.

        Raises:
            InvalidArgumentError: If the ratio is negative.
        """
        if min_compression_ratio < 0.0:
            raise InvalidArgumentError(
                f"Compression ratio must be non-negative, was {min_compression_ratio}"
            )
        self.min_compression_ratio = min_compression_ratio

    def _sorted_points(self, point_set: PointSet | Sequence[Point]) -> Sequence[Point]:
        if isinstance(point_set, PointSet):
            return point_set.points
        if not is_sorted(point_set):
            logger.warning("Point set passed to discovery is not sorted; sorting it")
        # Sorts and rebinds every point to one hash context.
        return PointSet(point_set).points

    def compute_tecs(
        self,
        point_set: PointSet | Sequence[Point],
        mtp_map: MtpMap | None = None,
    ) -> list[Tec]:
        """Compute the TEC of every distinct MTP.

        Args:
            point_set: Points to analyze.
            mtp_map: Precomputed (for example sharded and merged) MTP map of
                the same sorted points.

        Returns:
            One TEC per MTP shape, up to translation.
        """
        points = self._sorted_points(point_set)
        if mtp_map is None:
            mtp_map = compute_mtp_map(points)
        logger.debug(f"Indexed {len(mtp_map)} difference vectors over {len(points)} points")

        tecs: list[Tec] = []
        seen: set[PointPattern] = set()

        for pairs in mtp_map.values():
            pattern = compute_mtp(pairs, points)
            vectorized = pattern.vectorized()
            if vectorized in seen:
                continue
            seen.add(vectorized)

            if compression_ratio_upper_bound(pattern, mtp_map) < self.min_compression_ratio:
                continue

            tec = Tec(pattern, tuple(find_translators(pattern, mtp_map, points)))
            if self.min_compression_ratio > 0.0 and tec.compression_ratio() < self.min_compression_ratio:
                continue
            tecs.append(tec)

        logger.info(f"Discovered {len(tecs)} TECs from {len(seen)} distinct MTPs")
        return tecs


def compute_tecs(
    point_set: PointSet | Sequence[Point],
    min_compression_ratio: float = 0.0,
    mtp_map: MtpMap | None = None,
) -> list[Tec]:
    """Convenience function to run SIATECH on a point set.

    Args:
        point_set: Points to analyze.
        min_compression_ratio: Minimum compression ratio of returned TECs.
        mtp_map: Optional precomputed MTP map.

    Returns:
        List of TECs.
    """
    return PatternDiscoverer(min_compression_ratio).compute_tecs(point_set, mtp_map=mtp_map)


def sort_tecs(tecs: Iterable[Tec], largest_first: bool = True) -> list[Tec]:
    """Sort TECs by pattern size, then by first pattern point."""
    ordered = sorted(tecs, key=lambda tec: (tec.pattern[0], len(tec.translators)))
    return sorted(ordered, key=lambda tec: tec.pattern.size(), reverse=largest_first)


@dataclass
class DiscoveredPattern:
    """A discovered pattern with its occurrences in the score.

    Attributes:
        tec: The translational equivalence class.
        occurrences: Score positions of each occurrence.
    """

    tec: Tec
    occurrences: list[PatternPosition] = field(default_factory=list)

    @property
    def size(self) -> int:
        """Number of notes in the pattern."""
        return self.tec.pattern.size()

    @property
    def count(self) -> int:
        """Number of occurrences of this pattern."""
        return len(self.occurrences)


@dataclass
class DiscoveryResult:
    """Result of pattern discovery on a score.

    Attributes:
        patterns: Discovered patterns after filtering.
        point_count: Number of points in the analyzed point set.
        tec_count: Number of TECs before filtering.
    """

    patterns: list[DiscoveredPattern]
    point_count: int = 0
    tec_count: int = 0


def discover_patterns(
    score: Score,
    config: DiscoveryConfig | None = None,
    hash_context: HashContext | None = None,
) -> DiscoveryResult:
    """Discover repeated patterns in a score and locate their occurrences.

    Args:
        score: Score to analyze.
        config: Discovery settings; defaults return every TEC.
        hash_context: Hashing context for the extracted points.

    Returns:
        DiscoveryResult with patterns sorted largest first.
    """
    config = config or DiscoveryConfig()
    config.validate()

    point_set = extract_points(score, hash_context=hash_context)
    tecs = compute_tecs(point_set, min_compression_ratio=config.min_compression_ratio)

    patterns = []
    for tec in sort_tecs(tecs):
        if tec.pattern.size() < config.min_pattern_size:
            continue
        if len(tec.translators) < config.min_occurrences:
            continue

        occurrences = []
        for translator in tec.translators:
            position = point_set.pattern_position(tec.pattern, translator)
            if position is not None:
                occurrences.append(position)
        patterns.append(DiscoveredPattern(tec=tec, occurrences=occurrences))

        if config.limit is not None and len(patterns) >= config.limit:
            break

    return DiscoveryResult(patterns=patterns, point_count=point_set.size(), tec_count=len(tecs))
