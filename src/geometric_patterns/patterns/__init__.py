"""Point set extraction, exact matching and repeated pattern discovery."""

from geometric_patterns.patterns.discovery import (
    DiscoveredPattern,
    DiscoveryResult,
    IndexPairs,
    PatternDiscoverer,
    compute_mtp_map,
    compute_tecs,
    discover_patterns,
    find_translators,
    merge_mtp_maps,
    sort_tecs,
)
from geometric_patterns.patterns.matching import (
    PatternMatcher,
    PointSetSearch,
    find_matches,
    find_positions,
)
from geometric_patterns.patterns.point_set import (
    PointExtractor,
    PointSet,
    extract_points,
    is_sorted,
)

__all__ = [
    "DiscoveredPattern",
    "DiscoveryResult",
    "IndexPairs",
    "PatternDiscoverer",
    "PatternMatcher",
    "PointExtractor",
    "PointSet",
    "PointSetSearch",
    "compute_mtp_map",
    "compute_tecs",
    "discover_patterns",
    "extract_points",
    "find_matches",
    "find_positions",
    "find_translators",
    "is_sorted",
    "merge_mtp_maps",
    "sort_tecs",
]
