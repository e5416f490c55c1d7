"""Data models for notation and geometric pattern analysis."""

from geometric_patterns.models.core import (
    Chord,
    Durational,
    Measure,
    Note,
    Part,
    PatternPosition,
    Position,
    Rest,
    Score,
    Staff,
    TimeSignature,
)
from geometric_patterns.models.geometry import (
    Point,
    PointPattern,
    Tec,
)
from geometric_patterns.models.hashing import HashContext, default_hash_context

__all__ = [
    "Chord",
    "Durational",
    "HashContext",
    "Measure",
    "Note",
    "Part",
    "PatternPosition",
    "Point",
    "PointPattern",
    "Position",
    "Rest",
    "Score",
    "Staff",
    "Tec",
    "TimeSignature",
    "default_hash_context",
]
