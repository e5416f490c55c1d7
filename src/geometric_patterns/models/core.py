"""Core notation models consumed by point extraction.

Durations are expressed as fractions of a whole note (a quarter note is 0.25).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from geometric_patterns.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from collections.abc import Iterator


def _check_duration(duration: float) -> None:
    if not isinstance(duration, (int, float)) or duration != duration:
        raise InvalidArgumentError(f"Malformed duration: {duration!r}")
    if duration <= 0:
        raise InvalidArgumentError(f"Duration must be positive, was {duration}")


@dataclass(frozen=True)
class Note:
    """A pitched note.

    Attributes:
        pitch: Pitch number (MIDI numbering, C4 = 60)
        duration: Duration in whole notes
        tied_from_previous: Whether this note continues a tie from the previous note
        tied_to_next: Whether this note is tied to the next note
    """

    pitch: int
    duration: float
    tied_from_previous: bool = False
    tied_to_next: bool = False

    def __post_init__(self) -> None:
        _check_duration(self.duration)

    @property
    def is_rest(self) -> bool:
        return False


@dataclass(frozen=True)
class Rest:
    """A rest."""

    duration: float

    def __post_init__(self) -> None:
        _check_duration(self.duration)

    @property
    def is_rest(self) -> bool:
        return True


@dataclass(frozen=True)
class Chord:
    """Simultaneous notes sharing one duration.

    Attributes:
        notes: Constituent notes ordered from the bottom up
    """

    notes: tuple[Note, ...]

    def __post_init__(self) -> None:
        if not self.notes:
            raise InvalidArgumentError("A chord needs at least one note")
        durations = {note.duration for note in self.notes}
        if len(durations) != 1:
            raise InvalidArgumentError(f"Chord notes have different durations: {sorted(durations)}")

    @classmethod
    def of(cls, *notes: Note) -> Chord:
        """Create a chord with notes sorted from lowest to highest pitch."""
        return cls(tuple(sorted(notes, key=lambda n: n.pitch)))

    @property
    def duration(self) -> float:
        return self.notes[0].duration

    @property
    def is_rest(self) -> bool:
        return False

    def get_note(self, index: int) -> Note:
        return self.notes[index]


Durational = Union[Note, Rest, Chord]


@dataclass(frozen=True)
class TimeSignature:
    """A time signature.

    Attributes:
        numerator: Beats per bar
        denominator: Beat unit (4 = quarter note, 8 = eighth note, etc.)
    """

    numerator: int = 4
    denominator: int = 4

    def __post_init__(self) -> None:
        if self.numerator <= 0 or self.denominator <= 0:
            raise InvalidArgumentError(f"Invalid time signature: {self.numerator}/{self.denominator}")

    @property
    def total_duration(self) -> float:
        """Duration of a full bar in whole notes."""
        return self.numerator / self.denominator

    @property
    def beats_per_bar(self) -> float:
        """Calculate beats per bar (in quarter notes)."""
        return self.numerator * (4 / self.denominator)

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


@dataclass(frozen=True, order=True)
class Position:
    """Structural position of a durational in a score.

    Attributes:
        part_index: Index of the part in the score (0-based)
        staff_number: Staff number within the part (1-based)
        measure_number: Measure number (1-based)
        voice_number: Voice number within the measure (1-based)
        index_in_voice: Index of the durational in the voice (0-based)
        index_in_chord: Index of the note in a chord from the bottom up, if any
    """

    part_index: int
    staff_number: int
    measure_number: int
    voice_number: int
    index_in_voice: int
    index_in_chord: int | None = None

    def in_chord(self, index_in_chord: int) -> Position:
        """Get the position of a constituent of the chord at this position."""
        return Position(
            self.part_index,
            self.staff_number,
            self.measure_number,
            self.voice_number,
            self.index_in_voice,
            index_in_chord,
        )

    def to_dict(self) -> dict[str, int | None]:
        """Convert to dictionary."""
        return {
            "part": self.part_index,
            "staff": self.staff_number,
            "measure": self.measure_number,
            "voice": self.voice_number,
            "index": self.index_in_voice,
            "chord_index": self.index_in_chord,
        }

    def __str__(self) -> str:
        text = (
            f"part {self.part_index}, staff {self.staff_number}, measure {self.measure_number}, "
            f"voice {self.voice_number}, index {self.index_in_voice}"
        )
        if self.index_in_chord is not None:
            text += f", chord note {self.index_in_chord}"
        return text


@dataclass(frozen=True)
class PatternPosition:
    """Positions of all notes of one pattern occurrence."""

    positions: tuple[Position, ...]

    @property
    def measure_numbers(self) -> list[int]:
        return sorted({p.measure_number for p in self.positions})

    def __len__(self) -> int:
        return len(self.positions)


@dataclass
class Measure:
    """A measure with one or more voices.

    Attributes:
        number: Measure number (1-based)
        time_signature: Time signature in effect for this measure
        voices: Durationals per voice number
    """

    number: int
    time_signature: TimeSignature = field(default_factory=TimeSignature)
    voices: dict[int, list[Durational]] = field(default_factory=dict)

    @property
    def voice_numbers(self) -> list[int]:
        return sorted(self.voices)


@dataclass
class Staff:
    """A staff holding measures by number."""

    measures: dict[int, Measure] = field(default_factory=dict)

    @classmethod
    def of(cls, measures: list[Measure]) -> Staff:
        return cls({m.number: m for m in measures})

    @property
    def measure_numbers(self) -> list[int]:
        return sorted(self.measures)

    def get_measure(self, number: int) -> Measure:
        if number not in self.measures:
            raise KeyError(f"No measure with number {number}")
        return self.measures[number]


@dataclass
class Part:
    """A part with one or more staves.

    Attributes:
        name: Part name
        staves: Staves by staff number (1-based)
    """

    name: str = ""
    staves: dict[int, Staff] = field(default_factory=dict)

    @property
    def staff_numbers(self) -> list[int]:
        return sorted(self.staves)

    @property
    def measure_numbers(self) -> list[int]:
        """Numbers of measures present on any staff, ascending."""
        return sorted({number for staff in self.staves.values() for number in staff.measures})

    def get_measure(self, staff_number: int, measure_number: int) -> Measure:
        if staff_number not in self.staves:
            raise KeyError(f"No staff with number {staff_number}")
        return self.staves[staff_number].get_measure(measure_number)


@dataclass
class Score:
    """A score: parts of staves of measures of voices.

    Attributes:
        parts: Parts in score order
        title: Score title
    """

    parts: list[Part] = field(default_factory=list)
    title: str = ""

    def get_part(self, part_index: int) -> Part:
        return self.parts[part_index]

    def partwise(self) -> Iterator[tuple[Durational, Position]]:
        """Iterate through the score in part-wise order.

        Parts in order; within a part measure by measure; within a measure
        staff by staff; within a staff voice by voice.

        Yields:
            Tuples of (durational, position).
        """
        for part_index, part in enumerate(self.parts):
            for measure_number in part.measure_numbers:
                for staff_number in part.staff_numbers:
                    staff = part.staves[staff_number]
                    if measure_number not in staff.measures:
                        continue
                    measure = staff.measures[measure_number]
                    for voice_number in measure.voice_numbers:
                        for index, durational in enumerate(measure.voices[voice_number]):
                            yield durational, Position(
                                part_index, staff_number, measure_number, voice_number, index
                            )

    def measure_duration(self, part_index: int, staff_number: int, measure_number: int) -> float:
        """Get the full-bar duration of a measure from its time signature."""
        measure = self.get_part(part_index).get_measure(staff_number, measure_number)
        return measure.time_signature.total_duration

    def get_at(self, position: Position) -> Durational:
        """Get the durational at a position.

        For a position with a chord index, the constituent note is returned.
        """
        measure = self.get_part(position.part_index).get_measure(
            position.staff_number, position.measure_number
        )
        durational = measure.voices[position.voice_number][position.index_in_voice]
        if position.index_in_chord is not None:
            if not isinstance(durational, Chord):
                raise KeyError(f"No chord at {position}")
            return durational.get_note(position.index_in_chord)
        return durational

    def get_pattern_at(self, pattern_position: PatternPosition) -> list[Durational]:
        """Get the durationals at every position of a pattern occurrence."""
        return [self.get_at(p) for p in pattern_position.positions]
