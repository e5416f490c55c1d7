"""MIDI file parser producing notation scores, using the mido library."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import mido

from geometric_patterns.models.core import (
    Chord,
    Measure,
    Note,
    Part,
    Rest,
    Score,
    Staff,
    TimeSignature,
)

if TYPE_CHECKING:
    from geometric_patterns.models.core import Durational

logger = logging.getLogger(__name__)

DEFAULT_TICKS_PER_BEAT = 480


@dataclass(frozen=True)
class MidiNote:
    """A note span in ticks."""

    start_tick: int
    end_tick: int
    pitch: int


@dataclass(frozen=True)
class MeasureSpan:
    """Tick range of one measure."""

    number: int
    start_tick: int
    end_tick: int
    time_signature: TimeSignature


@dataclass(frozen=True)
class _Segment:
    start_tick: int
    end_tick: int
    pitches: tuple[int, ...]


class MidiScoreParser:
    """Parser turning MIDI files into single-voice, single-staff parts.

    Every track with notes becomes one part. Notes starting on the same tick
    form a chord; silences become rests; events crossing a barline are split
    into tied notes. Durations are in whole notes.
    """

    def parse_file(self, file_path: Path | str) -> Score:
        """Parse a MIDI file and return a Score.

        Args:
            file_path: Path to the MIDI file.

        Returns:
            Score with one part per track containing notes.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the file is not a valid MIDI file.
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"MIDI file not found: {file_path}")

        try:
            midi_file = mido.MidiFile(file_path)
        except Exception as e:
            raise ValueError(f"Failed to parse MIDI file: {e}") from e

        return self.parse_midi(midi_file, title=file_path.stem)

    def parse_midi(self, midi_file: mido.MidiFile, title: str = "") -> Score:
        """Convert an already loaded MIDI file into a Score."""
        ticks_per_beat = midi_file.ticks_per_beat or DEFAULT_TICKS_PER_BEAT
        time_sig_map = self._extract_time_sig_map(midi_file)

        track_notes = []
        for midi_track in midi_file.tracks:
            notes = self._extract_notes(midi_track)
            # Skip empty tracks
            if notes:
                track_notes.append((self._get_track_name(midi_track), notes))

        end_tick = max((n.end_tick for _, notes in track_notes for n in notes), default=0)
        measures = self._measure_spans(time_sig_map, ticks_per_beat, end_tick)

        parts = [
            self._build_part(name, notes, measures, ticks_per_beat)
            for name, notes in track_notes
        ]
        logger.debug(f"Parsed {len(parts)} parts over {len(measures)} measures")
        return Score(parts=parts, title=title)

    def _get_track_name(self, track: mido.MidiTrack) -> str:
        """Extract track name from MIDI track."""
        for msg in track:
            if msg.type == "track_name":
                return msg.name
        return ""

    def _extract_time_sig_map(self, midi_file: mido.MidiFile) -> list[tuple[int, TimeSignature]]:
        """Extract all time signature changes as (tick, time signature)."""
        time_sigs: list[tuple[int, TimeSignature]] = []

        for track in midi_file.tracks:
            tick = 0
            for msg in track:
                tick += msg.time
                if msg.type == "time_signature":
                    time_sigs.append((tick, TimeSignature(msg.numerator, msg.denominator)))

            # Only process first track for time sigs (Type 1 convention)
            if midi_file.type == 1:
                break

        time_sigs.sort(key=lambda item: item[0])

        # If no time signature at the start, assume 4/4
        if not time_sigs or time_sigs[0][0] > 0:
            time_sigs.insert(0, (0, TimeSignature(4, 4)))

        return time_sigs

    def _extract_notes(self, track: mido.MidiTrack) -> list[MidiNote]:
        """Extract sounding note spans from a MIDI track."""
        # (pitch, channel) -> start tick
        active_notes: dict[tuple[int, int], int] = {}
        notes: list[MidiNote] = []

        current_tick = 0
        for msg in track:
            current_tick += msg.time

            if msg.type == "note_on" and msg.velocity > 0:
                active_notes[(msg.note, msg.channel)] = current_tick

            elif msg.type == "note_off" or (msg.type == "note_on" and msg.velocity == 0):
                key = (msg.note, msg.channel)
                if key in active_notes:
                    start_tick = active_notes.pop(key)
                    if current_tick > start_tick:
                        notes.append(MidiNote(start_tick, current_tick, msg.note))

        notes.sort(key=lambda n: (n.start_tick, n.pitch))
        return notes

    def _measure_spans(
        self,
        time_sig_map: list[tuple[int, TimeSignature]],
        ticks_per_beat: int,
        end_tick: int,
    ) -> list[MeasureSpan]:
        """Lay out measures from tick 0 until end_tick is covered.

        A time signature change applies from the first measure starting at
        or after its tick.
        """
        spans: list[MeasureSpan] = []
        start = 0
        number = 1
        ts_index = 0

        while start < end_tick or not spans:
            while ts_index + 1 < len(time_sig_map) and time_sig_map[ts_index + 1][0] <= start:
                ts_index += 1
            time_sig = time_sig_map[ts_index][1]
            length = max(1, round(ticks_per_beat * time_sig.beats_per_bar))
            spans.append(MeasureSpan(number, start, start + length, time_sig))
            start += length
            number += 1

        return spans

    def _segments(self, notes: list[MidiNote]) -> list[_Segment]:
        """Split a track into contiguous note groups and silences from tick 0."""
        groups: dict[int, list[MidiNote]] = {}
        for note in notes:
            groups.setdefault(note.start_tick, []).append(note)

        onsets = sorted(groups)
        segments: list[_Segment] = []
        cursor = 0

        for index, onset in enumerate(onsets):
            if onset > cursor:
                segments.append(_Segment(cursor, onset, ()))

            group = groups[onset]
            end = max(n.end_tick for n in group)
            if index + 1 < len(onsets):
                end = min(end, onsets[index + 1])

            pitches = tuple(sorted({n.pitch for n in group}))
            segments.append(_Segment(onset, end, pitches))
            cursor = end

        return segments

    def _build_part(
        self,
        name: str,
        notes: list[MidiNote],
        measures: list[MeasureSpan],
        ticks_per_beat: int,
    ) -> Part:
        """Build a single-staff, single-voice part."""
        whole_note_ticks = ticks_per_beat * 4
        voices: dict[int, list[Durational]] = {span.number: [] for span in measures}

        for segment in self._segments(notes):
            pieces = [
                (span, max(segment.start_tick, span.start_tick), min(segment.end_tick, span.end_tick))
                for span in measures
                if span.start_tick < segment.end_tick and segment.start_tick < span.end_tick
            ]

            for piece_index, (span, start, end) in enumerate(pieces):
                duration = (end - start) / whole_note_ticks
                voices[span.number].append(
                    self._durational(
                        segment.pitches,
                        duration,
                        tied_from_previous=piece_index > 0,
                        tied_to_next=piece_index < len(pieces) - 1,
                    )
                )

        last_used = max((number for number, events in voices.items() if events), default=1)
        staff_measures = [
            Measure(number=span.number, time_signature=span.time_signature, voices={1: voices[span.number]})
            for span in measures
            if span.number <= last_used
        ]
        return Part(name=name, staves={1: Staff.of(staff_measures)})

    def _durational(
        self,
        pitches: tuple[int, ...],
        duration: float,
        tied_from_previous: bool,
        tied_to_next: bool,
    ) -> Durational:
        if not pitches:
            return Rest(duration)

        notes = [
            Note(pitch, duration, tied_from_previous=tied_from_previous, tied_to_next=tied_to_next)
            for pitch in pitches
        ]
        if len(notes) == 1:
            return notes[0]
        return Chord(tuple(notes))


def parse_midi(file_path: Path | str) -> Score:
    """Convenience function to parse a MIDI file into a Score.

    Args:
        file_path: Path to the MIDI file.

    Returns:
        Score with one part per track containing notes.
    """
    parser = MidiScoreParser()
    return parser.parse_file(file_path)
