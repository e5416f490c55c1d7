"""Tests for MIDI ingest."""

from collections.abc import Callable
from pathlib import Path

import mido
import pytest

from geometric_patterns.ingest.parser import MidiScoreParser, parse_midi
from geometric_patterns.models import Chord, Note, Point, Rest, TimeSignature
from geometric_patterns.patterns.point_set import extract_points


class TestMidiScoreParser:
    """Tests for MIDI to score conversion."""

    def test_simple_melody(self, tmp_path: Path, write_midi: Callable[..., Path]) -> None:
        """Test a melody of quarter notes."""
        path = write_midi(tmp_path / "melody.mid", [("Piano", [(0, 480, 60), (480, 960, 64), (960, 1440, 67)])])
        score = MidiScoreParser().parse_file(path)

        assert score.title == "melody"
        assert len(score.parts) == 1
        assert score.parts[0].name == "Piano"

        measure = score.parts[0].get_measure(1, 1)
        assert measure.time_signature == TimeSignature(4, 4)
        assert measure.voices[1] == [Note(60, 0.25), Note(64, 0.25), Note(67, 0.25)]

    def test_points_from_file(self, tmp_path: Path, write_midi: Callable[..., Path]) -> None:
        """Test extracting points from a parsed file."""
        path = write_midi(tmp_path / "melody.mid", [("Piano", [(0, 480, 60), (480, 960, 64), (960, 1440, 67)])])
        assert list(extract_points(parse_midi(path))) == [Point(0, 60), Point(0.25, 64), Point(0.5, 67)]

    def test_chords(self, tmp_path: Path, write_midi: Callable[..., Path]) -> None:
        """Test that notes starting together form a chord."""
        path = write_midi(tmp_path / "chords.mid", [("Piano", [(0, 960, 64), (0, 960, 60), (960, 1440, 67)])])
        events = parse_midi(path).parts[0].get_measure(1, 1).voices[1]

        assert events[0] == Chord.of(Note(60, 0.5), Note(64, 0.5))
        assert events[1] == Note(67, 0.25)

    def test_gaps_become_rests(self, tmp_path: Path, write_midi: Callable[..., Path]) -> None:
        """Test that silence between notes becomes a rest."""
        path = write_midi(tmp_path / "gaps.mid", [("Piano", [(0, 480, 60), (960, 1440, 62)])])
        events = parse_midi(path).parts[0].get_measure(1, 1).voices[1]
        assert events == [Note(60, 0.25), Rest(0.25), Note(62, 0.25)]

    def test_leading_rest(self, tmp_path: Path, write_midi: Callable[..., Path]) -> None:
        """Test that a late first note is preceded by a rest."""
        path = write_midi(tmp_path / "late.mid", [("Piano", [(960, 1440, 62)])])
        assert list(extract_points(parse_midi(path))) == [Point(0.5, 62)]

    def test_barline_tie(self, tmp_path: Path, write_midi: Callable[..., Path]) -> None:
        """Test that a note crossing a barline is split into tied notes."""
        path = write_midi(tmp_path / "tie.mid", [("Piano", [(1440, 2400, 60)])])
        part = parse_midi(path).parts[0]

        assert part.get_measure(1, 1).voices[1] == [Rest(0.75), Note(60, 0.25, tied_to_next=True)]
        assert part.get_measure(1, 2).voices[1] == [Note(60, 0.25, tied_from_previous=True)]
        assert list(extract_points(parse_midi(path))) == [Point(0.75, 60)]

    def test_time_signature(self, tmp_path: Path, write_midi: Callable[..., Path]) -> None:
        """Test measure lengths from the time signature."""
        path = write_midi(
            tmp_path / "waltz.mid",
            [("Piano", [(0, 480, 60), (1440, 1920, 62)])],
            time_signature=(3, 4),
        )
        part = parse_midi(path).parts[0]

        assert part.measure_numbers == [1, 2]
        assert part.get_measure(1, 1).time_signature == TimeSignature(3, 4)
        assert part.get_measure(1, 1).voices[1] == [Note(60, 0.25), Rest(0.5)]
        assert list(extract_points(parse_midi(path))) == [Point(0, 60), Point(0.75, 62)]

    def test_one_part_per_track(self, tmp_path: Path, write_midi: Callable[..., Path]) -> None:
        """Test that each note track becomes a part starting at zero."""
        path = write_midi(
            tmp_path / "duet.mid",
            [("Melody", [(0, 480, 72)]), ("Bass", [(0, 960, 48)])],
        )
        score = parse_midi(path)
        assert [p.name for p in score.parts] == ["Melody", "Bass"]

        point_set = extract_points(score)
        assert list(point_set) == [Point(0, 48), Point(0, 72)]
        assert point_set.position_of(Point(0, 48)).part_index == 1

    def test_parse_loaded_file(self) -> None:
        """Test converting an in-memory MIDI file."""
        mid = mido.MidiFile(ticks_per_beat=96)
        track = mido.MidiTrack()
        mid.tracks.append(track)
        track.append(mido.Message("note_on", note=60, velocity=100, time=0))
        track.append(mido.Message("note_on", note=60, velocity=0, time=96))

        score = MidiScoreParser().parse_midi(mid, title="inline")
        assert score.title == "inline"
        assert score.parts[0].get_measure(1, 1).voices[1] == [Note(60, 0.25)]

    def test_parse_nonexistent_file(self) -> None:
        """Test that parsing nonexistent file raises error."""
        with pytest.raises(FileNotFoundError):
            MidiScoreParser().parse_file("/nonexistent/file.mid")

    def test_parse_invalid_file(self, tmp_path: Path) -> None:
        """Test that a file that is not MIDI raises ValueError."""
        path = tmp_path / "broken.mid"
        path.write_bytes(b"not a midi file")
        with pytest.raises(ValueError):
            parse_midi(path)
