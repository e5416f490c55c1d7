"""Shared test fixtures."""

from collections.abc import Callable
from pathlib import Path

import mido
import pytest

MidiWriter = Callable[..., Path]


def _write_midi(
    path: Path,
    tracks: list[tuple[str, list[tuple[int, int, int]]]],
    time_signature: tuple[int, int] = (4, 4),
    ticks_per_beat: int = 480,
) -> Path:
    """Write a type 1 MIDI file.

    Args:
        path: Output path.
        tracks: (name, [(start_tick, end_tick, pitch), ...]) per note track.
        time_signature: Time signature set at tick 0 in the conductor track.
        ticks_per_beat: File resolution.
    """
    mid = mido.MidiFile(ticks_per_beat=ticks_per_beat)

    conductor = mido.MidiTrack()
    mid.tracks.append(conductor)
    conductor.append(mido.MetaMessage("set_tempo", tempo=500000, time=0))
    numerator, denominator = time_signature
    conductor.append(
        mido.MetaMessage("time_signature", numerator=numerator, denominator=denominator, time=0)
    )

    for name, notes in tracks:
        track = mido.MidiTrack()
        mid.tracks.append(track)
        track.append(mido.MetaMessage("track_name", name=name, time=0))

        # Note offs sort before note ons on the same tick
        events = []
        for start, end, pitch in notes:
            events.append((start, 1, mido.Message("note_on", note=pitch, velocity=100)))
            events.append((end, 0, mido.Message("note_off", note=pitch, velocity=0)))
        events.sort(key=lambda e: (e[0], e[1]))

        last_tick = 0
        for tick, _, msg in events:
            track.append(msg.copy(time=tick - last_tick))
            last_tick = tick

    mid.save(path)
    return path


@pytest.fixture
def write_midi() -> MidiWriter:
    """Get a function that writes note tracks to a MIDI file."""
    return _write_midi
