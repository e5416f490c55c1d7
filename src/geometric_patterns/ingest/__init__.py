"""MIDI file ingestion into notation scores."""

from geometric_patterns.ingest.parser import MidiScoreParser, parse_midi

__all__ = [
    "MidiScoreParser",
    "parse_midi",
]
