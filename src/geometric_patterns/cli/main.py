"""Main CLI entry point for geometric pattern search and discovery."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import click

from geometric_patterns import __version__
from geometric_patterns.config import DiscoveryConfig, load_config
from geometric_patterns.exceptions import GeometricPatternsError

if TYPE_CHECKING:
    from geometric_patterns.models import Score


# ANSI color codes for terminal output
class Colors:
    """ANSI color codes for styled terminal output."""

    HEADER = "\033[95m"
    CYAN = "\033[96m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    END = "\033[0m"


def color(text: str, *codes: str) -> str:
    """Apply color codes to text."""
    return "".join(codes) + str(text) + Colors.END


def parse_query(ctx: click.Context, param: click.Parameter, value: str) -> list[tuple[float, float]]:
    """Parse a query of comma-separated onset:pitch pairs.

    Example:
        "0:60,0.25:62,0.5:64"
    """
    pairs = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            onset, pitch = item.split(":")
            pairs.append((float(onset), float(pitch)))
        except ValueError:
            raise click.BadParameter(f"'{item}' is not an onset:pitch pair") from None

    if not pairs:
        raise click.BadParameter("query must contain at least one onset:pitch pair")
    return pairs


@click.group()
@click.version_option(version=__version__, prog_name="geometric-patterns")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to JSON configuration file.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: Path | None) -> None:
    """Geometric Patterns - Find and discover repeated patterns in MIDI files."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    try:
        ctx.obj["config"] = load_config(config) if config else DiscoveryConfig()
    except GeometricPatternsError as e:
        click.echo(f"Error loading config {config}: {e}", err=True)
        raise SystemExit(1)


def _load_score(path: Path) -> Score:
    from geometric_patterns.ingest import parse_midi

    if not path.is_file():
        click.echo(f"Error: {path} is not a file", err=True)
        raise SystemExit(1)

    try:
        return parse_midi(path)
    except (ValueError, OSError) as e:
        click.echo(f"Error loading {path}: {e}", err=True)
        raise SystemExit(1)


@cli.command()
@click.argument("path", type=click.Path(exists=True, path_type=Path))
@click.option("-f", "--format", "output_format", type=click.Choice(["text", "json"]), default="text")
def points(path: Path, output_format: str) -> None:
    """Print the point set of a MIDI file.

    Each note becomes an (onset, pitch) point, with onsets in whole notes.

    Example:
        geometric-patterns points song.mid
    """
    from geometric_patterns.patterns import extract_points

    score = _load_score(path)
    point_set = extract_points(score)

    if output_format == "json":
        data = {
            "file": str(path),
            "points": [
                {
                    "onset": point.onset,
                    "pitch": point.pitch,
                    "position": (
                        point_set.position_at(i).to_dict()
                        if point_set.position_at(i) is not None
                        else None
                    ),
                }
                for i, point in enumerate(point_set)
            ],
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"{color(path.name, Colors.BOLD, Colors.CYAN)}: {len(point_set)} points")
    for i, point in enumerate(point_set):
        click.echo(f"  {point}  {color(point_set.position_at(i), Colors.DIM)}")


@cli.command()
@click.argument("path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-q",
    "--query",
    required=True,
    callback=parse_query,
    help="Query as onset:pitch pairs, e.g. '0:60,0.25:62'.",
)
@click.option("-f", "--format", "output_format", type=click.Choice(["text", "json"]), default="text")
def search(path: Path, query: list[tuple[float, float]], output_format: str) -> None:
    """Find every transposed and time-shifted occurrence of a query.

    Example:
        geometric-patterns search song.mid -q "0:72,0.25:74,0.5:72"
    """
    from geometric_patterns.models import Point, PointPattern
    from geometric_patterns.patterns import PointSetSearch

    score = _load_score(path)
    searcher = PointSetSearch(score)
    context = searcher.point_set.hash_context
    pattern = PointPattern(Point(onset, pitch, hash_context=context) for onset, pitch in query)

    try:
        occurrences = searcher.find_positions(pattern)
    except GeometricPatternsError as e:
        click.echo(f"Error searching {path}: {e}", err=True)
        raise SystemExit(1)

    if output_format == "json":
        data = {
            "file": str(path),
            "query": [list(p.components) for p in pattern],
            "occurrences": [[pos.to_dict() for pos in occ.positions] for occ in occurrences],
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"{color(path.name, Colors.BOLD, Colors.CYAN)}: {len(occurrences)} occurrence(s)")
    for i, occurrence in enumerate(occurrences, 1):
        measures = occurrence.measure_numbers
        click.echo(f"\n  {color(f'[{i}]', Colors.GREEN)} measures {measures[0]}-{measures[-1]}")
        for position in occurrence.positions:
            click.echo(f"      {position}")


@cli.command()
@click.argument("path", type=click.Path(exists=True, path_type=Path))
@click.option("--min-compression-ratio", type=float, help="Minimum TEC compression ratio.")
@click.option("--min-size", type=int, help="Minimum number of notes in a pattern.")
@click.option("--min-occurrences", type=int, help="Minimum number of occurrences.")
@click.option("-l", "--limit", type=int, help="Maximum number of patterns to report.")
@click.option("-f", "--format", "output_format", type=click.Choice(["text", "json"]), default="text")
@click.pass_context
def discover(
    ctx: click.Context,
    path: Path,
    min_compression_ratio: float | None,
    min_size: int | None,
    min_occurrences: int | None,
    limit: int | None,
    output_format: str,
) -> None:
    """Discover repeated patterns with SIATECH.

    Options override values from the configuration file.

    Example:
        geometric-patterns discover song.mid --min-compression-ratio 2
        geometric-patterns discover song.mid --min-size 3 --format json
    """
    from geometric_patterns.patterns import discover_patterns

    verbose = ctx.obj.get("verbose", False)

    try:
        config = ctx.obj["config"].with_overrides(
            min_compression_ratio=min_compression_ratio,
            min_pattern_size=min_size,
            min_occurrences=min_occurrences,
            limit=limit,
        )
    except GeometricPatternsError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    score = _load_score(path)
    result = discover_patterns(score, config)

    if output_format == "json":
        data = {
            "file": str(path),
            "config": config.to_dict(),
            "point_count": result.point_count,
            "tec_count": result.tec_count,
            "patterns": [
                {
                    **found.tec.to_dict(),
                    "occurrences": [
                        [pos.to_dict() for pos in occ.positions] for occ in found.occurrences
                    ],
                }
                for found in result.patterns
            ],
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"\n{color('Repeated Patterns', Colors.BOLD, Colors.HEADER)}")
    click.echo(f"{'=' * 50}")
    click.echo(f"File: {path.name}")
    click.echo(f"Points: {result.point_count}, TECs: {result.tec_count}")

    if not result.patterns:
        click.echo("\nNo patterns matched the filters.")
        return

    for i, found in enumerate(result.patterns, 1):
        click.echo(
            f"\n  {color(f'[{i}]', Colors.CYAN, Colors.BOLD)} "
            f"{found.size} notes x {len(found.tec.translators)} occurrences, "
            f"compression ratio {color(f'{found.tec.compression_ratio():.2f}', Colors.YELLOW)}"
        )
        click.echo(f"      Pattern: {', '.join(str(p) for p in found.tec.pattern)}")
        if verbose:
            for occurrence in found.occurrences:
                measures = occurrence.measure_numbers
                click.echo(f"      At measures {measures[0]}-{measures[-1]}")


if __name__ == "__main__":
    cli()
