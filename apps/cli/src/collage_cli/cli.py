"""CLI for the collage analyzer."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from collage_analyzer import AnalysisSession, make_rng, sample_pixels
from collage_shared.files import DecodeFailure, load_image


@click.command()
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-s", "--seed", default=None, type=int, help="Seed for direction, region and placement picks")
@click.option("--max-width", default=1200, type=int, help="Downscale images wider than this")
@click.option("--overlay", is_flag=True, help="Also compute a synthetic overlay placement")
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def cli(image: Path, seed: int | None, max_width: int, overlay: bool,
        as_json: bool, verbose: bool) -> None:
    """Analyze IMAGE and recommend collage interventions."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    try:
        img = load_image(image)
    except DecodeFailure as e:
        raise click.ClickException(str(e)) from e

    session = AnalysisSession(make_rng(seed))
    result = session.analyze(sample_pixels(img, max_width=max_width))
    payload = result.to_dict()
    if overlay:
        payload["overlay"] = session.place_overlay().to_dict()

    if as_json:
        click.echo(json.dumps(payload, indent=2))
        return

    click.echo("Features:")
    for key, value in result.features.summary().items():
        click.echo(f"  {key}: {value}")
    click.echo("Recommendations:")
    for phrase, reason in zip(result.recommendations.recommendations,
                              result.recommendations.reasons):
        click.echo(f"  - {phrase.replace('**', '')}")
        click.echo(f"    ({reason})")
    click.echo(f"Overlay: {result.overlay.value}")
    if overlay:
        p = payload["overlay"]
        click.echo(
            f"  at ({p['x']}, {p['y']}) size {p['width']}x{p['height']}, "
            f"rotated {p['rotation_deg']:.1f} deg"
        )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
