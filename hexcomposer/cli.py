"""CLI interface for the hex composition pipeline."""

import json
import logging
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError

from hexcomposer.composer import HexComposer
from hexcomposer.config import load_settings
from hexcomposer.errors import CompositionError
from hexcomposer.hex_coords import key_to_coords
from hexcomposer.loader import DefinitionLoader
from hexcomposer.overlay import RecordingOverlay
from hexcomposer.resolver import PositionResolver
from hexcomposer.router import FlowRouter


def _load(definition: str):
    try:
        return DefinitionLoader().load(definition)
    except FileNotFoundError as e:
        raise click.ClickException(str(e))
    except ValidationError as e:
        raise click.ClickException(f"Invalid definition {definition}:\n{e}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log per-attempt detail")
def cli(verbose: bool):
    """Hex Composer World Layout Pipeline"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


@cli.command()
@click.argument("definition")
@click.option("--seed", default=42, help="Composition seed")
@click.option("--max-retries", default=None, type=int, help="Override the retry budget")
@click.option("--settings", "settings_path", default=None, help="TOML settings file")
@click.option("--output", default=None, help="Write cell configs to this JSON file")
@click.option("--markers", is_flag=True, help="Include debug markers in the output")
def compose(
    definition: str,
    seed: int,
    max_retries: Optional[int],
    settings_path: Optional[str],
    output: Optional[str],
    markers: bool,
):
    """Compose a world definition onto the hex grid."""
    world = _load(definition)
    overlay = RecordingOverlay()
    composer = HexComposer(settings=load_settings(settings_path), overlay=overlay)
    result = composer.compose(world, seed=seed, max_retries=max_retries)

    click.echo(f"Composed {world.id} (seed: {seed})")
    if result.placement is not None:
        click.echo(f"  Placed: {len(result.placement.placed)}/{len(result.prepared.areas)}")
        click.echo(f"  Retries: {result.placement.total_retries}")
    if result.fill is not None and result.fill.success:
        click.echo(f"  Cells: {len(result.fill.cells)}")
        for category, count in result.fill.counts.items():
            if count:
                click.echo(f"    {category}: {count}")
    if result.points is not None and result.prepared.points:
        click.echo(f"  Points: {len(result.points.placed)}/{len(result.prepared.points)}")
    if result.routing is not None:
        click.echo(f"  Routed flows: {len(result.routing.routes)}/{len(result.prepared.flows)}")
        if result.prepared.side_walls:
            click.echo(
                f"  Side walls: {len(result.routing.side_walls)}/{len(result.prepared.side_walls)}"
            )
    for warning in result.warnings:
        click.echo(f"  Warning: {warning}")

    if output:
        payload = {
            "id": world.id,
            "seed": seed,
            "success": result.success,
            "error": result.error,
            "cells": result.cell_configs(),
        }
        if markers:
            payload["markers"] = overlay.to_dicts()
        output_path = Path(output)
        with open(output_path, "w") as f:
            json.dump(payload, f, indent=2)
        click.echo(f"Saved to {output_path}")

    if not result.success:
        raise click.ClickException(result.error or "Composition failed")


@cli.command()
@click.argument("definition")
def prepare(definition: str):
    """Show resolved positions and placement order."""
    world = _load(definition)
    try:
        prepared = PositionResolver().prepare(world)
    except CompositionError as e:
        raise click.ClickException(str(e))

    click.echo("Placement order:")
    for area in prepared.areas:
        click.echo(
            f"  {area.feature_id} [{area.kind}] priority={area.priority} "
            f"size={area.size_from}-{area.size_to} shape={area.shape.value}"
        )
        for position in area.positions:
            anchor = position.anchor or "origin"
            click.echo(
                f"    {position.direction.value} ({position.angle} deg) "
                f"{position.distance_from}-{position.distance_to} from {anchor}"
            )
    if prepared.flows:
        click.echo("Flows:")
        for flow in prepared.flows:
            click.echo(
                f"  {flow.feature_id} [{flow.flow_type.value}] width={flow.width} "
                f"via {' -> '.join(flow.waypoints)}"
            )
    if prepared.points:
        click.echo("Points:")
        for point in prepared.points:
            click.echo(f"  {point.feature_id} [{point.mode.value}] in {point.host or '?'}")
    if prepared.side_walls:
        click.echo("Side walls:")
        for wall in prepared.side_walls:
            sides = ",".join(side.value for side in wall.sides)
            click.echo(f"  {wall.feature_id} around {wall.target} sides={sides}")


@cli.command()
@click.argument("start")
@click.argument("end")
def route(start: str, end: str):
    """Show the cell walk between two "q:r" cells."""
    router = FlowRouter(load_settings())
    try:
        path = router.walk(key_to_coords(start), key_to_coords(end))
    except ValueError:
        raise click.ClickException("Cells must be given as q:r")
    except CompositionError as e:
        raise click.ClickException(str(e))

    click.echo(" -> ".join(f"{c.q}:{c.r}" for c in path))
    click.echo(f"{len(path) - 1} steps")


if __name__ == "__main__":
    cli()
