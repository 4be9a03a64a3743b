"""Command-line interface for canvas capture."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from .config import get_config
from .errors import CaptureError, TemplateError
from .models.coords import TileCoords
from .services.capture_service import CaptureService, DirectorySink, describe_failure
from .services.stitch_service import StitchService
from .services.style_service import apply_dark_style
from .services.template_library import TemplateLibrary
from .services.tile_service import TileService
from .utils.readout import parse_coords
from .utils.tile_math import coords_to_global, normalize_rectangle, to_tile_local

console = Console()


def _parse_corner(ctx, param, value: Optional[str]) -> Optional[TileCoords]:
    """Click callback turning 'tx,ty,px,py' or readout text into TileCoords."""
    if value is None:
        return None
    coords = parse_coords(value, get_config().tile_size)
    if coords is None:
        raise click.BadParameter(
            f"expected 'tx,ty,px,py' or 'Tl X: .., Tl Y: .., Px X: .., Px Y: ..', got {value!r}"
        )
    return coords


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def main(verbose: bool):
    """Canvas Capture - stitch regions of a tiled pixel canvas."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@main.command()
@click.argument("corner_a", callback=_parse_corner)
@click.argument("corner_b", callback=_parse_corner)
@click.option("--base-url", "-u", help="Tile server base URL")
@click.option("--output", "-o", type=click.Path(file_okay=False), help="Output directory")
@click.option("--blank-missing", is_flag=True, help="Leave tiles that return 404 transparent")
def capture(
    corner_a: TileCoords,
    corner_b: TileCoords,
    base_url: Optional[str],
    output: Optional[str],
    blank_missing: bool,
):
    """Capture the rectangle between two corners to a PNG.

    Corners are 'tx,ty,px,py' (tile X/Y, pixel X/Y within the tile), in any order.
    """
    config = get_config()
    base_url = base_url or config.tile_base_url
    output_dir = Path(output) if output else config.output_dir

    rect = normalize_rectangle(
        coords_to_global(corner_a, config.tile_size),
        coords_to_global(corner_b, config.tile_size),
    )
    console.print(f"[bold]Region:[/bold] {rect.width} x {rect.height} px")

    try:
        artifact = asyncio.run(_run_capture(corner_a, corner_b, base_url, output_dir, blank_missing))
    except CaptureError as e:
        console.print(f"[red]Error:[/red] {describe_failure(e)}")
        raise SystemExit(1)

    console.print(f"[green]Saved:[/green] {artifact.location}")


async def _run_capture(corner_a, corner_b, base_url, output_dir, blank_missing):
    config = get_config()

    async with TileService(timeout=config.http_timeout) as tiles:
        stitcher = StitchService(
            tiles,
            tile_size=config.tile_size,
            max_dimension=config.max_dimension,
            missing_tiles_blank=blank_missing,
        )
        service = CaptureService(stitcher, DirectorySink(output_dir))

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Fetching tiles...", total=None)

            def on_tile(done, total, tile):
                progress.update(task, completed=done, total=total, description=f"Tile {tile}")

            artifact = await service.capture_corners(
                coords_to_global(corner_a, config.tile_size),
                coords_to_global(corner_b, config.tile_size),
                base_url,
                progress_callback=on_tile,
            )
            progress.update(task, description="[green]Tiles stitched")

    return artifact


@main.command()
@click.argument("corner_a", callback=_parse_corner)
@click.argument("corner_b", callback=_parse_corner)
def plan(corner_a: TileCoords, corner_b: TileCoords):
    """Show which tiles a capture would fetch, without downloading anything."""
    config = get_config()
    rect = normalize_rectangle(
        coords_to_global(corner_a, config.tile_size),
        coords_to_global(corner_b, config.tile_size),
    )
    stitcher = StitchService(None, tile_size=config.tile_size, max_dimension=config.max_dimension)

    try:
        stitcher.validate_region(rect)
    except CaptureError as e:
        console.print(f"[red]Error:[/red] {describe_failure(e)}")
        raise SystemExit(1)

    placements = stitcher.plan(rect)
    corner = to_tile_local(rect.left, rect.top, config.tile_size)

    table = Table(title=f"Capture {rect.width} x {rect.height} px from {corner}")
    table.add_column("Tile", style="cyan")
    table.add_column("Source box", style="green")
    table.add_column("Destination", style="green")

    for p in placements:
        table.add_row(str(p.tile), f"{p.sx},{p.sy} - {p.ex},{p.ey}", f"{p.dx},{p.dy}")

    console.print(table)
    console.print(f"[dim]{len(placements)} tile(s) to fetch[/dim]")


# ---------------------------------------------------------------------------
# Template library
# ---------------------------------------------------------------------------


@main.group()
@click.option("--library", "-l", type=click.Path(dir_okay=False), help="Template library JSON file")
@click.pass_context
def templates(ctx, library: Optional[str]):
    """Manage saved templates (image + canvas coordinates)."""
    path = Path(library) if library else get_config().library_path
    ctx.obj = TemplateLibrary(path)


@templates.command("list")
@click.pass_obj
def templates_list(library: TemplateLibrary):
    """List saved templates."""
    try:
        items = library.load()
    except TemplateError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    if not items:
        console.print("[dim]No templates saved.[/dim]")
        return

    table = Table(title="Templates")
    table.add_column("#", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Coords", style="green")
    table.add_column("File")

    for i, t in enumerate(items):
        c = t.coords
        table.add_row(str(i), t.name, f"{c.tlx},{c.tly},{c.px},{c.py}", t.filename or "")

    console.print(table)


@templates.command("add")
@click.argument("name")
@click.argument("image", type=click.Path(exists=True, dir_okay=False))
@click.option("--coords", "-c", "coords", required=True, callback=_parse_corner,
              help="Anchor as 'tx,ty,px,py' or readout text")
@click.pass_obj
def templates_add(library: TemplateLibrary, name: str, image: str, coords: TileCoords):
    """Save IMAGE as template NAME anchored at --coords."""
    try:
        template = library.add(name, image, coords)
    except TemplateError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    console.print(f"[green]Added:[/green] {template.name}")


@templates.command("delete")
@click.argument("name")
@click.pass_obj
def templates_delete(library: TemplateLibrary, name: str):
    """Delete a template."""
    try:
        template = library.delete(name)
    except TemplateError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    console.print(f"[green]Deleted:[/green] {template.name}")


@templates.command("move")
@click.argument("name")
@click.option("--by", "delta", type=int, default=-1, show_default=True,
              help="Positions to move (negative = towards the top)")
@click.pass_obj
def templates_move(library: TemplateLibrary, name: str, delta: int):
    """Reorder a template."""
    try:
        index = library.move(name, delta)
    except TemplateError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    console.print(f"[green]Moved:[/green] {name} -> position {index}")


@templates.command("export")
@click.option("--output", "-o", type=click.Path(dir_okay=False),
              default="template-library-export.json", show_default=True)
@click.pass_obj
def templates_export(library: TemplateLibrary, output: str):
    """Export all templates to a JSON file."""
    try:
        payload = library.export_payload()
    except TemplateError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    Path(output).write_text(json.dumps(payload, indent=2), encoding="utf-8")
    console.print(f"[green]Exported {len(payload['templates'])} template(s):[/green] {output}")


@templates.command("import")
@click.argument("import_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def templates_import(library: TemplateLibrary, import_file: str):
    """Merge templates from an exported JSON file."""
    try:
        added = library.import_file(import_file)
    except TemplateError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    if not added:
        console.print("[yellow]Nothing new to import[/yellow] (all entries already exist).")
        return
    console.print(f"[green]Imported {len(added)} template(s).[/green]")


@templates.command("extract")
@click.argument("name")
@click.option("--output", "-o", type=click.Path(file_okay=False), default=".", show_default=True)
@click.pass_obj
def templates_extract(library: TemplateLibrary, name: str, output: str):
    """Write a template's image back to disk."""
    try:
        path = library.write_image(name, output)
    except TemplateError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    console.print(f"[green]Saved:[/green] {path}")


# ---------------------------------------------------------------------------
# Map style
# ---------------------------------------------------------------------------


@main.group()
def style():
    """Base-map style tools."""
    pass


@style.command("darken")
@click.argument("style_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file (default: <name>_dark.json)")
def style_darken(style_path: str, output: Optional[str]):
    """Apply the dark palette to a MapLibre style JSON file."""
    source = Path(style_path)
    try:
        document = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] {source} is not valid JSON: {e}")
        raise SystemExit(1)

    output_path = Path(output) if output else source.with_name(f"{source.stem}_dark.json")
    output_path.write_text(json.dumps(apply_dark_style(document), indent=2), encoding="utf-8")
    console.print(f"[green]Saved:[/green] {output_path}")


if __name__ == "__main__":
    main()
