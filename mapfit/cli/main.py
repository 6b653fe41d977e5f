#!/usr/bin/env python3
"""mapfit Command-Line Interface"""
import logging
import sys

import typer

from mapfit.cli.commands import demo_command, info_command, search_command, version_command
from mapfit.cli.config_app import create_config_app
from mapfit.cli.ui import console

# Create main app
app = typer.Typer(
    help="mapfit - Exhaustive pose search of live elevation maps in reference maps",
    add_completion=False
)

app.command(name="search", help="Search the pose of a live map in a reference map")(search_command)
app.command(name="info", help="Show raster map information")(info_command)
app.command(name="demo", help="Run a search on synthetic terrain")(demo_command)
app.command(name="version", help="Show mapfit version")(version_command)

app.add_typer(
    create_config_app(),
    name="config",
    help="Configuration management"
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    mapfit Command-Line Tools - Align live elevation maps with reference maps

    - Exhaustive rotation/translation search scored with NCC, SSD, SAD and MI
    - Raster map inspection
    - Synthetic demo with a known pose
    - Configuration management
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def main():
    """Run the mapfit CLI application."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    sys.exit(main())
