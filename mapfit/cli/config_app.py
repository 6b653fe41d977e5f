#!/usr/bin/env python3
"""
Configuration app for the mapfit CLI.
"""

import typer
from rich.panel import Panel

from mapfit.cli.config import get_config_path, load_user_config, parse_value, reset_user_config, set_user_value
from mapfit.cli.ui import console, print_error, print_success
from mapfit.exceptions import MapFitConfigError


def create_config_app():
    """Create the configuration app with all commands."""
    config_app = typer.Typer(help="Manage default search parameters")

    config_app.command(name="show")(config_show)
    config_app.command(name="set")(config_set)
    config_app.command(name="reset")(config_reset)

    return config_app


def config_show():
    """Display current configuration settings."""
    config = load_user_config()

    console.print(Panel.fit(f"[bold]mapfit configuration[/bold]\n{get_config_path()}"))
    for key, value in sorted(config.as_dict().items()):
        console.print(f"[key]{key}[/key]: [value]{value}[/value]")


def config_set(
    key: str = typer.Argument(..., help="Configuration key"),
    value: str = typer.Argument(..., help="Configuration value"),
):
    """Set a configuration value."""
    typed_value = parse_value(value)
    try:
        set_user_value(key, typed_value)
    except MapFitConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    print_success(f"Configuration updated: {key} = {typed_value}")


def config_reset():
    """Reset configuration to default values."""
    reset_user_config()
    print_success("Configuration reset to default values")
