"""CLI: lumenpay config show|set"""

import json

import click
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console

from lumenpay import config as settings_file
from lumenpay.config import Settings, load_settings, save_settings
from lumenpay.errors import ConfigError

console = Console()


@click.group("config")
def config_cmd():
    """Settings in ~/.lumenpay/config.json."""


@config_cmd.command("show")
def config_show():
    """Effective settings, environment overrides applied."""
    click.echo(json.dumps(click.get_current_context().find_root().obj.model_dump(), indent=2))


@config_cmd.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str):
    """Persist KEY=VALUE."""
    if key not in Settings.model_fields:
        console.print(f"[red]Unknown setting {key!r}. Known: {', '.join(Settings.model_fields)}[/red]")
        raise SystemExit(1)
    # File only: env overrides must not be written back.
    current = load_settings(env={})
    try:
        updated = Settings.model_validate({**current.model_dump(), key: value})
        updated.network_config()
    except (PydanticValidationError, ConfigError) as e:
        console.print(f"[red]Invalid value for {key}: {e}[/red]")
        raise SystemExit(1)
    save_settings(updated)
    console.print(f"[green]{key} = {value}[/green] [dim]saved to {settings_file.CONFIG_FILE}[/dim]")
