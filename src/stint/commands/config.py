"""Config command for stint."""

import click
import orjson

from stint.core.config import DEFAULTS, get_setting, set_setting


@click.command(name="config")
@click.argument("key", type=click.Choice(sorted(DEFAULTS)))
@click.argument("value", required=False)
def config_command(key: str, value: str | None) -> None:
    """Read or set a configuration value.

    VALUE is parsed as JSON, so numbers, booleans and lists work as expected.

    Examples:

        stint config default_duration 3000

        stint config notifications false

        stint config notify_command '["notify-send", "-u", "critical", "{title}", "{body}"]'
    """
    if value is None:
        click.echo(orjson.dumps(get_setting(key)).decode())
        return

    try:
        parsed = orjson.loads(value)
    except orjson.JSONDecodeError:
        parsed = value
    try:
        set_setting(key, parsed)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"{key} = {orjson.dumps(parsed).decode()}")
