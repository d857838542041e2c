"""CLI for scanning ALSA hardware and writing a user .asoundrc.

Lists the playback and capture devices found on the system together with
their capabilities, and generates a layered .asoundrc for a selected
playback device (and optionally a capture device).
"""

import json
import sys
from pathlib import Path

import click
import yaml

from asconfig.audio.backend import AlsaBackend
from asconfig.audio.catalog import DeviceCatalog
from asconfig.audio.models import CapabilityRecord, StreamDirection
from asconfig.audio.prober import CapabilityProber
from asconfig.config.manager import ConfigManager
from asconfig.config.models import AsconfigConfig
from asconfig.exceptions import NoPlaybackSelectedError, PlaybackBusyError
from asconfig.graph.models import InterfaceMode, OptionSet, Resampler
from asconfig.services.asoundrc_service import AsoundrcService
from asconfig.system.path_resolver import PathResolver
from asconfig.utils.structlog_configurator import configure_structlog

_COLUMNS = (
    ("", 2),
    ("Card", 5),
    ("Dev", 4),
    ("Card ID", 12),
    ("Device", 24),
    ("Channels", 9),
    ("Rates", 14),
    ("Path", 8),
)


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """ALSA device scanner and .asoundrc generator.

    Examples:
      # List playback and capture devices
      asconfig devices

      # Shared (dmix) playback on card 0, device 0, capturing from card 1
      asconfig generate --playback hw:0,0 --playback-interface dmix --capture hw:1,0

      # Preview the file without writing it
      asconfig generate --playback hw:0,0 --dry-run

      # Write the default configuration file
      asconfig config --init
    """
    ctx.ensure_object(dict)
    config_manager = ConfigManager()
    try:
        config = config_manager.load()
    except ValueError as e:
        click.echo(click.style(f"✗ {e}", fg="red"), err=True)
        sys.exit(1)

    configure_structlog(config)
    ctx.obj["config_manager"] = config_manager
    ctx.obj["config"] = config


def _scan(config: AsconfigConfig) -> DeviceCatalog:
    """Probe every card and return a freshly filled catalog."""
    backend = AlsaBackend(PathResolver().get_proc_asound_dir())
    catalog = DeviceCatalog(CapabilityProber(backend, config.preferred_defaults()))
    catalog.refresh()
    return catalog


def _rates(record: CapabilityRecord) -> str:
    if record.rate_min == record.rate_max:
        return str(record.rate_min)
    return f"{record.rate_min}-{record.rate_max}"


def _channels(record: CapabilityRecord) -> str:
    if record.channels_min == record.channels_max:
        return str(record.channels_min)
    return f"{record.channels_min}-{record.channels_max}"


def _echo_records(direction: StreamDirection, records: tuple[CapabilityRecord, ...]) -> None:
    click.echo(f"{direction.label} Devices:")
    click.echo("=" * 80)
    if not records:
        click.echo("  No devices found")
        click.echo()
        return

    click.echo("".join(title.ljust(width) for title, width in _COLUMNS))
    for record in records:
        row = (
            record.availability.marker,
            str(record.card),
            str(record.device),
            record.card_id,
            record.device_name,
            _channels(record),
            _rates(record),
            record.hw_path,
        )
        click.echo("".join(value.ljust(width) for value, (_, width) in zip(row, _COLUMNS)))
        if record.formats:
            click.echo(f"{'':7}Formats: {record.formats_csv}")
    click.echo()


@cli.command()
@click.option("--playback", "selection", flag_value="playback", help="List playback devices only")
@click.option("--capture", "selection", flag_value="capture", help="List capture devices only")
@click.option(
    "--all", "selection", flag_value="all", default=True, help="List both directions (default)"
)
@click.option("--json", "output_json", is_flag=True, help="Output devices in JSON format")
@click.pass_context
def devices(ctx: click.Context, selection: str, output_json: bool) -> None:
    """List sound devices and their capabilities."""
    catalog = _scan(ctx.obj["config"])

    directions = list(StreamDirection) if selection == "all" else [StreamDirection(selection)]

    if output_json:
        payload = {
            direction.value: [record.to_dict() for record in catalog.records(direction)]
            for direction in directions
        }
        click.echo(json.dumps(payload, indent=2))
        return

    for direction in directions:
        _echo_records(direction, catalog.records(direction))
    click.echo("* = in use by another application, E = could not be opened")


def _select(
    catalog: DeviceCatalog, direction: StreamDirection, hw_path: str | None
) -> CapabilityRecord | None:
    """Find the record for a hw path, exiting if the path was not found."""
    if hw_path is None:
        return None
    record = catalog.find(direction, hw_path)
    if record is None:
        click.echo(
            click.style(f"✗ No {direction.value} device {hw_path} found", fg="red"), err=True
        )
        click.echo("Run 'asconfig devices' to list the available devices", err=True)
        sys.exit(1)
    return record


@cli.command()
@click.option("--playback", "playback_path", help="Playback device path, e.g. hw:0,0")
@click.option("--capture", "capture_path", help="Capture device path, e.g. hw:1,0")
@click.option(
    "--playback-interface",
    type=click.Choice(InterfaceMode.plugin_names(StreamDirection.PLAYBACK)),
    help="How applications reach the playback device (default from config)",
)
@click.option(
    "--capture-interface",
    type=click.Choice(InterfaceMode.plugin_names(StreamDirection.CAPTURE)),
    help="How applications reach the capture device (default from config)",
)
@click.option(
    "--resampler",
    type=click.Choice([resampler.value for resampler in Resampler]),
    help="Default rate converter (default from config)",
)
@click.option("--stream/--no-stream", default=False, help="Add a stream output tap")
@click.option("--stream-default", is_flag=True, help="Make the stream tap the default playback pcm")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="File to write (default: ~/.asoundrc)",
)
@click.option("--force", is_flag=True, help="Overwrite an existing file without asking")
@click.option("--dry-run", is_flag=True, help="Print the file instead of writing it")
@click.pass_context
def generate(
    ctx: click.Context,
    playback_path: str | None,
    capture_path: str | None,
    playback_interface: str | None,
    capture_interface: str | None,
    resampler: str | None,
    stream: bool,
    stream_default: bool,
    output: Path | None,
    force: bool,
    dry_run: bool,
) -> None:
    """Generate a .asoundrc for the selected devices."""
    config: AsconfigConfig = ctx.obj["config"]
    catalog = _scan(config)

    playback = _select(catalog, StreamDirection.PLAYBACK, playback_path)
    capture = _select(catalog, StreamDirection.CAPTURE, capture_path)

    defaults = AsoundrcService.default_options(config)
    options = OptionSet(
        playback_mode=(
            InterfaceMode.from_plugin_name(playback_interface, StreamDirection.PLAYBACK)
            if playback_interface
            else defaults.playback_mode
        ),
        capture_mode=(
            InterfaceMode.from_plugin_name(capture_interface, StreamDirection.CAPTURE)
            if capture_interface
            else defaults.capture_mode
        ),
        resampler=Resampler(resampler) if resampler else defaults.resampler,
        stream_enabled=stream,
        stream_default=stream and stream_default,
    )

    service = AsoundrcService.from_config(config, output)

    if capture is not None and not capture.is_free:
        click.echo(
            click.style(
                f"Note: capture device {capture.hw_path} is not available, "
                "capture will not be configured",
                fg="yellow",
            ),
            err=True,
        )

    if dry_run:
        try:
            text = service.render(playback, capture, options)
        except (NoPlaybackSelectedError, PlaybackBusyError) as e:
            click.echo(click.style(f"✗ {e}", fg="red"), err=True)
            sys.exit(1)
        click.echo(text, nl=False)
        return

    def confirm_overwrite(path: Path) -> bool:
        if force:
            return True
        return click.confirm(f"{path} exists. Overwrite?", default=False)

    result = service.save(playback, capture, options, confirm_overwrite)

    if result.status.succeeded:
        click.echo(click.style(f"✓ {result.message}", fg="green"))
    else:
        click.echo(click.style(f"✗ {result.message}", fg="red"), err=True)
        sys.exit(1)


@cli.command("config")
@click.option("--init", is_flag=True, help="Write the default configuration file")
@click.pass_context
def show_config(ctx: click.Context, init: bool) -> None:
    """Show the effective configuration."""
    config_manager: ConfigManager = ctx.obj["config_manager"]

    if init:
        if config_manager.config_path.exists():
            if not click.confirm(f"{config_manager.config_path} exists. Replace with defaults?"):
                click.echo("Configuration unchanged")
                return
        try:
            config_manager.save(AsconfigConfig())
        except OSError as e:
            click.echo(click.style(f"✗ Could not write configuration: {e}", fg="red"), err=True)
            sys.exit(1)
        click.echo(
            click.style(f"✓ Default configuration written to {config_manager.config_path}", fg="green")
        )
        return

    click.echo(f"# {config_manager.config_path}")
    click.echo(yaml.dump(ctx.obj["config"].model_dump(), default_flow_style=False, sort_keys=False))


def main() -> None:
    """Entry point for the asconfig CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
