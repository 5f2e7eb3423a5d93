"""
Command Line Interface for NetMonitor.

This module provides a CLI for running the event server, the live
dashboard and the headless monitor, and for managing configuration.
"""

import click
import shlex
import sys
import yaml
from pathlib import Path
from typing import Optional
import os

from . import __version__
from .config.config import Config
from .config.settings import Settings
from .main import run_app, run_config_commands, run_monitor, run_server


def _set_verbosity(verbose: int) -> None:
    if verbose == 1:
        os.environ['NETMONITOR_LOG_LEVEL'] = 'INFO'
    elif verbose >= 2:
        os.environ['NETMONITOR_LOG_LEVEL'] = 'DEBUG'


@click.group(invoke_without_command=True,
             help="NetMonitor - live network request viewer for React Native apps.")
@click.option('--version', '-v', is_flag=True, help='Show version and exit')
@click.option('--verbose', '-V', count=True, help='Increase verbosity (use -VV for debug)')
@click.pass_context
def cli(ctx: click.Context, version: bool, verbose: int) -> None:
    """
    NetMonitor - live network request viewer for React Native apps.

    The app logs NETWORK_REQUEST / NETWORK_RESPONSE lines to the JS console;
    `serve` reads them from adb logcat and streams them as events, `view`
    and `monitor` rebuild full requests from those events.

    Usage Examples:
      netmonitor serve                          # Stream events from adb logcat
      netmonitor view                           # Open the live dashboard
      netmonitor monitor --format json          # Print requests as JSON lines
      netmonitor config --list                  # Show effective configuration
    """
    if version:
        click.echo(f"NetMonitor v{__version__}")
        return

    _set_verbosity(verbose)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command(help="Stream network events from the device log over WebSocket.")
@click.option('--config', '-c', type=click.Path(exists=True, path_type=Path),
              help='Path to configuration file')
@click.option('--host', type=str, default=None, help='Interface to listen on')
@click.option('--port', '-p', type=int, default=None, help='Port to listen on (default: 8082)')
@click.option('--command', 'command', type=str, default=None,
              help='Log source command line (default: "adb logcat -s ReactNativeJS:I")')
@click.option('--verbose', '-V', count=True, help='Increase verbosity (use -VV for debug)')
def serve(config: Optional[Path], host: Optional[str], port: Optional[int],
          command: Optional[str], verbose: int) -> None:
    """
    Stream network events from the device log over WebSocket.

    Examples:
      netmonitor serve                                   # adb logcat on port 8082
      netmonitor serve -p 9000                           # Different port
      netmonitor serve --command "adb -s emulator-5554 logcat -s ReactNativeJS:I"
      netmonitor serve --command "cat saved_logcat.txt"  # Replay a capture
    """
    _set_verbosity(verbose)
    exit_code = run_server(config_path=config, host=host, port=port,
                           command=shlex.split(command) if command else None)
    sys.exit(exit_code)


@cli.command(help="Open the live dashboard.")
@click.option('--config', '-c', type=click.Path(exists=True, path_type=Path),
              help='Path to configuration file')
@click.option('--url', '-u', type=str, default=None,
              help='Event server URL (default: ws://localhost:8082)')
@click.option('--verbose', '-V', count=True, help='Increase verbosity (use -VV for debug)')
def view(config: Optional[Path], url: Optional[str], verbose: int) -> None:
    """
    Open the live dashboard.

    Examples:
      netmonitor view                                # Connect to the local server
      netmonitor view -u ws://192.168.1.20:8082      # Connect to another machine
    """
    _set_verbosity(verbose)
    sys.exit(run_app(config_path=config, url=url))


@cli.command(help="Print requests to the console as they complete.")
@click.option('--config', '-c', type=click.Path(exists=True, path_type=Path),
              help='Path to configuration file')
@click.option('--url', '-u', type=str, default=None,
              help='Event server URL (default: ws://localhost:8082)')
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']),
              default='text', help='Output format (default: text)')
@click.option('--verbose', '-V', count=True, help='Increase verbosity (use -VV for debug)')
def monitor(config: Optional[Path], url: Optional[str], output_format: str, verbose: int) -> None:
    """
    Print requests to the console as they complete.

    Every event prints the updated request; with --format json each line
    is one request object. Stop with Ctrl+C.
    """
    _set_verbosity(verbose)
    sys.exit(run_monitor(config_path=config, url=url, output_format=output_format))


@cli.command('config', help="Inspect configuration settings.")
@click.option('--config', '-c', type=click.Path(path_type=Path),
              help='Path to configuration file (default: netmonitor_config.yaml)')
@click.option('--get', 'get_option', type=str,
              help='Get specific configuration option (e.g. server.port)')
@click.option('--list', 'list_config', is_flag=True,
              help='List all configuration options')
@click.option('--validate', 'validate_config', is_flag=True,
              help='Validate configuration file')
def config_cmd(config: Optional[Path], get_option: Optional[str],
               list_config: bool, validate_config: bool) -> None:
    """
    Inspect configuration settings.

    Options follow the format 'section.option', such as:
    - server.port
    - client.url
    - client.reconnect_delay
    - store.max_records
    - logging.level
    """
    config = config or Path(Settings().DEFAULT_CONFIG_PATH)
    if not (get_option or list_config or validate_config):
        list_config = True
    sys.exit(run_config_commands(config_path=config, get_option=get_option,
                                 list_config=list_config, validate_config=validate_config))


@cli.command(help="Initialize a new configuration file.")
@click.option('--force', is_flag=True, help='Overwrite an existing file')
def init(force: bool) -> None:
    """
    Initialize a new configuration file.

    Creates netmonitor_config.yaml in the current directory with the
    default settings.
    """
    config_path = Path(Settings().DEFAULT_CONFIG_PATH)
    if config_path.exists() and not force:
        click.echo(f"Configuration file already exists: {config_path}", err=True)
        sys.exit(1)

    with open(config_path, 'w') as f:
        yaml.dump(Config.get_default_config_dict(), f, default_flow_style=False)

    click.echo(f"Created default configuration file: {config_path}")


def main() -> None:
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
