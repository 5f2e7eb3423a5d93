"""
Main application entry point for NetMonitor.

This module provides the run functions behind the CLI commands: the event
server, the interactive dashboard, the headless monitor and configuration
management.
"""

import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from rich.console import Console
from rich.table import Table

from .client.connection import ConnectionManager, ConnectionStatus
from .config.config import Config
from .core.models import NetworkEvent, RequestRecord
from .core.request_store import RequestStore
from .utils.formatting import FormattingUtils
from .utils.log_setup import setup_logging


def _load_config(config_path: Optional[Path], cli_options: Dict[str, Any]) -> Config:
    config = Config.load(config_path)
    config.apply_cli_overrides(cli_options)
    return config


def _report_invalid(config: Config) -> bool:
    errors = config.validate()
    for error in errors:
        logging.error(f"Configuration error: {error}")
    return bool(errors)


def run_server(config_path: Optional[Path] = None, host: Optional[str] = None,
               port: Optional[int] = None, command: Optional[List[str]] = None) -> int:
    """
    Run the event server.

    Args:
        config_path: Path to configuration file
        host: Interface to listen on
        port: Port to listen on
        command: Log source command line

    Returns:
        Exit code
    """
    from .server import NetworkLogServer

    config = _load_config(config_path, {'host': host, 'port': port, 'command': command})
    setup_logging(config.logging.level, Path(config.logging.file) if config.logging.file else None)
    if _report_invalid(config):
        return 2

    try:
        NetworkLogServer(config).run()
        return 0
    except OSError as e:
        logging.error(f"Server error: {str(e)}")
        return 1


def run_app(config_path: Optional[Path] = None, url: Optional[str] = None) -> int:
    """
    Run the interactive dashboard.

    Args:
        config_path: Path to configuration file
        url: Event server URL

    Returns:
        Exit code
    """
    from .ui.app import NetMonitorApp

    config = _load_config(config_path, {'url': url})
    # The terminal belongs to the UI; log to the configured file only
    setup_logging(config.logging.level, Path(config.logging.file) if config.logging.file else None,
                  console=False)
    if _report_invalid(config):
        return 2

    app = NetMonitorApp(config)
    app.run()
    return 0


class RecordPrinter:
    """
    Prints request records to the console as their events arrive.
    """

    def __init__(self, console: Console, output_format: str = 'text'):
        self.console = console
        self.output_format = output_format

    def on_record_changed(self, record: RequestRecord, event: NetworkEvent) -> None:
        # Nothing to show until the request line itself has been seen
        if not record.url:
            return
        if self.output_format == 'json':
            self.console.print_json(json.dumps(record.to_dict()), indent=None)
            return

        self.console.print(
            FormattingUtils.format_time(record.timestamp),
            FormattingUtils.format_method(record.method),
            FormattingUtils.format_url(record.url),
            FormattingUtils.format_status(record.status),
            FormattingUtils.format_duration(record.duration_text),
            f"[dim]({event.type})[/dim]",
        )

    def on_status_changed(self, status: ConnectionStatus) -> None:
        if self.output_format == 'text':
            self.console.print(FormattingUtils.format_connection_status(status))


def print_summary(console: Console, store: RequestStore) -> None:
    stats = store.get_statistics()
    table = Table(title="Session summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Requests", str(stats['visible']))
    table.add_row("Completed", str(stats['completed']))
    table.add_row("Pending", str(stats['pending']))
    for method, count in sorted(stats['methods'].items()):
        table.add_row(f"  {method or '?'}", str(count))
    console.print(table)


async def _monitor(config: Config, store: RequestStore, printer: RecordPrinter):
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # add_signal_handler is not available on Windows event loops
            pass

    connection = ConnectionManager(config.client.url, on_event=store.upsert,
                                   reconnect_delay=config.client.reconnect_delay)
    connection.register_status_callback(printer.on_status_changed)
    connection.start()
    try:
        await stop_event.wait()
    finally:
        connection.stop()


def run_monitor(config_path: Optional[Path] = None, url: Optional[str] = None,
                output_format: str = 'text') -> int:
    """
    Run the headless monitor, printing records as they are updated.

    Args:
        config_path: Path to configuration file
        url: Event server URL
        output_format: 'text' or 'json' (one record object per line)

    Returns:
        Exit code
    """
    config = _load_config(config_path, {'url': url})
    setup_logging(config.logging.level, Path(config.logging.file) if config.logging.file else None)
    if _report_invalid(config):
        return 2

    console = Console()
    store = RequestStore(config)
    printer = RecordPrinter(console, output_format)
    store.register_change_callback(printer.on_record_changed)

    try:
        asyncio.run(_monitor(config, store, printer))
    except KeyboardInterrupt:
        pass

    if output_format == 'text':
        print_summary(console, store)
    return 0


def run_config_commands(config_path: Optional[Path] = None, get_option: Optional[str] = None,
                        list_config: bool = False, validate_config: bool = False) -> int:
    """
    Inspect and validate configuration.

    Args:
        config_path: Path to configuration file
        get_option: Dotted option to print, e.g. ``server.port``
        list_config: Print the whole effective configuration
        validate_config: Validate and report errors

    Returns:
        Exit code
    """
    config = Config.load(config_path)

    if get_option:
        try:
            value = config.get(get_option)
        except KeyError:
            print(f"Unknown configuration option: {get_option}", file=sys.stderr)
            return 1
        print(yaml.dump(value, default_flow_style=False).strip()
              if isinstance(value, (dict, list)) else value)

    if list_config:
        print(yaml.dump(config.to_dict(), default_flow_style=False).strip())
        overrides = config.get_env_overrides()
        if overrides:
            print("\n# Environment overrides")
            for key, value in overrides.items():
                print(f"# {key} = {value}")

    if validate_config:
        errors = config.validate()
        if errors:
            for error in errors:
                print(f"Error: {error}", file=sys.stderr)
            return 1
        print("Configuration is valid.")

    return 0
