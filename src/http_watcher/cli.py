"""
Command line entry point for http-watcher.

Usage:
    http-watcher [--port N] [--root-dir DIR] [--ignores PATTERNS] [--private] [--delay SECONDS]
"""

import logging
import logging.config
import os
import sys
from pathlib import Path

import click
import uvicorn
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel

from http_watcher.config.settings import LogLevel, WatcherConfig
from http_watcher.models.exceptions import ConfigurationError, InitializationError
from http_watcher.server.app import create_app

logger = logging.getLogger(__name__)

console = Console(stderr=True)

EXIT_STARTUP_FAILURE = 1
EXIT_BAD_CONFIG = 2


def build_config(**overrides) -> WatcherConfig:
    """
    Build the configuration from command line overrides.

    Options left unset fall back to ``HTTP_WATCHER_*`` environment variables
    and then to the defaults.

    Raises:
        ConfigurationError: If a value fails validation
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return WatcherConfig(**values)
    except ValidationError as e:
        first = e.errors()[0]
        raise ConfigurationError(
            f"Invalid configuration: {first['msg']}",
            config_key=".".join(str(part) for part in first["loc"]),
            actual_value=first.get("input"),
            underlying_error=e,
        ) from e


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option('--port', '-p', type=int, default=None, help='Which port to listen on [default: 8000]')
@click.option(
    '--root-dir',
    '--rootDir',
    '-d',
    'root_dir',
    type=click.Path(path_type=Path),
    default=None,
    help='Watched root directory for filesystem events, also the HTTP file server root [default: .]',
)
@click.option(
    '--ignores',
    '-i',
    default=None,
    help='Ignored file patterns (regular expressions), separated by ","',
)
@click.option('--private', is_flag=True, help='Only listen on the loopback interface')
@click.option('--delay', type=float, default=None, help='Delay in seconds before the browser reloads [default: 0]')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def main(port: int | None, root_dir: Path | None, ignores: str | None, private: bool, delay: float | None, verbose: bool):
    """
    Serve a directory and reload connected browsers when files change.

    Pages load the reload script from /js, which keeps a WebSocket open to
    /ws. When something under the root directory changes, every connected
    page is told to reload.

    Example usage:

        # Watch the current directory on port 8000
        http-watcher

        # Watch ./site, skip log and swap files, reload after half a second
        http-watcher -d ./site -i '\\.log$,\\.swp$' --delay 0.5
    """
    try:
        config = build_config(
            port=port,
            root_dir=root_dir,
            ignores=ignores,
            delay=delay,
            private=True if private else None,
            log_level=LogLevel.DEBUG if verbose else None,
        )
    except ConfigurationError as e:
        console.print(f"❌ [red]{e}[/red]")
        sys.exit(EXIT_BAD_CONFIG)

    logging.config.dictConfig(config.get_log_config())

    try:
        os.chdir(config.root_dir)
    except OSError as e:
        error = InitializationError(
            f"Error changing to root dir '{config.root_dir}': {e}",
            component="cli",
            initialization_stage="chdir",
            underlying_error=e,
        )
        logger.error("%s", error)
        sys.exit(EXIT_STARTUP_FAILURE)

    app = create_app(config)

    console.print(
        Panel.fit(
            f"Serving and watching [bold]{config.root_dir}[/bold]\n"
            f"listens on [cyan]http://{config.bind_host}:{config.port}[/cyan]",
            title="http-watcher",
            border_style="blue",
        )
    )

    server = uvicorn.Server(
        uvicorn.Config(app, host=config.bind_host, port=config.port, lifespan="on", log_config=None)
    )
    try:
        server.run()
    except KeyboardInterrupt:
        pass
    except SystemExit:
        # uvicorn exits by itself when the socket cannot be bound
        if server.started:
            raise

    if not server.started:
        logger.error("Server failed to start on %s:%d", config.bind_host, config.port)
        sys.exit(EXIT_STARTUP_FAILURE)


if __name__ == '__main__':
    main()
