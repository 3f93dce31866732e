"""Production-ready daemon for running the search server as a
Linux service.
"""

import argparse
import asyncio
import atexit
import signal
import socket
import sys
from pathlib import Path
from typing import Any

import daemon
from daemon.pidfile import PIDLockFile

from .logger import stop_logging_listener
from .server import Server

# Path to the PID file for the daemon process
PID_FILE = "/tmp/wiki_search_daemon.pid"
# Paths to log files for stdout and stderr
STDOUT_LOG = "/tmp/wiki_search_stdout.log"
STDERR_LOG = "/tmp/wiki_search_stderr.log"
# Working directory for the daemon process
WORKDIR = Path("/tmp/")
# File creation mask for the daemon process
UMASK = 0o027
# The configuration settings file of the server
CONFIG_PATH = Path(__file__).parent.parent.parent / "config.txt"


def cleanup() -> None:
    """Cleanup function to be called on exit."""
    try:
        stop_logging_listener()
    except Exception as e:
        print(f"Error during cleanup: {e}", file=sys.stderr)


def get_local_ip() -> Any:
    """Get the local IP address of the server.

    Returns:
        str: The local IP address of the server as a string.

    """
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.connect(("8.8.8.8", 80))
        return s.getsockname()[0]


def parse_args(argv: Any = None) -> argparse.Namespace:
    """Parse the daemon command line."""
    parser = argparse.ArgumentParser(description="Run the search daemon.")
    parser.add_argument(
        "--ip",
        choices=["local", "public"],
        default="public",
        help="Serve locally or over the internet",
    )
    parser.add_argument(
        "--config_path",
        type=str,
        help="Optional path to the config file.",
        required=False,
    )
    return parser.parse_args(argv)


def resolve_config_path(config_path: Any) -> Path:
    """Return the absolute config path.

    The daemon changes its working directory, so a relative path given on
    the command line must be resolved before detaching. Paths inside the
    config are resolved against the config file's own directory.
    """
    path = CONFIG_PATH if config_path is None else Path(config_path)
    return path.resolve()


async def main(args: argparse.Namespace) -> None:
    """Run the server."""
    ip = get_local_ip()
    if args.ip == "public":
        ip = "0.0.0.0"

    server_instance = Server(ip, resolve_config_path(args.config_path))

    signal.signal(signal.SIGTERM, handle_sigterm)

    await server_instance.start(
        generation_path=WORKDIR,
        certfile_path=Path("cert.pem"),
        key_file_path=Path("key.pem"),
        log_details=True,
    )


def handle_sigterm(signum: int, frame: Any) -> None:
    """Handle SIGTERM or SIGINT signals to perform a graceful shutdown of
    the application.

    Args:
        signum (int): The signal number received.
        frame (FrameType): The current stack frame (unused).

    """
    cleanup()
    sys.exit(0)


if __name__ == "__main__":
    arguments = parse_args()
    arguments.config_path = str(resolve_config_path(arguments.config_path))

    atexit.register(cleanup)

    with (
        open(STDOUT_LOG, "a") as stdout_log,
        open(STDERR_LOG, "a") as stderr_log,
        daemon.DaemonContext(
            working_directory=str(WORKDIR),
            umask=UMASK,
            pidfile=PIDLockFile(PID_FILE),
            stdout=stdout_log,
            stderr=stderr_log,
            detach_process=True,
        ),
    ):
        asyncio.run(main(arguments))
