"""This module provides the entry point for running the search server."""

import argparse
import asyncio
import os
import signal
import socket
import subprocess
import sys
from pathlib import Path
from typing import Any

from src.server.scaffold import initialize_wiki
from src.server.server import Server

WORKDIR = Path("/tmp/")
CONFIG_PATH = Path(__file__).parent / "config.txt"


def get_local_ip() -> Any:
    """Return the local IP address of the server.

    Returns:
        str: The local IP address as a string.

    """
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.connect(("8.8.8.8", 80))
        return s.getsockname()[0]


def build_parser() -> argparse.ArgumentParser:
    """Create the command line parser of the server."""
    parser = argparse.ArgumentParser(
        description="Serve prefix completion for wiki pages.",
    )
    parser.add_argument(
        "--ip",
        choices=["local", "public"],
        default="public",
        help="Serve locally or over the internet",
    )
    parser.add_argument(
        "--mode",
        default="normal",
        choices=["normal", "daemon"],
        help="Run mode: 'normal' or 'daemon' (default: normal)",
    )
    parser.add_argument(
        "--config_path",
        type=str,
        default=str(CONFIG_PATH),
        help="Optional path to the config file.",
        required=False,
    )
    parser.add_argument(
        "--init",
        metavar="PATH",
        nargs="?",
        const=".",
        default=None,
        help="Create the config file, pages directory and index page of a "
        "new wiki in PATH (default: current directory) and exit.",
    )
    return parser


def run_daemon(args: argparse.Namespace) -> None:
    """Start the server in the background as a daemon process."""
    subprocess.run(
        [
            sys.executable,
            "-m",
            "src.server.daemon",
            "--ip",
            str(args.ip),
            "--config_path",
            str(Path(args.config_path).resolve()),
        ],
        check=False,
        env=os.environ.copy(),
        cwd=str(Path(__file__).parent),
    )


async def main() -> None:
    """Run the server."""
    args = build_parser().parse_args()

    if args.init is not None:
        for path in initialize_wiki(Path(args.init)):
            print(f"[INIT] Created {path}")
        return

    if args.mode == "daemon":
        run_daemon(args)
        return

    ip = get_local_ip()
    if args.ip == "public":
        ip = "0.0.0.0"

    server_instance = Server(ip, Path(args.config_path))

    signal.signal(signal.SIGTERM, handle_sigterm)

    await server_instance.start(
        generation_path=WORKDIR,
        certfile_path=Path("cert.pem"),
        key_file_path=Path("key.pem"),
        log_details=True,
    )


def handle_sigterm(signum: int, frame: Any) -> None:
    """Handle SIGTERM signals to perform a graceful shutdown of
    the application.

    Args:
        signum (int): The signal number received.
        frame (FrameType): The current stack frame (unused).

    Exits:
        Exits the process with status code 0.

    """
    sys.exit(0)


if __name__ == "__main__":
    asyncio.run(main())
