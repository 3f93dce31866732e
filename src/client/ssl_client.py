"""SSL-enabled version of the client."""

import asyncio
import ssl
import sys
from pathlib import Path

from .client import Client


class SslClient(Client):
    """Asynchronous client that talks to the server over TLS."""

    def __init__(self, ip: str, port: int, cafile_path: Path):
        """Initialize a new asynchronous SSL client instance.

        Args:
            ip (str): The IP address of the server to connect to.
            port (int): The port number of the server to connect to.
            cafile_path (Path): The file path to the CA certificate.

        """
        super().__init__(ip, port)
        self.cafile_path = cafile_path

        # The server uses a self-signed certificate issued for localhost
        self.ssl_context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
        self.ssl_context.check_hostname = False
        self.ssl_context.verify_mode = ssl.CERT_REQUIRED

        try:
            self.ssl_context.load_verify_locations(
                cafile=str(self.cafile_path),
            )
        except FileNotFoundError:
            print(
                "Error: CA certificate file not found at "
                f"{self.cafile_path}. SSL verification will fail.",
                file=sys.stderr,
            )
        except ssl.SSLError as e:
            print(
                f"Error loading CA certificate from {self.cafile_path}: {e}",
                file=sys.stderr,
            )

    async def _open(
        self,
    ) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        return await asyncio.open_connection(
            self.ip,
            self.port,
            ssl=self.ssl_context,
            server_hostname=self.ip,
        )

    async def connect(self) -> None:
        """Establish the asynchronous SSL connection to the server.

        Raises:
            ConnectionRefusedError: If the server
            actively refuses the connection.
            ssl.SSLError: If there's an SSL/TLS handshake
            or certificate verification error.

        """
        try:
            await super().connect()
        except ssl.SSLError as e:
            print(
                f"SSL/TLS error during connection to "
                f"{self.ip}:{self.port}: {e}",
            )
            raise
