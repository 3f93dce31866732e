"""Handles server initialization and communication."""

import asyncio
import time
from typing import Optional, Union


class ServerResponseError(Exception):
    """Raised when the server answers with an error or a malformed reply."""


class Client:
    """Asynchronous client for the page completion server."""

    def __init__(self, ip: str, port: int):
        """Initialize a new asynchronous client instance.

        Args:
            ip (str): The IP address of the server to connect to.
            port (int): The port number of the server to connect to.

        """
        self.ip = ip
        self.port = port
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None

    async def _open(
        self,
    ) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        return await asyncio.open_connection(self.ip, self.port)

    async def connect(self) -> None:
        """Establish the asynchronous connection to the server.

        This method must be called and awaited before sending any queries.

        Raises:
            ConnectionRefusedError: If the server actively
            refuses the connection.
            Exception: For other connection-related errors.

        """
        try:
            self.reader, self.writer = await self._open()
            peername = self.writer.get_extra_info("peername")
            print(f"Connected to server at {peername[0]}:{peername[1]}")

        except ConnectionRefusedError:
            print(
                f"Connection refused by the server at {self.ip}:{self.port}.",
            )
            raise

        except Exception as e:
            print(f"Error connecting to server at {self.ip}:{self.port}: {e}")
            raise

    async def complete(self, query_string: str) -> list[str]:
        """Ask the server for the pages starting with a query.

        Args:
            query_string (str): The text typed into the search box.

        Raises:
            ConnectionError: If the client is not connected or the server
            closed the connection.
            ServerResponseError: If the server reports an error.

        Returns:
            list[str]: The matching page slugs, in server order.

        """
        if self.writer is None or self.reader is None:
            raise ConnectionError("Client not connected. Call .connect() first.")

        self.writer.write((query_string + "\n").encode("utf-8"))
        await self.writer.drain()

        header = (await self.reader.readline()).decode("utf-8").strip()
        if not header:
            raise ConnectionError("Server closed the connection.")
        if header.startswith("ERROR"):
            raise ServerResponseError(header)

        label, _, count = header.partition(" ")
        if label != "MATCHES" or not count.isdigit():
            raise ServerResponseError(f"Malformed response: '{header}'")

        matches = []
        for _ in range(int(count)):
            line = await self.reader.readline()
            if not line:
                raise ConnectionError(
                    "Server closed the connection in the middle of a reply.",
                )
            matches.append(line.decode("utf-8").rstrip("\n"))
        return matches

    async def send_message(self, query_string: str) -> Union[float, None]:
        """Send a query, print the matches and measure the round trip.

        Args:
            query_string (str): The string that will be
            sent by the client to the server.

        Returns:
            float: The roundtrip time in milliseconds.
            None: If the client is not connected or the server
            sent no reply.

        """
        if self.writer is None or self.reader is None:
            print("Client not connected. Call .connect() first.")
            return None

        try:
            start = time.perf_counter()
            matches = await self.complete(query_string)
            elapsed_time = (time.perf_counter() - start) * 1000

            print(f"Time: {elapsed_time:.2f} ms")
            print(f"Matches from server ({len(matches)}):", ", ".join(matches))

            return elapsed_time

        except ServerResponseError as e:
            print(f"Server error: {e}")
            return None
        except (ConnectionResetError, BrokenPipeError) as e:
            print("Server closed the connection unexpectedly or sent no data.")
            raise e
        except ConnectionError as e:
            print(f"Connection problem: {e}")
            return None

    async def close(self) -> None:
        """Close the asynchronous connection to the server.

        This method must be called and awaited after the last query.
        """
        print("Closing connection...")
        if self.writer and not self.writer.is_closing():
            try:
                self.writer.close()
                await self.writer.wait_closed()
                print("Connection closed.")
            except (ConnectionResetError, BrokenPipeError, OSError) as e:
                print(f"Error during close cleanup: {e}")
                raise
            finally:
                self.reader = None
                self.writer = None
        elif self.writer and self.writer.is_closing():
            try:
                await self.writer.wait_closed()
                print("Connection already closing, waited for it.")
            except (ConnectionResetError, BrokenPipeError, OSError) as e:
                print(f"Error during close cleanup (already closing): {e}")
                raise
        else:
            print("No active connection to close.")
        self.reader = None
        self.writer = None
