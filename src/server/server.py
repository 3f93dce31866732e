import asyncio
import gc
import logging
import socket
import ssl
import sys
import time
import weakref
from datetime import datetime
from pathlib import Path
from typing import Union

from .config import load_config_file
from .logger import (
    log,
    setup_logging_queue,
    setup_process_logging,
    start_logging_listener,
    stop_logging_listener,
)
from .page_index import PageIndex
from .pages import IndexPatchError, discover_pages, patch_index_file
from .render import remove_pages, write_pages
from .ssl_utils import create_server_ssl_context, generate_certificate_and_key
from .watcher import PageWatcher

MAX_CHUNK_SIZE = 1024  # Maximum payload


def format_response(matches: list[str]) -> str:
    """Build the reply for a completion query.

    The first line carries the number of matches, followed by one slug
    per line.
    """
    lines = [f"MATCHES {len(matches)}", *matches]
    return "\n".join(lines) + "\n"


class Server:
    """Asyncio TCP server answering page completion queries."""

    def __init__(self, ip: str, config_file_path: Path):
        self.ip = ip
        self.configuration_settings = load_config_file(config_file_path)
        self.is_running = True
        self.ssl_context: Union[ssl.SSLContext, None] = None
        self.server_instance: Union[asyncio.Server, None] = None
        self.log_details: bool = False
        self._active_connections: weakref.WeakSet[asyncio.StreamWriter] = (
            weakref.WeakSet()
        )
        self._watch_task: Union[asyncio.Task[None], None] = None
        self.page_index = PageIndex()
        self.watcher = PageWatcher(self.configuration_settings.pages_path)
        self._load_pages()

    def _load_pages(self) -> None:
        """Build the page index from the pages directory."""
        pages_path = self.configuration_settings.pages_path
        count = self.page_index.rebuild(discover_pages(pages_path))
        self.watcher.prime()
        print(f"[SERVER] Indexed {count} pages from {pages_path}")
        self._render_pages()
        self._patch_index_file()

    def _render_pages(
        self,
        slugs: Union[set[str], None] = None,
        removed: Union[set[str], None] = None,
    ) -> None:
        """Write the HTML pages the search results link to.

        Args:
            slugs (set[str], optional): Pages to render, all when None.
            removed (set[str], optional): Pages whose HTML is deleted.

        """
        output_dir = self.configuration_settings.generated_path
        try:
            if removed:
                remove_pages(output_dir, removed)
            if slugs is None or slugs:
                written = write_pages(
                    self.configuration_settings.pages_path,
                    output_dir,
                    slugs,
                )
                print(f"[SERVER] Rendered {len(written)} pages to {output_dir}")
        except OSError as e:
            logging.error(f"Could not render pages: {e}")
            print(
                f"[SERVER ERROR] Could not render pages: {e}",
                file=sys.stderr,
            )

    def _patch_index_file(self) -> None:
        """Write the current page list into the configured index file."""
        index_path = self.configuration_settings.index_path
        if index_path is None:
            return

        try:
            if patch_index_file(index_path, self.page_index.slugs):
                print(f"[SERVER] Updated page list in {index_path}")
        except (FileNotFoundError, IndexPatchError) as e:
            logging.error(f"Could not patch index file: {e}")
            print(
                f"[SERVER ERROR] Could not patch index file: {e}",
                file=sys.stderr,
            )

    def refresh_pages(self) -> bool:
        """Apply the page changes found since the last poll.

        Returns:
            bool: True if the indexed pages changed.

        """
        changes = self.watcher.poll()
        if not changes:
            return False

        for slug in sorted(changes.modified):
            print(f"[WATCHER] Page updated: {slug}")
        for slug in sorted(changes.removed):
            print(f"[WATCHER] Page deleted: {slug}")
        for slug in sorted(changes.added):
            print(f"[WATCHER] Page added: {slug}")

        self._render_pages(changes.added | changes.modified, changes.removed)

        updated = self.page_index.apply_changes(
            changes,
            self.watcher.current_slugs,
        )
        if updated:
            self._patch_index_file()
        return updated

    async def _watch_pages(self) -> None:
        """Poll the pages directory until the server stops."""
        interval = self.configuration_settings.poll_interval
        while self.is_running:
            await asyncio.sleep(interval)
            try:
                self.refresh_pages()
            except Exception as e:
                logging.exception("Page refresh failed")
                print(
                    f"[WATCHER ERROR] Page refresh failed: {e}",
                    file=sys.stderr,
                )

    async def _setup_ssl_context(
        self,
        cert_path: Path,
        key_path: Path,
        gen_path: Path,
    ) -> None:
        """Setup the SSL context for the server.

        Args:
            cert_path (Path): The path to the certificate file.
            key_path (Path): The path to the key file.
            gen_path (Path): The path to the generation directory.

        """
        if not self.configuration_settings.use_ssl:
            self.ssl_context = None
            print("[SERVER] SSL is disabled by configuration.")
            return

        try:
            generate_certificate_and_key(
                gen_path,
                str(cert_path.name),
                str(key_path.name),
            )
            self.ssl_context = create_server_ssl_context(
                gen_path / cert_path,
                gen_path / key_path,
            )
            print(
                f"[SERVER] SSL context loaded from {cert_path} and "
                f"{key_path}",
            )
        except (OSError, ssl.SSLError) as e:
            print(
                "[SERVER ERROR] Failed to load SSL cert/key: "
                f"{e}. Running without SSL.",
                file=sys.stderr,
            )
            self.ssl_context = None

    async def _handle_client(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        """Handle individual client connections using asyncio.

        Every message received is one completion query. The lookup runs
        on the event loop, which is also the only place the page index is
        modified.

        Args:
            reader (asyncio.StreamReader): The reader for the client
            connection.
            writer (asyncio.StreamWriter): The writer for the client
            connection.

        """
        peername = writer.get_extra_info("peername")
        client_address_str = (
            f"{peername[0]}:{peername[1]}" if peername else "UNKNOWN"
        )
        client_ip = peername[0] if peername else "N/A"
        print(f"[SERVER] Accepted connection from {client_address_str}")

        self._active_connections.add(writer)

        try:
            while self.is_running:
                data = await reader.read(MAX_CHUNK_SIZE + 1)
                if not data:
                    print(
                        f"[SERVER] Client {client_address_str} disconnected.",
                    )
                    break

                start_time_total = time.perf_counter()

                # Enforce a strict maximum message size
                if len(data) > MAX_CHUNK_SIZE:
                    writer.write(
                        b"ERROR: Message exceeds maximum allowed size.\n",
                    )
                    await writer.drain()
                    continue

                query_string = (
                    data.decode("utf-8", errors="replace")
                    .replace("\x00", "")
                    .strip()
                )

                result_count = -1
                try:
                    matches = self.page_index.complete(query_string)
                    result_count = len(matches)
                    response_message_str = format_response(matches)
                except Exception as e:
                    response_message_str = f"ERROR: Search failed: {e}\n"

                writer.write(response_message_str.encode("utf-8"))
                await writer.drain()

                elapsed_ms = (time.perf_counter() - start_time_total) * 1000
                time_stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

                if self.log_details or result_count < 0:
                    log(
                        time_stamp,
                        client_ip,
                        query_string,
                        result_count,
                        elapsed_ms,
                    )

                print(
                    "[SERVER] Handled "
                    f"{client_address_str}: '{query_string}' -> "
                    f"{result_count} matches in {elapsed_ms:.2f} ms",
                )

        except ConnectionResetError:
            print(
                f"[SERVER] Client {client_address_str} forcefully "
                "disconnected.",
            )
        except asyncio.IncompleteReadError:
            print(
                f"[SERVER] Client {client_address_str} connection closed "
                "unexpectedly.",
            )
        except Exception as e:
            print(
                f"[SERVER ERROR] Error handling client "
                f"{client_address_str}: {e}",
                file=sys.stderr,
            )
        finally:
            self._active_connections.discard(writer)

            try:
                writer.close()
                await writer.wait_closed()
            except Exception as e:
                print(
                    f"[SERVER] Error closing connection to "
                    f"{client_address_str}: {e}",
                )

            print(f"[SERVER] Connection with {client_address_str} closed.")

    async def start(
        self,
        generation_path: Path,
        certfile_path: Path,
        key_file_path: Path,
        log_details: bool,
    ) -> None:
        """Start the TCP server.

        Args:
            generation_path (Path): The path to the generation directory.
            certfile_path (Path): The path to the certificate file.
            key_file_path (Path): The path to the key file.
            log_details (bool): Whether to log every query.

        """
        self.log_details = log_details

        try:
            setup_logging_queue()
            start_logging_listener()
            setup_process_logging()

            if self.configuration_settings.use_ssl:
                await self._setup_ssl_context(
                    certfile_path,
                    key_file_path,
                    generation_path,
                )

            raw_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            raw_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

            server_address = (self.ip, self.configuration_settings.port)
            raw_socket.bind(server_address)
            print(f"[SERVER] Bound raw socket to {server_address}")

            self.server_instance = await asyncio.start_server(
                self._handle_client,
                ssl=self.ssl_context,
                sock=raw_socket,
            )

            if self.configuration_settings.watch:
                self._watch_task = asyncio.create_task(self._watch_pages())
                print(
                    "[SERVER] Watching "
                    f"{self.configuration_settings.pages_path} every "
                    f"{self.configuration_settings.poll_interval:.2f} s",
                )

            addrs = ", ".join(
                str(sock.getsockname())
                for sock in self.server_instance.sockets
            )
            print(
                "[SERVER] Server is serving on "
                f"{addrs} with "
                f"{'SSL' if self.ssl_context else 'no SSL'}.",
            )
            print("[SERVER] Press Ctrl+C to shut down.")

            await self.server_instance.serve_forever()

        except asyncio.CancelledError:
            print("[SERVER] Asyncio server task cancelled.")
        except KeyboardInterrupt:
            print("\n[SERVER] Shutting down due to KeyboardInterrupt...")
        except Exception as e:
            print(
                "[SERVER ERROR] An unhandled error occurred in main server "
                f"loop: {e}",
                file=sys.stderr,
            )
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Gracefully stop the server and clean up resources.

        It stops accepting new connections, cancels the page watcher,
        closes all active connections, stops the logging listener and
        closes the asyncio server.
        """
        print("[SERVER] Initiating graceful shutdown...")

        self.is_running = False

        if self._watch_task is not None:
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
            self._watch_task = None

        for writer in list(self._active_connections):
            try:
                writer.close()
                await writer.wait_closed()
            except Exception as e:
                print(
                    f"[SERVER] Error closing connection during shutdown: {e}",
                )
        self._active_connections.clear()

        try:
            stop_logging_listener()
        except Exception as e:
            print(f"[SERVER] Error stopping logging listener: {e}")

        if self.server_instance:
            try:
                self.server_instance.close()
                await self.server_instance.wait_closed()
                print("[SERVER] Asyncio server socket closed.")
            except Exception as e:
                print(f"[SERVER] Error closing asyncio server: {e}")
            finally:
                self.server_instance = None

        self.ssl_context = None
        gc.collect()

        print("[SERVER] Server shutdown complete.")
