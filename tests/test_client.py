import asyncio
import ssl
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import pytest_asyncio

from src.client.client import Client, ServerResponseError
from src.client.ssl_client import SslClient
from src.server.config import WikiSearchConfig
from src.server.server import Server
from src.server.ssl_utils import create_server_ssl_context

SERVER_IP = "127.0.0.1"


async def start_fake_server(handler, ssl_context=None):
    server = await asyncio.start_server(
        handler,
        SERVER_IP,
        0,
        ssl=ssl_context,
    )
    port = server.sockets[0].getsockname()[1]
    return server, port


async def close_fake_server(server):
    server.close()
    try:
        await asyncio.wait_for(server.wait_closed(), timeout=1.0)
    except (asyncio.TimeoutError, OSError):
        pass


@pytest.fixture
def completion_server(pages_dir):
    """A page completion server over the test pages, not yet listening."""
    mock_conf = MagicMock(spec=WikiSearchConfig)
    mock_conf.pages_path = pages_dir
    mock_conf.index_path = None
    mock_conf.generated_path = pages_dir.parent / "generated"
    mock_conf.use_ssl = False
    mock_conf.watch = False
    mock_conf.poll_interval = 1.0
    mock_conf.port = 0

    with (
        patch("src.server.server.load_config_file", return_value=mock_conf),
        patch("builtins.print"),
    ):
        yield Server(SERVER_IP, Path("/mock/config.txt"))


@pytest_asyncio.fixture
async def live_server(completion_server):
    """The completion server listening on a free local port."""
    with patch("builtins.print"):
        server, port = await start_fake_server(
            completion_server._handle_client,
        )
        yield SERVER_IP, port
        await close_fake_server(server)


@pytest_asyncio.fixture
async def connected_client(live_server):
    ip, port = live_server
    client = Client(ip, port)
    with patch("builtins.print"):
        await client.connect()
        yield client
        await client.close()


@pytest.mark.asyncio
async def test_complete_returns_prefix_matches(connected_client):
    matches = await connected_client.complete("get")

    assert set(matches) == {"getting-started", "getting-help", "get-involved"}


@pytest.mark.asyncio
async def test_complete_several_queries_on_one_connection(connected_client):
    assert await connected_client.complete("welcome") == ["welcome"]
    assert await connected_client.complete("zebra") == []
    assert await connected_client.complete("  REL") == ["release-notes"]


@pytest.mark.asyncio
async def test_complete_blank_query(connected_client):
    assert await connected_client.complete("") == []


@pytest.mark.asyncio
async def test_send_message_prints_matches(connected_client):
    with patch("builtins.print") as mock_print:
        elapsed = await connected_client.send_message("welcome")

    assert isinstance(elapsed, float)
    assert elapsed >= 0
    mock_print.assert_any_call("Matches from server (1):", "welcome")


@pytest.mark.asyncio
async def test_complete_without_connection():
    client = Client(SERVER_IP, 1)

    with pytest.raises(ConnectionError):
        await client.complete("welcome")


@pytest.mark.asyncio
async def test_send_message_without_connection():
    client = Client(SERVER_IP, 1)

    with patch("builtins.print") as mock_print:
        assert await client.send_message("welcome") is None
        mock_print.assert_called_once_with(
            "Client not connected. Call .connect() first.",
        )


@pytest.mark.asyncio
async def test_connect_refused():
    server, port = await start_fake_server(lambda reader, writer: None)
    await close_fake_server(server)

    client = Client(SERVER_IP, port)
    with patch("builtins.print") as mock_print:
        with pytest.raises(ConnectionRefusedError):
            await client.connect()
        mock_print.assert_any_call(
            f"Connection refused by the server at {SERVER_IP}:{port}.",
        )


async def serve_fixed_reply(reply):
    """Start a server answering every query with the same raw reply."""

    async def handler(reader, writer):
        try:
            while await reader.readline():
                writer.write(reply)
                await writer.drain()
        finally:
            writer.close()

    return await start_fake_server(handler)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [
        b"ERROR: Message exceeds maximum allowed size.\n",
        b"HELLO 3\n",
        b"MATCHES many\n",
    ],
)
async def test_complete_rejects_error_replies(reply):
    server, port = await serve_fixed_reply(reply)
    client = Client(SERVER_IP, port)

    try:
        with patch("builtins.print"):
            await client.connect()
            with pytest.raises(ServerResponseError):
                await client.complete("welcome")
            await client.close()
    finally:
        await close_fake_server(server)


@pytest.mark.asyncio
async def test_send_message_reports_server_error():
    server, port = await serve_fixed_reply(b"ERROR: Search failed: boom\n")
    client = Client(SERVER_IP, port)

    try:
        with patch("builtins.print") as mock_print:
            await client.connect()
            assert await client.send_message("welcome") is None
            mock_print.assert_any_call(
                "Server error: ERROR: Search failed: boom",
            )
            await client.close()
    finally:
        await close_fake_server(server)


@pytest.mark.asyncio
async def test_complete_truncated_reply():
    async def close_after_reply(reader, writer):
        await reader.readline()
        writer.write(b"MATCHES 2\nwelcome\n")
        await writer.drain()
        writer.close()

    server, port = await start_fake_server(close_after_reply)
    client = Client(SERVER_IP, port)

    try:
        with patch("builtins.print"):
            await client.connect()
            with pytest.raises(ConnectionError):
                await client.complete("welcome")
            await client.close()
    finally:
        await close_fake_server(server)


@pytest.mark.asyncio
async def test_send_message_when_server_closes():
    async def close_immediately(reader, writer):
        await reader.readline()
        writer.close()

    server, port = await start_fake_server(close_immediately)
    client = Client(SERVER_IP, port)

    try:
        with patch("builtins.print") as mock_print:
            await client.connect()
            assert await client.send_message("welcome") is None
            mock_print.assert_any_call(
                "Connection problem: Server closed the connection.",
            )
            await client.close()
    finally:
        await close_fake_server(server)


@pytest.mark.asyncio
async def test_close_without_connection():
    client = Client(SERVER_IP, 1)

    with patch("builtins.print") as mock_print:
        await client.close()
        mock_print.assert_any_call("No active connection to close.")

    assert client.reader is None
    assert client.writer is None


@pytest.mark.asyncio
async def test_close_resets_streams(live_server):
    client = Client(*live_server)

    with patch("builtins.print") as mock_print:
        await client.connect()
        await client.close()
        mock_print.assert_any_call("Connection closed.")

    assert client.reader is None
    assert client.writer is None


@pytest.mark.asyncio
async def test_ssl_client_round_trip(completion_server, ssl_certs):
    cert_path, key_path = ssl_certs
    server_context = create_server_ssl_context(cert_path, key_path)

    with patch("builtins.print"):
        server, port = await start_fake_server(
            completion_server._handle_client,
            ssl_context=server_context,
        )
        client = SslClient(SERVER_IP, port, cert_path)
        # The test certificate is its own issuer
        client.ssl_context.verify_flags &= ~ssl.VERIFY_X509_STRICT
        try:
            await client.connect()
            assert await client.complete("welc") == ["welcome"]
            await client.close()
        finally:
            await close_fake_server(server)


def test_ssl_client_missing_ca_file(tmp_path):
    with patch("builtins.print") as mock_print:
        client = SslClient(SERVER_IP, 1, tmp_path / "missing.pem")

    assert client.cafile_path == tmp_path / "missing.pem"
    assert mock_print.call_count == 1
    assert "CA certificate file not found" in mock_print.call_args.args[0]
