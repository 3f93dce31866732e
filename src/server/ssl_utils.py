"""Create the self-signed certificate and the SSL context of the server."""

import ssl
import subprocess
import sys
from pathlib import Path

CERT_SUBJECT = "/C=US/ST=State/L=City/O=Wiki/OU=Search/CN=localhost"


def _discard(*paths: Path) -> None:
    """Remove half-written certificate files."""
    for path in paths:
        if path.exists():
            path.unlink()


def generate_certificate_and_key(
    gen_path: Path,
    cert_name: str = "cert.pem",
    key_name: str = "key.pem",
) -> bool:
    """Generate a self-signed SSL certificate and key using OpenSSL.

    Existing files are kept as they are.

    Args:
        gen_path (Path): The directory where the certificate and key
            files will be created.
        cert_name (str, optional): The name of the certificate file.
            Defaults to "cert.pem".
        key_name (str, optional): The name of the key file.
            Defaults to "key.pem".

    Returns:
        bool: True if both files are available afterwards.

    """
    cert_path = gen_path / cert_name
    key_path = gen_path / key_name

    if cert_path.exists() and key_path.exists():
        print(
            f"[SSL_UTILS] SSL cert and key already exist: "
            f"{cert_path}, {key_path}",
        )
        return True

    print(
        f"[SSL_UTILS] Generating self-signed SSL certificate and key in "
        f"{gen_path}...",
    )
    commands = [
        ["openssl", "genrsa", "-out", str(key_path), "2048"],
        [
            "openssl",
            "req",
            "-new",
            "-x509",
            "-key",
            str(key_path),
            "-out",
            str(cert_path),
            "-days",
            "365",
            "-nodes",
            "-subj",
            CERT_SUBJECT,
        ],
    ]
    try:
        gen_path.mkdir(parents=True, exist_ok=True)
        for command in commands:
            subprocess.run(command, check=True, capture_output=True, text=True)

    except FileNotFoundError:
        print(
            "[SSL_UTILS ERROR] OpenSSL not found. Please install OpenSSL.",
            file=sys.stderr,
        )
        _discard(cert_path, key_path)
        return False

    except subprocess.CalledProcessError as e:
        print(
            f"[SSL_UTILS ERROR] OpenSSL command failed: {e}",
            file=sys.stderr,
        )
        print(f"Stderr: {e.stderr}", file=sys.stderr)
        _discard(cert_path, key_path)
        return False

    print(f"[SSL_UTILS] Successfully generated {cert_path} and {key_path}")
    return True


def create_server_ssl_context(cert_path: Path, key_path: Path) -> ssl.SSLContext:
    """Build a TLS server context from a certificate and key pair.

    Raises:
        FileNotFoundError: If either file is missing.
        ssl.SSLError: If the files cannot be loaded.

    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(certfile=str(cert_path), keyfile=str(key_path))
    return context
