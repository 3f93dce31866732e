import pytest

from src.server.ssl_utils import generate_certificate_and_key
from tests.page_constants import PAGE_SLUGS


@pytest.fixture
def pages_dir(tmp_path):
    """A pages directory holding one markdown file per slug in PAGE_SLUGS."""
    pages = tmp_path / "pages"
    pages.mkdir()
    for slug in PAGE_SLUGS:
        (pages / f"{slug}.md").write_text(f"# {slug}\n", encoding="utf-8")
    return pages


@pytest.fixture(scope="session")
def ssl_certs(tmp_path_factory):
    """Generates a self-signed certificate once per test session.
    Tests using it are skipped when OpenSSL is not available.
    """
    certs_dir = tmp_path_factory.mktemp("certs")
    if not generate_certificate_and_key(certs_dir):
        pytest.skip("OpenSSL is not available to generate certificates.")
    return certs_dir / "cert.pem", certs_dir / "key.pem"
