from pathlib import Path

import pytest

from src.server.config import (
    DEFAULT_POLL_INTERVAL,
    ConfigBoolParsingError,
    ConfigNotFoundError,
    ConfigValueError,
    WikiSearchConfig,
    load_config_file,
    parse_bool,
    parse_interval,
    parse_port,
)

# Test data for valid configurations
VALID_CONFIG = """
# Wiki search configuration
pagespath = {pages_path}
port = 8888
use_ssl = yes
watch = true
poll_interval = 0.5
indexpath = {index_path}
"""

MINIMAL_CONFIG = """
pagespath = {pages_path}
port = 8888
use_ssl = false
"""

MISSING_KEY_CONFIG = """
pagespath = {pages_path}
use_ssl = false
"""

INVALID_BOOL_CONFIG = """
pagespath = {pages_path}
port = 8888
use_ssl = maybe
"""

INVALID_PORT_CONFIG = """
pagespath = {pages_path}
port = abc
use_ssl = false
"""

INVALID_INTERVAL_CONFIG = """
pagespath = {pages_path}
port = 8888
use_ssl = false
poll_interval = 0
"""


def write_config(tmp_path, template, **values):
    config_path = tmp_path / "config.txt"
    config_path.write_text(template.format(**values))
    return config_path


@pytest.mark.parametrize(
    "value, expected",
    [
        ("true", True),
        ("True", True),
        ("TRUE", True),
        ("1", True),
        ("yes", True),
        ("false", False),
        ("False", False),
        ("FALSE", False),
        ("0", False),
        ("no", False),
    ],
)
def test_parse_bool_valid(value, expected):
    """Test valid boolean values."""
    assert parse_bool("test_key", value) == expected


@pytest.mark.parametrize("value", ["maybe", "2", "yess", "tru", "invalid"])
def test_parse_bool_invalid(value):
    """Test invalid boolean values."""
    with pytest.raises(ConfigBoolParsingError) as excinfo:
        parse_bool("test_key", value)
    assert "Invalid boolean value for key 'test_key'" in str(excinfo.value)


@pytest.mark.parametrize("value", ["abc", "0", "70000", "-1", "8.5"])
def test_parse_port_invalid(value):
    with pytest.raises(ConfigValueError):
        parse_port(value)


def test_parse_interval():
    assert parse_interval("2.5") == 2.5
    for value in ["0", "-1", "soon"]:
        with pytest.raises(ConfigValueError):
            parse_interval(value)


def test_config_initialization_defaults(tmp_path):
    """Test WikiSearchConfig initialization and defaults."""
    config = WikiSearchConfig(pages_path=tmp_path, port=8888, use_ssl=False)

    assert config.pages_path == tmp_path
    assert config.port == 8888
    assert config.use_ssl is False
    assert config.watch is False
    assert config.poll_interval == DEFAULT_POLL_INTERVAL
    assert config.index_path is None


def test_config_repr(tmp_path):
    """Test the string representation of WikiSearchConfig."""
    config = WikiSearchConfig(
        pages_path=tmp_path,
        port=8888,
        use_ssl=False,
        watch=True,
    )

    repr_str = repr(config)
    assert "Wiki search configuration settings" in repr_str
    assert str(tmp_path) in repr_str
    assert "Watch pages: YES" in repr_str
    assert "Index file: NONE" in repr_str
    assert "SSL enabled: NO" in repr_str
    assert "Used port number: 8888" in repr_str


def test_load_valid_config(tmp_path, pages_dir):
    """Test loading a valid configuration file."""
    index_path = tmp_path / "index.html"
    config_path = write_config(
        tmp_path,
        VALID_CONFIG,
        pages_path=pages_dir,
        index_path=index_path,
    )

    config = load_config_file(config_path)

    assert config.pages_path == pages_dir
    assert config.port == 8888
    assert config.use_ssl is True
    assert config.watch is True
    assert config.poll_interval == 0.5
    assert config.index_path == index_path


def test_load_minimal_config_uses_defaults(tmp_path, pages_dir):
    config_path = write_config(tmp_path, MINIMAL_CONFIG, pages_path=pages_dir)

    config = load_config_file(config_path)

    assert config.watch is False
    assert config.poll_interval == DEFAULT_POLL_INTERVAL
    assert config.index_path is None


def test_relative_paths_resolve_against_config_directory(tmp_path, pages_dir):
    config_path = write_config(
        tmp_path,
        VALID_CONFIG,
        pages_path="./pages",
        index_path="./index.html",
    )

    config = load_config_file(config_path)

    assert config.pages_path.resolve() == pages_dir.resolve()
    assert config.index_path.resolve() == (tmp_path / "index.html").resolve()


def test_load_config_missing_file():
    """Test loading a configuration from a non-existent file."""
    with pytest.raises(FileNotFoundError) as excinfo:
        load_config_file(Path("/non/existent/path"))
    assert "Missing required configuration file" in str(excinfo.value)


def test_load_config_missing_key(tmp_path, pages_dir):
    """Test configuration with a missing required key."""
    config_path = write_config(
        tmp_path,
        MISSING_KEY_CONFIG,
        pages_path=pages_dir,
    )

    with pytest.raises(ConfigNotFoundError) as excinfo:
        load_config_file(config_path)
    assert "'port'" in str(excinfo.value)


def test_load_config_invalid_bool(tmp_path, pages_dir):
    config_path = write_config(
        tmp_path,
        INVALID_BOOL_CONFIG,
        pages_path=pages_dir,
    )

    with pytest.raises(ConfigBoolParsingError):
        load_config_file(config_path)


def test_load_config_invalid_port(tmp_path, pages_dir):
    config_path = write_config(
        tmp_path,
        INVALID_PORT_CONFIG,
        pages_path=pages_dir,
    )

    with pytest.raises(ConfigValueError):
        load_config_file(config_path)


def test_load_config_invalid_interval(tmp_path, pages_dir):
    config_path = write_config(
        tmp_path,
        INVALID_INTERVAL_CONFIG,
        pages_path=pages_dir,
    )

    with pytest.raises(ConfigValueError):
        load_config_file(config_path)


def test_load_config_missing_pages_directory(tmp_path):
    config_path = write_config(
        tmp_path,
        MINIMAL_CONFIG,
        pages_path=tmp_path / "missing",
    )

    with pytest.raises(FileNotFoundError) as excinfo:
        load_config_file(config_path)
    assert "pages directory" in str(excinfo.value)


def test_load_config_ignores_comments_and_junk(tmp_path, pages_dir):
    content = (
        "# comment\n"
        "\n"
        "this line has no separator\n"
        "unknown_key = 42\n"
        f"PAGESPATH = {pages_dir}\n"
        "Port = 9000\n"
        "USE_SSL = no\n"
    )
    config_path = tmp_path / "config.txt"
    config_path.write_text(content)

    config = load_config_file(config_path)

    assert config.pages_path == pages_dir
    assert config.port == 9000
    assert config.use_ssl is False


def test_generated_path_defaults(tmp_path):
    pages_path = tmp_path / "wiki" / "pages"

    without_index = WikiSearchConfig(pages_path, 8888, False)
    with_index = WikiSearchConfig(
        pages_path,
        8888,
        False,
        index_path=tmp_path / "site" / "index.html",
    )

    assert without_index.generated_path == tmp_path / "wiki" / "generated"
    assert with_index.generated_path == tmp_path / "site" / "generated"


def test_load_config_generated_path(tmp_path, pages_dir):
    config_path = write_config(
        tmp_path,
        MINIMAL_CONFIG + "generatedpath = ./html\n",
        pages_path=pages_dir,
    )

    config = load_config_file(config_path)

    assert config.generated_path == tmp_path / "html"
