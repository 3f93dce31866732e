"""Configuration parser for the wiki search server."""

from pathlib import Path
from typing import Optional, cast

from .pages import GENERATED_DIR

DEFAULT_POLL_INTERVAL = 1.0


class ConfigBoolParsingError(Exception):
    """Raised when the parsing of bool strings in
    the config file was not successful.
    """


class ConfigNotFoundError(Exception):
    """Raised when any of the required configuration settings
    is not provided.
    """


class ConfigValueError(Exception):
    """Raised when a numeric setting cannot be parsed or is out of range."""


class WikiSearchConfig:
    """A class to save the search server configuration settings."""

    def __init__(
        self,
        pages_path: Path,
        port: int,
        use_ssl: bool,
        watch: bool = False,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        index_path: Optional[Path] = None,
        generated_path: Optional[Path] = None,
    ) -> None:
        """Initialize the server configuration.

        Args:
            pages_path (Path): The directory holding the markdown pages.
            port (int): The port number the server will listen to.
            use_ssl (bool): Whether the server should use SSL.
            watch (bool): Whether to poll the pages directory for changes.
            poll_interval (float): Seconds between two polls.
            index_path (Path, optional): An HTML index file whose page list
            is rewritten whenever the pages change.
            generated_path (Path, optional): Where the rendered pages are
            written. Defaults to a ``generated`` directory next to the
            index file, or next to the pages directory without one.

        """
        self.pages_path = pages_path
        self.port = port
        self.use_ssl = use_ssl
        self.watch = watch
        self.poll_interval = poll_interval
        self.index_path = index_path
        if generated_path is None:
            site_root = index_path.parent if index_path else pages_path.parent
            generated_path = site_root / GENERATED_DIR
        self.generated_path = generated_path

    def __repr__(self) -> str:
        """Return a string representation of the configuration object.

        Returns:
            str: A formatted string representing the configuration settings.

        """
        return f"""
                Wiki search configuration settings:
                Pages path: {self.pages_path}
                Index file: {self.index_path or "NONE"}
                Rendered pages: {self.generated_path}
                Watch pages: {"YES" if self.watch else "NO"}
                Poll interval: {self.poll_interval:.2f} s
                SSL enabled: {"YES" if self.use_ssl else "NO"}
                Used port number: {self.port}
            """


def parse_bool(key: str, val: str) -> bool:
    """Parse given values into boolean ones (True or False).

    Args:
        key (str): The key to parse the boolean for.
        val (str): The value to be parsed to boolean.

    Raises:
        ConfigBoolParsingError: If an error occured
        while parsing the value to boolean.

    Returns:
        bool: True or False depending on the output of the parser.

    """
    if val.strip().lower() in {"true", "1", "yes"}:
        return True
    if val.strip().lower() in {"false", "0", "no"}:
        return False

    raise ConfigBoolParsingError(
        f"Invalid boolean value for key '{key}' in the configuration file. "
        "Expected 'true', 'false', '1', '0', 'yes', or 'no' "
        "(case-insensitive).",
    )


def parse_port(val: str) -> int:
    """Parse a TCP port number.

    Raises:
        ConfigValueError: If the value is not an integer in 1..65535.

    """
    try:
        port = int(val)
    except ValueError as e:
        raise ConfigValueError(f"Invalid port number: '{val}'.") from e

    if not 0 < port < 65536:
        raise ConfigValueError(f"Port number out of range: {port}.")
    return port


def parse_interval(val: str) -> float:
    """Parse a positive number of seconds.

    Raises:
        ConfigValueError: If the value is not a positive number.

    """
    try:
        interval = float(val)
    except ValueError as e:
        raise ConfigValueError(f"Invalid poll interval: '{val}'.") from e

    if interval <= 0:
        raise ConfigValueError(
            f"Poll interval must be positive, got {interval}.",
        )
    return interval


def load_config_file(config_file_path: Path) -> WikiSearchConfig:
    """Load and parse the configuration file.

    Relative paths in the file are resolved against the directory that
    contains the configuration file.

    Args:
        config_file_path (Path): Path to the config file.

    Raises:
        ConfigNotFoundError: If required settings are missing.
        ConfigValueError: If a numeric setting is invalid.
        FileNotFoundError: If the config file or the pages path
        does not exist.

    Returns:
        WikiSearchConfig: Parsed config object.

    """
    if not config_file_path.exists():
        raise FileNotFoundError(
            f"Missing required configuration file: '{config_file_path}'. "
            "Please ensure the file exists and the path is correct.",
        )

    base_dir = config_file_path.parent

    # Initialize variables for required config values
    pages_path = port = use_ssl = None
    watch = False
    poll_interval = DEFAULT_POLL_INTERVAL
    index_path: Optional[Path] = None
    generated_path: Optional[Path] = None

    # Open and read the configuration file line by line
    with config_file_path.open("r", encoding="utf-8") as file:
        for line in file:
            line = line.strip()

            # Skip blank lines and comments
            if not line or line.startswith("#"):
                continue

            key, sep, value = line.partition("=")
            if sep != "=":
                continue

            key = key.strip().lower()
            value = value.strip()

            if key == "pagespath":
                pages_path = base_dir / Path(value)
            elif key == "port":
                port = parse_port(value)
            elif key == "use_ssl":
                use_ssl = parse_bool("use_ssl", value)
            elif key == "watch":
                watch = parse_bool("watch", value)
            elif key == "poll_interval":
                poll_interval = parse_interval(value)
            elif key == "indexpath":
                index_path = base_dir / Path(value) if value else None
            elif key == "generatedpath":
                generated_path = base_dir / Path(value) if value else None

    required = {
        "pages_path": pages_path,
        "port": port,
        "use_ssl": use_ssl,
    }

    for key, val in required.items():
        if val is None:
            raise ConfigNotFoundError(
                f"Missing required configuration: '{key}'. "
                f"""Please ensure the config file includes a valid line for
                '{"pagespath" if key == "pages_path" else key.upper()}'.""",
            )

    if pages_path is not None and not pages_path.is_dir():
        raise FileNotFoundError(
            f"The pages directory {pages_path} doesn't exist.",
        )

    return WikiSearchConfig(
        cast("Path", pages_path),
        cast("int", port),
        cast("bool", use_ssl),
        watch=watch,
        poll_interval=poll_interval,
        index_path=index_path,
        generated_path=generated_path,
    )
