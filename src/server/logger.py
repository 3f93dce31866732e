"""Query logging through a queue drained by a background listener."""

import logging
import logging.handlers
import queue
from pathlib import Path
from typing import Any, Union

LOG_FILE_PATH = Path(__file__).parent.parent.parent / "logs/server.log"
_LOG_LEVEL = logging.INFO
_LOG_FORMAT = (
    "level=%(levelname)s | time=%(asctime)s | thread=%(thread)d | "
    "module=%(module)s | funcName=%(funcName)s | lineno=%(lineno)d | "
    "message=%(message)s"
)

_log_queue: Union["queue.Queue[Any]", None] = None
_listener: Union[logging.handlers.QueueListener, None] = None


def setup_logging_queue() -> None:
    """Create the queue shared by the request handlers and the listener."""
    global _log_queue
    if _log_queue is None:
        _log_queue = queue.Queue(-1)


def _require_queue() -> "queue.Queue[Any]":
    if _log_queue is None:
        raise RuntimeError(
            "Log queue not initialized. Call setup_logging_queue() first.",
        )
    return _log_queue


def _build_file_handler(log_file_path: Path) -> logging.Handler:
    log_file_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(
        logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"),
    )
    return file_handler


def start_logging_listener() -> None:
    """Start writing queued records to the rotating log file.

    Raises:
        RuntimeError: If `setup_logging_queue` was not called first.

    """
    global _listener
    log_queue = _require_queue()
    if _listener is None:
        _listener = logging.handlers.QueueListener(
            log_queue,
            _build_file_handler(LOG_FILE_PATH),
        )
        _listener.start()
        print(f"[LOGGER] Listener started, writing to {LOG_FILE_PATH}")


def stop_logging_listener() -> None:
    """Flush the pending records, close the log file and drop the queue.

    Does nothing when no listener is running.
    """
    global _listener, _log_queue
    if _listener is None:
        return

    _listener.stop()
    for handler in _listener.handlers:
        handler.close()
    _listener = None
    _log_queue = None
    print("[LOGGER] Listener stopped.")


def setup_process_logging() -> None:
    """Send every record of the root logger through the queue."""
    log_queue = _require_queue()

    root_logger = logging.getLogger()
    root_logger.setLevel(_LOG_LEVEL)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(logging.handlers.QueueHandler(log_queue))


def log(
    time_stamp: str,
    client_ip: str,
    query: str,
    result_count: int,
    execution_time_ms: float,
) -> None:
    """Record one completion query.

    Args:
        time_stamp (str): When the query was answered.
        client_ip (str): The IP address of the client.
        query (str): The query string.
        result_count (int): The number of matching pages, -1 on error.
        execution_time_ms (float): The execution time in milliseconds.

    """
    logging.info(
        "Timestamp: %s, Client IP: %s, Query: '%s', Matches: %d, "
        "Execution Time: %.2f ms",
        time_stamp,
        client_ip,
        query,
        result_count,
        execution_time_ms,
    )
