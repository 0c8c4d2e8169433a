"""
=============================================================================
CONFIGURATION
=============================================================================

Server and client settings as plain dataclasses with sensible defaults.

Configuration is read ONCE at startup (defaults → environment → CLI flags)
and never revisited while the process runs.

    ┌────────────────────┬──────────────────┬─────────────────────────────┐
    │  Setting           │ Environment      │ CLI flag                    │
    ├────────────────────┼──────────────────┼─────────────────────────────┤
    │  host              │ CHAT_HOST        │ --ip / -i                   │
    │  port              │ CHAT_PORT        │ --port / -p                 │
    │  log level         │ CHAT_LOG_LEVEL   │ --log-level / -l            │
    │  username (client) │ CHAT_USER        │ --user / -u                 │
    └────────────────────┴──────────────────┴─────────────────────────────┘

Validation is eager: a bad port fails at startup with ValueError rather
than on the first connection.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _env_port(default: int) -> int:
    value = os.getenv("CHAT_PORT")
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"CHAT_PORT must be an integer, got {value!r}") from None


def _validate_address(host: str, port: int) -> None:
    if not host:
        raise ValueError("host must not be empty")
    # Port 0 lets the OS pick a free port (used by tests)
    if not 0 <= port < 65536:
        raise ValueError(f"Invalid port: {port}. Must be 0-65535.")


@dataclass
class ServerConfig:
    """
    Settings for the chat server.

    There is no worker limit and no read timeout: every
    accepted connection gets its own thread for as long as it stays open.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    backlog: int = 128
    """Connections the OS queues before refusing new ones."""

    log_level: str = "INFO"

    @property
    def address(self) -> Tuple[str, int]:
        return (self.host, self.port)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        CHAT_HOST       Bind address (default: 127.0.0.1)
        CHAT_PORT       Port (default: 8080)
        CHAT_LOG_LEVEL  Logging level (default: INFO)
        """
        return cls(
            host=os.getenv("CHAT_HOST", DEFAULT_HOST),
            port=_env_port(DEFAULT_PORT),
            log_level=os.getenv("CHAT_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        _validate_address(self.host, self.port)
        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")


@dataclass
class ClientConfig:
    """Settings for the terminal client."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    user: Optional[str] = None
    """Username. Prompted for on stdin when not given."""

    poll_interval: float = 0.1
    """Seconds between GET /messages polls, also the UI frame length."""

    channel_capacity: int = 100
    """Message batches buffered between the sync thread and the UI."""

    retry_sync: bool = True
    """
    True: a failed poll is logged and retried on the next tick.
    False: the first failure stops the sync loop and ends the client.
    """

    log_file: Optional[str] = None
    """Where client logs go. None discards them (stderr belongs to curses)."""

    log_level: str = "INFO"

    @property
    def address(self) -> Tuple[str, int]:
        return (self.host, self.port)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Create configuration from environment variables.

        CHAT_HOST, CHAT_PORT, CHAT_USER, CHAT_LOG_FILE, CHAT_LOG_LEVEL
        """
        return cls(
            host=os.getenv("CHAT_HOST", DEFAULT_HOST),
            port=_env_port(DEFAULT_PORT),
            user=os.getenv("CHAT_USER"),
            log_file=os.getenv("CHAT_LOG_FILE"),
            log_level=os.getenv("CHAT_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        _validate_address(self.host, self.port)
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        if self.channel_capacity < 1:
            raise ValueError("channel_capacity must be >= 1")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")


def setup_logging(level: str = "INFO", log_file: Optional[str] = None,
                  discard: bool = False) -> None:
    """
    Configure the root logger once for the whole process.

    Args:
        level: Level name (DEBUG, INFO, ...).
        log_file: Write to this file instead of stderr.
        discard: Drop all records (used by the client when no file is given,
                 since stderr output would corrupt the curses screen).
    """
    if discard and not log_file:
        package_logger = logging.getLogger("tinychat")
        package_logger.addHandler(logging.NullHandler())
        package_logger.propagate = False
        return

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        filename=log_file,
    )
    logging.getLogger("tinychat").setLevel(getattr(logging, level.upper(), logging.INFO))
