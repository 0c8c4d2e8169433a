"""
=============================================================================
TINYCHAT CLI ENTRY POINT
=============================================================================

    python -m tinychat server [--ip IP] [--port PORT] [--log-level LEVEL]
    python -m tinychat client [--ip IP] [--port PORT] [--user NAME]
                              [--fail-fast] [--log-file PATH]

The installed console scripts ``tinychat-server`` and ``tinychat-client``
skip the subcommand.

Flags override the environment (CHAT_HOST, CHAT_PORT, ...), which
overrides the built-in defaults (127.0.0.1:8080). Everything is read once
at startup.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import LOG_LEVELS, ClientConfig, ServerConfig


def _add_address_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--ip", "-i",
        default=None,
        help="Specify a different ip address than default (localhost 127.0.0.1)",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Specify a different port than default (8080)",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: INFO)",
    )


def _add_client_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--user", "-u",
        default=None,
        help="Username to chat as (prompted for if omitted)",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Exit on the first failed poll instead of retrying",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Write client logs to this file (default: discard)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tinychat",
        description="Minimal chat server and terminal client over raw TCP",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"tinychat {__version__}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    server = commands.add_parser("server", help="Run the chat server")
    _add_address_arguments(server)

    client = commands.add_parser("client", help="Run the terminal client")
    _add_address_arguments(client)
    _add_client_arguments(client)

    return parser


def server_config(args: argparse.Namespace) -> ServerConfig:
    """Defaults and environment, overridden by CLI flags."""
    config = ServerConfig.from_env()
    if args.ip:
        config.host = args.ip
    if args.port is not None:
        config.port = args.port
    if args.log_level:
        config.log_level = args.log_level
    return config


def client_config(args: argparse.Namespace) -> ClientConfig:
    config = ClientConfig.from_env()
    if args.ip:
        config.host = args.ip
    if args.port is not None:
        config.port = args.port
    if args.log_level:
        config.log_level = args.log_level
    if args.user:
        config.user = args.user
    if args.log_file:
        config.log_file = args.log_file
    if args.fail_fast:
        config.retry_sync = False
    return config


def run_server(config: ServerConfig) -> int:
    from .server import ChatServer

    ChatServer(config).run()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        if args.command == "server":
            return run_server(server_config(args))

        from .client import run_client
        return run_client(client_config(args))
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def server_main() -> int:
    """Console script: tinychat-server."""
    return main(["server", *sys.argv[1:]])


def client_main() -> int:
    """Console script: tinychat-client."""
    return main(["client", *sys.argv[1:]])


if __name__ == "__main__":
    sys.exit(main())
