"""
Client bootstrap: ask for a username, start the sync thread, run the UI.

    run_client(config)
        │
        ├──► prompt_username()          (unless --user was given)
        ├──► ClientSync(...).start()    (daemon thread)
        └──► curses.wrapper(ui.main)    (blocks until Ctrl-C or an error)

curses.wrapper restores the terminal however the UI exits. Errors are
reported on stderr once the screen is back to normal, and turned into a
non-zero exit code.
"""

import curses
import logging
import queue
import sys
from typing import Callable, Optional

from ..config import ClientConfig, setup_logging
from ..errors import ChatError
from .sync import ClientSync
from .transport import ChatClient
from .ui import ClientUI


logger = logging.getLogger(__name__)


def prompt_username(read: Callable[[str], str] = input) -> Optional[str]:
    """
    Ask for a username until a non-empty one is given.

    Returns:
        The name, or None if stdin was closed.
    """
    while True:
        try:
            name = read("Enter a username:\n\n> ").strip()
        except EOFError:
            return None
        if name:
            return name


def run_client(config: ClientConfig) -> int:
    """
    Run the interactive client.

    Returns:
        Process exit code: 0 on Ctrl-C, 1 on any error.
    """
    config.validate()
    setup_logging(config.log_level, config.log_file, discard=True)

    user = config.user or prompt_username()
    if not user:
        print("No username given", file=sys.stderr)
        return 1

    client = ChatClient(config.host, config.port)
    channel: "queue.Queue" = queue.Queue(maxsize=config.channel_capacity)
    sync = ClientSync(client, channel, interval=config.poll_interval,
                      retry=config.retry_sync).start()
    ui = ClientUI(user, client, channel, sync=sync, frame=config.poll_interval)

    logger.info(f"Client started as {user!r} against {config.host}:{config.port}")
    try:
        curses.wrapper(ui.main)
    except KeyboardInterrupt:
        pass
    except ChatError as e:
        logger.error(f"Client stopped: {type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        sync.stop(timeout=1.0)

    return 0
