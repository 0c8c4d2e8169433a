"""
Client side of tinychat.

    transport.py  ChatClient: one request per fresh connection
    sync.py       ClientSync: background GET /messages poller
    ui.py         ClientUI: curses frame loop
    app.py        run_client(): username prompt and wiring
"""

from .app import prompt_username, run_client
from .sync import ClientSync
from .transport import ChatClient
from .ui import ClientUI

__all__ = [
    "ChatClient",
    "ClientSync",
    "ClientUI",
    "prompt_username",
    "run_client",
]
