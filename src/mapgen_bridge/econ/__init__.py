"""Econ (external console) transport and chat-line parsing.

Public surface
--------------
- :class:`ConsoleLink` — socket transport to the server console.
- :class:`VoteParser`  — turns raw console text into vote lifecycle events.
"""

from mapgen_bridge.econ.link import ConsoleLink, quote_argument, say_command
from mapgen_bridge.econ.votes import (
    VoteEvent,
    VoteEventKind,
    VoteFailed,
    VoteParser,
    VotePassed,
    VoteStarted,
)

__all__ = [
    "ConsoleLink",
    "VoteEvent",
    "VoteEventKind",
    "VoteFailed",
    "VoteParser",
    "VotePassed",
    "VoteStarted",
    "quote_argument",
    "say_command",
]
