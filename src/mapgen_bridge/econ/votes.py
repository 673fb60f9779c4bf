"""Vote lifecycle events parsed from econ chat lines.

DDNet logs vote activity as chat lines of the form::

    2024-01-01 10:00:00 I chat: *** 'Tee' called vote to change server option 'generate easy' (42)
    2024-01-01 10:00:20 I chat: *** Vote passed
    2024-01-01 10:00:20 I chat: *** Vote failed

Parsing is two-stage. The envelope pattern finds complete vote lines in a
chunk; the payload is then classified against the same per-kind patterns the
envelope was assembled from. Because both stages share one pattern table, an
envelope match that no kind claims can only mean the table is broken, and
:class:`VoteParser` raises :exc:`~mapgen_bridge.errors.ProtocolContractError`
instead of dropping the line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from mapgen_bridge.errors import ProtocolContractError


class VoteEventKind(Enum):
    PASSED = "passed"
    FAILED = "failed"
    STARTED = "started"


@dataclass(frozen=True)
class VotePassed:
    timestamp: str
    detail: str = ""
    kind: VoteEventKind = VoteEventKind.PASSED


@dataclass(frozen=True)
class VoteFailed:
    timestamp: str
    kind: VoteEventKind = VoteEventKind.FAILED


@dataclass(frozen=True)
class VoteStarted:
    """A player opened a vote.

    Attributes:
        timestamp: Server log timestamp (``YYYY-MM-DD HH:MM:SS``).
        player:    Name of the player who called the vote.
        vote_name: Vote option, verbatim (``"generate easy"``).
        reason:    Free-text reason, verbatim (``"No reason given"`` if empty).
    """

    timestamp: str
    player: str
    vote_name: str
    reason: str
    kind: VoteEventKind = VoteEventKind.STARTED


VoteEvent = VotePassed | VoteFailed | VoteStarted


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

#: Payload forms, one per event kind. The envelope is built from these.
PAYLOAD_FORMS: dict[VoteEventKind, str] = {
    VoteEventKind.PASSED: r"Vote passed(?P<detail>\b.*)?",
    VoteEventKind.FAILED: r"Vote failed",
    # The vote name is server text and the reason is player text, so the
    # first " option '" wins and the reason runs to the last ")".
    VoteEventKind.STARTED: (
        r"'(?P<player>.+?)' called .+? option '(?P<vote_name>.+?)' \((?P<reason>.*)\)"
    ),
}

_PAYLOAD_RES: dict[VoteEventKind, re.Pattern[str]] = {
    kind: re.compile(form) for kind, form in PAYLOAD_FORMS.items()
}

_NAMED_GROUP_RE = re.compile(r"\(\?P<\w+>")


def _anonymous(form: str) -> str:
    """Strip group names so several forms can share one alternation."""
    return "(?:" + _NAMED_GROUP_RE.sub("(?:", form) + ")"


_ENVELOPE_RE = re.compile(
    r"(?P<timestamp>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}) I chat: \*\*\* "
    r"(?P<payload>" + "|".join(_anonymous(form) for form in PAYLOAD_FORMS.values()) + r")\r?"
)


class VoteParser:
    """Extract vote events from raw console text.

    Stateless; one instance can be shared for the whole session.
    """

    def parse(self, text: str) -> list[VoteEvent]:
        """Return every vote event in *text*, in document order.

        Only newline-terminated lines are considered. Lines that are not vote
        announcements are ignored.

        Raises:
            ProtocolContractError: A vote line matched the envelope but no kind.
        """
        events: list[VoteEvent] = []
        # The last element is an unterminated tail (or "").
        for line in text.split("\n")[:-1]:
            match = _ENVELOPE_RE.fullmatch(line)
            if match is None:
                continue
            events.append(self._classify(match.group("timestamp"), match.group("payload")))
        return events

    @staticmethod
    def _classify(timestamp: str, payload: str) -> VoteEvent:
        for kind, pattern in _PAYLOAD_RES.items():
            found = pattern.fullmatch(payload)
            if found is None:
                continue
            match kind:
                case VoteEventKind.PASSED:
                    return VotePassed(timestamp, (found.group("detail") or "").strip())
                case VoteEventKind.FAILED:
                    return VoteFailed(timestamp)
                case VoteEventKind.STARTED:
                    return VoteStarted(
                        timestamp,
                        player=found.group("player"),
                        vote_name=found.group("vote_name"),
                        reason=found.group("reason"),
                    )
        raise ProtocolContractError(f"vote line matched no known form: {payload!r}")
