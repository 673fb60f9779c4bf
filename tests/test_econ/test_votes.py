"""Unit tests for vote line parsing (mapgen_bridge/econ/votes.py)."""

import pytest

from mapgen_bridge.econ import votes
from mapgen_bridge.econ.votes import (
    VoteEventKind,
    VoteFailed,
    VoteParser,
    VotePassed,
    VoteStarted,
)
from mapgen_bridge.errors import ProtocolContractError

TS = "2024-01-01 10:00:00"


def _line(payload: str, ts: str = TS) -> str:
    return f"{ts} I chat: *** {payload}\n"


@pytest.fixture
def parser() -> VoteParser:
    return VoteParser()


# ============================================================================
# SINGLE EVENTS
# ============================================================================


@pytest.mark.unit
def test_vote_started(parser):
    events = parser.parse(_line("'Tee' called vote to option 'generate easy' (42)"))
    assert events == [VoteStarted(TS, player="Tee", vote_name="generate easy", reason="42")]


@pytest.mark.unit
def test_vote_started_keeps_internal_whitespace(parser):
    text = _line("'A  B' called vote to change server option 'generate  hard' (my  map)")
    (event,) = parser.parse(text)
    assert event.player == "A  B"
    assert event.vote_name == "generate  hard"
    assert event.reason == "my  map"


@pytest.mark.unit
def test_vote_started_reason_with_parentheses(parser):
    (event,) = parser.parse(_line("'Tee' called vote to option 'generate' (a (b) c)"))
    assert event.reason == "a (b) c"


@pytest.mark.unit
def test_vote_started_reason_cannot_replace_vote_name(parser):
    text = _line(
        "'Tee' called vote to change server option 'kick Bob' (x option 'generate easy' (1)"
    )
    (event,) = parser.parse(text)
    assert event.vote_name == "kick Bob"
    assert event.reason == "x option 'generate easy' (1"


@pytest.mark.unit
def test_vote_passed(parser):
    assert parser.parse(_line("Vote passed")) == [VotePassed(TS)]


@pytest.mark.unit
def test_vote_passed_with_detail(parser):
    (event,) = parser.parse(_line("Vote passed enforced by authorized player"))
    assert isinstance(event, VotePassed)
    assert event.detail == "enforced by authorized player"
    assert event.kind is VoteEventKind.PASSED


@pytest.mark.unit
def test_vote_failed(parser):
    assert parser.parse(_line("Vote failed")) == [VoteFailed(TS)]


@pytest.mark.unit
def test_crlf_line_endings(parser):
    text = f"{TS} I chat: *** Vote failed\r\n"
    assert parser.parse(text) == [VoteFailed(TS)]


# ============================================================================
# IGNORED INPUT
# ============================================================================


@pytest.mark.unit
@pytest.mark.parametrize(
    "text",
    [
        _line("'Tee' entered and joined the game"),
        _line("Vote failed because of reasons"),
        _line("Vote passedX"),
        f"{TS} I chat: 0:-2:Tee: Vote passed\n",
        f"{TS} I server: *** Vote passed\n",
        "Vote passed\n",
        "",
    ],
)
def test_non_vote_lines_are_ignored(parser, text):
    assert parser.parse(text) == []


@pytest.mark.unit
def test_unterminated_line_is_ignored(parser):
    assert parser.parse(f"{TS} I chat: *** Vote passed") == []


# ============================================================================
# MULTIPLE EVENTS PER CHUNK
# ============================================================================


@pytest.mark.unit
def test_multiple_events_in_document_order(parser):
    text = (
        _line("'Tee' called vote to option 'generate easy' (No reason given)")
        + "2024-01-01 10:00:01 I server: player has entered the game\n"
        + _line("Vote passed", "2024-01-01 10:00:05")
        + _line("'Bob' called vote to option 'change_layout wide' (1)", "2024-01-01 10:00:06")
        + _line("Vote failed", "2024-01-01 10:00:09")
    )

    events = parser.parse(text)

    assert [e.kind for e in events] == [
        VoteEventKind.STARTED,
        VoteEventKind.PASSED,
        VoteEventKind.STARTED,
        VoteEventKind.FAILED,
    ]
    assert events[1].timestamp == "2024-01-01 10:00:05"
    assert events[2].player == "Bob"


# ============================================================================
# CONTRACT VIOLATION
# ============================================================================


@pytest.mark.unit
def test_envelope_without_matching_form_is_fatal(parser, monkeypatch):
    """If the classification table drifts from the envelope, parsing must fail loudly."""
    broken = dict(votes._PAYLOAD_RES)
    del broken[VoteEventKind.FAILED]
    monkeypatch.setattr(votes, "_PAYLOAD_RES", broken)

    with pytest.raises(ProtocolContractError):
        parser.parse(_line("Vote failed"))
