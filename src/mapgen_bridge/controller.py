"""
Bridge controller: econ session state machine and vote dispatch.

=============================================================================
STATE
=============================================================================

All session state lives on one BridgeController and is only touched from the
read loop:

    auth state    UNAUTHENTICATED -> AUTHENTICATED (never back)
    pending vote  at most one; a new vote overwrites the old one
    map config    active layout preset, replaced by change_layout votes

=============================================================================
PROTOCOL
=============================================================================

    UNAUTHENTICATED
        "Enter password:"              -> send password
        "Authentication successful..." -> AUTHENTICATED + bootstrap generation
        "Wrong password..."            -> AuthenticationError (fatal)

    AUTHENTICATED
        every chunk goes through VoteParser
        VoteStarted -> pending vote = vote
        VoteFailed  -> pending vote = None
        VotePassed  -> take pending vote, dispatch on its first word:
                         generate <preset>       -> GenerationRunner
                         change_layout <preset>  -> swap active map config

Player mistakes (unknown preset, unknown action, a pass with no pending
vote) are logged and broadcast with ``say``; the loop keeps going.
Transport, authentication and parser-contract errors propagate.
=============================================================================
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass

from mapgen_bridge.core.seed import Seed, derive_seed_from_reason
from mapgen_bridge.econ.link import ConsoleLink, say_command
from mapgen_bridge.econ.votes import VoteEvent, VoteFailed, VoteParser, VotePassed, VoteStarted
from mapgen_bridge.errors import AuthenticationError
from mapgen_bridge.generation import GenerationOutcome, GenerationRunner
from mapgen_bridge.presets import MapConfig, PresetRegistry

logger = logging.getLogger(__name__)

PASSWORD_PROMPT = "Enter password:"
AUTH_SUCCESS_PREFIX = "Authentication successful"
AUTH_FAILURE_PREFIX = "Wrong password"

VOTE_GENERATE = "generate"
VOTE_CHANGE_LAYOUT = "change_layout"


class AuthState(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class Vote:
    """A vote waiting for its result.

    ``vote_name`` may carry a preset after the action word
    (``"generate hard"``); :attr:`kind` and :attr:`argument` split it.
    """

    player: str
    vote_name: str
    reason: str

    @property
    def kind(self) -> str:
        parts = self.vote_name.split(maxsplit=1)
        return parts[0] if parts else ""

    @property
    def argument(self) -> str:
        parts = self.vote_name.split(maxsplit=1)
        return parts[1].strip() if len(parts) > 1 else ""


class BridgeController:
    """Owns the econ session and turns passed votes into map changes.

    Args:
        link: Connected econ transport.
        password: Econ password sent when the server prompts for it.
        presets: Generation and map presets.
        runner: Runs generation requests; built by the caller so its
            collaborators (generator, exporter) can be swapped in tests.
        bootstrap_seed: Seed for the generation triggered right after login.
        poll_interval: Seconds slept between reads in :meth:`run`.
        debug: Log every received chunk.
    """

    def __init__(
        self,
        link: ConsoleLink,
        password: str,
        presets: PresetRegistry,
        runner: GenerationRunner,
        *,
        bootstrap_seed: int = 0,
        poll_interval: float = 0.5,
        debug: bool = False,
    ) -> None:
        self.link = link
        self.password = password
        self.presets = presets
        self.runner = runner
        self.bootstrap_seed = bootstrap_seed
        self.poll_interval = poll_interval
        self.debug = debug

        self.parser = VoteParser()
        self.auth_state = AuthState.UNAUTHENTICATED
        self.pending_vote: Vote | None = None
        self.map_config: MapConfig = presets.default_map
        self.last_outcome: GenerationOutcome | None = None

    # =========================================================================
    # READ LOOP
    # =========================================================================

    def run(self) -> None:
        """Poll the link forever. Returns only by raising a fatal error."""
        while True:
            self.poll_once()
            time.sleep(self.poll_interval)

    def poll_once(self) -> None:
        data = self.link.read()
        if data is not None:
            self.handle_text(data)

    def handle_text(self, data: str) -> None:
        if self.debug:
            logger.debug("[RECV] %r", data)

        if self.auth_state is AuthState.AUTHENTICATED:
            for event in self.parser.parse(data):
                self.handle_vote_event(event)
            return

        if data.strip() == PASSWORD_PROMPT:
            logger.info("[AUTH] Sending login")
            self.link.send(self.password)
        elif data.startswith(AUTH_SUCCESS_PREFIX):
            logger.info("[AUTH] Success")
            self.auth_state = AuthState.AUTHENTICATED
            self._bootstrap()
        elif data.startswith(AUTH_FAILURE_PREFIX):
            logger.error("[AUTH] Wrong password")
            raise AuthenticationError("econ rejected the password")
        else:
            logger.debug("Ignoring console text before authentication: %r", data)

    # =========================================================================
    # VOTES
    # =========================================================================

    def handle_vote_event(self, event: VoteEvent) -> None:
        if isinstance(event, VoteStarted):
            logger.info(
                "[VOTE] vote_name=%s, vote_reason=%s, player=%s",
                event.vote_name,
                event.reason,
                event.player,
            )
            self.pending_vote = Vote(event.player, event.vote_name, event.reason)
        elif isinstance(event, VoteFailed):
            logger.info("[VOTE] Failed")
            self.pending_vote = None
        elif isinstance(event, VotePassed):
            logger.info("[VOTE] Success")
            vote, self.pending_vote = self.pending_vote, None
            if vote is None:
                self.report("[VOTE] Vote passed, but no pending vote was seen", logging.WARNING)
                return
            self.dispatch_vote(vote)

    def dispatch_vote(self, vote: Vote) -> None:
        if vote.kind == VOTE_GENERATE:
            self._handle_generate(vote)
        elif vote.kind == VOTE_CHANGE_LAYOUT:
            self._handle_change_layout(vote)
        else:
            self.report(f"[VOTE] Unknown vote action '{vote.vote_name}'", logging.WARNING)

    def _handle_generate(self, vote: Vote) -> None:
        if vote.argument:
            generation_config = self.presets.generation_config(vote.argument)
        else:
            generation_config = self.presets.default_generation
        if generation_config is None:
            self.report(f"[GEN] Unknown generation preset '{vote.argument}'", logging.WARNING)
            return

        seed = derive_seed_from_reason(vote.reason)
        self.last_outcome = self.runner.run(seed, generation_config, self.map_config)

    def _handle_change_layout(self, vote: Vote) -> None:
        if vote.argument:
            map_config = self.presets.map_config(vote.argument)
        else:
            map_config = self.presets.default_map
        if map_config is None:
            self.report(f"[MAP] Unknown map preset '{vote.argument}'", logging.WARNING)
            return

        self.map_config = map_config
        logger.info("[MAP] Layout changed to %s", map_config.name)
        self.say(f"[MAP] Layout changed to '{map_config.name}'")

    def _bootstrap(self) -> None:
        seed = Seed.from_u64(self.bootstrap_seed)
        self.last_outcome = self.runner.run(seed, self.presets.default_generation, self.map_config)

    # =========================================================================
    # REPORTING
    # =========================================================================

    def say(self, text: str) -> None:
        self.link.send(say_command(text))

    def report(self, text: str, level: int = logging.INFO) -> None:
        """Log *text* and broadcast it to players."""
        logger.log(level, text)
        self.say(text)
