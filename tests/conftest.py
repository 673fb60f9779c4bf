"""
Shared pytest fixtures for the bridge test suite.

This module provides fixtures that are automatically available to all test files:
- A scripted in-memory econ link (no sockets)
- A scripted map generator and a recording exporter
- A small preset registry
- A fully wired BridgeController

Nothing here touches the network; econ traffic is fed in as strings and
outbound commands are recorded on the fake link.
"""

import re
from collections import deque
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pytest

from mapgen_bridge.controller import BridgeController
from mapgen_bridge.core.rng import RandomDistConfig
from mapgen_bridge.core.seed import Seed
from mapgen_bridge.econ.link import say_command
from mapgen_bridge.generation import GenerationRunner
from mapgen_bridge.presets import GenerationConfig, MapConfig, PresetRegistry

# ============================================================================
# FAKE COLLABORATORS
# ============================================================================


class FakeLink:
    """In-memory stand-in for ConsoleLink.

    ``incoming`` is consumed by read(); every send() is recorded in ``sent``.
    """

    def __init__(self, incoming: Iterable[str | None] = ()) -> None:
        self.incoming: deque[str | None] = deque(incoming)
        self.sent: list[str] = []

    def read(self) -> str | None:
        if not self.incoming:
            return None
        return self.incoming.popleft()

    def send(self, command: str) -> None:
        self.sent.append(command)

    @property
    def says(self) -> list[str]:
        """Broadcast texts, with the console quoting undone."""
        return [_unquote(cmd[len("say ") :]) for cmd in self.sent if cmd.startswith("say ")]


def _unquote(argument: str) -> str:
    assert argument.startswith('"') and argument.endswith('"'), argument
    return re.sub(r"\\(.)", r"\1", argument[1:-1])


class FakeArtifact:
    def __init__(self, seed: Seed) -> None:
        self.seed = seed


class ScriptedGenerator:
    """Generator whose per-call result is scripted.

    Each script entry is either an exception instance (raised) or ``None``
    (return a FakeArtifact). Once the script runs out every call succeeds.
    """

    def __init__(self, script: Iterable[BaseException | None] = ()) -> None:
        self.script: deque[BaseException | None] = deque(script)
        self.calls: list[dict[str, Any]] = []

    def generate(self, max_iterations, seed, generation_config, map_config):
        self.calls.append(
            {
                "max_iterations": max_iterations,
                "seed": seed,
                "generation_config": generation_config,
                "map_config": map_config,
            }
        )
        step = self.script.popleft() if self.script else None
        if step is not None:
            raise step
        return FakeArtifact(seed)


class RecordingExporter:
    def __init__(self) -> None:
        self.exports: list[tuple[Any, Path]] = []

    def export(self, artifact: Any, destination: Path) -> None:
        self.exports.append((artifact, destination))


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def registry() -> PresetRegistry:
    """Two generation presets (easy, hard) and two map presets (small, wide)."""
    easy = GenerationConfig(
        name="easy",
        params={"max_distance": 3.0},
        distributions={
            "shift_weights": RandomDistConfig(("up", "right", "down", "left"), (4, 2, 2, 2)),
        },
    )
    hard = GenerationConfig(name="hard", params={"max_distance": 2.0})
    small = MapConfig(name="small", params={"width": 300})
    wide = MapConfig(name="wide", params={"width": 500})
    return PresetRegistry(
        {"easy": easy, "hard": hard},
        {"small": small, "wide": wide},
        default_generation="easy",
        default_map="small",
    )


@pytest.fixture
def link() -> FakeLink:
    return FakeLink()


@pytest.fixture
def generator() -> ScriptedGenerator:
    return ScriptedGenerator()


@pytest.fixture
def exporter() -> RecordingExporter:
    return RecordingExporter()


@pytest.fixture
def make_runner(link, generator, exporter, tmp_path):
    """Factory for a GenerationRunner wired to the fakes."""

    def _make(max_retries: int = 10) -> GenerationRunner:
        return GenerationRunner(
            generator,
            exporter,
            send=link.send,
            say=lambda text: link.send(say_command(text)),
            max_retries=max_retries,
            max_iterations=1000,
            output_dir=tmp_path / "maps",
            map_name="random_map",
        )

    return _make


@pytest.fixture
def make_controller(link, registry, make_runner):
    """Factory for a BridgeController wired to the fakes."""

    def _make(max_retries: int = 10, bootstrap_seed: int = 0) -> BridgeController:
        return BridgeController(
            link,
            "s3cret",
            registry,
            make_runner(max_retries),
            bootstrap_seed=bootstrap_seed,
            poll_interval=0.0,
        )

    return _make
