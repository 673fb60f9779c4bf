"""Generation attempts with bounded retry and fault isolation.

The map generator itself is an external collaborator; this module only
defines what the bridge expects of it and drives it:

    1. announce the attempt on the server console
    2. call ``generator.generate(...)`` behind a single failure boundary
    3. on success export the map and send the content-swap commands
    4. on :exc:`~mapgen_bridge.errors.GenerationError` retry with ``seed.next()``
       until the retry budget is spent
    5. on anything else raised by the generator, stop and raise the alarm

A generator *failure* is a bad draw and worth another seed. A generator
*fault* (any other exception) is a reproducible bug; retrying would only
hammer the same defect, so the bridge leaves the current map in place and
asks an operator to look.
"""

from __future__ import annotations

import enum
import importlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from mapgen_bridge.core.seed import Seed
from mapgen_bridge.errors import GenerationError, GenerationFault
from mapgen_bridge.presets import GenerationConfig, MapConfig

logger = logging.getLogger(__name__)


# =============================================================================
# COLLABORATOR PROTOCOLS
# =============================================================================


class MapGenerator(Protocol):
    def generate(
        self,
        max_iterations: int,
        seed: Seed,
        generation_config: GenerationConfig,
        map_config: MapConfig,
    ) -> Any:
        """Return a map artifact, or raise GenerationError for a bad draw."""
        ...


class ArtifactExporter(Protocol):
    def export(self, artifact: Any, destination: Path) -> None: ...


class MethodExporter:
    """Default exporter: the artifact writes itself via ``artifact.export(path)``."""

    def export(self, artifact: Any, destination: Path) -> None:
        export = getattr(artifact, "export", None)
        if not callable(export):
            raise TypeError(f"{type(artifact).__name__} has no export(path) method")
        export(destination)


def load_object(import_path: str) -> Any:
    """Resolve ``"package.module:attribute"``; classes are instantiated with no args.

    Raises:
        ValueError: If *import_path* is not in ``module:attribute`` form.
        ImportError / AttributeError: If the target cannot be found.
    """
    module_name, sep, attr = import_path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"expected 'module:attribute', got {import_path!r}")
    target = getattr(importlib.import_module(module_name), attr)
    if isinstance(target, type):
        target = target()
    return target


# =============================================================================
# OUTCOME
# =============================================================================


class GenerationStatus(enum.Enum):
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    FAULTED = "faulted"


@dataclass
class GenerationOutcome:
    """What happened to one generation request (all of its attempts)."""

    status: GenerationStatus
    seeds: list[Seed] = field(default_factory=list)
    error: str | None = None
    destination: Path | None = None

    @property
    def attempts(self) -> int:
        return len(self.seeds)

    @property
    def final_seed(self) -> Seed | None:
        return self.seeds[-1] if self.seeds else None


# =============================================================================
# RUNNER
# =============================================================================


class GenerationRunner:
    """Run a generation request with retries and publish the result.

    Args:
        generator: The external map generator.
        exporter: Writes the artifact to disk.
        send: Sends one raw console command (usually ``ConsoleLink.send``).
        say: Broadcasts one chat message on the server.
        max_retries: Extra attempts after the first one fails.
        max_iterations: Effort cap handed to the generator per attempt.
        output_dir: Directory the map file is written to.
        map_name: Map file stem; also substituted into the swap commands.
        swap_commands: Console commands sent after a successful export.
    """

    def __init__(
        self,
        generator: MapGenerator,
        exporter: ArtifactExporter,
        *,
        send: Callable[[str], None],
        say: Callable[[str], None],
        max_retries: int = 10,
        max_iterations: int = 200_000,
        output_dir: Path = Path("maps"),
        map_name: str = "random_map",
        swap_commands: list[str] | None = None,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        self.generator = generator
        self.exporter = exporter
        self._send = send
        self._say = say
        self.max_retries = max_retries
        self.max_iterations = max_iterations
        self.output_dir = output_dir
        self.map_name = map_name
        self.swap_commands = (
            swap_commands if swap_commands is not None else [f"change_map {map_name}", "reload"]
        )

    def run(
        self, seed: Seed, generation_config: GenerationConfig, map_config: MapConfig
    ) -> GenerationOutcome:
        outcome = GenerationOutcome(status=GenerationStatus.EXHAUSTED)
        budget = self.max_retries

        while True:
            outcome.seeds.append(seed)
            self._say(
                f"[GEN] Generating | seed={seed.describe()} "
                f"| gen={generation_config.name} | map={map_config.name}"
            )
            logger.info(
                "Generation attempt %d: seed=%s gen=%s map=%s",
                outcome.attempts,
                seed.describe(),
                generation_config.name,
                map_config.name,
            )

            try:
                artifact = self._invoke(seed, generation_config, map_config)
            except GenerationError as exc:
                outcome.error = str(exc)
                logger.warning("Generation failed for seed %s: %s", seed.describe(), exc)
                self._say(f"[GEN] Generation failed: {exc}")
                if budget <= 0:
                    logger.error(
                        "Giving up after %d attempts; current map unchanged", outcome.attempts
                    )
                    self._say(f"[GEN] Giving up after {outcome.attempts} attempts")
                    return outcome
                budget -= 1
                seed = seed.next()
                continue
            except GenerationFault as fault:
                return self._alert(outcome, fault)

            try:
                outcome.destination = self._export(artifact)
            except GenerationFault as fault:
                return self._alert(outcome, fault)

            for command in self.swap_commands:
                self._send(command)
            outcome.status = GenerationStatus.SUCCEEDED
            outcome.error = None
            logger.info("Generation finished: %s", outcome.destination)
            self._say(f"[GEN] Done | seed={seed.describe()}")
            return outcome

    def _invoke(
        self, seed: Seed, generation_config: GenerationConfig, map_config: MapConfig
    ) -> Any:
        """The one failure boundary around the external generator."""
        try:
            return self.generator.generate(
                self.max_iterations, seed, generation_config, map_config
            )
        except GenerationError:
            raise
        except Exception as exc:
            raise GenerationFault(f"generator crashed: {exc!r}", cause=exc) from exc

    def _export(self, artifact: Any) -> Path:
        destination = self.output_dir / f"{self.map_name}.map"
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            self.exporter.export(artifact, destination)
        except Exception as exc:
            raise GenerationFault(f"map export failed: {exc!r}", cause=exc) from exc
        return destination

    def _alert(self, outcome: GenerationOutcome, fault: GenerationFault) -> GenerationOutcome:
        outcome.status = GenerationStatus.FAULTED
        outcome.error = str(fault)
        logger.critical(
            "Generation fault (seed %s), not retrying: %s",
            outcome.final_seed.describe() if outcome.final_seed else "?",
            fault,
            exc_info=fault.cause,
        )
        self._say(f"[ALERT] Map generator crashed, operator needed: {fault}")
        return outcome
