"""Seeded random engine with O(1) weighted sampling.

Every probabilistic choice a generator makes goes through one
:class:`RandomEngine`, so a map is fully reproducible from its
:class:`~mapgen_bridge.core.seed.Seed` alone.

Determinism rules:
- Each public draw consumes a fixed number of raw 64-bit values, whatever
  the arguments (``with_probability(0.0)`` still consumes one).
- ``skip`` / ``skip_n`` exist so that a code path that only conditionally
  needs a value can keep the stream aligned with the path that does.
- Weighted sampling uses an alias table built once per distribution;
  each sample consumes exactly one raw value.
"""

from __future__ import annotations

import math
import random
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from mapgen_bridge.core.seed import U64_MASK, Seed

if TYPE_CHECKING:
    from mapgen_bridge.presets import GenerationConfig

T = TypeVar("T")

_U32_MASK = (1 << 32) - 1
_U32_SCALE = float(1 << 32)
_U64_SCALE = float(1 << 64)


# ---------------------------------------------------------------------------
# Distribution config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RandomDistConfig(Generic[T]):
    """Weighted categorical distribution: ``values[i]`` drawn with weight ``probs[i]``.

    Weights need not sum to 1. Raises :exc:`ValueError` on empty or
    mismatched sequences, negative/non-finite weights, or all-zero weights.
    """

    values: tuple[T, ...]
    probs: tuple[float, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))
        object.__setattr__(self, "probs", tuple(float(p) for p in self.probs))
        if not self.values:
            raise ValueError("distribution needs at least one value")
        if len(self.values) != len(self.probs):
            raise ValueError(
                f"distribution has {len(self.values)} values but {len(self.probs)} weights"
            )
        for weight in self.probs:
            if not math.isfinite(weight) or weight < 0.0:
                raise ValueError(f"invalid distribution weight: {weight!r}")
        if not any(self.probs):
            raise ValueError("distribution weights are all zero")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RandomDistConfig[Any]:
        """Build from a ``{"values": [...], "probs": [...]}`` mapping (YAML shape)."""
        try:
            values = raw["values"]
            probs = raw["probs"]
        except KeyError as exc:
            raise ValueError(f"distribution missing required key {exc.args[0]!r}") from None
        if not isinstance(values, list) or not isinstance(probs, list):
            raise ValueError("distribution 'values' and 'probs' must be lists")
        return cls(values=tuple(values), probs=tuple(probs))


# ---------------------------------------------------------------------------
# Alias table
# ---------------------------------------------------------------------------


class AliasTable:
    """Vose alias table over non-negative weights.

    Construction is O(n); :meth:`sample` is O(1) and maps a single raw 64-bit
    draw to an index: the upper 32 bits pick a column, the lower 32 bits flip
    the biased coin between the column and its alias.
    """

    __slots__ = ("_prob", "_alias")

    def __init__(self, weights: Sequence[float]) -> None:
        n = len(weights)
        if n == 0:
            raise ValueError("alias table needs at least one weight")
        total = math.fsum(weights)
        if not total > 0.0:
            raise ValueError("alias table weights must have a positive sum")

        scaled = [w * n / total for w in weights]
        prob = [0.0] * n
        alias = list(range(n))
        small = [i for i, s in enumerate(scaled) if s < 1.0]
        large = [i for i, s in enumerate(scaled) if s >= 1.0]

        while small and large:
            less = small.pop()
            more = large.pop()
            prob[less] = scaled[less]
            alias[less] = more
            scaled[more] = (scaled[more] + scaled[less]) - 1.0
            if scaled[more] < 1.0:
                small.append(more)
            else:
                large.append(more)

        # Leftovers are only float drift around 1.0.
        for index in large + small:
            prob[index] = 1.0 if scaled[index] > 0.0 else 0.0

        self._prob = tuple(prob)
        self._alias = tuple(alias)

    def __len__(self) -> int:
        return len(self._prob)

    def sample(self, draw: int) -> int:
        column = ((draw >> 32) * len(self._prob)) >> 32
        coin = (draw & _U32_MASK) / _U32_SCALE
        if coin < self._prob[column]:
            return column
        return self._alias[column]


class RandomDist(Generic[T]):
    """A :class:`RandomDistConfig` paired with its prebuilt :class:`AliasTable`."""

    def __init__(self, config: RandomDistConfig[T]) -> None:
        self.config = config
        self._table = AliasTable(config.probs)

    def sample(self, engine: RandomEngine) -> T:
        return self.config.values[self._table.sample(engine.random_u64())]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class RandomEngine:
    """Deterministic random source seeded from a :class:`Seed`.

    Args:
        seed: Generation seed; ``seed.value`` seeds the bit generator exactly.
        distributions: Optional named distribution configs, sampled with
            :meth:`sample_named`. Alias tables are built once here.
    """

    def __init__(
        self,
        seed: Seed,
        distributions: Mapping[str, RandomDistConfig[Any]] | None = None,
    ) -> None:
        self.seed = seed
        self._gen = random.Random(seed.value)
        self._dists: dict[str, RandomDist[Any]] = {
            name: RandomDist(cfg) for name, cfg in (distributions or {}).items()
        }

    @classmethod
    def for_generation(cls, seed: Seed, generation_config: GenerationConfig) -> RandomEngine:
        """Engine with one distribution per entry of the preset's ``distributions``."""
        return cls(seed, generation_config.distributions)

    # -- raw draws ----------------------------------------------------------

    def random_u64(self) -> int:
        return self._gen.getrandbits(64)

    def skip(self) -> None:
        """Consume and discard one draw."""
        self._gen.getrandbits(64)

    def skip_n(self, n: int) -> None:
        """Consume and discard *n* draws."""
        for _ in range(n):
            self._gen.getrandbits(64)

    # -- derived draws ------------------------------------------------------

    def in_range_inclusive(self, low: int, high: int) -> int:
        if high < low:
            raise ValueError(f"no valid range: [{low}, {high}]")
        if high - low > U64_MASK:
            raise ValueError(f"range wider than 2**64: [{low}, {high}]")
        return low + self.random_u64() % (high - low + 1)

    def in_range_exclusive(self, low: int, high: int) -> int:
        if high <= low:
            raise ValueError(f"no valid range: [{low}, {high})")
        if high - low > 1 << 64:
            raise ValueError(f"range wider than 2**64: [{low}, {high})")
        return low + self.random_u64() % (high - low)

    def with_probability(self, probability: float) -> bool:
        """True with the given probability; always consumes exactly one draw."""
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"probability out of range: {probability!r}")
        if probability == 1.0:
            self.skip()
            return True
        if probability == 0.0:
            self.skip()
            return False
        return self.random_u64() < probability * _U64_SCALE

    def random_float(self) -> float:
        """Uniform float in ``[0.0, 1.0]``."""
        return self.random_u64() / U64_MASK

    def pick_element(self, values: Sequence[T]) -> T:
        return values[self.in_range_exclusive(0, len(values))]

    # -- weighted sampling --------------------------------------------------

    def sample(self, dist: RandomDist[T]) -> T:
        return dist.sample(self)

    def sample_named(self, name: str) -> Any:
        try:
            dist = self._dists[name]
        except KeyError:
            raise KeyError(f"no distribution named {name!r}") from None
        return dist.sample(self)

    def distribution_names(self) -> Iterable[str]:
        return self._dists.keys()
