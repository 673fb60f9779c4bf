"""Deterministic randomness for map generation.

Typical usage::

    from mapgen_bridge.core import RandomEngine, Seed

    engine = RandomEngine(Seed.from_string("gores"))
    width = engine.in_range_inclusive(100, 200)
"""

from mapgen_bridge.core.rng import AliasTable, RandomDist, RandomDistConfig, RandomEngine
from mapgen_bridge.core.seed import Seed, derive_seed_from_reason, hash_seed_text

__all__ = [
    "AliasTable",
    "RandomDist",
    "RandomDistConfig",
    "RandomEngine",
    "Seed",
    "derive_seed_from_reason",
    "hash_seed_text",
]
