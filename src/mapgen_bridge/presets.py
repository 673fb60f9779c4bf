"""Generation and map presets — YAML loader and registry.

Players pick presets by name in their votes (``generate hard``,
``change_layout wide``). Presets live in a single YAML file::

    defaults:
      generation: easy
      map: small
    generation:
      easy:
        params: {max_distance: 3.0}
        distributions:
          shift_weights:
            values: [up, right, down, left]
            probs: [0.4, 0.22, 0.2, 0.18]
    maps:
      small:
        params: {width: 300, height: 150}

``params`` are opaque to the bridge and handed to the generator unchanged.
``distributions`` are validated here and turned into alias tables by
:meth:`~mapgen_bridge.core.rng.RandomEngine.for_generation`.

Design notes:
- All dataclasses are frozen (immutable after load).
- :func:`load_presets` raises :exc:`~mapgen_bridge.errors.PresetError` for a
  missing file or any schema problem; the CLI treats that as a startup error.
- Lookups that miss return ``None``. An unknown name in a vote is a player
  mistake, reported on the server console, never an exception.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from mapgen_bridge.core.rng import RandomDistConfig
from mapgen_bridge.errors import PresetError

# ---------------------------------------------------------------------------
# Typed dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GenerationConfig:
    """A named generation preset.

    Attributes:
        name:          Preset name as used in votes.
        params:        Generator parameters, passed through untouched.
        distributions: Named weighted distributions for the random engine.
    """

    name: str
    params: Mapping[str, Any] = field(default_factory=dict)
    distributions: Mapping[str, RandomDistConfig[Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class MapConfig:
    """A named map layout preset."""

    name: str
    params: Mapping[str, Any] = field(default_factory=dict)


class PresetRegistry:
    """Name → preset lookup tables with a default for each kind."""

    def __init__(
        self,
        generation: Mapping[str, GenerationConfig],
        maps: Mapping[str, MapConfig],
        *,
        default_generation: str,
        default_map: str,
    ) -> None:
        if default_generation not in generation:
            raise PresetError(f"default generation preset {default_generation!r} is not defined")
        if default_map not in maps:
            raise PresetError(f"default map preset {default_map!r} is not defined")
        self._generation = dict(generation)
        self._maps = dict(maps)
        self._default_generation = default_generation
        self._default_map = default_map

    @property
    def default_generation(self) -> GenerationConfig:
        return self._generation[self._default_generation]

    @property
    def default_map(self) -> MapConfig:
        return self._maps[self._default_map]

    def generation_config(self, name: str) -> GenerationConfig | None:
        return self._generation.get(name)

    def map_config(self, name: str) -> MapConfig | None:
        return self._maps.get(name)

    def generation_names(self) -> list[str]:
        return sorted(self._generation)

    def map_names(self) -> list[str]:
        return sorted(self._maps)


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_presets(path: Path) -> PresetRegistry:
    """Load and validate a preset file.

    Args:
        path: YAML file in the shape shown in the module docstring.

    Returns:
        A :class:`PresetRegistry` holding every preset in the file.

    Raises:
        PresetError: If the file is absent, is not valid YAML, or fails
                     schema validation.
    """
    if not path.exists():
        raise PresetError(f"Preset file not found: {path}")

    try:
        with path.open() as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise PresetError(f"{path.name}: invalid YAML: {exc}") from exc

    return parse_presets(raw, source=path.name)


def parse_presets(raw: Any, *, source: str = "presets") -> PresetRegistry:
    """Build a :class:`PresetRegistry` from already-parsed YAML data."""
    if not isinstance(raw, dict):
        raise PresetError(f"{source} must be a YAML mapping at the top level.")

    generation_raw = raw.get("generation")
    if not isinstance(generation_raw, dict) or not generation_raw:
        raise PresetError(f"{source}: 'generation' must be a non-empty mapping.")
    maps_raw = raw.get("maps")
    if not isinstance(maps_raw, dict) or not maps_raw:
        raise PresetError(f"{source}: 'maps' must be a non-empty mapping.")

    generation = {
        str(name): _parse_generation(str(name), body, source)
        for name, body in generation_raw.items()
    }
    maps = {str(name): _parse_map(str(name), body, source) for name, body in maps_raw.items()}

    defaults = raw.get("defaults") or {}
    if not isinstance(defaults, dict):
        raise PresetError(f"{source}: 'defaults' must be a mapping.")

    return PresetRegistry(
        generation,
        maps,
        default_generation=str(defaults.get("generation", next(iter(generation)))),
        default_map=str(defaults.get("map", next(iter(maps)))),
    )


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _parse_params(name: str, body: dict, source: str) -> dict[str, Any]:
    params = body.get("params") or {}
    if not isinstance(params, dict):
        raise PresetError(f"{source}: preset {name!r} 'params' must be a mapping.")
    return params


def _parse_generation(name: str, body: Any, source: str) -> GenerationConfig:
    body = body or {}
    if not isinstance(body, dict):
        raise PresetError(f"{source}: generation preset {name!r} must be a mapping.")

    dists_raw = body.get("distributions") or {}
    if not isinstance(dists_raw, dict):
        raise PresetError(f"{source}: preset {name!r} 'distributions' must be a mapping.")

    distributions: dict[str, RandomDistConfig[Any]] = {}
    for dist_name, dist_body in dists_raw.items():
        if not isinstance(dist_body, dict):
            raise PresetError(f"{source}: distribution {name}.{dist_name} must be a mapping.")
        try:
            distributions[str(dist_name)] = RandomDistConfig.from_mapping(dist_body)
        except (TypeError, ValueError) as exc:
            raise PresetError(f"{source}: distribution {name}.{dist_name}: {exc}") from exc

    return GenerationConfig(
        name=name,
        params=_parse_params(name, body, source),
        distributions=distributions,
    )


def _parse_map(name: str, body: Any, source: str) -> MapConfig:
    body = body or {}
    if not isinstance(body, dict):
        raise PresetError(f"{source}: map preset {name!r} must be a mapping.")
    return MapConfig(name=name, params=_parse_params(name, body, source))
