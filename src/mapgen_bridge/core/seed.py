"""Generation seeds.

A :class:`Seed` is the identity of one generation run: the same seed, preset
and generator version always yield the same map. Seeds are created from vote
reasons, so players can ask for ``"gores"`` or ``"1337"`` and get a map that
anyone can reproduce later.

Text seeds are hashed with 64-bit FNV-1a over the UTF-8 bytes. The hash is
part of the public contract (a seed string shared between players must map
to the same number everywhere), so it must never change.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mapgen_bridge.core.rng import RandomEngine

U64_MASK = (1 << 64) - 1

#: Reason text DDNet fills in when the caller gives none.
NO_REASON = "No reason given"

_FNV64_OFFSET_BASIS = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3

_U64_TEXT_RE = re.compile(r"[0-9]+")


def hash_seed_text(text: str) -> int:
    """Hash *text* to an unsigned 64-bit integer (FNV-1a, UTF-8 bytes)."""
    value = _FNV64_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        value ^= byte
        value = (value * _FNV64_PRIME) & U64_MASK
    return value


@dataclass(frozen=True)
class Seed:
    """Immutable generation seed.

    Attributes:
        value: Unsigned 64-bit seed fed to :class:`~mapgen_bridge.core.rng.RandomEngine`.
        text:  Original string form, or ``""`` for numeric/random seeds. When
               set, ``hash_seed_text(text) == value``.
    """

    value: int
    text: str = ""

    def __post_init__(self) -> None:
        if not 0 <= self.value <= U64_MASK:
            raise ValueError(f"seed value out of 64-bit range: {self.value}")
        if self.text and hash_seed_text(self.text) != self.value:
            raise ValueError(f"seed value {self.value} is not the hash of {self.text!r}")

    @classmethod
    def from_u64(cls, value: int) -> Seed:
        return cls(value=value & U64_MASK)

    @classmethod
    def from_string(cls, text: str) -> Seed:
        return cls(value=hash_seed_text(text), text=text)

    @classmethod
    def random(cls) -> Seed:
        """Seed from OS entropy."""
        return cls.from_u64(secrets.randbits(64))

    @classmethod
    def from_random(cls, engine: RandomEngine) -> Seed:
        """Seed drawn from an existing engine (one draw consumed)."""
        return cls.from_u64(engine.random_u64())

    def next(self) -> Seed:
        """Seed for the next retry: value + 1 (wrapping), text dropped."""
        return Seed.from_u64(self.value + 1)

    def describe(self) -> str:
        if self.text:
            return f"'{self.text}' ({self.value})"
        return str(self.value)


def derive_seed_from_reason(reason: str) -> Seed:
    """Turn a vote reason into a seed.

    - ``"No reason given"`` gives a random seed.
    - A decimal number that fits in 64 bits is used as-is.
    - Anything else is hashed and kept as the seed's text form.
    """
    if reason == NO_REASON:
        return Seed.random()
    if _U64_TEXT_RE.fullmatch(reason):
        number = int(reason)
        if number <= U64_MASK:
            return Seed.from_u64(number)
    return Seed.from_string(reason)
