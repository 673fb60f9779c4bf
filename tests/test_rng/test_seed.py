"""Unit tests for seed construction and derivation (mapgen_bridge/core/seed.py)."""

import pytest

from mapgen_bridge.core.rng import RandomEngine
from mapgen_bridge.core.seed import U64_MASK, Seed, derive_seed_from_reason, hash_seed_text

# ============================================================================
# HASHING
# ============================================================================


@pytest.mark.unit
def test_hash_matches_published_fnv1a_vectors():
    """FNV-1a 64 reference values; the hash must never change."""
    assert hash_seed_text("") == 0xCBF29CE484222325
    assert hash_seed_text("a") == 0xAF63DC4C8601EC8C
    assert hash_seed_text("foobar") == 0x85944171F73967E8


@pytest.mark.unit
def test_from_string_is_deterministic():
    assert Seed.from_string("gores") == Seed.from_string("gores")


@pytest.mark.unit
def test_from_string_has_no_collisions_in_small_corpus():
    corpus = ["gores", "Gores", "gores ", "1337x", "easy", "hard", "ddnet", "seed", "", "ü"]
    values = {Seed.from_string(text).value for text in corpus}
    assert len(values) == len(corpus)


@pytest.mark.unit
def test_from_string_keeps_text_and_hash_invariant():
    seed = Seed.from_string("my map")
    assert seed.text == "my map"
    assert seed.value == hash_seed_text(seed.text)


# ============================================================================
# CONSTRUCTION
# ============================================================================


@pytest.mark.unit
def test_from_u64_masks_to_64_bits():
    assert Seed.from_u64(1 << 64).value == 0
    assert Seed.from_u64(42) == Seed(value=42, text="")


@pytest.mark.unit
def test_random_seed_is_in_range():
    seed = Seed.random()
    assert 0 <= seed.value <= U64_MASK
    assert seed.text == ""


@pytest.mark.unit
def test_from_random_consumes_one_engine_draw():
    engine = RandomEngine(Seed.from_u64(7))
    control = RandomEngine(Seed.from_u64(7))

    seed = Seed.from_random(engine)

    assert seed.value == control.random_u64()
    assert engine.random_u64() == control.random_u64()


@pytest.mark.unit
def test_next_increments_and_clears_text():
    seed = Seed.from_string("retry me")
    nxt = seed.next()
    assert nxt.value == (seed.value + 1) & U64_MASK
    assert nxt.text == ""


@pytest.mark.unit
def test_next_wraps_on_overflow():
    assert Seed.from_u64(U64_MASK).next().value == 0


@pytest.mark.unit
def test_describe():
    assert Seed.from_u64(5).describe() == "5"
    assert Seed.from_string("x").describe() == f"'x' ({hash_seed_text('x')})"


# ============================================================================
# DERIVATION FROM VOTE REASON
# ============================================================================


@pytest.mark.unit
def test_no_reason_given_uses_entropy(monkeypatch):
    monkeypatch.setattr("mapgen_bridge.core.seed.secrets.randbits", lambda bits: 99)
    assert derive_seed_from_reason("No reason given") == Seed.from_u64(99)


@pytest.mark.unit
def test_numeric_reason_is_used_directly():
    seed = derive_seed_from_reason("42")
    assert seed == Seed(value=42, text="")


@pytest.mark.unit
def test_max_u64_reason_is_numeric():
    assert derive_seed_from_reason(str(U64_MASK)).value == U64_MASK


@pytest.mark.unit
@pytest.mark.parametrize("reason", [str(U64_MASK + 1), "-1", "12 ", "0x10", "hello"])
def test_other_reasons_are_hashed(reason):
    assert derive_seed_from_reason(reason) == Seed.from_string(reason)


# ============================================================================
# INVARIANTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.parametrize("value", [-1, U64_MASK + 1])
def test_seed_rejects_values_outside_64_bits(value):
    with pytest.raises(ValueError, match="64-bit"):
        Seed(value)


@pytest.mark.unit
def test_seed_rejects_text_that_does_not_hash_to_value():
    with pytest.raises(ValueError, match="hash"):
        Seed(5, "x")


@pytest.mark.unit
def test_seed_accepts_text_with_matching_hash():
    assert Seed(hash_seed_text("x"), "x") == Seed.from_string("x")
