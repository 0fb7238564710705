"""
Test suite for the SplitMix64 seed generator.
"""
import itertools
import struct

from Crypto.Cipher import Salsa20
from hypothesis import given
import hypothesis.strategies as st
import pytest

from compact_hash import EntropyError, SeedGenerator
from compact_hash_model import splitmix64
from entropy_sources import DEFAULT_KEY, Salsa20Random, UnavailableRandom


U64S = st.integers(min_value=0, max_value=2 ** 64 - 1)


def test_known_values():
    """SplitMix64 from state 0."""
    gen = SeedGenerator(0)
    assert gen.next() == 0xE220A8397B1DCDAF
    assert gen.next() == 0x6E789E6AA1B965F4
    assert gen.next() == 0x06C45D188009454F


@given(seed=U64S)
def test_matches_model(seed):
    expected = list(itertools.islice(splitmix64(seed), 16))
    assert list(itertools.islice(SeedGenerator(seed), 16)) == expected


@given(seed=U64S)
def test_deterministic(seed):
    a = SeedGenerator(seed)
    b = SeedGenerator(seed)
    assert [a.next() for _ in range(8)] == [b.next() for _ in range(8)]


@given(seed=U64S)
def test_range(seed):
    for value in itertools.islice(SeedGenerator(seed), 32):
        assert SeedGenerator.MIN <= value <= SeedGenerator.MAX


def test_default_seed():
    assert SeedGenerator().next() == SeedGenerator(0).next()


def test_seed_reduced_mod_w():
    assert SeedGenerator(-1).next() == SeedGenerator(2 ** 64 - 1).next()
    assert SeedGenerator(2 ** 64 + 5).next() == SeedGenerator(5).next()


@given(seed=U64S, n=st.integers(min_value=0, max_value=300))
def test_discard(seed, n):
    """discard(n) is the same as calling next() n times."""
    skipped = SeedGenerator(seed).discard(n)
    stepped = SeedGenerator(seed)
    for _ in range(n):
        stepped.next()
    assert skipped.next() == stepped.next()


@given(seed=U64S, a=U64S, b=U64S)
def test_discard_composes(seed, a, b):
    left = SeedGenerator(seed).discard(a).discard(b)
    right = SeedGenerator(seed).discard(a + b)
    assert left.next() == right.next()


@given(seed=U64S)
def test_discard_full_period(seed):
    """The state visits every residue: skipping 2**64 steps is a no-op."""
    assert SeedGenerator(seed).discard(2 ** 64).next() == SeedGenerator(seed).next()


def test_discard_returns_self():
    gen = SeedGenerator(3)
    assert gen.discard(10) is gen


@given(nonce=U64S)
def test_nondeterministic_uses_provider(nonce):
    """The initial state is 64 bits from the entropy source, and the
    generator is deterministic from there on."""
    stream = Salsa20.new(DEFAULT_KEY, struct.pack("<Q", nonce)).encrypt(b"\x00" * 8)
    seed = int.from_bytes(stream, "little")

    gen = SeedGenerator.nondeterministic(Salsa20Random(nonce))
    expected = SeedGenerator(seed)
    assert [gen.next() for _ in range(4)] == [expected.next() for _ in range(4)]


def test_nondeterministic_system_random():
    gen = SeedGenerator.nondeterministic()
    assert SeedGenerator.MIN <= gen.next() <= SeedGenerator.MAX


@pytest.mark.parametrize("error", [OSError, NotImplementedError])
def test_nondeterministic_failure(error):
    source = UnavailableRandom(error)
    with pytest.raises(EntropyError) as info:
        SeedGenerator.nondeterministic(source)
    assert isinstance(info.value.__cause__, error)
    assert source.calls == 1
