"""Statistical avalanche checks: flip one input bit, count how many
output bits change.

A good 64-bit mixer flips each output bit with probability 1/2, so
about 32 bits per trial.  The number of trials defaults to
COMPACT_HASH_AVALANCHE_TRIALS (2000 if unset).
"""
from collections import namedtuple
import os
import random


DEFAULT_TRIALS = int(os.getenv("COMPACT_HASH_AVALANCHE_TRIALS", "2000"))

OUTPUT_BITS = 64

# `mean_flips` is the average number of output bits flipped per trial
# `bit_rates[j]` is the fraction of trials that flipped output bit j
# `trials` is the number of single-bit flips we tried
Summary = namedtuple("Summary", ["mean_flips", "bit_rates", "trials"])


def flip_bit(buf, bit):
    """Returns a copy of `buf` with bit `bit` inverted."""
    ret = bytearray(buf)
    ret[bit // 8] ^= 1 << (bit % 8)
    return bytes(ret)


def flipped_outputs(hash_fn, size, trials, rng):
    """Generates, for each trial, the xor of hash_fn on a random
    `size`-byte buffer and on a copy with one random bit flipped."""
    for _ in range(trials):
        buf = bytes(rng.getrandbits(8) for _ in range(size))
        bit = rng.randrange(8 * size)
        yield hash_fn(buf) ^ hash_fn(flip_bit(buf, bit))


def avalanche_summary(hash_fn, size=64, trials=None, rng=None):
    """Runs `trials` single-bit flips on `size`-byte inputs and
    summarises the output bit flips."""
    if trials is None:
        trials = DEFAULT_TRIALS
    if rng is None:
        rng = random.Random(size)
    assert size > 0 and trials > 0

    counts = [0] * OUTPUT_BITS
    total = 0
    for diff in flipped_outputs(hash_fn, size, trials, rng):
        total += bin(diff).count("1")
        for j in range(OUTPUT_BITS):
            counts[j] += (diff >> j) & 1
    return Summary(
        mean_flips=total / trials,
        bit_rates=[count / trials for count in counts],
        trials=trials,
    )
