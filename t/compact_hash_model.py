"""A slow and literal model of CompactHash.

The fast implementation in compact_hash.py is compared against this
model.  Everything here is spelled out the long way: constants are
transcribed again, rotations go bit by bit, padding is explicit, and
128-bit products are split with divmod.
"""
import itertools


W = 2 ** 64

GOLDEN = 0x9E3779B97F4A7C15


def splitmix64(seed):
    """Generates the SplitMix64 stream for `seed`."""
    state = seed % W
    while True:
        state = (state + GOLDEN) % W
        z = state
        z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) % W
        z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) % W
        yield z ^ (z >> 31)


def rotl(x, count):
    """Rotates the 64-bit value `x` to the left by `count` bits."""
    ret = 0
    for i in range(64):
        bit = (x >> i) & 1
        ret |= bit << ((i + count) % 64)
    return ret


def compress(x, y):
    x = ((x + y) * 0x2D358DCCAA6C78A5) % W
    hi, lo = divmod(x * (x ^ 0x8BB84B93962EACC9), W)
    return x ^ 0x8BB84B93962EACC9 ^ lo ^ hi


def avalanche(h, length):
    h = h ^ rotl(h, 49) ^ rotl(h, 24)
    h = (h * 0x9FB21C651E98DF25) % W
    h = h ^ (((h >> 35) + length) % W)
    h = (h * 0x9FB21C651E98DF25) % W
    return h ^ (h >> 28)


def blocks(buf):
    """Splits one insert call's buffer in zero-padded 16-byte blocks of
    two little-endian words."""
    padded = bytes(buf) + b"\x00" * (-len(buf) % 16)
    for i in range(0, len(padded), 16):
        yield (
            int.from_bytes(padded[i : i + 8], "little"),
            int.from_bytes(padded[i + 8 : i + 16], "little"),
        )


def model_state(seed, bufs):
    """Returns the (lanes, total length) after inserting each buffer
    in `bufs`, in order."""
    lanes = list(itertools.islice(splitmix64(seed), 2))
    total = 0
    for buf in bufs:
        total += len(buf)
        for m0, m1 in blocks(buf):
            lanes = [compress(lanes[0], m0), compress(lanes[1], m1)]
    return lanes, total % W


def model_hash(seed, *bufs):
    """Fingerprint of a state that received each of `bufs` in turn."""
    lanes, total = model_state(seed, bufs)
    h = compress(lanes[0], lanes[1]) ^ ((total * GOLDEN) % W)
    return avalanche(h, total)


def model_extended(buf, n_words, seed=0):
    seeds = splitmix64(seed)
    return [
        model_hash(next(seeds), buf, i.to_bytes(8, "little"))
        for i in range(n_words)
    ]
