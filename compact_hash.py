## % CompactHash: a small seedable 64-bit string hash
## <!--- Format with sed -E -e 's/^/    /' -e 's/^    ## ?//' | \
##     pandoc -M colorlinks -o compact_hash.pdf -
##
## This semi-literate code is distributed under the MIT license.
## Copyright 2025 The CompactHash authors.
##
## Permission is hereby granted, free of charge, to any person
## obtaining a copy of this software and associated documentation
## files (the "Software"), to deal in the Software without
## restriction, including without limitation the rights to use, copy,
## modify, merge, publish, distribute, sublicense, and/or sell copies
## of the Software, and to permit persons to whom the Software is
## furnished to do so, subject to the following conditions:
##
## The above copyright notice and this permission notice shall be
## included in all copies or substantial portions of the Software.
##
## THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
## EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
## MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
## NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
## BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
## ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
## CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
## SOFTWARE.
## -->
##
## CompactHash maps byte strings to 64-bit fingerprints for hash
## tables, deduplication and checksums.  It is seedable, streams its
## input, and can derive any number of 64-bit words from one input.
## It is *not* a cryptographic hash, nor is it meant to resist
## adversaries who pick inputs to collide: there are no collision
## bounds here, only the statistical quality of a
## [wyhash](https://github.com/wangyi-fudan/wyhash)-style
## multiply-fold compressor and an
## [XXH3](https://github.com/Cyan4973/xxHash)-style finaliser.
##
## The design has four moving parts:
##
## 1. a [SplitMix64](http://prng.di.unimi.it/splitmix64.c) generator,
##    used on its own and to expand seeds into hash states;
## 2. a 128-bit state made of two independent 64-bit lanes, updated
##    16 bytes at a time;
## 3. a `compress` function that folds a 128-bit product down to 64
##    bits, used per block and once more to merge the lanes;
## 4. a finaliser that mixes in the total input length and avalanches
##    the merged lanes.
##
## Everything works in 64-bit words, modulo $2^{64}$.  Bytes are
## always read as *little-endian* words, regardless of the host, so
## fingerprints are portable.
##
## # Compatibility
##
## The constants below are part of the output format: changing any of
## them changes every fingerprint.  They are fixed as follows.
##
## | Where        | Constant                                 |
## |--------------|------------------------------------------|
## | SplitMix64   | increment `0x9E3779B97F4A7C15`           |
## |              | mixers `0xBF58476D1CE4E5B9`, `0x94D049BB133111EB`, shifts 30, 27, 31 |
## | `compress`   | `0x2D358DCCAA6C78A5`, `0x8BB84B93962EACC9` |
## | length mix   | `0x9E3779B97F4A7C15`                     |
## | finaliser    | rotations 49, 24; shifts 35, 28; `0x9FB21C651E98DF25` |

## # Reference CompactHash implementation in Python
import logging
import random
import struct

# We work with 64-bit words
W = 2 ** 64

# Each lane consumes one 8-byte word per block
WORD_SIZE = 8

# A block feeds one word to each of the two lanes
BLOCK_SIZE = 2 * WORD_SIZE

logger = logging.getLogger(__name__)


class EntropyError(Exception):
    """Raised when a non-deterministic seed cannot be drawn from the
    entropy source.  We never fall back to a weaker seed."""


## # SplitMix64
##
## SplitMix64 walks a Weyl sequence: its state advances by a fixed odd
## increment, derived from the golden ratio, so it visits all $2^{64}$
## states before repeating.  Each output is the state after the
## increment, scrambled with two rounds of `xor`-shift and multiply.
##
## Since the state only ever advances by addition, skipping $n$
## outputs is a single multiply-add, and the state itself never needs
## to leave the object.
##
## The generator is also how we turn user seeds into hash states: raw
## seeds like 0, 1, 2 are close in Hamming distance, but their
## SplitMix64 outputs are not.

SPLITMIX_INCREMENT = 0x9E3779B97F4A7C15


def splitmix_mix(z):
    """SplitMix64's output function: a bijection on 64-bit integers."""
    z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) % W
    z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) % W
    return z ^ (z >> 31)


class SeedGenerator:
    """A SplitMix64 stream of 64-bit words.

    `SeedGenerator(seed)` is deterministic: the same seed always yields
    the same sequence.  `SeedGenerator.nondeterministic()` draws its
    initial state once from an entropy source, then behaves the same.
    Instances are iterators that never run out.
    """

    MIN = 0
    MAX = W - 1

    def __init__(self, seed=0):
        self._state = seed % W

    @classmethod
    def nondeterministic(cls, random=random.SystemRandom()):
        """Returns a generator seeded with 64 bits from `random`.

        `random` only needs a `getrandbits` method.  Raises
        EntropyError if the source is unavailable.
        """
        try:
            seed = random.getrandbits(64)
        except (OSError, NotImplementedError) as e:
            logger.debug("Entropy source %r failed: %s", random, e)
            raise EntropyError("Failed to draw a seed from %r." % (random,)) from e
        logger.debug("Seeded SplitMix64 from %r.", random)
        return cls(seed)

    def next(self):
        """Advances the state and returns the next word."""
        self._state = (self._state + SPLITMIX_INCREMENT) % W
        return splitmix_mix(self._state)

    def discard(self, n):
        """Skips `n` outputs in constant time.  Returns self."""
        self._state = (self._state + SPLITMIX_INCREMENT * n) % W
        return self

    def __iter__(self):
        return self

    def __next__(self):
        return self.next()


## # Widening multiplication
##
## The compressor needs the full 128-bit product of two 64-bit words.
## Native code needs a compiler intrinsic or a 128-bit integer type for
## that, and cannot be built without one.  Python integers have
## arbitrary precision, so the capability is always there; we still
## keep it behind one function that returns the `(low, high)` halves.


def umul128(x, y):
    """Returns the (low, high) 64-bit halves of the product of x and y."""
    product = x * y
    return product % W, product // W


## # Compression
##
## `compress` combines two words in the "multiply, unfold, mix" style of
## wyhash.  We add the words, scramble the sum with an odd multiplier
## (modulo $2^{64}$), then take the full 128-bit product of the result
## with itself `xor` a secret.  Folding both halves of that product with
## `xor` lets every input bit reach every output bit.
##
## The 128 to 64 bit fold is not invertible.  That's fine for a hash:
## we only want diffusion.

COMPRESS_MULTIPLIER = 0x2D358DCCAA6C78A5
COMPRESS_SECRET = 0x8BB84B93962EACC9


def compress(x, y):
    """Mixes the 64-bit words x and y into one 64-bit word."""
    x = ((x + y) * COMPRESS_MULTIPLIER) % W
    lo, hi = umul128(x, x ^ COMPRESS_SECRET)
    return x ^ COMPRESS_SECRET ^ lo ^ hi


## # Finalisation
##
## The merged lanes still show the structure of the last `compress`
## call, so we finish with the "rrmxmx" mixer from XXH3: an
## invertible `xor` of two rotations, a multiply, an `xor`-shift that
## also adds the input length, another multiply and a last
## `xor`-shift.  For a fixed length, every step is a bijection; the
## finaliser never introduces collisions on its own.

AVALANCHE_MULTIPLIER = 0x9FB21C651E98DF25


def rotl(x, count):
    """Rotates the 64-bit value `x` to the left by `count` bits."""
    count %= 64
    return ((x << count) | (x >> (64 - count))) % W


def avalanche(h, length):
    """Mixes the bits of h, and the input length, into a fingerprint."""
    h ^= rotl(h, 49) ^ rotl(h, 24)
    h = (h * AVALANCHE_MULTIPLIER) % W
    h ^= ((h >> 35) + length) % W
    h = (h * AVALANCHE_MULTIPLIER) % W
    return h ^ (h >> 28)


## # Reading buffers
##
## Any bytes-like object can be hashed.  We read it as a flat view of
## bytes; strided views are copied into a contiguous buffer first,
## since `memoryview.cast` only accepts C-contiguous memory.


def byte_view(buf):
    """Returns a flat, C-contiguous byte view of the bytes-like `buf`."""
    view = memoryview(buf)
    if not view.c_contiguous:
        view = memoryview(view.tobytes())
    return view.cast("B")


## # The hash state
##
## A `CompactHash` holds two lanes and a byte count.  The lanes start
## as the first two outputs of `SeedGenerator(seed)`, never as fixed
## constants, so distinct seeds give unrelated starting states.
##
## `insert` consumes its buffer 16 bytes at a time: the first word of
## each block goes to lane 0, the second to lane 1.  The lanes do not
## depend on each other until finalisation, which lets a native
## implementation overlap the two multiplications.  A short last block
## (1 to 15 bytes) is padded with zeros; an empty remainder adds
## nothing.
##
## Padding means `b"A"` and `b"A\x00"` leave the lanes in the same
## state.  The byte count is what tells them apart: `finalize` `xor`s
## `length * 0x9E3779B97F4A7C15` into the merged lanes, and since that
## multiplier is odd, different lengths always give different values
## before the (length-wise bijective) finaliser.
##
## Each call to `insert` pads its own tail.  Feeding a stream in
## pieces thus matches a single call only when every piece but the
## last is a multiple of 16 bytes long.
##
## `finalize` only reads the state.  It may be called any number of
## times, and `insert` may resume afterwards: the next `finalize`
## covers everything inserted so far.


class CompactHash:
    """Streaming CompactHash state.

    >>> h = CompactHash(12345)
    >>> h.insert(b"hello, ")
    >>> h.finalize() == compact_hash(b"hello, ", 12345)
    True
    """

    def __init__(self, seed=0):
        seeds = SeedGenerator(seed)
        self._lanes = (seeds.next(), seeds.next())
        self._total_len = 0

    @property
    def lanes(self):
        """The current (lane 0, lane 1) words."""
        return self._lanes

    @property
    def total_len(self):
        """Number of bytes inserted so far, modulo 2**64."""
        return self._total_len

    def copy(self):
        """Returns an independent copy of this state."""
        ret = CompactHash.__new__(CompactHash)
        ret._lanes = self._lanes
        ret._total_len = self._total_len
        return ret

    def insert(self, buf):
        """Hashes the bytes-like object `buf` into the state."""
        view = byte_view(buf)
        n = len(view)
        self._total_len = (self._total_len + n) % W

        lane0, lane1 = self._lanes
        tail = n - n % BLOCK_SIZE
        for offset in range(0, tail, BLOCK_SIZE):
            m0, m1 = struct.unpack_from("<QQ", view, offset)
            lane0 = compress(lane0, m0)
            lane1 = compress(lane1, m1)
        if tail < n:
            block = bytes(view[tail:]).ljust(BLOCK_SIZE, b"\x00")
            assert len(block) == BLOCK_SIZE
            m0, m1 = struct.unpack("<QQ", block)
            lane0 = compress(lane0, m0)
            lane1 = compress(lane1, m1)
        self._lanes = (lane0, lane1)

    def finalize(self):
        """Returns the fingerprint of everything inserted so far."""
        h = compress(*self._lanes)
        h ^= (self._total_len * SPLITMIX_INCREMENT) % W
        return avalanche(h, self._total_len)


## # One-shot and extended interfaces
##
## `compact_hash` is the obvious composition of the above.
##
## `compact_hash_extended` derives `n_words` words from one input.
## Word $i$ comes from a fresh state, seeded with the $(i + 1)$th
## output of `SeedGenerator(seed)`, that hashes the input followed by
## $i$ as an 8-byte little-endian word.  Each word's seed depends on
## `seed` and $i$ only, not on earlier words, and the trailing index
## separates the words even if two derived seeds were to coincide.
## The words are only independent in the statistical sense.
##
## A consequence worth knowing: asking for fewer words returns a prefix
## of the longer sequence.


def compact_hash(buf, seed=0):
    """Returns the 64-bit CompactHash of `buf`."""
    h = CompactHash(seed)
    h.insert(buf)
    return h.finalize()


def compact_hash_extended(buf, n_words, seed=0):
    """Returns a list of `n_words` 64-bit hashes of `buf`."""
    if n_words < 0:
        raise ValueError("n_words must be non-negative, got %r." % (n_words,))
    view = byte_view(buf)
    seeds = SeedGenerator(seed)
    ret = []
    for i in range(n_words):
        h = CompactHash(seeds.next())
        h.insert(view)
        h.insert(struct.pack("<Q", i))
        ret.append(h.finalize())
    return ret


## # Acknowledgements
##
## The compressor's structure and constants follow Wang Yi's public
## domain wyhash/wyrand; SplitMix64 is Sebastiano Vigna's public domain
## generator; the finaliser is Pelle Evensen's rrmxmx, as used in XXH3.
