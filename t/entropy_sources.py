"""
Entropy providers to substitute for random.SystemRandom in tests.
"""
import struct

from Crypto.Cipher import Salsa20

DEFAULT_KEY = b"Do not use CompactHash vs. foes."


class Salsa20Random:
    """Reproducible `getrandbits` backed by a Salsa20 keystream."""

    def __init__(self, nonce=0, key=DEFAULT_KEY):
        self.nonce = nonce
        self._cipher = Salsa20.new(key, struct.pack("<Q", nonce))

    def getrandbits(self, k):
        n_bytes = (k + 7) // 8
        raw = self._cipher.encrypt(b"\x00" * n_bytes)
        return int.from_bytes(raw, "little") >> (8 * n_bytes - k)

    def __repr__(self):
        return "Salsa20Random(nonce=%d)" % self.nonce


class UnavailableRandom:
    """Fails like random.SystemRandom does when the OS has no entropy
    to give."""

    def __init__(self, error=OSError):
        self.error = error
        self.calls = 0

    def getrandbits(self, k):
        self.calls += 1
        raise self.error("entropy source unavailable")
