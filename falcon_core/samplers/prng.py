"""
Deterministic byte stream for reproducible signing.

The stream is the ChaCha20 keystream (RFC 7539 layout: 256-bit key, 96-bit
nonce, 32-bit little-endian block counter starting at 0) keyed from a seed:
the first 32 bytes give the key, the next 12 bytes the nonce, both padded with
zeros when the seed is shorter. Output is handed out from a one-block buffer
that is refilled on exhaustion, so the byte sequence does not depend on how
requests are chunked.
"""

from Crypto.Cipher import ChaCha20 as _ChaCha20Cipher

KEY_LEN = 32
NONCE_LEN = 12
BLOCK_LEN = 64


class ChaCha20:
    """Seeded ChaCha20 keystream generator."""

    def __init__(self, seed: bytes):
        seed = bytes(seed)
        key = seed[:KEY_LEN].ljust(KEY_LEN, b"\x00")
        nonce = seed[KEY_LEN:KEY_LEN + NONCE_LEN].ljust(NONCE_LEN, b"\x00")
        self._cipher = _ChaCha20Cipher.new(key=key, nonce=nonce)
        self._buffer = b""
        self._pos = 0
        self.blocks_generated = 0

    def _next_block(self) -> bytes:
        # Encrypting zeros yields the raw keystream
        block = self._cipher.encrypt(bytes(BLOCK_LEN))
        self.blocks_generated += 1
        return block

    def randombytes(self, length: int) -> bytes:
        """Return the next ``length`` keystream bytes."""
        if length < 0:
            raise ValueError(f"length must be non-negative, got {length}")
        out = bytearray()
        while len(out) < length:
            if self._pos >= len(self._buffer):
                self._buffer = self._next_block()
                self._pos = 0
            chunk = min(length - len(out), len(self._buffer) - self._pos)
            out += self._buffer[self._pos:self._pos + chunk]
            self._pos += chunk
        return bytes(out)

    __call__ = randombytes
