"""
Hash-to-point with Keccak-256 in counter mode.

The message digest is mapped to a polynomial c in Z_q[x]/(x^n + 1):

    stream  = Keccak256(domain || salt || message || u32be(0))
           || Keccak256(domain || salt || message || u32be(1)) || ...
    words   = stream read as 16-bit big-endian integers
    c       = first n words below 5q, each reduced mod q

The stream length is fixed at (n + 287) * 2 bytes and always scanned in full.
"""

from typing import List

import numpy as np
from Crypto.Hash import keccak

from .encoding import BytesLike, to_bytes
from .exceptions import HashToPointError, MalformedInputError
from .params import FALCON_1024, Q

MESSAGE_LEN = 32
DIGEST_LEN = 32

# Extra 16-bit words drawn so that n samples below 5q are all but certain.
OVER_CT = 287


def _keccak256(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()


def keccak_expand(domain: BytesLike, salt: BytesLike, message: BytesLike,
                  out_len: int) -> bytes:
    """
    Expand (domain, salt, message) to out_len bytes of Keccak-256 output.

    Raises:
        MalformedInputError: If message is not exactly 32 bytes
    """
    msg = to_bytes(message)
    if len(msg) != MESSAGE_LEN:
        raise MalformedInputError(f"message must be {MESSAGE_LEN} bytes, got {len(msg)}")
    prefix = to_bytes(domain) + to_bytes(salt) + msg
    blocks = -(-out_len // DIGEST_LEN)
    stream = b"".join(_keccak256(prefix + ctr.to_bytes(4, "big")) for ctr in range(blocks))
    return stream[:out_len]


def hash_to_point(domain: BytesLike, salt: BytesLike, message: BytesLike,
                  n: int = FALCON_1024.n, q: int = Q) -> List[int]:
    """
    Hash (domain, salt, message) to n coefficients mod q.

    Args:
        domain: Domain separator, hex or UTF-8 string or bytes
        salt: Signature salt
        message: 32-byte message digest

    Returns:
        List of n integers in [0, q)

    Raises:
        HashToPointError: If fewer than n words fall below 5q
    """
    stream = keccak_expand(domain, salt, message, (n + OVER_CT) * 2)
    words = np.frombuffer(stream, dtype=">u2").astype(np.int64)
    accepted = words[words < 5 * q]
    if len(accepted) < n:
        raise HashToPointError(f"hash_to_point: {len(accepted)} valid samples, need {n}")
    return (accepted[:n] % q).tolist()
