"""
Wire formats.

Public key
    n coefficients in [0, 2^14), packed 14 bits each, least significant bit
    first, into 14n / 8 bytes (1792 for n = 1024). A 1793-byte input is taken
    to carry a one-byte header, which is skipped.

Signature
    salt (40 bytes) followed by 16-bit big-endian coefficients, s0 then s1,
    each reduced mod q. Usually exchanged as 0x-prefixed hex.

Secret key
    each of f, g, F, G packed like a public key from its coefficients mod q,
    and decoded back to the centred representative in (-q/2, q/2).
"""

import re
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .exceptions import MalformedInputError
from .params import FALCON_1024, Q, SALT_LEN

BytesLike = Union[bytes, bytearray, memoryview, str]

COEFF_BITS = 14
PK_LEN = FALCON_1024.n * COEFF_BITS // 8

SECRET_KEY_NAMES = ("f", "g", "F", "G")

_HEX_RE = re.compile(r"^(0x[0-9a-fA-F]*|[0-9a-fA-F]+)$")
_BIT_WEIGHTS = 1 << np.arange(COEFF_BITS, dtype=np.int64)


def to_bytes(x: BytesLike) -> bytes:
    """
    Convert x to bytes.

    Bytes-like values pass through, 0x-prefixed or bare hex strings are
    decoded, and any other string is UTF-8 encoded.
    """
    if isinstance(x, (bytes, bytearray, memoryview)):
        return bytes(x)
    if isinstance(x, str):
        if _HEX_RE.match(x):
            digits = x[2:] if x.startswith("0x") else x
            if len(digits) % 2:
                raise MalformedInputError(f"hex string length must be even, got {len(digits)}")
            return bytes.fromhex(digits)
        return x.encode("utf-8")
    raise TypeError(f"unsupported input type {type(x).__name__}")


def bytes_to_hex(data: bytes, with_0x: bool = True) -> str:
    """Lowercase hex of data, 0x-prefixed by default."""
    return ("0x" if with_0x else "") + bytes(data).hex()


def pack_coefficients(coeffs: Sequence[int]) -> bytes:
    """Pack 14-bit coefficients LSB-first; the count must be a multiple of 4."""
    arr = np.asarray(coeffs, dtype=np.int64)
    if len(arr) % 4:
        raise MalformedInputError(f"cannot pack {len(arr)} coefficients on a byte boundary")
    if np.any((arr < 0) | (arr >= 1 << COEFF_BITS)):
        raise MalformedInputError("coefficient outside [0, 2^14)")
    bits = ((arr[:, None] >> np.arange(COEFF_BITS)) & 1).astype(np.uint8)
    return np.packbits(bits.ravel(), bitorder="little").tobytes()


def unpack_coefficients(data: bytes) -> List[int]:
    """Inverse of ``pack_coefficients``."""
    if (len(data) * 8) % COEFF_BITS:
        raise MalformedInputError(f"{len(data)} bytes do not hold whole 14-bit words")
    n = len(data) * 8 // COEFF_BITS
    bits = np.unpackbits(np.frombuffer(data, dtype=np.uint8), bitorder="little")
    words = bits.reshape(n, COEFF_BITS).astype(np.int64) @ _BIT_WEIGHTS
    return words.tolist()


def encode_public_key(coeffs: Sequence[int], with_header: bool = False,
                      header_byte: int = 0) -> bytes:
    """
    Pack a degree-1024 public key.

    Args:
        coeffs: 1024 coefficients, each < 2^14
        with_header: Prefix a single header byte (output length 1793)
        header_byte: Value of that header byte

    Returns:
        Packed public key
    """
    if len(coeffs) != FALCON_1024.n:
        raise MalformedInputError(f"expected {FALCON_1024.n} coefficients, got {len(coeffs)}")
    packed = pack_coefficients(coeffs)
    if with_header:
        return bytes([header_byte & 0xFF]) + packed
    return packed


def encode_public_key_hex(coeffs: Sequence[int], with_header: bool = False,
                          header_byte: int = 0) -> str:
    return bytes_to_hex(encode_public_key(coeffs, with_header, header_byte))


def decode_public_key(packed: BytesLike) -> List[int]:
    """
    Unpack a degree-1024 public key, skipping a header byte if present.

    Raises:
        MalformedInputError: If the input is neither 1792 nor 1793 bytes long
    """
    data = to_bytes(packed)
    if len(data) == PK_LEN + 1:
        data = data[1:]
    elif len(data) != PK_LEN:
        raise MalformedInputError(f"bad public key length {len(data)}")
    return unpack_coefficients(data)


def encode_signature(salt: bytes, s0: Sequence[int], s1: Sequence[int],
                     q: int = Q, salt_len: int = SALT_LEN) -> bytes:
    """Concatenate the salt with s0 and s1 as big-endian u16 values mod q."""
    salt = to_bytes(salt)
    if len(salt) != salt_len:
        raise MalformedInputError(f"expected salt length {salt_len}, got {len(salt)}")
    coeffs = np.array([x % q for x in list(s0) + list(s1)], dtype=">u2")
    return salt + coeffs.tobytes()


def encode_signature_hex(salt: bytes, s0: Sequence[int], s1: Sequence[int],
                         q: int = Q, salt_len: int = SALT_LEN) -> str:
    return bytes_to_hex(encode_signature(salt, s0, s1, q, salt_len))


def decode_signature(signature: BytesLike, salt_len: int = SALT_LEN,
                     q: Optional[int] = None) -> Tuple[bytes, List[int]]:
    """
    Split a signature into its salt and its 16-bit coefficients.

    Args:
        signature: Packed signature (bytes or hex)
        salt_len: Length of the leading salt
        q: When given, every coefficient must be reduced mod q

    Returns:
        (salt, coefficients), the coefficients being s0 followed by s1

    Raises:
        MalformedInputError: If the input is shorter than the salt, the
            remainder has odd length, or a coefficient is not below q
    """
    data = to_bytes(signature)
    if len(data) < salt_len or (len(data) - salt_len) % 2:
        raise MalformedInputError(f"bad signature length {len(data)}")
    salt = data[:salt_len]
    coeffs = np.frombuffer(data[salt_len:], dtype=">u2").astype(np.int64)
    if q is not None and np.any(coeffs >= q):
        raise MalformedInputError(f"signature coefficient not reduced mod {q}")
    return salt, coeffs.tolist()


def encode_secret_poly(f: Sequence[int], q: int = Q) -> bytes:
    """Pack a secret polynomial from its coefficients mod q."""
    half = q / 2
    if any(abs(x) >= half for x in f):
        raise MalformedInputError("secret coefficient outside (-q/2, q/2)")
    return pack_coefficients([x % q for x in f])


def decode_secret_poly(data: BytesLike, q: int = Q) -> List[int]:
    """Unpack a secret polynomial into centred coefficients."""
    coeffs = unpack_coefficients(to_bytes(data))
    if any(x >= q for x in coeffs):
        raise MalformedInputError("secret coefficient not reduced mod q")
    return [x - q if x > q // 2 else x for x in coeffs]


def pack_secret_key(f: Sequence[int], g: Sequence[int], F: Sequence[int],
                    G: Sequence[int], q: int = Q) -> Dict[str, bytes]:
    """Encode (f, g, F, G) under their storage names."""
    return {name: encode_secret_poly(poly, q)
            for name, poly in zip(SECRET_KEY_NAMES, (f, g, F, G))}


def unpack_secret_key(stored: Dict[str, bytes],
                      q: int = Q) -> Tuple[List[int], List[int], List[int], List[int]]:
    """Decode (f, g, F, G) from their storage names."""
    missing = [name for name in SECRET_KEY_NAMES if stored.get(name) is None]
    if missing:
        raise MalformedInputError(f"secret key is missing {', '.join(missing)}")
    f, g, F, G = (decode_secret_poly(stored[name], q) for name in SECRET_KEY_NAMES)
    if not len(f) == len(g) == len(F) == len(G):
        raise MalformedInputError("secret key polynomials differ in length")
    return f, g, F, G
