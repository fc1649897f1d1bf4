"""
Falcon-1024 signing and verification.

Signing hashes (domain, salt, message) to a point c of Z_q[x]/(x^n + 1) and
uses the secret basis to find a short s = (s0, s1) with s0 + s1 * h = c mod q:

    t   = (c, 0) * B0^-1                     (real target)
    z   = ffsampling(t)                       (integer vector close to t)
    s   = (c, 0) - z * B0                     (short, since t - z is small)

Candidates whose squared norm exceeds the signature bound are discarded and
resampled. Verification only needs h: it recomputes s0 = c - s1 * h mod q and
checks the norm of (s0, s1).
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .core.fft import fft, ifft, round_to_int
from .core.ntt import div_zq, mul_zq, sub_zq
from .core.poly import Poly, center_mod_q, reduce_mod_q, sqnorm
from .encoding import (
    SECRET_KEY_NAMES, BytesLike, decode_public_key, decode_signature,
    encode_public_key_hex, encode_signature_hex, pack_secret_key, to_bytes,
    unpack_secret_key,
)
from .exceptions import MalformedInputError, SigningError
from .hashing import hash_to_point
from .keystore import KeyStore
from .lattices.context import FalconContext, build_falcon_context
from .lattices.ntrugen import ntru_gen
from .params import FALCON_1024, Q, SALT_LEN, SEED_LEN, FalconParams
from .samplers.ffsampling import ffsampling_fft
from .samplers.prng import ChaCha20

logger = logging.getLogger(__name__)

RandomBytes = Callable[[int], bytes]

MAX_SIGN_ATTEMPTS = 64


@dataclass
class SecretKey:
    """Secret NTRU basis (f, g, F, G) with f * G - g * F = q mod (x^n + 1)."""
    f: Poly
    g: Poly
    F: Poly
    G: Poly

    @property
    def n(self) -> int:
        return len(self.f)

    def wipe(self) -> None:
        """Overwrite every coefficient with zero."""
        for poly in (self.f, self.g, self.F, self.G):
            for i in range(len(poly)):
                poly[i] = 0

    def context(self, params: FalconParams = FALCON_1024) -> FalconContext:
        return build_falcon_context(self.f, self.g, self.F, self.G, params)


def generate_keypair(randombytes: RandomBytes = os.urandom,
                     params: FalconParams = FALCON_1024) -> Tuple[SecretKey, str]:
    """
    Generate a fresh key pair.

    Returns:
        (secret key, 0x-hex packed public key)
    """
    f, g, F, G = ntru_gen(params.n, randombytes, q=params.q)
    secret_key = SecretKey(f, g, F, G)
    return secret_key, get_public_key(secret_key, params)


def derive_public_key(secret_key: SecretKey, params: FalconParams = FALCON_1024) -> List[int]:
    """Public key h = g / f mod q."""
    return div_zq(reduce_mod_q(secret_key.g, params.q),
                  reduce_mod_q(secret_key.f, params.q), params.q)


def get_public_key(secret_key: SecretKey, params: FalconParams = FALCON_1024) -> str:
    """Packed public key of secret_key as 0x-prefixed hex."""
    return encode_public_key_hex(derive_public_key(secret_key, params))


def sample_preimage(ctx: FalconContext, point: Sequence[int],
                    randombytes: RandomBytes = os.urandom) -> Tuple[List[int], List[int]]:
    """
    Sample a short (s0, s1) with s0 + s1 * h = point mod q.

    Args:
        ctx: Signing context
        point: Hashed message, n integers mod q
        randombytes: Source of uniform random bytes for the sampler

    Returns:
        (s0, s1) as integer coefficient lists
    """
    if len(point) != ctx.n:
        raise MalformedInputError(f"point has {len(point)} coefficients, expected {ctx.n}")
    [[a, b], [c, d]] = ctx.B0_fft
    point = [int(x) for x in point]
    point_fft = fft(point)
    t0_fft = point_fft * d / ctx.q
    t1_fft = -point_fft * b / ctx.q

    z0_fft, z1_fft = ffsampling_fft((t0_fft, t1_fft), ctx.T_fft, ctx.sigmin, randombytes)

    v0 = round_to_int(ifft(z0_fft * a + z1_fft * c))
    v1 = round_to_int(ifft(z0_fft * b + z1_fft * d))
    s0 = [p - v for p, v in zip(point, v0)]
    s1 = [-v for v in v1]
    return s0, s1


def sign_with_context(ctx: FalconContext, message: BytesLike, domain: BytesLike,
                      randombytes: Optional[RandomBytes] = None,
                      seed: Optional[BytesLike] = None,
                      max_attempts: int = MAX_SIGN_ATTEMPTS,
                      salt_len: int = SALT_LEN, seed_len: int = SEED_LEN) -> str:
    """
    Sign a 32-byte message with a prepared context.

    Args:
        ctx: Signing context
        message: 32-byte message digest (bytes or hex)
        domain: Domain separator
        randombytes: Custom randomness; when given, every sampling attempt
            runs on a ChaCha20 stream seeded from it, which makes signing
            deterministic for a deterministic source
        seed: Shortcut for randombytes=ChaCha20(seed)
        max_attempts: Number of candidates tried before giving up

    Returns:
        0x-hex of salt || s0 mod q || s1 mod q

    Raises:
        SigningError: If no candidate falls under the norm bound
    """
    if randombytes is None and seed is not None:
        randombytes = ChaCha20(to_bytes(seed))
    custom = randombytes is not None
    source = randombytes if custom else os.urandom

    salt = source(salt_len)
    point = hash_to_point(domain, salt, message, ctx.n, ctx.q)

    for attempt in range(1, max_attempts + 1):
        attempt_rng = ChaCha20(source(seed_len)) if custom else os.urandom
        s0, s1 = sample_preimage(ctx, point, attempt_rng)
        norm = sqnorm([s0, s1])
        if norm <= ctx.signature_bound:
            logger.debug(f"Signature accepted at attempt {attempt} (norm {norm})")
            return encode_signature_hex(salt, s0, s1, ctx.q, salt_len)
        logger.debug(f"Attempt {attempt}: norm {norm} above bound {ctx.signature_bound}")
    raise SigningError(max_attempts)


def sign(secret_key: SecretKey, message: BytesLike, domain: BytesLike,
         randombytes: Optional[RandomBytes] = None, seed: Optional[BytesLike] = None,
         params: FalconParams = FALCON_1024) -> str:
    """Build a fresh context from secret_key and sign message with it."""
    ctx = secret_key.context(params)
    return sign_with_context(ctx, message, domain, randombytes=randombytes, seed=seed,
                             salt_len=params.salt_len, seed_len=params.seed_len)


def verify_signature(m: Sequence[int], s: Sequence[int], h: Sequence[int],
                     q: int = Q,
                     signature_bound: int = FALCON_1024.signature_bound) -> bool:
    """
    Check a signature polynomial against a hashed message and public key.

    Args:
        m: Hashed message, n integers mod q
        s: Signature polynomial s1, n integers mod q
        h: Public key, n integers mod q

    Returns:
        True iff ||m - s * h||^2 + ||s||^2 < signature_bound, with every
        coefficient taken as its centred representative
    """
    if not len(m) == len(s) == len(h):
        raise MalformedInputError(
            f"verify_signature: length mismatch ({len(m)}, {len(s)}, {len(h)})"
        )
    s0 = sub_zq(m, mul_zq(s, h, q), q)
    centred = np.array([center_mod_q(v, q) for v in list(s0) + list(s)], dtype=np.int64)
    return int(np.sum(centred * centred)) < signature_bound


def verify(public_key: BytesLike, domain: BytesLike, signature: BytesLike,
           message: BytesLike, params: FalconParams = FALCON_1024) -> bool:
    """
    Verify a packed signature on a 32-byte message.

    The signature must be exactly salt || s0 || s1 with every coefficient in
    [0, q), and the transmitted s0 must equal m - s1 * h mod q.

    Args:
        public_key: Packed public key (1792 or 1793 bytes, or hex)
        domain: Domain separator used when signing
        signature: Packed signature (bytes or hex)
        message: 32-byte message digest

    Raises:
        MalformedInputError: If the key, signature or message is malformed
    """
    h = decode_public_key(public_key)
    salt, coeffs = decode_signature(signature, params.salt_len, q=params.q)
    if len(coeffs) != 2 * params.n:
        raise MalformedInputError(
            f"signature holds {len(coeffs)} coefficients, expected {2 * params.n}"
        )
    s0, s1 = coeffs[:params.n], coeffs[params.n:]
    m = hash_to_point(domain, salt, message, params.n, params.q)
    if s0 != sub_zq(m, mul_zq(s1, h, params.q), params.q):
        logger.debug("Transmitted s0 does not match m - s1 * h")
        return False
    return verify_signature(m, s1, h, params.q, params.signature_bound)


class FalconSigner:
    """
    Signer bound to a key store.

    The secret key is read from the store on every call and wiped once the
    signing context has been built. An empty store gets a new key pair on
    first use.
    """

    def __init__(self, keystore: KeyStore, params: FalconParams = FALCON_1024,
                 randombytes: RandomBytes = os.urandom):
        self.keystore = keystore
        self.params = params
        self.randombytes = randombytes

    def has_key(self) -> bool:
        return all(self.keystore.get(name) is not None for name in SECRET_KEY_NAMES)

    def generate(self) -> str:
        """Generate a key pair, persist it and return the public key."""
        secret_key, public_key = generate_keypair(self.randombytes, self.params)
        for name, value in pack_secret_key(secret_key.f, secret_key.g, secret_key.F,
                                           secret_key.G, self.params.q).items():
            self.keystore.set(name, value)
        secret_key.wipe()
        logger.info("Generated and stored a new key pair")
        return public_key

    def load_secret_key(self) -> SecretKey:
        """
        Read the secret key, generating one if the store is empty.

        Raises:
            MalformedInputError: If only some of f, g, F, G are stored
        """
        stored = {name: self.keystore.get(name) for name in SECRET_KEY_NAMES}
        if all(value is None for value in stored.values()):
            self.generate()
            stored = {name: self.keystore.get(name) for name in SECRET_KEY_NAMES}
        f, g, F, G = unpack_secret_key(stored, self.params.q)
        return SecretKey(f, g, F, G)

    def public_key(self) -> str:
        secret_key = self.load_secret_key()
        try:
            return get_public_key(secret_key, self.params)
        finally:
            secret_key.wipe()

    def sign(self, message: BytesLike, domain: BytesLike,
             randombytes: Optional[RandomBytes] = None,
             seed: Optional[BytesLike] = None) -> str:
        secret_key = self.load_secret_key()
        try:
            ctx = secret_key.context(self.params)
        finally:
            secret_key.wipe()
        return sign_with_context(ctx, message, domain, randombytes=randombytes, seed=seed,
                                 salt_len=self.params.salt_len,
                                 seed_len=self.params.seed_len)
