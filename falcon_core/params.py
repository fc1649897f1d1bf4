"""
Fixed Falcon-1024 parameter set.

The values below are those of the Falcon specification for degree n = 1024:
sigma is the standard deviation of signatures over the lattice, sigmin the
lower bound on the standard deviation of every Gaussian over Z drawn while
sampling, and signature_bound the upper bound on ||s0||^2 + ||s1||^2.
"""

from dataclasses import dataclass


# Integer modulus of the ring Z_q[x]/(x^n + 1).
Q = 12 * 1024 + 1

# Byte lengths of the signing salt and of the per-attempt ChaCha20 seed.
SALT_LEN = 40
SEED_LEN = 56


@dataclass(frozen=True)
class FalconParams:
    """Parameters for one Falcon degree."""
    n: int
    q: int
    sigma: float
    sigmin: float
    signature_bound: int
    salt_len: int = SALT_LEN
    seed_len: int = SEED_LEN

    @property
    def signature_bytelen(self) -> int:
        """Length of a packed signature: salt plus 2n 16-bit coefficients."""
        return self.salt_len + 4 * self.n


FALCON_1024 = FalconParams(
    n=1024,
    q=Q,
    sigma=168.38857144654395,
    sigmin=1.298280334344292,
    signature_bound=70265242,
)
