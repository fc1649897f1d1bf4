"""
Discrete Gaussian sampler over the integers.

Samples D_{Z,mu,sigma} for sigma in (sigmin, MAX_SIGMA] in two stages:

    1. ``basesampler`` draws a half-Gaussian z0 >= 0 of standard deviation
       MAX_SIGMA from a reverse cumulative distribution table (RCDT) with
       72 bits of precision.
    2. ``samplerz`` turns z0 into a signed candidate around the fractional
       part of mu, and accepts it with probability
       (sigmin / sigma) * exp(-x), x = (z - r)^2 / (2 sigma^2) - z0^2 / (2 MAX_SIGMA^2),
       through the Bernoulli trial ``berexp``.

The exponential is evaluated by ``approxexp`` in 63-bit fixed point with
integer-only Horner steps, and the Bernoulli trial compares it byte by byte
against fresh randomness.

References:
    - Falcon specification, Section 3.9.3 (SamplerZ, BerExp, ApproxExp)
    - Howe, Prest, Ricosset, Rossi. "Isochronous Gaussian Sampling" (2020)
"""

import os
from typing import Callable

RandomBytes = Callable[[int], bytes]

# Precision of RCDT, in bits.
RCDT_PREC = 72

# RCDT[i] = floor(2^72 * P(z0 > i)) for the half-Gaussian of std MAX_SIGMA.
RCDT = [
    3024686241123004913666,
    1564742784480091954050,
    636254429462080897535,
    199560484645026482916,
    47667343854657281903,
    8595902006365044063,
    1163297957344668388,
    117656387352093658,
    8867391802663976,
    496969357462633,
    20680885154299,
    638331848991,
    14602316184,
    247426747,
    3104126,
    28824,
    198,
    1,
]

# Fixed-point polynomial approximation of exp(-x) on [0, ln 2), highest
# degree first.
C = [
    0x00000004741183A3,
    0x00000036548CFC06,
    0x0000024FDCBF140A,
    0x0000171D939DE045,
    0x0000D00CF58F6F84,
    0x000680681CF796E3,
    0x002D82D8305B0FEA,
    0x011111110E066FD0,
    0x0555555555070F00,
    0x155555555581FF00,
    0x400000000002B400,
    0x7FFFFFFFFFFF4800,
    0x8000000000000000,
]

LN2 = 0.69314718056
ILN2 = 1.44269504089
MAX_SIGMA = 1.8205
INV_2SIGMA2 = 1 / (2 * (MAX_SIGMA ** 2))


def basesampler(randombytes: RandomBytes = os.urandom) -> int:
    """
    Sample z0 in {0, 1, ..., 18} from the tabulated half-Gaussian.

    Args:
        randombytes: Source of uniform random bytes

    Returns:
        Number of RCDT entries strictly above a uniform 72-bit integer
    """
    u = int.from_bytes(randombytes(RCDT_PREC >> 3), "little")
    z0 = 0
    for elt in RCDT:
        z0 += int(u < elt)
    return z0


def approxexp(x: float, ccs: float) -> int:
    """
    Fixed-point approximation of 2^64 * ccs * exp(-x).

    Args:
        x: Exponent, expected in [0, ln 2)
        ccs: Scaling factor in (0, 1]

    Returns:
        Integer approximation of 2^64 * ccs * exp(-x)
    """
    if ccs <= 0:
        raise ValueError(f"ccs must be positive, got {ccs}")
    y = C[0]
    z = int(x * (1 << 63))
    for elt in C[1:]:
        y = elt - ((z * y) >> 63)
    z = int(ccs * (1 << 63)) << 1
    y = (z * y) >> 63
    return y


def berexp(x: float, ccs: float, randombytes: RandomBytes = os.urandom) -> bool:
    """
    Return a bit equal to 1 with probability ~ ccs * exp(-x).

    Args:
        x: Non-negative exponent
        ccs: Scaling factor in (0, 1]
        randombytes: Source of uniform random bytes
    """
    if ccs <= 0:
        raise ValueError(f"ccs must be positive, got {ccs}")
    if x != x or x in (float("inf"), float("-inf")):
        raise ValueError(f"x must be finite, got {x}")
    s = int(x * ILN2)
    r = x - s * LN2
    s = min(max(s, 0), 63)
    z = (approxexp(r, ccs) - 1) >> s
    w = 0
    for i in range(56, -8, -8):
        p = randombytes(1)[0]
        w = p - ((z >> i) & 0xFF)
        if w:
            break
    return w < 0


def samplerz(mu: float, sigma: float, sigmin: float,
             randombytes: RandomBytes = os.urandom) -> int:
    """
    Sample an integer from the discrete Gaussian D_{Z,mu,sigma}.

    Args:
        mu: Center
        sigma: Standard deviation, sigmin < sigma <= MAX_SIGMA
        sigmin: Lower bound on sigma, sets the acceptance scaling sigmin/sigma
        randombytes: Source of uniform random bytes

    Returns:
        Integer sample
    """
    if not 0 < sigmin < sigma <= MAX_SIGMA:
        raise ValueError(
            f"samplerz requires 0 < sigmin < sigma <= {MAX_SIGMA}, "
            f"got sigmin={sigmin}, sigma={sigma}"
        )
    s = int(mu // 1)
    r = mu - s
    dss = 1 / (2 * sigma * sigma)
    ccs = sigmin / sigma

    while True:
        z0 = basesampler(randombytes)
        b = randombytes(1)[0] & 1
        # b = 0 gives -z0, b = 1 gives 1 + z0
        z = b + (2 * b - 1) * z0
        x = ((z - r) ** 2) * dss
        x -= (z0 ** 2) * INV_2SIGMA2
        if berexp(x, ccs, randombytes):
            return z + s
