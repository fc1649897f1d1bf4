"""
NTRU trapdoor generation.

Produces the secret polynomials (f, g, F, G) of a Falcon key: f and g are
short, and F, G complete them into a basis of the NTRU lattice, i.e.

    f * G - g * F = q  mod (x^n + 1).

The generator follows Algorithm 5 (NTRUGen) of the Falcon specification:

    1. Sample f, g with coefficients ~ D_{Z, sigma_fg}, sigma_fg = 1.17 sqrt(q / 2n).
    2. Reject unless the Gram-Schmidt norm of [[g, -f], [G, -F]] is at most
       1.17 sqrt(q) and f is invertible mod q.
    3. Solve the NTRU equation by recursing on field norms down to degree 1,
       where it becomes a Bezout identity, and lift the solution back up with
       a Babai size-reduction step at every level.

Retryable failures of the solver (a non-unit gcd at the bottom of the
recursion, a degenerate reduction) are returned as ``Retry`` values rather
than raised.

References:
    - Fouque et al. "Falcon: Fast-Fourier Lattice-based Compact Signatures over NTRU"
    - Pornin, Prest. "More Efficient Algorithms for the NTRU Key Generation" (2019)
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..core.fft import adj_fft, fft, ifft, round_to_int
from ..core.ntt import is_invertible
from ..core.poly import (
    Poly, field_norm, galois_conjugate, karamul, karatsuba, lift, max_bitsize,
    reduce_mod_q, sqnorm, xgcd,
)
from ..exceptions import KeyGenerationError, SolveDepthError
from ..params import Q
from ..samplers.samplerz import samplerz

__all__ = [
    "Retry", "gen_poly", "gs_norm", "reduce_fg", "ntru_solve", "ntru_gen",
    "karatsuba", "karamul", "MAX_ITERS", "MAX_DEPTH",
]

logger = logging.getLogger(__name__)

RandomBytes = Callable[[int], bytes]

MAX_ITERS = 1000
MAX_DEPTH = 40

# 1.17 * sqrt(12289 / 8192): std of each of the 4096 base samples
SIGMA_FG_BASE = 1.43300980528773

# Coefficients of F and G must fit in a double's mantissa.
COEFF_BITS = 53

# Below this magnitude a Babai denominator is treated as zero.
DEN_EPSILON = 1e-12


@dataclass(frozen=True)
class Retry:
    """Signal that the current (f, g) pair should be discarded."""
    reason: str
    depth: int = 0


SolveResult = Union[Tuple[Poly, Poly], Retry]


def gen_poly(n: int, randombytes: RandomBytes = os.urandom) -> Poly:
    """
    Sample a polynomial with coefficients ~ D_{Z, 0, 1.17 sqrt(q / 2n)}.

    4096 samples of std SIGMA_FG_BASE are drawn and summed in blocks of
    4096 / n, which gives the target std for any power of two n < 4096.

    Args:
        n: Degree, a power of two below 4096
        randombytes: Source of uniform random bytes

    Returns:
        List of n small integers
    """
    if n < 1 or n >= 4096 or n & (n - 1):
        raise ValueError(f"gen_poly: n must be a power of two below 4096, got {n}")
    f0 = [samplerz(0, SIGMA_FG_BASE, SIGMA_FG_BASE - 0.001, randombytes)
          for _ in range(4096)]
    k = 4096 // n
    return [sum(f0[i * k:(i + 1) * k]) for i in range(n)]


def gs_norm(f: Sequence[int], g: Sequence[int], q: int = Q) -> float:
    """
    Squared Gram-Schmidt norm of the NTRU basis [[g, -f], [G, -F]].

    Only f and g are needed: the norm is the larger of ||(f, g)||^2 and
    q^2 * ||(f*, g*) / (f f* + g g*)||^2.
    """
    sqnorm_fg = sqnorm([f, g])
    f_fft = fft(f)
    g_fft = fft(g)
    ffgg_fft = f_fft * adj_fft(f_fft) + g_fft * adj_fft(g_fft)
    Ft = ifft(adj_fft(g_fft) / ffgg_fft)
    Gt = ifft(adj_fft(f_fft) / ffgg_fft)
    sqnorm_FG = (q ** 2) * float(np.sum(Ft ** 2) + np.sum(Gt ** 2))
    return max(float(sqnorm_fg), sqnorm_FG)


def reduce_fg(f: Sequence[int], g: Sequence[int], F: Sequence[int], G: Sequence[int],
              depth: int = 0) -> SolveResult:
    """
    Babai-reduce (F, G) against (f, g).

    Repeatedly subtracts k * (f, g) with
    k = round((F f* + G g*) / (f f* + g g*)), computed in floating point on
    the top 53 bits of each polynomial, until the size of (F, G) drops below
    that of (f, g) or k vanishes.

    Args:
        f, g: Short polynomials
        F, G: Solution of the NTRU equation to reduce
        depth: Recursion depth of the caller, reported in a Retry

    Returns:
        Reduced (F, G), or a Retry if the denominator is degenerate
    """
    n = len(f)
    F = list(F)
    G = list(G)
    size = max(COEFF_BITS, max_bitsize(f, g))
    shift = size - COEFF_BITS
    fa_fft = fft([elt >> shift for elt in f])
    ga_fft = fft([elt >> shift for elt in g])
    den_fft = fa_fft * adj_fft(fa_fft) + ga_fft * adj_fft(ga_fft)
    if np.any(np.abs(den_fft) < DEN_EPSILON):
        return Retry("degenerate Babai denominator", depth)

    while True:
        Size = max(COEFF_BITS, max_bitsize(F, G))
        if Size < size:
            break
        Shift = Size - COEFF_BITS
        Fa_fft = fft([elt >> Shift for elt in F])
        Ga_fft = fft([elt >> Shift for elt in G])
        num_fft = Fa_fft * adj_fft(fa_fft) + Ga_fft * adj_fft(ga_fft)
        k_real = ifft(num_fft / den_fft)
        if not np.all(np.isfinite(k_real)):
            return Retry("non-finite Babai coefficient", depth)
        k = round_to_int(k_real)
        if not any(k):
            break
        fk = karamul(f, k)
        gk = karamul(g, k)
        up = Size - size
        for i in range(n):
            F[i] -= fk[i] << up
            G[i] -= gk[i] << up
    return F, G


def ntru_solve(f: Sequence[int], g: Sequence[int], depth: int = 0,
               max_depth: int = MAX_DEPTH, q: int = Q) -> SolveResult:
    """
    Solve f * G - g * F = q mod (x^n + 1).

    Args:
        f, g: Polynomials of degree n, a power of two
        depth: Current recursion depth
        max_depth: Recursion cap
        q: Modulus

    Returns:
        (F, G), or a Retry when no solution exists for this (f, g)

    Raises:
        SolveDepthError: If the recursion goes deeper than max_depth
    """
    n = len(f)
    if depth > max_depth:
        raise SolveDepthError(depth, n)
    logger.debug(f"ntru_solve: depth={depth} n={n}")

    if n == 1:
        d, u, v = xgcd(f[0], g[0])
        if d != 1:
            return Retry(f"gcd(f0, g0) = {d}", depth)
        return [-q * v], [q * u]

    fp = field_norm(f)
    gp = field_norm(g)
    res = ntru_solve(fp, gp, depth + 1, max_depth, q)
    if isinstance(res, Retry):
        return res
    Fp, Gp = res
    F = karamul(lift(Fp), galois_conjugate(g))
    G = karamul(lift(Gp), galois_conjugate(f))
    return reduce_fg(f, g, F, G, depth)


def _check_ntru_equation(f: Poly, g: Poly, F: Poly, G: Poly, q: int) -> bool:
    fG = karamul(f, G)
    gF = karamul(g, F)
    lhs = [x - y for x, y in zip(fG, gF)]
    return lhs[0] == q and not any(lhs[1:])


def _rejection(f: Poly, g: Poly, q: int, max_depth: int) -> Tuple[Optional[str], Optional[Tuple[Poly, Poly]]]:
    """Run every keygen check on (f, g); returns (reason, None) or (None, (F, G))."""
    if gs_norm(f, g, q) > (1.17 ** 2) * q:
        return "Gram-Schmidt norm above bound", None
    if not is_invertible(reduce_mod_q(f, q), q):
        return "f not invertible mod q", None

    try:
        res = ntru_solve(f, g, max_depth=max_depth, q=q)
    except SolveDepthError as exc:
        logger.warning(f"ntru_solve failed: {exc}")
        return str(exc), None
    if isinstance(res, Retry):
        logger.warning(f"ntru_solve failed at depth {res.depth}: {res.reason}")
        return res.reason, None
    F, G = res

    limit = 1 << (COEFF_BITS - 1)
    if any(not -limit <= x < limit for x in F + G):
        return f"F, G coefficient beyond {COEFF_BITS} bits", None
    half = q / 2
    if any(abs(x) >= half for x in f + g + F + G):
        return "coefficient outside secret key encoding range", None
    if not _check_ntru_equation(f, g, F, G, q):
        return "NTRU equation check failed", None
    return None, (F, G)


def ntru_gen(n: int, randombytes: RandomBytes = os.urandom,
             max_iters: int = MAX_ITERS, max_depth: int = MAX_DEPTH,
             q: int = Q) -> Tuple[Poly, Poly, Poly, Poly]:
    """
    Generate an NTRU trapdoor (f, g, F, G).

    Args:
        n: Degree, a power of two at most 1024
        randombytes: Source of uniform random bytes
        max_iters: Number of (f, g) candidates tried before giving up
        max_depth: Recursion cap passed to ntru_solve
        q: Modulus

    Returns:
        (f, g, F, G) with f * G - g * F = q mod (x^n + 1)

    Raises:
        KeyGenerationError: If no candidate passes within max_iters
    """
    last_reason = None
    for iteration in range(1, max_iters + 1):
        f = gen_poly(n, randombytes)
        g = gen_poly(n, randombytes)
        reason, solution = _rejection(f, g, q, max_depth)
        if solution is None:
            logger.debug(f"ntru_gen: iteration {iteration} rejected ({reason})")
            last_reason = reason
            continue
        F, G = solution
        logger.info(f"ntru_gen: key pair of degree {n} found at iteration {iteration}")
        return f, g, F, G
    raise KeyGenerationError(max_iters, last_reason)
