"""
Exact arithmetic in Z[x]/(x^n + 1).

Polynomials are plain Python lists of n integers, f = sum f[i] * x^i, with n a
power of two. Every operation here is exact: coefficients grow without bound
during NTRU solving (thousands of bits at the bottom of the recursion), so no
floating point and no fixed-width integers are used. Approximate arithmetic
lives in ``falcon_core.core.fft``.
"""

from typing import List, Sequence, Tuple

from ..exceptions import MalformedInputError
from ..params import Q

Poly = List[int]

# Below this degree schoolbook multiplication beats another Karatsuba split.
KARATSUBA_CUTOFF = 16


def split(f: Sequence[int]) -> Tuple[Poly, Poly]:
    """Split f into its even and odd coefficients."""
    return list(f[0::2]), list(f[1::2])


def merge(f_list: Tuple[Sequence[int], Sequence[int]]) -> Poly:
    """Interleave (f0, f1) back into a single polynomial."""
    f0, f1 = f_list
    f = [0] * (2 * len(f0))
    f[0::2] = f0
    f[1::2] = f1
    return f


def sqnorm(v: Sequence[Sequence[int]]) -> int:
    """Squared Euclidean norm of a vector of polynomials."""
    return sum(coef * coef for elt in v for coef in elt)


def _schoolbook(a: Sequence[int], b: Sequence[int], n: int) -> Poly:
    ab = [0] * (2 * n)
    for i in range(n):
        ai = a[i]
        if ai == 0:
            continue
        for j in range(n):
            ab[i + j] += ai * b[j]
    return ab


def karatsuba(a: Sequence[int], b: Sequence[int], n: int) -> Poly:
    """
    Karatsuba product of two polynomials of length n.

    Returns the full (unreduced) product as a list of length 2n.
    """
    if n <= KARATSUBA_CUTOFF:
        return _schoolbook(a, b, n)
    n2 = n // 2
    a0, a1 = a[:n2], a[n2:]
    b0, b1 = b[:n2], b[n2:]
    ax = [x + y for x, y in zip(a0, a1)]
    bx = [x + y for x, y in zip(b0, b1)]
    a0b0 = karatsuba(a0, b0, n2)
    a1b1 = karatsuba(a1, b1, n2)
    axbx = karatsuba(ax, bx, n2)
    for i in range(n):
        axbx[i] -= a0b0[i] + a1b1[i]
    ab = [0] * (2 * n)
    for i in range(n):
        ab[i] += a0b0[i]
        ab[i + n] += a1b1[i]
        ab[i + n2] += axbx[i]
    return ab


def karamul(a: Sequence[int], b: Sequence[int]) -> Poly:
    """Exact product of a and b modulo x^n + 1."""
    n = len(a)
    if len(b) != n:
        raise MalformedInputError(f"karamul: length mismatch {n} != {len(b)}")
    ab = karatsuba(a, b, n)
    # x^n = -1: the upper half wraps around with a sign flip
    return [ab[i] - ab[i + n] for i in range(n)]


def galois_conjugate(a: Sequence[int]) -> Poly:
    """Galois conjugate a(x) -> a(-x)."""
    return [a[i] if i % 2 == 0 else -a[i] for i in range(len(a))]


def field_norm(a: Sequence[int]) -> Poly:
    """
    Project a from Q[x]/(x^n + 1) down to Q[x]/(x^(n/2) + 1).

    With a(x) = ae(x^2) + x * ao(x^2), the field norm is ae^2 - x * ao^2.
    """
    ae, ao = split(a)
    n2 = len(ae)
    ae_squared = karamul(ae, ae)
    ao_squared = karamul(ao, ao)
    res = ae_squared[:]
    for i in range(n2 - 1):
        res[i + 1] -= ao_squared[i]
    res[0] += ao_squared[n2 - 1]
    return res


def lift(a: Sequence[int]) -> Poly:
    """Lift Q[x]/(x^(n/2) + 1) to Q[x]/(x^n + 1) via a(x) -> a(x^2)."""
    res = [0] * (2 * len(a))
    res[0::2] = a
    return res


def bitsize(a: int) -> int:
    """Bit length of |a|, rounded up to a multiple of 8."""
    val = abs(a)
    res = 0
    while val:
        res += 8
        val >>= 8
    return res


def max_bitsize(*polys: Sequence[int]) -> int:
    """Largest bitsize over the extreme coefficients of the given polynomials."""
    return max(max(bitsize(min(p)), bitsize(max(p))) for p in polys)


def xgcd(a: int, b: int) -> Tuple[int, int, int]:
    """
    Extended Euclidean algorithm.

    Returns (d, u, v) with d = gcd(a, b) >= 0 and u * a + v * b = d.
    """
    old_r, r = a, b
    old_s, s = 1, 0
    old_t, t = 0, 1
    while r != 0:
        quotient = old_r // r
        old_r, r = r, old_r - quotient * r
        old_s, s = s, old_s - quotient * s
        old_t, t = t, old_t - quotient * t
    if old_r < 0:
        old_r, old_s, old_t = -old_r, -old_s, -old_t
    return old_r, old_s, old_t


def reduce_mod_q(f: Sequence[int], q: int = Q) -> Poly:
    """Coefficients of f reduced into [0, q)."""
    return [coef % q for coef in f]


def center_mod_q(v: int, q: int = Q) -> int:
    """Representative of v mod q in (-q/2, q/2]."""
    v %= q
    return v - q if v > q // 2 else v
