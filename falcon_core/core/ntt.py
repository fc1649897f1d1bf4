"""
Exact polynomial arithmetic in Z_q[x]/(x^n + 1) through the NTT.

The NTT of f is the vector of its evaluations at the n odd powers of psi, a
primitive 2n-th root of unity mod q (it exists because 2n divides q - 1 for
every power of two n <= 1024 when q = 12289). As with the FFT engine, the
transform is negacyclic: products mod x^n + 1 become pointwise products.

All values are exact. Intermediate dot products stay below n * q^2 < 2^38,
well inside int64.
"""

from functools import lru_cache
from typing import List, Sequence, Tuple

import numpy as np

from ..exceptions import MalformedInputError, NotInvertibleError
from ..params import Q


@lru_cache(maxsize=None)
def _primitive_root(q: int) -> int:
    """Smallest generator of the multiplicative group mod the prime q."""
    factors = []
    m, p = q - 1, 2
    while p * p <= m:
        if m % p == 0:
            factors.append(p)
            while m % p == 0:
                m //= p
        p += 1
    if m > 1:
        factors.append(m)
    for g in range(2, q):
        if all(pow(g, (q - 1) // p, q) != 1 for p in factors):
            return g
    raise ValueError(f"no primitive root modulo {q}")


@lru_cache(maxsize=None)
def _inverse_table(q: int) -> np.ndarray:
    """inv[x] = x^-1 mod q (inv[0] is unused and left at 0)."""
    inv = np.zeros(q, dtype=np.int64)
    for x in range(1, q):
        inv[x] = pow(x, q - 2, q)
    return inv


@lru_cache(maxsize=None)
def _ntt_matrices(n: int, q: int) -> Tuple[np.ndarray, np.ndarray]:
    """Forward and inverse evaluation matrices for degree n."""
    if n < 1 or n & (n - 1) or (q - 1) % (2 * n):
        raise MalformedInputError(f"no negacyclic NTT of size {n} modulo {q}")
    psi = pow(_primitive_root(q), (q - 1) // (2 * n), q)
    powers = np.array([pow(psi, e, q) for e in range(2 * n)], dtype=np.int64)
    rows = np.arange(n, dtype=np.int64).reshape(-1, 1)
    cols = np.arange(n, dtype=np.int64).reshape(1, -1)
    # forward[j, k] = psi^(k * (2j + 1))
    forward = powers[(cols * (2 * rows + 1)) % (2 * n)]
    # inverse[k, j] = n^-1 * psi^(-k * (2j + 1))
    n_inv = pow(n, q - 2, q)
    inverse = (powers[(-(rows * (2 * cols + 1))) % (2 * n)] * n_inv) % q
    return forward, inverse


def _as_zq(f: Sequence[int], q: int) -> np.ndarray:
    return np.array([int(x) % q for x in f], dtype=np.int64)


def _check_lengths(f, g):
    if len(f) != len(g):
        raise MalformedInputError(f"length mismatch {len(f)} != {len(g)}")


def ntt(f: Sequence[int], q: int = Q) -> List[int]:
    """
    Compute the NTT of a polynomial.

    Format: input as coefficients, output as NTT
    """
    forward, _ = _ntt_matrices(len(f), q)
    return ((forward @ _as_zq(f, q)) % q).tolist()


def intt(f_ntt: Sequence[int], q: int = Q) -> List[int]:
    """
    Compute the inverse NTT of a polynomial.

    Format: input as NTT, output as coefficients in [0, q)
    """
    _, inverse = _ntt_matrices(len(f_ntt), q)
    return ((inverse @ _as_zq(f_ntt, q)) % q).tolist()


def add_zq(f: Sequence[int], g: Sequence[int], q: int = Q) -> List[int]:
    """Addition of two polynomials mod q (any representation)."""
    _check_lengths(f, g)
    return ((_as_zq(f, q) + _as_zq(g, q)) % q).tolist()


def neg_zq(f: Sequence[int], q: int = Q) -> List[int]:
    """Negation of a polynomial mod q (any representation)."""
    return ((-_as_zq(f, q)) % q).tolist()


def sub_zq(f: Sequence[int], g: Sequence[int], q: int = Q) -> List[int]:
    """Subtraction of two polynomials mod q (any representation)."""
    _check_lengths(f, g)
    return ((_as_zq(f, q) - _as_zq(g, q)) % q).tolist()


def mul_ntt(f_ntt: Sequence[int], g_ntt: Sequence[int], q: int = Q) -> List[int]:
    """Multiplication of two polynomials (NTT representation)."""
    _check_lengths(f_ntt, g_ntt)
    return ((_as_zq(f_ntt, q) * _as_zq(g_ntt, q)) % q).tolist()


def div_ntt(f_ntt: Sequence[int], g_ntt: Sequence[int], q: int = Q) -> List[int]:
    """Division of two polynomials (NTT representation)."""
    _check_lengths(f_ntt, g_ntt)
    g_arr = _as_zq(g_ntt, q)
    if np.any(g_arr == 0):
        raise NotInvertibleError("divisor has a zero NTT coefficient")
    return ((_as_zq(f_ntt, q) * _inverse_table(q)[g_arr]) % q).tolist()


def mul_zq(f: Sequence[int], g: Sequence[int], q: int = Q) -> List[int]:
    """Multiplication of two polynomials mod (x^n + 1, q) (coefficient representation)."""
    return intt(mul_ntt(ntt(f, q), ntt(g, q), q), q)


def div_zq(f: Sequence[int], g: Sequence[int], q: int = Q) -> List[int]:
    """Division of two polynomials mod (x^n + 1, q) (coefficient representation)."""
    return intt(div_ntt(ntt(f, q), ntt(g, q), q), q)


def is_invertible(f: Sequence[int], q: int = Q) -> bool:
    """True iff f is invertible mod (x^n + 1, q), i.e. no NTT coefficient is zero."""
    return all(elt != 0 for elt in ntt(f, q))
