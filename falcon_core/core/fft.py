"""
Approximate polynomial arithmetic through the complex FFT.

A polynomial f in R[x]/(x^n + 1) is represented in the FFT domain by its
evaluations at the n odd powers of zeta = exp(i*pi/n), i.e. at the roots of
x^n + 1. With that choice, multiplication and division mod x^n + 1 become
pointwise, and the adjoint f*(x) = f(1/x) becomes complex conjugation.

The evaluation order is the natural one, f_fft[j] = f(zeta^(2j+1)), which
lets numpy do the heavy lifting: twisting the coefficients by zeta^k turns the
negacyclic transform into an ordinary cyclic DFT.

Results are floating point. The only ways back to exact integers are
``round_to_int`` and the rounding done by callers on ``ifft`` output.
"""

from functools import lru_cache
from typing import List, Sequence

import numpy as np

from ..exceptions import MalformedInputError


@lru_cache(maxsize=None)
def _twist(n: int) -> np.ndarray:
    """Powers zeta^k, k = 0..n-1, with zeta = exp(i*pi/n)."""
    return np.exp(1j * np.pi * np.arange(n) / n)


def fft(f: Sequence[float]) -> np.ndarray:
    """
    Compute the FFT of a polynomial.

    Args:
        f: Coefficients; Python ints must fit in a double (|f[i]| < 2^1023)

    Returns:
        complex128 array of the n evaluations f(zeta^(2j+1))
    """
    coeffs = np.asarray(f, dtype=np.float64)
    n = len(coeffs)
    # n * ifft(x)[j] = sum_k x[k] * exp(2i*pi*jk/n)
    return np.fft.ifft(coeffs * _twist(n)) * n


def ifft(f_fft: np.ndarray) -> np.ndarray:
    """Inverse FFT; returns the real coefficient vector."""
    f_fft = np.asarray(f_fft, dtype=np.complex128)
    n = len(f_fft)
    return (np.fft.fft(f_fft) * np.conj(_twist(n)) / n).real


def round_to_int(f: np.ndarray) -> List[int]:
    """Round real coefficients to the nearest integers, as Python ints."""
    return [int(x) for x in np.rint(f)]


def _check_lengths(f, g):
    if len(f) != len(g):
        raise MalformedInputError(f"length mismatch {len(f)} != {len(g)}")


def add_fft(f_fft: np.ndarray, g_fft: np.ndarray) -> np.ndarray:
    """Addition of two polynomials (FFT representation)."""
    _check_lengths(f_fft, g_fft)
    return np.asarray(f_fft) + np.asarray(g_fft)


def sub_fft(f_fft: np.ndarray, g_fft: np.ndarray) -> np.ndarray:
    """Subtraction of two polynomials (FFT representation)."""
    _check_lengths(f_fft, g_fft)
    return np.asarray(f_fft) - np.asarray(g_fft)


def neg_fft(f_fft: np.ndarray) -> np.ndarray:
    """Negation of a polynomial (FFT representation)."""
    return -np.asarray(f_fft)


def mul_fft(f_fft: np.ndarray, g_fft: np.ndarray) -> np.ndarray:
    """Multiplication of two polynomials (FFT representation)."""
    _check_lengths(f_fft, g_fft)
    return np.asarray(f_fft) * np.asarray(g_fft)


def div_fft(f_fft: np.ndarray, g_fft: np.ndarray) -> np.ndarray:
    """Division of two polynomials (FFT representation)."""
    _check_lengths(f_fft, g_fft)
    return np.asarray(f_fft) / np.asarray(g_fft)


def adj_fft(f_fft: np.ndarray) -> np.ndarray:
    """Adjoint of a polynomial (FFT representation)."""
    return np.conj(f_fft)


def add(f: Sequence[float], g: Sequence[float]) -> np.ndarray:
    """Addition of two polynomials (coefficient representation)."""
    _check_lengths(f, g)
    return np.asarray(f, dtype=np.float64) + np.asarray(g, dtype=np.float64)


def sub(f: Sequence[float], g: Sequence[float]) -> np.ndarray:
    """Subtraction of two polynomials (coefficient representation)."""
    _check_lengths(f, g)
    return np.asarray(f, dtype=np.float64) - np.asarray(g, dtype=np.float64)


def neg(f: Sequence[float]) -> np.ndarray:
    """Negation of a polynomial (coefficient representation)."""
    return -np.asarray(f, dtype=np.float64)


def mul(f: Sequence[float], g: Sequence[float]) -> np.ndarray:
    """Multiplication of two polynomials (coefficient representation)."""
    return ifft(mul_fft(fft(f), fft(g)))


def div(f: Sequence[float], g: Sequence[float]) -> np.ndarray:
    """Division of two polynomials (coefficient representation)."""
    return ifft(div_fft(fft(f), fft(g)))


def adj(f: Sequence[float]) -> np.ndarray:
    """Adjoint f*(x) = f(1/x) (coefficient representation)."""
    coeffs = np.asarray(f, dtype=np.float64)
    res = -coeffs[::-1]
    return np.concatenate(([coeffs[0]], res[:-1]))
