"""
Gram matrix, flat LDL decomposition and the fast-Fourier sampler.

The secret basis B0 = [[g, -f], [G, -F]] is handled in the FFT domain, where
the ring R[x]/(x^n + 1) splits into n copies of C. At each frequency i the
Gram matrix G_i = B_i * B_i^H is a 2x2 Hermitian positive-definite matrix,
and its LDL decomposition is

    G_i = [[1, 0], [l10_i, 1]] * diag(d00_i, d11_i) * [[1, conj(l10_i)], [0, 1]]

with d00_i = g00_i, l10_i = g10_i / g00_i and d11_i = g11_i - |l10_i|^2 * g00_i.
The decompositions are stored flat (three parallel arrays indexed by
frequency) rather than as Falcon's recursive ffLDL tree.

Sampling works on one coordinate of the target at a time, second coordinate
first, and couples the two through L. Each coordinate is halved recursively
down to single coefficients; the leaf at position i perturbs the target by
Gaussian noise of variance 1 / d_i before rounding to the nearest integer.
"""

import logging
import math
import os
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

import numpy as np

from ..core.fft import adj_fft, fft, ifft
from ..exceptions import MalformedInputError

logger = logging.getLogger(__name__)

RandomBytes = Callable[[int], bytes]
Matrix2 = List[List[np.ndarray]]

# Below this magnitude a Gram diagonal entry is treated as zero.
LDL_EPSILON = 1e-12


@dataclass(frozen=True)
class LDLTree:
    """Per-frequency LDL factors of a 2x2 Gram matrix."""
    d00: np.ndarray
    d11: np.ndarray
    l10: np.ndarray

    def __len__(self) -> int:
        return len(self.d00)


def gram(B_fft: Matrix2) -> Matrix2:
    """
    Gram matrix B * B^H of a 2x2 basis in the FFT domain.

    Args:
        B_fft: [[b00, b01], [b10, b11]], each an FFT vector

    Returns:
        [[g00, g01], [g10, g11]] with g10 = conj(g01), g00 and g11 real
    """
    rows = len(B_fft)
    G = [[None] * rows for _ in range(rows)]
    for i in range(rows):
        for j in range(rows):
            acc = np.zeros(len(B_fft[0][0]), dtype=np.complex128)
            for k in range(len(B_fft[i])):
                acc = acc + np.asarray(B_fft[i][k]) * adj_fft(B_fft[j][k])
            G[i][j] = acc
    return G


def ffldl_fft(G_fft: Matrix2) -> LDLTree:
    """
    LDL decomposition of a Hermitian 2x2 Gram matrix at every frequency.

    Args:
        G_fft: Gram matrix in the FFT domain, as returned by ``gram``

    Returns:
        LDLTree with real d00, d11 and complex l10

    Raises:
        ValueError: If some g00 entry is zero or near zero
    """
    g00 = np.asarray(G_fft[0][0], dtype=np.complex128)
    g10 = np.asarray(G_fft[1][0], dtype=np.complex128)
    g11 = np.asarray(G_fft[1][1], dtype=np.complex128)

    small = np.abs(g00) < LDL_EPSILON
    if np.any(small):
        i = int(np.argmax(small))
        raise ValueError(f"ffldl_fft: g00_fft[{i}] is zero or near zero")

    d00 = g00.real.copy()
    l10 = g10 / d00
    d11 = g11.real - (np.abs(l10) ** 2) * d00
    return LDLTree(d00=d00, d11=d11, l10=l10)


def normalize_tree(tree: LDLTree, sigma: float) -> LDLTree:
    """
    Rescale the diagonal factors so that their mean magnitude is sigma^2.

    Args:
        tree: LDL factors from ``ffldl_fft``
        sigma: Target standard deviation

    Returns:
        A new LDLTree; the input is left untouched

    Raises:
        ValueError: If sigma is not positive or a rescaled diagonal entry is
            not strictly positive
    """
    if sigma <= 0:
        raise ValueError(f"sigma must be positive, got {sigma}")
    avg = (np.sum(np.abs(tree.d00)) + np.sum(np.abs(tree.d11))) / (2 * len(tree))
    if avg <= 0:
        raise ValueError("normalize_tree: diagonal factors are all zero")

    factor = sigma * sigma / avg
    d00 = tree.d00 * factor
    d11 = tree.d11 * factor
    if np.any(d00 <= 0) or np.any(d11 <= 0):
        raise ValueError("normalize_tree: non-positive diagonal entry after scaling")
    logger.debug(f"Normalized LDL tree of size {len(tree)} by factor {factor:.4e}")
    return LDLTree(d00=d00, d11=d11, l10=tree.l10.copy())


def _gaussian01(randombytes: RandomBytes) -> float:
    """Standard normal variate by Box-Muller from 8 random bytes."""
    buf = randombytes(8)
    if len(buf) < 8:
        raise ValueError("randombytes returned fewer than 8 bytes")
    u1 = (int.from_bytes(buf[0:4], "little") + 0.5) / (1 << 32)
    u2 = (int.from_bytes(buf[4:8], "little") + 0.5) / (1 << 32)
    r = math.sqrt(-2.0 * math.log(u1))
    theta = 2.0 * math.pi * u2
    return r * math.cos(theta)


def _ffsampling_recursive(t: np.ndarray, d: np.ndarray, offset: int,
                          randombytes: RandomBytes) -> List[int]:
    """
    Round the real vector t to integers, perturbing coefficient i by
    Gaussian noise of variance 1 / d[offset + i].
    """
    n = len(t)
    if n == 1:
        noise = _gaussian01(randombytes) / math.sqrt(d[offset])
        return [int(round(t[0] + noise))]

    m = n // 2
    left = _ffsampling_recursive(t[:m], d, offset, randombytes)
    right = _ffsampling_recursive(t[m:], d, offset + m, randombytes)
    return left + right


def ffsampling_fft(t_fft: Sequence[np.ndarray], T_fft: LDLTree, sigmin: float,
                   randombytes: RandomBytes = os.urandom) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sample an integer vector (z0, z1) close to the target (t0, t1).

    The second coordinate is sampled first. Its rounding error is then
    carried into the first coordinate through L, t0' = t0 + (t1 - z1) * l10,
    before z0 is sampled around t0'. With B = L * B* this leaves
    t - z = e0 * b0 + e1 * b1*, i.e. Babai's nearest plane over the ring,
    plus the Gaussian perturbation shaped by D.

    Args:
        t_fft: Target (t0_fft, t1_fft) in the FFT domain
        T_fft: Normalized LDL factors of the basis Gram matrix
        sigmin: Lower bound on the per-coordinate standard deviation; the
            leaf noise is shaped by T_fft alone, so it is only validated
        randombytes: Source of uniform random bytes

    Returns:
        (z0_fft, z1_fft), FFTs of integer polynomials

    Raises:
        MalformedInputError: If the target and tree dimensions differ
    """
    t0_fft, t1_fft = t_fft
    n = len(t0_fft)
    if len(t1_fft) != n or len(T_fft) != n:
        raise MalformedInputError(
            f"ffsampling_fft: dimension mismatch ({n}, {len(t1_fft)}, {len(T_fft)})"
        )
    if sigmin <= 0:
        raise ValueError(f"sigmin must be positive, got {sigmin}")

    z1 = _ffsampling_recursive(ifft(t1_fft), T_fft.d11, 0, randombytes)
    z1_fft = fft(z1)
    t0b_fft = np.asarray(t0_fft) + (np.asarray(t1_fft) - z1_fft) * T_fft.l10
    z0 = _ffsampling_recursive(ifft(t0b_fft), T_fft.d00, 0, randombytes)
    return fft(z0), z1_fft
