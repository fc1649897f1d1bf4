"""
Signing context built from a secret key.

A ``FalconContext`` holds everything the signer needs, precomputed once per
signing session from (f, g, F, G): the secret basis in both representations,
its Gram matrix, the normalized LDL factors and the public key h = g / f mod q.
Polynomials are stored as tuples and arrays are marked read-only, so the
context cannot be altered after it is built.
"""

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from ..core.fft import fft, ifft, round_to_int
from ..core.ntt import div_zq
from ..core.poly import reduce_mod_q
from ..exceptions import MalformedInputError
from ..params import FALCON_1024, FalconParams
from ..samplers.ffsampling import LDLTree, ffldl_fft, gram, normalize_tree

logger = logging.getLogger(__name__)

FrozenPoly = Tuple[int, ...]
PolyMatrix = Tuple[Tuple[FrozenPoly, FrozenPoly], Tuple[FrozenPoly, FrozenPoly]]
FFTMatrix = Tuple[Tuple[np.ndarray, np.ndarray], Tuple[np.ndarray, np.ndarray]]


@dataclass(frozen=True)
class FalconContext:
    """Immutable precomputed data for signing with one secret key."""
    n: int
    q: int
    sigma: float
    sigmin: float
    signature_bound: int
    B0: PolyMatrix
    B0_fft: FFTMatrix
    G0: PolyMatrix
    G0_fft: FFTMatrix
    T_fft: LDLTree
    h: FrozenPoly


def _readonly(arr) -> np.ndarray:
    out = np.array(arr)
    out.flags.writeable = False
    return out


def _freeze_polys(matrix) -> PolyMatrix:
    return tuple(tuple(tuple(int(x) for x in poly) for poly in row) for row in matrix)


def _freeze_arrays(matrix) -> FFTMatrix:
    return tuple(tuple(_readonly(elt) for elt in row) for row in matrix)


def build_falcon_context(f: Sequence[int], g: Sequence[int], F: Sequence[int],
                         G: Sequence[int],
                         params: FalconParams = FALCON_1024) -> FalconContext:
    """
    Precompute the signing context of the secret key (f, g, F, G).

    Args:
        f, g, F, G: Secret polynomials of a common power-of-two degree
        params: Parameter set supplying q, sigma, sigmin and the norm bound

    Returns:
        FalconContext

    Raises:
        MalformedInputError: If the polynomials differ in length
        NotInvertibleError: If f is not invertible mod q
        ValueError: If the Gram matrix is degenerate
    """
    n = len(f)
    if n == 0 or n & (n - 1) or any(len(p) != n for p in (g, F, G)):
        raise MalformedInputError(
            f"secret key polynomials must share a power-of-two length, got "
            f"{len(f)}, {len(g)}, {len(F)}, {len(G)}"
        )
    f, g, F, G = (list(p) for p in (f, g, F, G))

    B0 = [[g, [-x for x in f]], [G, [-x for x in F]]]
    B0_fft = [[fft(elt) for elt in row] for row in B0]
    G0_fft = gram(B0_fft)
    G0 = [[round_to_int(ifft(elt)) for elt in row] for row in G0_fft]
    T_fft = normalize_tree(ffldl_fft(G0_fft), params.sigma)
    h = div_zq(reduce_mod_q(g, params.q), reduce_mod_q(f, params.q), params.q)

    logger.info(f"Built signing context for n={n}")
    return FalconContext(
        n=n,
        q=params.q,
        sigma=params.sigma,
        sigmin=params.sigmin,
        signature_bound=params.signature_bound,
        B0=_freeze_polys(B0),
        B0_fft=_freeze_arrays(B0_fft),
        G0=_freeze_polys(G0),
        G0_fft=_freeze_arrays(G0_fft),
        T_fft=LDLTree(d00=_readonly(T_fft.d00), d11=_readonly(T_fft.d11),
                      l10=_readonly(T_fft.l10)),
        h=tuple(h),
    )
