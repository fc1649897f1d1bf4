"""Exact and approximate polynomial arithmetic in Z[x]/(x^n + 1)."""

from . import fft
from . import ntt
from . import poly

__all__ = ["fft", "ntt", "poly"]
