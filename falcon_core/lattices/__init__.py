"""NTRU trapdoor generation and the signing context built on it."""

from .context import FalconContext, build_falcon_context
from .ntrugen import Retry, ntru_gen, ntru_solve

__all__ = ["FalconContext", "build_falcon_context", "Retry", "ntru_gen", "ntru_solve"]
