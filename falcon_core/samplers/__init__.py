"""Random sources and Gaussian samplers."""

from .ffsampling import LDLTree, ffldl_fft, ffsampling_fft, gram, normalize_tree
from .prng import ChaCha20
from .samplerz import samplerz

__all__ = ["ChaCha20", "LDLTree", "ffldl_fft", "ffsampling_fft", "gram",
           "normalize_tree", "samplerz"]
