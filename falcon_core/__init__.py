"""
Falcon-1024 Lattice Signature Core

A Python package implementing the Falcon post-quantum signature scheme over
NTRU lattices: trapdoor generation, fast-Fourier sampling, signing and
verification, and the wire formats of keys and signatures.
"""

__version__ = "0.1.0"

from . import core
from . import lattices
from . import samplers
from .exceptions import (
    FalconError, HashToPointError, KeyGenerationError, MalformedInputError,
    NotInvertibleError, SigningError, SolveDepthError,
)
from .keystore import InMemoryKeyStore, JsonFileKeyStore, KeyStore
from .params import FALCON_1024, FalconParams
from .signing import (
    FalconSigner, SecretKey, derive_public_key, generate_keypair, get_public_key,
    sign, sign_with_context, verify, verify_signature,
)

__all__ = [
    "core", "lattices", "samplers",
    "FalconError", "HashToPointError", "KeyGenerationError", "MalformedInputError",
    "NotInvertibleError", "SigningError", "SolveDepthError",
    "KeyStore", "InMemoryKeyStore", "JsonFileKeyStore",
    "FalconParams", "FALCON_1024",
    "FalconSigner", "SecretKey", "derive_public_key", "generate_keypair",
    "get_public_key", "sign", "sign_with_context", "verify", "verify_signature",
]
