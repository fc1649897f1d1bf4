"""Exception hierarchy for the Falcon signature engine."""

from typing import Optional


class FalconError(Exception):
    """Base class for all errors raised by falcon_core."""


class MalformedInputError(FalconError, ValueError):
    """Input has the wrong length, shape or range and was not decoded."""


class NotInvertibleError(FalconError, ZeroDivisionError):
    """A polynomial has a zero NTT coefficient and cannot be inverted mod q."""


class HashToPointError(FalconError, ValueError):
    """The hash stream yielded fewer than n samples below 5q."""


class SolveDepthError(FalconError, RecursionError):
    """NTRU solving recursed deeper than its cap."""

    def __init__(self, depth: int, n: int):
        super().__init__(f"ntru_solve exceeded max recursion depth {depth} at n={n}")
        self.depth = depth
        self.n = n


class KeyGenerationError(FalconError, RuntimeError):
    """Key generation gave up after its iteration cap."""

    def __init__(self, iterations: int, last_reason: Optional[str] = None):
        message = f"ntru_gen exceeded max iterations ({iterations})"
        if last_reason:
            message += f"; last rejection: {last_reason}"
        super().__init__(message)
        self.iterations = iterations
        self.last_reason = last_reason


class SigningError(FalconError, RuntimeError):
    """No candidate signature fell under the norm bound within the attempt cap."""

    def __init__(self, attempts: int):
        super().__init__(f"no signature under the norm bound after {attempts} attempts")
        self.attempts = attempts
