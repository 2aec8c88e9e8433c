"""
Engine Errors
=============

Every failure raised by the network, the convolution pipeline and the
serialization grammar derives from EngineError, so callers outside the
engine (agent layer, CLI) can catch one type.

Taxonomy:
    ConfigurationError - Broken topology or dimension arithmetic
    ArgumentError      - Caller passed a vector/matrix of the wrong shape
    ParseError         - Malformed serialized text
"""


class EngineError(Exception):
    """Base class for all engine errors."""
    pass


class ConfigurationError(EngineError):
    """
    Raised when the engine is configured in a way that cannot compute.

    Examples: a convolution whose output size is not an integer, or a
    neuron whose weight count does not match its inputs.
    """
    pass


class ArgumentError(EngineError, ValueError):
    """Raised when an input vector or matrix has the wrong size or shape."""

    def __init__(self, message: str, expected=None, actual=None):
        self.expected = expected
        self.actual = actual
        if expected is not None and actual is not None:
            message = f"{message} (expected {expected}, got {actual})"
        super().__init__(message)


class ParseError(EngineError, ValueError):
    """
    Raised when serialized text cannot be read back.

    Attributes:
        position: Character offset where parsing failed (if known)
    """

    def __init__(self, message: str, position: int = None):
        self.position = position
        if position is not None:
            message = f"{message} at position {position}"
        super().__init__(message)
