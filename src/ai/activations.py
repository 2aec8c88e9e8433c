"""
Activation Functions
====================

Stateless activation and derivative evaluation for the closed set
{ReLU, Sigmoid, TanH}.

Note:
    derivative() takes the already-activated value y, not the
    pre-activation sum. Serialized models were trained with this
    convention, so it must not change.

    Sigmoid and TanH return their limits (1.0 and -1.0) when exp()
    overflows. Every other input uses the exact formula.
"""

import math
from enum import Enum

from src.errors import ConfigurationError, ParseError


class ActivationFunction(Enum):
    """Activation functions a layer can use. Values are the serialized names."""
    RELU = 'ReLU'
    SIGMOID = 'Sigmoid'
    TANH = 'TanH'

    @classmethod
    def parse(cls, name: str) -> 'ActivationFunction':
        """
        Look up an activation function by its serialized name.

        Raises:
            ParseError: If the name is not one of ReLU, Sigmoid, TanH
        """
        try:
            return _BY_NAME[name]
        except KeyError:
            raise ParseError(f"Unknown activation function '{name}'") from None


_BY_NAME = {fn.value: fn for fn in ActivationFunction}


def activate(fn: ActivationFunction, x: float) -> float:
    """Apply activation function fn to the weighted sum x."""
    if fn is ActivationFunction.RELU:
        return x if x > 0 else 0.0
    if fn is ActivationFunction.SIGMOID:
        try:
            e = math.exp(x)
        except OverflowError:
            return 1.0
        return e / (1 + e)
    if fn is ActivationFunction.TANH:
        try:
            return 2 / (1 + math.exp(-2 * x)) - 1
        except OverflowError:
            return -1.0
    raise ConfigurationError(f"Unsupported activation function: {fn!r}")


def derivative(fn: ActivationFunction, y: float) -> float:
    """Derivative of fn expressed in terms of the activated value y."""
    if fn is ActivationFunction.RELU:
        return y if y > 0 else 0.0
    if fn is ActivationFunction.SIGMOID:
        return y * (1 - y)
    if fn is ActivationFunction.TANH:
        return 1 - y * y
    raise ConfigurationError(f"Unsupported activation function: {fn!r}")
