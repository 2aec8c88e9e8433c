"""
Pytest configuration for the test suite.

This file is automatically loaded by pytest and applies configuration
to all tests in the tests/ directory.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.ai.activations import ActivationFunction
from src.ai.network import Layer, Network
from src.ai.neuron import Neuron
from src.utils.instrumentation import Instrumentation


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture
def instrumentation():
    """Enabled instrumentation private to one test."""
    return Instrumentation(enabled=True)


def make_network(hidden_weights=None, output_weights=(1.0, 1.0), epochs=1, alpha=0.5,
                 activation=ActivationFunction.RELU, instrumentation=None):
    """
    Build a network with known weights and zero biases.

    hidden_weights is a list of weight rows for one hidden layer; without it
    the inputs feed the output neuron directly.
    """
    n_inputs = len(hidden_weights[0]) if hidden_weights else len(output_weights)
    layers = [Layer([Neuron(activation=activation, is_input=True) for _ in range(n_inputs)], activation)]
    if hidden_weights:
        layers.append(Layer([Neuron(activation=activation, weights=list(row)) for row in hidden_weights],
                            activation))
    layers.append(Layer([Neuron(activation=activation, weights=list(output_weights))], activation))
    return Network.from_layers(layers, epochs=epochs, alpha=alpha,
                               instrumentation=instrumentation or Instrumentation())


@pytest.fixture
def build_network():
    """Factory for networks with known weights (see make_network)."""
    return make_network
