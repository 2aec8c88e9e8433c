"""
AI Module
=========

Neural computation engine for the maze agent.

Classes:
    ActivationFunction - ReLU, Sigmoid, TanH
    Neuron             - Single unit with weights, bias and cached values
    Layer              - Neurons sharing one activation function
    Network            - Feedforward network with Run/Train and serialization
    Filter             - Fixed square convolution kernel
    ConvPipeline       - Convolution, pooling and a decision network
"""

from .activations import ActivationFunction
from .neuron import Neuron
from .network import Layer, Network
from .filters import Filter
from .conv_pipeline import ConvPipeline

__all__ = ['ActivationFunction', 'Neuron', 'Layer', 'Network', 'Filter', 'ConvPipeline']
