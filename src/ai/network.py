"""
Feedforward Network
===================

A hand-written feedforward network: an ordered stack of layers of
neurons, trained one sample at a time.

Forward pass (per non-input neuron):
    sum    = Σ inputs[i] * weights[i] - bias
    output = activation(sum)

Training repeats `epochs` times per sample:
    1. Forward pass
    2. Output layer: error = desired - output
                     gradient = f'(output * error)
                     weight += alpha * input_value * error
                     bias = -alpha * gradient
    3. Hidden layers (output side first):
                     gradient = f'(index of output layer) * Σ next gradients
                     weight += alpha * input_value * error
                     bias = -alpha * previous gradient

This is not textbook backpropagation. Saved models were trained with
exactly this rule, so it is kept as-is to let them continue training.

Key Features:
    - Explicit dimensions or verbatim reconstruction from text
    - Lossless text serialization (see src/serialization/grammar.py)
    - Optional cooperative stop between epochs
    - Instrumentation hooks that never affect results
"""

from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from config import Config
from src.ai.activations import ActivationFunction, derivative
from src.ai.neuron import Neuron
from src.errors import ArgumentError, ConfigurationError, ParseError
from src.serialization import grammar
from src.utils.instrumentation import Instrumentation, get_instrumentation
from src.utils.logger import get_logger


logger = get_logger(__name__)

NETWORK_FIELDS = ('epochs', 'alpha', 'layers')
LAYER_FIELDS = ('neurons',)

Sample = Tuple[Sequence[float], Sequence[float]]


class Layer:
    """
    An ordered collection of neurons sharing one activation function.

    The input layer's neurons have no weights; every other layer holds one
    weight per neuron of the layer before it.
    """

    def __init__(self, neurons: List[Neuron], activation: ActivationFunction):
        self.neurons = neurons
        self.activation = activation

    @classmethod
    def create(
        cls,
        n_neurons: int,
        n_inputs: int,
        activation: ActivationFunction,
        rng: np.random.Generator,
        init_range: float = 1.0,
        is_input: bool = False
    ) -> 'Layer':
        """Build a layer of freshly initialized neurons."""
        neurons = []
        for _ in range(n_neurons):
            if is_input:
                neurons.append(Neuron(activation=activation, is_input=True))
            else:
                neurons.append(Neuron(
                    activation=activation,
                    bias=float(rng.uniform(-init_range, init_range)),
                    weights=rng.uniform(-init_range, init_range, size=n_inputs).tolist(),
                ))
        return cls(neurons, activation)

    @property
    def is_input(self) -> bool:
        return all(n.is_input for n in self.neurons)

    @property
    def outputs(self) -> List[float]:
        return [n.output_value for n in self.neurons]

    def __len__(self) -> int:
        return len(self.neurons)

    def __iter__(self) -> Iterator[Neuron]:
        return iter(self.neurons)

    def __getitem__(self, index: int) -> Neuron:
        return self.neurons[index]

    def to_record(self) -> grammar.Record:
        return {'neurons': [n.to_record() for n in self.neurons]}

    @classmethod
    def from_record(cls, record: grammar.Record) -> 'Layer':
        grammar.require_fields(record, LAYER_FIELDS, 'layer')
        neurons = [Neuron.from_record(r) for r in grammar.children(record, 'neurons')]
        if not neurons:
            raise ParseError("Layer has no neurons")
        activation = neurons[0].activation
        if any(n.activation is not activation for n in neurons):
            raise ParseError("Neurons of one layer use different activation functions")
        return cls(neurons, activation)


class Network:
    """
    Feedforward network with Run/Train and text serialization.

    Example:
        >>> net = Network(n_inputs=2, n_outputs=1, hidden_layers=[3], alpha=0.1)
        >>> net.run([0.5, 1.0])          # -> [output]
        >>> net.train([0.5, 1.0], [1.0])
        >>> restored = Network.deserialize(net.serialize())
    """

    def __init__(
        self,
        n_inputs: int,
        n_outputs: int,
        hidden_layers: Optional[List[int]] = None,
        alpha: Optional[float] = None,
        epochs: Optional[int] = None,
        hidden_activation: Optional[ActivationFunction] = None,
        output_activation: Optional[ActivationFunction] = None,
        config: Optional[Config] = None,
        instrumentation: Optional[Instrumentation] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Initialize the network with random weights and biases.

        Args:
            n_inputs: Size of the input layer
            n_outputs: Size of the output layer
            hidden_layers: Neuron count per hidden layer (default: config's)
            alpha: Learning rate (default: config's ALPHA)
            epochs: Training iterations per sample (default: config's EPOCHS)
            hidden_activation: Activation of the hidden layers
            output_activation: Activation of the output layer
            config: Configuration object
            instrumentation: Trace collector (default: the process-wide one)
            rng: Random generator for initial weights (default: seeded from config)
        """
        self.config = config or Config()

        if n_inputs < 1 or n_outputs < 1:
            raise ArgumentError("Input and output layers need at least one neuron",
                                expected=">= 1", actual=(n_inputs, n_outputs))
        hidden_sizes = list(self.config.HIDDEN_LAYERS if hidden_layers is None else hidden_layers)
        if any(size < 1 for size in hidden_sizes):
            raise ArgumentError("Hidden layers need at least one neuron", actual=hidden_sizes,
                                expected=">= 1 each")

        hidden_activation = hidden_activation or ActivationFunction.parse(self.config.HIDDEN_ACTIVATION)
        output_activation = output_activation or ActivationFunction.parse(self.config.OUTPUT_ACTIVATION)
        if rng is None:
            rng = np.random.default_rng(self.config.SEED)
        init_range = self.config.WEIGHT_INIT_RANGE

        # Input layer neurons carry the first computing layer's activation; it is never applied
        first_activation = hidden_activation if hidden_sizes else output_activation
        layers = [Layer.create(n_inputs, 0, first_activation, rng, init_range, is_input=True)]
        previous = n_inputs
        for size in hidden_sizes:
            layers.append(Layer.create(size, previous, hidden_activation, rng, init_range))
            previous = size
        layers.append(Layer.create(n_outputs, previous, output_activation, rng, init_range))

        self._assemble(
            layers,
            epochs=self.config.EPOCHS if epochs is None else epochs,
            alpha=self.config.ALPHA if alpha is None else alpha,
            instrumentation=instrumentation,
        )
        logger.debug(f"Built network {self.layer_sizes} (alpha={self.alpha}, epochs={self.epochs})")

    @classmethod
    def from_layers(
        cls,
        layers: List[Layer],
        epochs: int,
        alpha: float,
        instrumentation: Optional[Instrumentation] = None,
        config: Optional[Config] = None
    ) -> 'Network':
        """
        Assemble a network from existing layers, keeping their numeric state.

        Raises:
            ConfigurationError: If the layers don't form a valid topology
        """
        net = cls.__new__(cls)
        net.config = config or Config()
        net._assemble(layers, epochs, alpha, instrumentation)
        return net

    def _assemble(
        self,
        layers: List[Layer],
        epochs: int,
        alpha: float,
        instrumentation: Optional[Instrumentation]
    ) -> None:
        problem = _topology_problem(layers)
        if problem:
            raise ConfigurationError(problem)
        if epochs < 0:
            raise ConfigurationError(f"epochs must be >= 0, got {epochs}")
        self.layers = layers
        self.epochs = int(epochs)
        self.alpha = float(alpha)
        self.instrumentation = instrumentation or get_instrumentation()

    # =========================================================================
    # TOPOLOGY
    # =========================================================================

    @property
    def input_size(self) -> int:
        return len(self.layers[0])

    @property
    def output_size(self) -> int:
        return len(self.layers[-1])

    @property
    def output_layer_index(self) -> int:
        return len(self.layers) - 1

    @property
    def layer_sizes(self) -> List[int]:
        return [len(layer) for layer in self.layers]

    @property
    def neuron_count(self) -> int:
        """Total number of neurons, input layer included."""
        return sum(self.layer_sizes)

    def get_layer_info(self) -> List[Dict]:
        """
        Get information about each layer for display.

        Returns:
            List of dicts with layer metadata
        """
        info = []
        for i, layer in enumerate(self.layers):
            if i == 0:
                name, kind = 'Input', 'input'
            elif i == self.output_layer_index:
                name, kind = 'Output', 'output'
            else:
                name, kind = f'Hidden {i}', 'hidden'
            info.append({
                'name': name,
                'neurons': len(layer),
                'type': kind,
                'activation': None if kind == 'input' else layer.activation.value,
            })
        return info

    # =========================================================================
    # RUN / TRAIN
    # =========================================================================

    def run(self, inputs: Sequence[float]) -> List[float]:
        """
        Forward pass.

        Args:
            inputs: One value per input neuron

        Returns:
            Output layer values, in order

        Raises:
            ArgumentError: If len(inputs) differs from the input layer size
        """
        if len(inputs) != self.input_size:
            raise ArgumentError("Input vector size doesn't match the input layer",
                                expected=self.input_size, actual=len(inputs))

        with self.instrumentation.timed(f"Network.run {self.layer_sizes}"):
            for neuron, value in zip(self.layers[0], inputs):
                neuron.input_value = float(value)
                neuron.output_value = neuron.input_value

            previous = self.layers[0].outputs
            for layer in self.layers[1:]:
                previous = [neuron.evaluate(previous) for neuron in layer]

        return list(previous)

    def train(
        self,
        inputs: Sequence[float],
        desired_outputs: Sequence[float],
        should_stop: Optional[Callable[[], bool]] = None
    ) -> List[float]:
        """
        Train on a single sample for `epochs` iterations.

        Args:
            inputs: One value per input neuron
            desired_outputs: One target value per output neuron
            should_stop: Checked before each epoch; returning True ends training early

        Returns:
            Outputs of the last completed epoch's forward pass

        Raises:
            ArgumentError: If either vector has the wrong size
        """
        if len(desired_outputs) != self.output_size:
            raise ArgumentError("Desired output size doesn't match the output layer",
                                expected=self.output_size, actual=len(desired_outputs))
        if len(inputs) != self.input_size:
            raise ArgumentError("Input vector size doesn't match the input layer",
                                expected=self.input_size, actual=len(inputs))

        desired = [float(d) for d in desired_outputs]
        outputs: List[float] = []
        with self.instrumentation.timed(f"Network.train {self.epochs} epochs"):
            for epoch in range(self.epochs):
                if should_stop is not None and should_stop():
                    self.instrumentation.record(f"Network.train stopped after {epoch} epochs")
                    break
                outputs = self.run(inputs)
                self._update_weights(outputs, desired)
        return outputs

    def train_batch(
        self,
        samples: Iterable[Sample],
        should_stop: Optional[Callable[[], bool]] = None
    ) -> List[float]:
        """
        Train on each (inputs, desired_outputs) sample in turn.

        Each sample runs its full epoch loop before the next one starts.

        Returns:
            Outputs from the last trained sample
        """
        outputs: List[float] = []
        count = 0
        for inputs, desired_outputs in samples:
            if should_stop is not None and should_stop():
                break
            outputs = self.train(inputs, desired_outputs, should_stop)
            count += 1
        self.instrumentation.record(f"Network.train_batch trained {count} samples")
        return outputs

    def _update_weights(self, outputs: List[float], desired: List[float]) -> None:
        """One backward step using the network's literal update rule."""
        alpha = self.alpha
        output_index = self.output_layer_index

        error = 0.0
        for i, neuron in enumerate(self.layers[output_index]):
            error = desired[i] - outputs[i]
            gradient = derivative(neuron.activation, outputs[i] * error)
            neuron.weights = [w + alpha * neuron.input_value * error for w in neuron.weights]
            neuron.bias = alpha * -1 * gradient
            neuron.error_gradient = gradient

        # Hidden layers reuse the last output error and read f' at the output layer index
        for index in range(output_index - 1, 0, -1):
            gradient_sum = 0.0
            for next_neuron in self.layers[index + 1]:
                gradient_sum += next_neuron.error_gradient

            for neuron in self.layers[index]:
                gradient = derivative(neuron.activation, float(output_index)) * gradient_sum
                neuron.weights = [w + alpha * neuron.input_value * error for w in neuron.weights]
                neuron.bias = alpha * -1 * neuron.error_gradient
                neuron.error_gradient = gradient

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_record(self) -> grammar.Record:
        return {
            'epochs': str(self.epochs),
            'alpha': grammar.format_float(self.alpha),
            'layers': [layer.to_record() for layer in self.layers],
        }

    def serialize(self) -> str:
        """Write the full numeric state of the network as text."""
        with self.instrumentation.timed("Network.serialize"):
            return grammar.dumps(self.to_record())

    @classmethod
    def from_record(
        cls,
        record: grammar.Record,
        instrumentation: Optional[Instrumentation] = None
    ) -> 'Network':
        grammar.require_fields(record, NETWORK_FIELDS, 'network')
        epochs = grammar.parse_int(grammar.atom(record, 'epochs'))
        alpha = grammar.parse_float(grammar.atom(record, 'alpha'))
        layers = [Layer.from_record(r) for r in grammar.children(record, 'layers')]
        problem = _topology_problem(layers)
        if problem:
            raise ParseError(problem)
        if epochs < 0:
            raise ParseError(f"epochs must be >= 0, got {epochs}")
        return cls.from_layers(layers, epochs, alpha, instrumentation)

    @classmethod
    def deserialize(
        cls,
        text: str,
        instrumentation: Optional[Instrumentation] = None
    ) -> 'Network':
        """
        Rebuild a network, including weights, biases and cached values.

        Raises:
            ParseError: If the text is malformed or describes an invalid topology
        """
        return cls.from_record(grammar.loads(text), instrumentation)


def _topology_problem(layers: List[Layer]) -> Optional[str]:
    """Describe what's wrong with a layer stack, or None if it's valid."""
    if len(layers) < 2:
        return f"A network needs at least 2 layers, got {len(layers)}"
    if not layers[0].is_input or any(n.weights for n in layers[0]):
        return "The first layer must contain only input neurons without weights"
    for index in range(1, len(layers)):
        expected = len(layers[index - 1])
        for neuron in layers[index]:
            if neuron.is_input:
                return f"Layer {index} contains an input neuron"
            if len(neuron.weights) != expected:
                return (f"Layer {index} neuron has {len(neuron.weights)} weights, "
                        f"previous layer has {expected} neurons")
    return None
