"""
Neuron
======

A single unit of the feedforward network. Holds its weights, bias, the
values cached by the last forward pass and the error gradient stored by
the last training step.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from src.ai.activations import ActivationFunction, activate
from src.errors import ConfigurationError
from src.serialization import grammar


NEURON_FIELDS = (
    'AF', 'isInput', 'inputValue', 'bias', 'outputValue',
    'errorGradient', 'weights', 'inputs',
)


@dataclass
class Neuron:
    """
    One neuron.

    Input neurons have no weights and simply output their input_value.
    Other neurons hold one weight per neuron of the previous layer.
    """
    activation: ActivationFunction = ActivationFunction.RELU
    is_input: bool = False
    input_value: float = 0.0
    bias: float = 0.0
    output_value: float = 0.0
    error_gradient: float = 0.0
    weights: List[float] = field(default_factory=list)
    cached_inputs: List[float] = field(default_factory=list)

    def evaluate(self, previous_outputs: Sequence[float]) -> float:
        """
        Compute output_value from the previous layer's outputs.

        Raises:
            ConfigurationError: If the number of inputs doesn't match the weights
        """
        if self.is_input:
            self.output_value = self.input_value
            return self.output_value

        self.cached_inputs = list(previous_outputs)
        if len(self.cached_inputs) != len(self.weights):
            raise ConfigurationError(
                f"Neuron has {len(self.weights)} weights but received "
                f"{len(self.cached_inputs)} inputs"
            )

        total = 0.0
        for value, weight in zip(self.cached_inputs, self.weights):
            total += value * weight
        total -= self.bias

        self.output_value = activate(self.activation, total)
        return self.output_value

    def to_record(self) -> grammar.Record:
        return {
            'AF': self.activation.value,
            'isInput': grammar.format_bool(self.is_input),
            'inputValue': grammar.format_float(self.input_value),
            'bias': grammar.format_float(self.bias),
            'outputValue': grammar.format_float(self.output_value),
            'errorGradient': grammar.format_float(self.error_gradient),
            'weights': grammar.format_float_list(self.weights),
            'inputs': grammar.format_float_list(self.cached_inputs),
        }

    @classmethod
    def from_record(cls, record: grammar.Record) -> 'Neuron':
        grammar.require_fields(record, NEURON_FIELDS, 'neuron')
        return cls(
            activation=ActivationFunction.parse(grammar.atom(record, 'AF')),
            is_input=grammar.parse_bool(grammar.atom(record, 'isInput')),
            input_value=grammar.parse_float(grammar.atom(record, 'inputValue')),
            bias=grammar.parse_float(grammar.atom(record, 'bias')),
            output_value=grammar.parse_float(grammar.atom(record, 'outputValue')),
            error_gradient=grammar.parse_float(grammar.atom(record, 'errorGradient')),
            weights=grammar.parse_float_list(grammar.atom(record, 'weights')),
            cached_inputs=grammar.parse_float_list(grammar.atom(record, 'inputs')),
        )
