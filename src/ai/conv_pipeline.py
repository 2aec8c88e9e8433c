"""
Convolutional Pipeline
======================

Convolution -> max-pooling -> flatten -> feedforward network.

    sensory map --(filters)--> feature maps --(max-pool)--> pooled maps
                --(flatten)--> Network.run / Network.train --> action vector

Output size of a sliding window (convolution and pooling alike):
    out = 1 + (in - window) / stride        must be a whole number >= 1

Feature maps and pooled maps accumulate across calls to convolution() and
pooling(). They are only emptied by clear(maps=True); run() and train() do
that first unless called with accumulate=True.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from config import Config
from src.ai.activations import ActivationFunction
from src.ai.filters import Filter
from src.ai.network import Network
from src.errors import ArgumentError, ConfigurationError, ParseError
from src.serialization import grammar
from src.utils.instrumentation import Instrumentation, get_instrumentation
from src.utils.logger import get_logger


logger = get_logger(__name__)

PIPELINE_FIELDS = ('filters', 'generatedMaps', 'pooledMaps', 'outputs', 'ANN')


class ConvPipeline:
    """
    Fixed-filter convolutional front-end with an internal decision network.

    The network is built lazily, sized to the first flattened input it sees,
    and keeps that size until clear(network=True).

    Example:
        >>> cnn = ConvPipeline()
        >>> cnn.add_filter([[0, 0, 1], [0, 1, 0], [1, 0, 0]])
        >>> decision = cnn.run(sensory_map)     # 10x10 map -> int
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        instrumentation: Optional[Instrumentation] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Initialize an empty pipeline.

        Args:
            config: Configuration object (strides, pooling kernel, outputs)
            instrumentation: Trace collector (default: the process-wide one)
            rng: Random generator for the lazily built network's weights
        """
        self.config = config or Config()
        self.instrumentation = instrumentation or get_instrumentation()
        self._rng = rng if rng is not None else np.random.default_rng(self.config.SEED)

        self._filters: List[Filter] = []
        self.generated_maps: List[np.ndarray] = []
        self.pooled_maps: List[np.ndarray] = []
        self.network: Optional[Network] = None
        self.last_outputs: List[float] = []

    # =========================================================================
    # FILTERS
    # =========================================================================

    @property
    def filters(self) -> Tuple[Filter, ...]:
        """Registered filters in insertion order."""
        return tuple(self._filters)

    def get_filters(self) -> List[Filter]:
        return list(self._filters)

    def add_filter(self, matrix, name: str = "") -> Filter:
        """
        Register a square filter.

        A filter whose name is already registered is ignored and the existing
        one is returned.

        Raises:
            ArgumentError: If the matrix isn't square or the name can't be serialized
        """
        candidate = matrix if isinstance(matrix, Filter) else Filter(matrix, name)
        for existing in self._filters:
            if existing.name == candidate.name:
                logger.debug(f"Filter '{candidate.name}' already registered, keeping the existing one")
                return existing
        self._filters.append(candidate)
        self.instrumentation.record(f"Added filter '{candidate.name}' ({candidate.dim}x{candidate.dim})")
        return candidate

    # =========================================================================
    # MAP OPERATIONS
    # =========================================================================

    @staticmethod
    def padding(sensory_map) -> np.ndarray:
        """Surround the map with one ring of zeros."""
        grid = _as_map(sensory_map)
        return np.pad(grid, 1, mode='constant', constant_values=0.0)

    def convolution(self, sensory_map, stride: int = 1) -> List[np.ndarray]:
        """
        Correlate the map with every filter, in registration order.

        Each output cell is the sum of the filter weights times the window
        under them (no bias, no activation). One map per filter is appended
        to generated_maps.

        Returns:
            All generated maps so far

        Raises:
            ConfigurationError: If any filter/stride gives a non-integer output size.
                generated_maps is left untouched in that case.
        """
        grid = _as_map(sensory_map)
        shapes = []
        for f in self._filters:
            what = f"filter '{f.name}' ({f.dim}x{f.dim}) with stride {stride}"
            shapes.append((
                _output_dim(grid.shape[0], f.dim, stride, what),
                _output_dim(grid.shape[1], f.dim, stride, what),
            ))

        with self.instrumentation.timed(f"ConvPipeline.convolution {grid.shape} x {len(self._filters)} filters"):
            new_maps = []
            for f, (rows, cols) in zip(self._filters, shapes):
                out = np.empty((rows, cols), dtype=np.float64)
                for i in range(rows):
                    for j in range(cols):
                        window = grid[i * stride:i * stride + f.dim, j * stride:j * stride + f.dim]
                        out[i, j] = np.sum(window * f.weights)
                new_maps.append(out)

        self.generated_maps.extend(new_maps)
        return list(self.generated_maps)

    def pooling(self, kernel: int = 2, stride: int = 2) -> List[np.ndarray]:
        """
        Max-pool every map in generated_maps into pooled_maps.

        Raises:
            ConfigurationError: If kernel/stride gives a non-integer output size.
                pooled_maps is left untouched in that case.
        """
        shapes = []
        for index, feature_map in enumerate(self.generated_maps):
            what = f"pooling kernel {kernel} with stride {stride} on map {index}"
            shapes.append((
                _output_dim(feature_map.shape[0], kernel, stride, what),
                _output_dim(feature_map.shape[1], kernel, stride, what),
            ))

        with self.instrumentation.timed(f"ConvPipeline.pooling {len(self.generated_maps)} maps"):
            new_maps = []
            for feature_map, (rows, cols) in zip(self.generated_maps, shapes):
                out = np.empty((rows, cols), dtype=np.float64)
                for i in range(rows):
                    for j in range(cols):
                        out[i, j] = feature_map[i * stride:i * stride + kernel,
                                                j * stride:j * stride + kernel].max()
                new_maps.append(out)

        self.pooled_maps.extend(new_maps)
        return list(self.pooled_maps)

    @staticmethod
    def flatten(maps: Sequence) -> List[float]:
        """Linearize maps: map by map, then first axis, then second axis."""
        values: List[float] = []
        for m in maps:
            values.extend(_as_map(m).ravel(order='C').tolist())
        return values

    def fully_connected(
        self,
        n_outputs: int,
        maps: Sequence,
        network: Optional[Network] = None
    ) -> List[float]:
        """
        Flatten maps and run them through the decision network.

        Args:
            n_outputs: Output size if a network has to be built
            maps: Maps to flatten (usually pooled_maps)
            network: Network to adopt instead of the current one

        Returns:
            Network outputs (also stored in last_outputs)
        """
        flat = self.flatten(maps)
        if network is not None:
            self.network = network
        elif self.network is None:
            self.network = self._build_network(len(flat), n_outputs)

        self.last_outputs = self.network.run(flat)
        return list(self.last_outputs)

    def _build_network(self, n_inputs: int, n_outputs: int) -> Network:
        logger.debug(f"Building decision network: {n_inputs} inputs -> {n_outputs} outputs")
        return Network(
            n_inputs,
            n_outputs,
            hidden_layers=[],
            hidden_activation=ActivationFunction.RELU,
            output_activation=ActivationFunction.RELU,
            config=self.config,
            instrumentation=self.instrumentation,
            rng=self._rng,
        )

    # =========================================================================
    # RUN / TRAIN
    # =========================================================================

    def _extract_features(self, sensory_map, accumulate: bool) -> None:
        if not self._filters:
            raise ConfigurationError("No filters registered")
        if not accumulate:
            self.clear(maps=True)
        self.convolution(sensory_map, stride=self.config.CONV_STRIDE)
        self.pooling(kernel=self.config.POOL_KERNEL, stride=self.config.POOL_STRIDE)

    def run(self, sensory_map, accumulate: bool = False) -> int:
        """
        Convolve, pool and run the decision network on one map.

        Returns:
            The largest output value truncated to an int. This is the value
            itself, not the index of the winning output; callers that need
            an action index take argmax(last_outputs).
        """
        with self.instrumentation.timed("ConvPipeline.run"):
            self._extract_features(sensory_map, accumulate)
            outputs = self.fully_connected(self.config.DECISION_OUTPUTS, self.pooled_maps)
        return int(max(outputs))

    def train(self, sensory_map, desired_outputs: Sequence[float], accumulate: bool = False) -> List[float]:
        """
        Convolve, pool and train the decision network on one sample.

        Returns:
            Outputs of the network's last training epoch
        """
        with self.instrumentation.timed("ConvPipeline.train"):
            self._extract_features(sensory_map, accumulate)
            flat = self.flatten(self.pooled_maps)
            if self.network is None:
                self.network = self._build_network(len(flat), len(desired_outputs))
            self.last_outputs = self.network.train(flat, desired_outputs)
        return list(self.last_outputs)

    def clear(
        self,
        outputs: bool = False,
        maps: bool = False,
        filters: bool = False,
        network: bool = False
    ) -> None:
        """Reset the selected parts of the pipeline's state."""
        if outputs:
            self.last_outputs = []
        if maps:
            self.generated_maps = []
            self.pooled_maps = []
        if filters:
            self._filters = []
        if network:
            self.network = None

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_record(self) -> grammar.Record:
        filter_items = []
        for f in self._filters:
            filter_items.extend([f.name, f.serialized(), str(f.dim)])
        return {
            'filters': grammar.join_items(filter_items),
            'generatedMaps': _maps_atom(self.generated_maps),
            'pooledMaps': _maps_atom(self.pooled_maps),
            'outputs': grammar.format_float_list(self.last_outputs),
            'ANN': [self.network.to_record()] if self.network is not None else [],
        }

    def serialize(self) -> str:
        """
        Write filters, maps, outputs and the network as text.

        Raises:
            ArgumentError: If a filter or map cell isn't a digit 0-9
        """
        with self.instrumentation.timed("ConvPipeline.serialize"):
            return grammar.dumps(self.to_record())

    @classmethod
    def from_record(
        cls,
        record: grammar.Record,
        config: Optional[Config] = None,
        instrumentation: Optional[Instrumentation] = None
    ) -> 'ConvPipeline':
        grammar.require_fields(record, PIPELINE_FIELDS, 'pipeline')
        pipeline = cls(config=config, instrumentation=instrumentation)

        for name, digits, dim in _triples(grammar.atom(record, 'filters'), 'filters'):
            if not name:
                raise ParseError("Filter without a name")
            if any(f.name == name for f in pipeline._filters):
                raise ParseError(f"Duplicate filter name '{name}'")
            pipeline._filters.append(Filter.from_serialized(name, digits, grammar.parse_int(dim)))

        pipeline.generated_maps = _parse_maps(grammar.atom(record, 'generatedMaps'), 'generatedMaps')
        pipeline.pooled_maps = _parse_maps(grammar.atom(record, 'pooledMaps'), 'pooledMaps')
        pipeline.last_outputs = grammar.parse_float_list(grammar.atom(record, 'outputs'))

        networks = grammar.children(record, 'ANN')
        if len(networks) > 1:
            raise ParseError(f"Expected at most one ANN, found {len(networks)}")
        if networks:
            pipeline.network = Network.from_record(networks[0], pipeline.instrumentation)
        return pipeline

    @classmethod
    def deserialize(
        cls,
        text: str,
        config: Optional[Config] = None,
        instrumentation: Optional[Instrumentation] = None
    ) -> 'ConvPipeline':
        """
        Rebuild a pipeline from serialize() output.

        Raises:
            ParseError: If the text is malformed
        """
        return cls.from_record(grammar.loads(text), config, instrumentation)


def _as_map(sensory_map) -> np.ndarray:
    grid = np.asarray(sensory_map, dtype=np.float64)
    if grid.ndim != 2:
        raise ArgumentError("Expected a 2D map", expected=2, actual=grid.ndim)
    return grid


def _output_dim(in_dim: int, window: int, stride: int, what: str) -> int:
    """out = 1 + (in - window) / stride, which must be a whole number >= 1."""
    if stride < 1:
        raise ConfigurationError(f"Stride must be >= 1 for {what}")
    span = in_dim - window
    if span < 0 or span % stride != 0:
        raise ConfigurationError(
            f"Output size 1 + ({in_dim} - {window}) / {stride} isn't an integer for {what}; "
            f"adjust the stride or the filter size"
        )
    return 1 + span // stride


def _maps_atom(maps: Sequence[np.ndarray]) -> str:
    items = []
    for m in maps:
        items.extend([str(m.shape[0]), str(m.shape[1]), grammar.format_digits(m)])
    return grammar.join_items(items)


def _triples(token: str, field: str) -> List[Tuple[str, str, str]]:
    items = grammar.split_items(token)
    if len(items) % 3 != 0:
        raise ParseError(f"Field '{field}' must hold groups of 3 values, found {len(items)} values")
    return [tuple(items[i:i + 3]) for i in range(0, len(items), 3)]


def _parse_maps(token: str, field: str) -> List[np.ndarray]:
    maps = []
    for rows, cols, digits in _triples(token, field):
        maps.append(grammar.parse_digits(digits, grammar.parse_int(rows), grammar.parse_int(cols)))
    return maps
