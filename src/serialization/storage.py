"""
Model Storage
=============

Saves and loads serialized networks and pipelines as text files, and reads
training samples from JSON.

The files hold exactly the text produced by Network.serialize() and
ConvPipeline.serialize(), so they can also be pasted into any other host
that stores models as opaque strings.

Sample file format:
    [
        {"inputs": [0.0, 1.0, 1.0], "outputs": [1.0, 0.0]},
        ...
    ]
"""

import json
import os
from typing import List, Optional, Tuple

from src.ai.conv_pipeline import ConvPipeline
from src.ai.network import Network
from src.errors import ParseError
from src.utils.instrumentation import Instrumentation
from src.utils.logger import log_model_event


Sample = Tuple[List[float], List[float]]


def _write_text(filepath: str, text: str) -> None:
    dir_path = os.path.dirname(filepath)
    if dir_path:
        os.makedirs(dir_path, exist_ok=True)
    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(text)


def _read_text(filepath: str) -> str:
    with open(filepath, 'r', encoding='utf-8') as f:
        return f.read()


def save_network(filepath: str, network: Network) -> None:
    """Write network.serialize() to filepath, creating directories as needed."""
    _write_text(filepath, network.serialize())
    log_model_event('save', filepath, kind='network', layers=network.layer_sizes)


def load_network(filepath: str, instrumentation: Optional[Instrumentation] = None) -> Network:
    """
    Load a network saved with save_network().

    Raises:
        FileNotFoundError: If filepath doesn't exist
        ParseError: If the file content is malformed
    """
    network = Network.deserialize(_read_text(filepath), instrumentation)
    log_model_event('load', filepath, kind='network', layers=network.layer_sizes)
    return network


def save_pipeline(filepath: str, pipeline: ConvPipeline) -> None:
    """
    Write pipeline.serialize() to filepath.

    Raises:
        ArgumentError: If a filter or map cell isn't a single digit
    """
    text = pipeline.serialize()
    _write_text(filepath, text)
    log_model_event('save', filepath, kind='pipeline', filters=len(pipeline.filters))


def load_pipeline(filepath: str, instrumentation: Optional[Instrumentation] = None) -> ConvPipeline:
    pipeline = ConvPipeline.deserialize(_read_text(filepath), instrumentation=instrumentation)
    log_model_event('load', filepath, kind='pipeline', filters=len(pipeline.filters))
    return pipeline


def load_samples(filepath: str) -> List[Sample]:
    """
    Read (inputs, desired_outputs) pairs from a JSON file.

    Raises:
        ParseError: If the file isn't a list of {"inputs", "outputs"} objects
    """
    try:
        data = json.loads(_read_text(filepath))
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid sample file {filepath}: {e}") from e

    if not isinstance(data, list):
        raise ParseError(f"Sample file {filepath} must contain a list")

    samples = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict) or 'inputs' not in entry or 'outputs' not in entry:
            raise ParseError(f"Sample {index} needs 'inputs' and 'outputs'")
        try:
            inputs = [float(v) for v in entry['inputs']]
            outputs = [float(v) for v in entry['outputs']]
        except (TypeError, ValueError) as e:
            raise ParseError(f"Sample {index} has a non-numeric value: {e}") from e
        samples.append((inputs, outputs))
    return samples


def save_samples(filepath: str, samples: List[Sample]) -> None:
    data = [{'inputs': list(inputs), 'outputs': list(outputs)} for inputs, outputs in samples]
    _write_text(filepath, json.dumps(data, indent=2))
