"""
Tests for model and sample storage.
"""

import json
import pytest
import numpy as np
import sys
import os
import tempfile

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from src.ai.conv_pipeline import ConvPipeline
from src.ai.network import Network
from src.errors import ParseError
from src.serialization.storage import (
    load_network, load_pipeline, load_samples, save_network, save_pipeline, save_samples
)


def write_json(path, data):
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f)


class TestNetworkStorage:
    """Test saving and loading networks."""

    def test_save_and_load(self):
        net = Network(3, 2, hidden_layers=[4], config=Config(SEED=2))
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'net.txt')
            save_network(path, net)
            restored = load_network(path)
        assert restored.serialize() == net.serialize()

    def test_file_holds_serialized_text(self):
        net = Network(2, 1, config=Config(SEED=2))
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'net.txt')
            save_network(path, net)
            with open(path, encoding='utf-8') as f:
                assert f.read() == net.serialize()

    def test_creates_directories(self):
        net = Network(2, 1, config=Config(SEED=2))
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'a', 'b', 'net.txt')
            save_network(path, net)
            assert os.path.exists(path)

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(FileNotFoundError):
                load_network(os.path.join(tmpdir, 'missing.txt'))

    def test_corrupt_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'net.txt')
            with open(path, 'w', encoding='utf-8') as f:
                f.write("epochs:1;alpha:")
            with pytest.raises(ParseError):
                load_network(path)


class TestPipelineStorage:
    """Test saving and loading pipelines."""

    def test_save_and_load(self):
        cnn = ConvPipeline(config=Config(SEED=2))
        cnn.add_filter([[1, 0, 0], [0, 1, 0], [0, 0, 1]], 'diag')
        cnn.run(np.eye(6))
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'cnn.txt')
            save_pipeline(path, cnn)
            restored = load_pipeline(path)
        assert restored.serialize() == cnn.serialize()
        assert [f.name for f in restored.filters] == ['diag']


class TestSamples:
    """Test sample files."""

    def test_load_samples(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'samples.json')
            write_json(path, [{'inputs': [0, 1], 'outputs': [1]}, {'inputs': [1, 1], 'outputs': [0]}])
            samples = load_samples(path)
        assert samples == [([0.0, 1.0], [1.0]), ([1.0, 1.0], [0.0])]

    def test_save_and_load_samples(self):
        samples = [([0.5, 0.25], [1.0, 0.0])]
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'samples.json')
            save_samples(path, samples)
            assert load_samples(path) == samples

    @pytest.mark.parametrize("content", [
        '{"inputs": [1], "outputs": [1]}',
        '[{"inputs": [1]}]',
        '[{"inputs": ["a"], "outputs": [1]}]',
        '[1, 2]',
        'not json',
    ])
    def test_invalid_sample_files(self, content):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'samples.json')
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
            with pytest.raises(ParseError):
                load_samples(path)
