"""
Tests for the Trainer module.

These tests verify:
    - TrainingMetrics tracking
    - Pass statistics
    - Early stopping
    - Checkpoints
"""

import pytest
import sys
import os
import tempfile

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from src.ai.activations import ActivationFunction
from src.ai.network import Network
from src.ai.trainer import PassStats, Trainer, TrainingMetrics
from src.serialization.storage import load_network
from src.utils.instrumentation import Instrumentation


SAMPLES = [
    ([0.0, 1.0, 1.0], [1.0, 0.0]),
    ([1.0, 0.0, 1.0], [0.0, 1.0]),
    ([1.0, 1.0, 0.0], [1.0, 0.0]),
]


@pytest.fixture
def config():
    """Create a test configuration."""
    cfg = Config(SEED=8, EPOCHS=2)
    cfg.TRAIN_PASSES = 3
    return cfg


def make_network(config):
    return Network(3, 2, hidden_layers=[4], config=config,
                   output_activation=ActivationFunction.SIGMOID,
                   instrumentation=Instrumentation())


@pytest.fixture
def trainer(config):
    """Create a trainer instance."""
    return Trainer(make_network(config), SAMPLES, config)


class TestTrainingMetrics:
    """Test TrainingMetrics class."""

    def test_initialization(self):
        metrics = TrainingMetrics()
        assert metrics.passes == []
        assert metrics.get_best_accuracy() == 0.0

    def test_history(self):
        metrics = TrainingMetrics()
        metrics.add(PassStats(1, 3, 0.5, 0.25, 0.1))
        metrics.add(PassStats(2, 3, 0.25, 0.75, 0.1))
        assert metrics.mse_history == [0.5, 0.25]
        assert metrics.get_best_accuracy() == 0.75


class TestTrainer:
    """Test the training loop."""

    def test_runs_configured_passes(self, trainer):
        metrics = trainer.train()
        assert len(metrics.passes) == 3
        assert [p.training_pass for p in metrics.passes] == [1, 2, 3]

    def test_explicit_pass_count(self, trainer):
        assert len(trainer.train(num_passes=2).passes) == 2

    def test_pass_stats(self, trainer):
        stats = trainer.train(num_passes=1).passes[0]
        assert stats.samples == 3
        assert stats.mse >= 0.0
        assert 0.0 <= stats.accuracy <= 1.0

    def test_matches_network_train(self, config):
        """A pass is Network.train on each sample in order."""
        trained = make_network(config)
        Trainer(trained, SAMPLES, config).train(num_passes=2)

        manual = make_network(config)
        for _ in range(2):
            for inputs, desired in SAMPLES:
                manual.train(inputs, desired)
        # the final evaluation runs every sample once
        for inputs, _ in SAMPLES:
            manual.run(inputs)
        assert trained.serialize() == manual.serialize()

    def test_evaluates_at_end(self, trainer):
        trainer.train(num_passes=2)
        assert len(trainer.evaluator.eval_history) == 1
        assert trainer.evaluator.eval_history[0].training_pass == 2

    def test_should_stop(self, trainer):
        before = [list(n.weights) + [n.bias] for layer in trainer.network.layers for n in layer]
        metrics = trainer.train(num_passes=5, should_stop=lambda: True)
        assert len(metrics.passes) == 1
        assert metrics.passes[0].samples == 0
        after = [list(n.weights) + [n.bias] for layer in trainer.network.layers for n in layer]
        assert after == before


class TestCheckpoints:
    """Test checkpoint saving."""

    def test_save_every(self, config):
        with tempfile.TemporaryDirectory() as tmpdir:
            config.MODEL_DIR = tmpdir
            config.SAVE_EVERY = 2
            trainer = Trainer(make_network(config), SAMPLES, config, model_name='maze')
            trainer.train(num_passes=4)
            assert sorted(os.listdir(tmpdir)) == ['maze_pass2.txt', 'maze_pass4.txt']

    def test_save_checkpoint_loads_back(self, trainer):
        with tempfile.TemporaryDirectory() as tmpdir:
            trainer.config.MODEL_DIR = tmpdir
            trainer.train(num_passes=1)
            path = trainer.save_checkpoint('final')
            assert path == os.path.join(tmpdir, 'network_final.txt')
            assert load_network(path).serialize() == trainer.network.serialize()
