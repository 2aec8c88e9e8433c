"""
Training Loop
=============

Orchestrates offline training of a network on recorded samples:
    1. Run passes over the sample set (Network.train per sample)
    2. Track error metrics per pass
    3. Evaluate and log every LOG_EVERY passes
    4. Save checkpoints

Samples are trained sequentially; each one runs its full epoch loop before
the next starts, exactly like Network.train_batch.
"""

import os
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from config import Config
from src.ai.evaluator import Evaluator, decision
from src.ai.network import Network
from src.serialization.storage import save_network
from src.utils.logger import get_logger, log_training_metrics


logger = get_logger(__name__)

Sample = Tuple[Sequence[float], Sequence[float]]


@dataclass
class PassStats:
    """Statistics for a single pass over the samples."""
    training_pass: int
    samples: int
    mse: float
    accuracy: float
    duration: float


class TrainingMetrics:
    """Per-pass metrics, oldest first."""

    def __init__(self):
        self.passes: List[PassStats] = []

    def add(self, stats: PassStats) -> None:
        self.passes.append(stats)

    @property
    def mse_history(self) -> List[float]:
        return [p.mse for p in self.passes]

    def get_best_accuracy(self) -> float:
        return max((p.accuracy for p in self.passes), default=0.0)


class Trainer:
    """
    Manages repeated training passes for a network.

    Example:
        >>> trainer = Trainer(network, samples)
        >>> metrics = trainer.train(num_passes=20)
    """

    def __init__(
        self,
        network: Network,
        samples: Sequence[Sample],
        config: Optional[Config] = None,
        model_name: str = 'network'
    ):
        """
        Initialize the trainer.

        Args:
            network: Network to train in place
            samples: (inputs, desired_outputs) pairs
            config: Configuration object
            model_name: Prefix for checkpoint files in MODEL_DIR
        """
        self.network = network
        self.samples = list(samples)
        self.config = config or Config()
        self.model_name = model_name

        self.metrics = TrainingMetrics()
        self.evaluator = Evaluator(network, self.config)
        self.current_pass = 0

    def run_pass(self, should_stop: Optional[Callable[[], bool]] = None) -> PassStats:
        """
        Train once on every sample.

        The reported error and accuracy use the outputs each sample produced
        during its own final epoch, before that epoch's weight update.
        """
        start_time = time.time()
        squared_errors = []
        correct = 0
        trained = 0

        for inputs, desired in self.samples:
            if should_stop is not None and should_stop():
                break
            outputs = self.network.train(inputs, desired, should_stop)
            if not outputs:
                break
            diff = np.asarray(desired, dtype=np.float64) - np.asarray(outputs, dtype=np.float64)
            squared_errors.append(diff ** 2)
            if decision(outputs) == decision(desired):
                correct += 1
            trained += 1

        mse = float(np.mean(np.concatenate(squared_errors))) if squared_errors else 0.0
        return PassStats(
            training_pass=self.current_pass,
            samples=trained,
            mse=mse,
            accuracy=correct / trained if trained else 0.0,
            duration=time.time() - start_time,
        )

    def train(
        self,
        num_passes: Optional[int] = None,
        should_stop: Optional[Callable[[], bool]] = None
    ) -> TrainingMetrics:
        """
        Run the training loop.

        Args:
            num_passes: Passes over the samples (default from config)
            should_stop: Checked between samples and epochs for early exit

        Returns:
            Training metrics
        """
        num_passes = num_passes or self.config.TRAIN_PASSES
        logger.info(
            f"Training {self.network.layer_sizes} on {len(self.samples)} samples "
            f"for {num_passes} passes (alpha={self.network.alpha}, epochs={self.network.epochs})"
        )

        for training_pass in range(1, num_passes + 1):
            self.current_pass = training_pass
            stats = self.run_pass(should_stop)
            self.metrics.add(stats)

            if training_pass % self.config.LOG_EVERY == 0:
                log_training_metrics(training_pass, stats.samples, stats.mse,
                                     accuracy=stats.accuracy, duration=stats.duration)

            if self.config.SAVE_EVERY and training_pass % self.config.SAVE_EVERY == 0:
                self.save_checkpoint(f'pass{training_pass}')

            if should_stop is not None and should_stop():
                logger.warning(f"Training stopped early after pass {training_pass}")
                break

        results = self.evaluator.evaluate(self.samples, training_pass=self.current_pass)
        self.evaluator.log_results(results)
        return self.metrics

    def save_checkpoint(self, tag: str) -> str:
        """Save the network as MODEL_DIR/<model_name>_<tag>.txt and return the path."""
        path = os.path.join(self.config.MODEL_DIR, f'{self.model_name}_{tag}.txt')
        save_network(path, self.network)
        return path
