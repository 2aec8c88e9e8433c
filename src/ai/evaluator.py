"""
Deterministic Model Evaluator
=============================

Runs a network over labelled samples without training it, to measure how
well its decisions match the recorded ones.

A decision is the index of the largest output (argmax). The network's
outputs are aligned with the agent's actions, so matching argmaxes means
the network would have picked the same action.

Usage:
    evaluator = Evaluator(network, config)
    results = evaluator.evaluate(samples)

    # During training:
    if training_pass % LOG_EVERY == 0:
        evaluator.log_results(evaluator.evaluate(samples))
"""

import json
import os
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from config import Config
from src.ai.network import Network
from src.utils.logger import get_logger


logger = get_logger(__name__)

Sample = Tuple[Sequence[float], Sequence[float]]


@dataclass
class EvalResults:
    """Results from one evaluation run."""
    timestamp: str
    training_pass: int
    num_samples: int

    # Error metrics
    mse: float
    max_abs_error: float

    # Decision metrics
    correct: int
    accuracy: float
    decision_counts: Dict[int, int]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def decision(outputs: Sequence[float]) -> int:
    """Index of the largest output (first one wins ties)."""
    return int(np.argmax(outputs))


class Evaluator:
    """
    Measures a network's error and decision accuracy.

    Key features:
    - Uses Network.run only, so weights are never touched
    - Tracks accuracy across evaluations and detects plateaus
    - Optionally appends results to a JSONL log
    """

    def __init__(
        self,
        network: Network,
        config: Optional[Config] = None,
        log_dir: Optional[str] = None,
        plateau_threshold: int = 5
    ):
        """
        Initialize the evaluator.

        Args:
            network: Network to evaluate
            config: Configuration object
            log_dir: Directory for the JSONL log (None = no file log)
            plateau_threshold: Evaluations without improvement that count as a plateau
        """
        self.network = network
        self.config = config or Config()
        self.log_dir = log_dir
        self.plateau_threshold = plateau_threshold

        # History tracking
        self.eval_history: List[EvalResults] = []
        self.best_accuracy: float = 0.0
        self.evals_since_improvement: int = 0

        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

    def evaluate(self, samples: Sequence[Sample], training_pass: int = 0) -> EvalResults:
        """
        Run the network on every sample.

        Args:
            samples: (inputs, desired_outputs) pairs
            training_pass: Current training pass (for logging)

        Returns:
            EvalResults with all metrics
        """
        errors = []
        correct = 0
        decision_counts: Dict[int, int] = {}

        for inputs, desired in samples:
            outputs = self.network.run(inputs)
            diff = np.asarray(desired, dtype=np.float64) - np.asarray(outputs, dtype=np.float64)
            errors.append(diff)

            chosen = decision(outputs)
            decision_counts[chosen] = decision_counts.get(chosen, 0) + 1
            if chosen == decision(desired):
                correct += 1

        num_samples = len(errors)
        if num_samples:
            all_errors = np.concatenate(errors)
            mse = float(np.mean(all_errors ** 2))
            max_abs_error = float(np.max(np.abs(all_errors)))
        else:
            mse = 0.0
            max_abs_error = 0.0

        results = EvalResults(
            timestamp=datetime.now().isoformat(),
            training_pass=training_pass,
            num_samples=num_samples,
            mse=mse,
            max_abs_error=max_abs_error,
            correct=correct,
            accuracy=correct / num_samples if num_samples else 0.0,
            decision_counts=decision_counts,
        )

        self._update_history(results)
        return results

    def _update_history(self, results: EvalResults) -> None:
        """Update evaluation history and check for plateau."""
        self.eval_history.append(results)

        if results.accuracy > self.best_accuracy:
            self.best_accuracy = results.accuracy
            self.evals_since_improvement = 0
        else:
            self.evals_since_improvement += 1

    def is_plateau(self) -> bool:
        """Check if accuracy has stopped improving."""
        return self.evals_since_improvement >= self.plateau_threshold

    def log_results(self, results: EvalResults) -> None:
        """Log results, and append them to the JSONL file if log_dir is set."""
        if self.log_dir:
            log_file = os.path.join(self.log_dir, "eval_log.jsonl")
            with open(log_file, 'a', encoding='utf-8') as f:
                f.write(json.dumps(results.to_dict()) + '\n')

        plateau = " | PLATEAU" if self.is_plateau() else ""
        logger.info(
            f"EVAL pass={results.training_pass} | samples={results.num_samples} | "
            f"mse={results.mse:.6f} | acc={results.accuracy:.3f} "
            f"({results.correct}/{results.num_samples}){plateau}"
        )

    def get_summary(self) -> Dict[str, Any]:
        """Get summary of all evaluations."""
        if not self.eval_history:
            return {}

        return {
            'num_evals': len(self.eval_history),
            'best_accuracy': self.best_accuracy,
            'latest_accuracy': self.eval_history[-1].accuracy,
            'latest_mse': self.eval_history[-1].mse,
            'is_plateau': self.is_plateau(),
            'evals_since_improvement': self.evals_since_improvement,
        }
