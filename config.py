"""
Configuration file for the Maze Learning Engine
===============================================

All network hyperparameters, convolution settings and logging options are
centralized here. Modify these values to experiment with different setups.

Usage:
    from config import Config
    cfg = Config()
    print(cfg.ALPHA)
"""

from dataclasses import dataclass, field
from typing import List, Optional


ACTIVATION_NAMES = ('ReLU', 'Sigmoid', 'TanH')


@dataclass
class Config:
    """
    Central configuration for the entire project.

    Sections:
    1. Neural Network - Architecture and learning rule
    2. Convolution - Filter stride, pooling and decision size
    3. Training - Passes, logging and checkpoints
    4. Logging - Verbosity, log files and instrumentation
    5. System - Paths and seeding
    """

    # =========================================================================
    # NEURAL NETWORK ARCHITECTURE
    # =========================================================================

    # Hidden layer sizes for networks built without explicit dimensions
    # The convolution pipeline always builds its network with no hidden layers
    HIDDEN_LAYERS: List[int] = field(default_factory=list)

    # Activation functions: 'ReLU', 'Sigmoid', 'TanH'
    HIDDEN_ACTIVATION: str = 'ReLU'
    OUTPUT_ACTIVATION: str = 'ReLU'

    # Initial weights and biases are drawn from [-range, range)
    WEIGHT_INIT_RANGE: float = 1.0

    # =========================================================================
    # LEARNING RULE
    # =========================================================================

    # Learning rate (alpha)
    ALPHA: float = 0.1

    # Training iterations per sample
    # Each call to Network.train runs the forward/backward step this many times
    EPOCHS: int = 1

    # =========================================================================
    # CONVOLUTION PIPELINE
    # =========================================================================

    # Stride used by ConvPipeline.run/train when sliding the filters
    CONV_STRIDE: int = 1

    # Max-pooling window and stride
    POOL_KERNEL: int = 2
    POOL_STRIDE: int = 2

    # Output size of the decision network built by ConvPipeline.run
    DECISION_OUTPUTS: int = 3

    # =========================================================================
    # TRAINING CONTROL
    # =========================================================================

    # Passes over the whole sample set made by the Trainer
    TRAIN_PASSES: int = 10

    # Log metrics every N passes
    LOG_EVERY: int = 1

    # Save a checkpoint every N passes (0 = only the final save)
    SAVE_EVERY: int = 0

    # =========================================================================
    # LOGGING & INSTRUMENTATION
    # =========================================================================

    # 'DEBUG', 'INFO', 'WARNING', 'ERROR'
    LOG_LEVEL: str = 'INFO'

    # Write a log file under LOG_DIR in addition to the console
    LOG_TO_FILE: bool = False

    # Capture operation timings (never changes results)
    INSTRUMENTATION_ENABLED: bool = False

    # =========================================================================
    # SYSTEM SETTINGS
    # =========================================================================

    # Paths
    MODEL_DIR: str = 'models'
    LOG_DIR: str = 'logs'

    # Random seed for initial weights (None for random)
    SEED: Optional[int] = None

    def __post_init__(self):
        """Validation."""
        assert self.ALPHA > 0, "Learning rate (alpha) must be positive"
        assert self.EPOCHS >= 1, "Epochs must be at least 1"
        assert self.WEIGHT_INIT_RANGE > 0, "Weight init range must be positive"
        assert all(size > 0 for size in self.HIDDEN_LAYERS), "Hidden layer sizes must be positive"
        assert self.HIDDEN_ACTIVATION in ACTIVATION_NAMES, f"Unknown activation {self.HIDDEN_ACTIVATION}"
        assert self.OUTPUT_ACTIVATION in ACTIVATION_NAMES, f"Unknown activation {self.OUTPUT_ACTIVATION}"
        assert self.CONV_STRIDE >= 1, "Convolution stride must be at least 1"
        assert self.POOL_KERNEL >= 1, "Pooling kernel must be at least 1"
        assert self.POOL_STRIDE >= 1, "Pooling stride must be at least 1"
        assert self.DECISION_OUTPUTS >= 1, "Decision network needs at least one output"
        assert self.TRAIN_PASSES >= 1, "Train passes must be at least 1"
        assert self.LOG_EVERY >= 1, "LOG_EVERY must be at least 1"
        assert self.SAVE_EVERY >= 0, "SAVE_EVERY can't be negative"
        assert self.LOG_LEVEL.upper() in ('DEBUG', 'INFO', 'WARNING', 'ERROR'), \
            f"Unknown log level {self.LOG_LEVEL}"


# Global config instance for easy importing
config = Config()


if __name__ == "__main__":
    # Print configuration summary
    cfg = Config()
    print("=" * 60)
    print("Maze Learning Engine - Configuration Summary")
    print("=" * 60)
    print(f"\nNeural Network:")
    print(f"   Hidden layers: {cfg.HIDDEN_LAYERS or 'none'}")
    print(f"   Activations: {cfg.HIDDEN_ACTIVATION} (hidden), {cfg.OUTPUT_ACTIVATION} (output)")
    print(f"   Alpha: {cfg.ALPHA}")
    print(f"   Epochs per sample: {cfg.EPOCHS}")
    print(f"\nConvolution:")
    print(f"   Stride: {cfg.CONV_STRIDE}")
    print(f"   Pooling: {cfg.POOL_KERNEL}x{cfg.POOL_KERNEL}, stride {cfg.POOL_STRIDE}")
    print(f"   Decision outputs: {cfg.DECISION_OUTPUTS}")
    print("=" * 60)
