#!/usr/bin/env python3
"""
Performance benchmark for the network and the convolution pipeline.

Usage:
    python benchmark.py                     # Run standard benchmarks
    python benchmark.py --quick             # Quick 1-second runs
    python benchmark.py --config ann_small  # Run specific configs
    python benchmark.py --save results.json # Save results to file
    python benchmark.py --instrument        # Also print a sample of operation traces

Example output:
    ann_small: ann_train [8, 16, 4], 1 epochs
       Calls: 52,310 | Time: 3.0s | Calls/sec: 17,437

Notes:
    - Everything is pure Python per neuron, so cost grows with weights x epochs
    - Instrumentation is off while measuring unless --instrument is given
"""

import argparse
import json
import platform
import sys
import time
from dataclasses import dataclass, asdict
from typing import List, Optional

import numpy as np

from config import Config
from src.ai.conv_pipeline import ConvPipeline
from src.ai.network import Network
from src.utils.instrumentation import Instrumentation


@dataclass
class BenchmarkResult:
    """Result from a single benchmark run."""
    config_name: str
    kind: str
    layer_sizes: List[int]
    epochs: int
    total_calls: int
    total_time: float
    calls_per_sec: float


@dataclass
class BenchmarkConfig:
    """Configuration for a benchmark run."""
    name: str
    kind: str  # 'ann_train', 'ann_run' or 'cnn_run'
    inputs: int = 8
    hidden: Optional[List[int]] = None
    outputs: int = 4
    epochs: int = 1
    map_size: int = 10


# Predefined configurations
CONFIGS = {
    'ann_small': BenchmarkConfig('ann_small', 'ann_train', 8, [16], 4),
    'ann_deep': BenchmarkConfig('ann_deep', 'ann_train', 16, [32, 32, 16], 5),
    'ann_epochs': BenchmarkConfig('ann_epochs', 'ann_train', 8, [16], 4, epochs=10),
    'ann_run': BenchmarkConfig('ann_run', 'ann_run', 16, [32, 16], 5),
    'cnn_10x10': BenchmarkConfig('cnn_10x10', 'cnn_run', map_size=10),
    'cnn_18x18': BenchmarkConfig('cnn_18x18', 'cnn_run', map_size=18),
}

QUICK_CONFIGS = ['ann_small', 'cnn_10x10']
STANDARD_CONFIGS = ['ann_small', 'ann_deep', 'ann_run', 'cnn_10x10']
FULL_CONFIGS = list(CONFIGS.keys())

# The diagonal and cross kernels used by the maze agent
DEFAULT_FILTERS = [
    [[0, 0, 1], [0, 1, 0], [1, 0, 0]],
    [[1, 0, 1], [0, 1, 0], [1, 0, 1]],
    [[1, 0, 0], [0, 1, 0], [0, 0, 1]],
]


def run_benchmark(
    cfg: BenchmarkConfig,
    duration: float = 3.0,
    instrumentation: Optional[Instrumentation] = None,
    verbose: bool = True,
) -> BenchmarkResult:
    """
    Run a single benchmark configuration.

    Args:
        cfg: Benchmark configuration
        duration: How long to run the benchmark (seconds)
        instrumentation: Trace collector attached to the benchmarked objects
        verbose: Print progress messages

    Returns:
        BenchmarkResult
    """
    config = Config(SEED=0, EPOCHS=cfg.epochs)
    rng = np.random.default_rng(0)
    instrumentation = instrumentation or Instrumentation(enabled=False)

    if cfg.kind == 'cnn_run':
        pipeline = ConvPipeline(config=config, instrumentation=instrumentation)
        for matrix in DEFAULT_FILTERS:
            pipeline.add_filter(matrix)
        maps = [rng.integers(0, 2, size=(cfg.map_size, cfg.map_size)) for _ in range(32)]
        pipeline.run(maps[0])

        def step(i: int) -> None:
            pipeline.run(maps[i % len(maps)])

        layer_sizes = pipeline.network.layer_sizes
    else:
        network = Network(cfg.inputs, cfg.outputs, hidden_layers=cfg.hidden or [],
                          config=config, instrumentation=instrumentation)
        inputs = rng.uniform(-1, 1, size=(32, cfg.inputs)).tolist()
        targets = rng.uniform(0, 1, size=(32, cfg.outputs)).tolist()

        if cfg.kind == 'ann_run':
            def step(i: int) -> None:
                network.run(inputs[i % 32])
        else:
            def step(i: int) -> None:
                network.train(inputs[i % 32], targets[i % 32])

        layer_sizes = network.layer_sizes

    if verbose:
        print(f"  Benchmarking {cfg.name} ({duration}s)...", end=" ", flush=True)

    calls = 0
    start_time = time.perf_counter()
    while time.perf_counter() - start_time < duration:
        step(calls)
        calls += 1
    elapsed = time.perf_counter() - start_time

    if verbose:
        print("done")

    return BenchmarkResult(
        config_name=cfg.name,
        kind=cfg.kind,
        layer_sizes=layer_sizes,
        epochs=cfg.epochs,
        total_calls=calls,
        total_time=round(elapsed, 2),
        calls_per_sec=round(calls / elapsed, 1),
    )


def print_result(result: BenchmarkResult) -> None:
    """Pretty print a benchmark result."""
    print(f"\n  {result.config_name}: {result.kind} {result.layer_sizes}, {result.epochs} epochs")
    print(f"     Calls: {result.total_calls:,} | Time: {result.total_time}s | "
          f"Calls/sec: {result.calls_per_sec:,.0f}")


def get_system_info() -> dict:
    """Collect system information for benchmark context."""
    return {
        'python_version': sys.version.split()[0],
        'numpy_version': np.__version__,
        'platform': platform.platform(),
        'processor': platform.processor() or 'unknown',
    }


def main():
    parser = argparse.ArgumentParser(description='Network and pipeline performance benchmark')
    parser.add_argument('--quick', action='store_true', help='Quick 1-second runs')
    parser.add_argument('--full', action='store_true', help='Run every configuration')
    parser.add_argument('--config', type=str, default=None,
                        help=f'Comma separated configs: {", ".join(CONFIGS)}')
    parser.add_argument('--duration', type=float, default=3.0, help='Seconds per config')
    parser.add_argument('--save', type=str, default=None, help='Save results to JSON file')
    parser.add_argument('--instrument', action='store_true', help='Capture operation traces')
    args = parser.parse_args()

    if args.config:
        names = [n.strip() for n in args.config.split(',')]
        unknown = [n for n in names if n not in CONFIGS]
        if unknown:
            parser.error(f"Unknown config(s): {', '.join(unknown)}")
    elif args.full:
        names = FULL_CONFIGS
    elif args.quick:
        names = QUICK_CONFIGS
    else:
        names = STANDARD_CONFIGS
    duration = 1.0 if args.quick else args.duration

    instrumentation = Instrumentation(enabled=args.instrument, max_messages=50)

    print("=" * 60)
    print("Maze Learning Engine Benchmark")
    print("=" * 60)
    results = [run_benchmark(CONFIGS[name], duration, instrumentation) for name in names]
    for result in results:
        print_result(result)

    if args.instrument:
        print(f"\nLast {len(instrumentation.messages)} operation traces:")
        for message in instrumentation.messages:
            print(f"  {message}")

    if args.save:
        with open(args.save, 'w', encoding='utf-8') as f:
            json.dump({
                'system': get_system_info(),
                'results': [asdict(r) for r in results],
            }, f, indent=2)
        print(f"\nResults saved to {args.save}")


if __name__ == "__main__":
    main()
