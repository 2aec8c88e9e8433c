#!/usr/bin/env python3
"""
Maze Learning Engine - Main Entry Point
=======================================

Command line access to the feedforward network: create, run, train,
evaluate and inspect serialized models.

Usage:
    # Create a network with 3 inputs, one hidden layer of 4 and 5 outputs
    python main.py --new --inputs 3 --hidden 4 --outputs 5 --model models/agent.txt

    # Run a saved network on one input vector
    python main.py --run 0.5,1,0 --model models/agent.txt

    # Train on recorded samples (JSON list of {"inputs", "outputs"})
    python main.py --train data/samples.json --model models/agent.txt --passes 20

    # Measure decision accuracy without training
    python main.py --evaluate data/samples.json --model models/agent.txt

    # Show the layers of a saved model
    python main.py --inspect models/agent.txt

Options:
    --alpha, --epochs     Override the learning rule for new or loaded models
    --seed                Seed the initial weights of --new
    --log-level           DEBUG, INFO, WARNING, ERROR
    --log-file            Also write a log file under logs/
    --instrument          Print operation timings when done
"""

import argparse
import sys
from typing import List, Optional

from config import Config
from src.ai.activations import ActivationFunction
from src.ai.evaluator import Evaluator
from src.ai.network import Network
from src.ai.trainer import Trainer
from src.errors import EngineError
from src.serialization.storage import load_network, load_samples, save_network
from src.utils.instrumentation import get_instrumentation
from src.utils.logger import LogLevel, get_log_path, get_logger, setup_logging


def parse_vector(text: str) -> List[float]:
    """Parse '0.5,1,0' into [0.5, 1.0, 0.0]."""
    try:
        return [float(item) for item in text.split(',') if item.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{text}' is not a comma separated list of numbers")


def parse_sizes(text: str) -> List[int]:
    if not text:
        return []
    try:
        return [int(item) for item in text.split(',')]
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{text}' is not a comma separated list of layer sizes")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Maze Learning Engine - hand-written networks for the maze agent",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES
========

    python main.py --new --inputs 3 --hidden 4 --outputs 5 --model models/agent.txt
    python main.py --run 0.5,1,0 --model models/agent.txt
    python main.py --train data/samples.json --model models/agent.txt --passes 20
    python main.py --inspect models/agent.txt
        """
    )

    # Mode selection
    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument(
        '--new', action='store_true',
        help='Create a new randomly initialized network and save it to --model'
    )
    mode_group.add_argument(
        '--run', type=parse_vector, metavar='VALUES',
        help='Run the model on a comma separated input vector'
    )
    mode_group.add_argument(
        '--train', type=str, metavar='SAMPLES_JSON',
        help='Train the model on a sample file and save it back'
    )
    mode_group.add_argument(
        '--evaluate', type=str, metavar='SAMPLES_JSON',
        help='Report error and decision accuracy on a sample file'
    )
    mode_group.add_argument(
        '--inspect', type=str, metavar='MODEL_PATH',
        help='Show the layers of a model file'
    )

    # Model options
    parser.add_argument('--model', type=str, default=None, help='Model file path')
    parser.add_argument('--inputs', type=int, default=None, help='Input layer size for --new')
    parser.add_argument('--outputs', type=int, default=None, help='Output layer size for --new')
    parser.add_argument('--hidden', type=parse_sizes, default=None,
                        help='Comma separated hidden layer sizes for --new (e.g. 8,4)')
    parser.add_argument('--hidden-activation', type=str, default=None,
                        choices=[fn.value for fn in ActivationFunction])
    parser.add_argument('--output-activation', type=str, default=None,
                        choices=[fn.value for fn in ActivationFunction])

    # Learning rule
    parser.add_argument('--alpha', type=float, default=None, help='Learning rate')
    parser.add_argument('--epochs', type=int, default=None, help='Training iterations per sample')
    parser.add_argument('--passes', type=int, default=None, help='Passes over the sample file')
    parser.add_argument('--save-every', type=int, default=None, help='Checkpoint every N passes')
    parser.add_argument('--seed', type=int, default=None, help='Seed for initial weights')

    # Output
    parser.add_argument('--log-level', type=str, default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    parser.add_argument('--log-file', action='store_true', help='Also write a log file under LOG_DIR')
    parser.add_argument('--instrument', action='store_true', help='Print operation timings')

    args = parser.parse_args(argv)
    if args.new and (args.inputs is None or args.outputs is None):
        parser.error('--new requires --inputs and --outputs')
    if (args.new or args.run is not None or args.train or args.evaluate) and not args.model:
        parser.error('--model is required for this mode')

    # Same limits as Config.__post_init__
    if args.alpha is not None and not args.alpha > 0:
        parser.error('--alpha must be positive')
    if args.epochs is not None and args.epochs < 1:
        parser.error('--epochs must be at least 1')
    if args.passes is not None and args.passes < 1:
        parser.error('--passes must be at least 1')
    if args.save_every is not None and args.save_every < 0:
        parser.error("--save-every can't be negative")
    if args.hidden is not None and any(size < 1 for size in args.hidden):
        parser.error('--hidden sizes must be positive')
    if args.new and (args.inputs < 1 or args.outputs < 1):
        parser.error('--inputs and --outputs must be at least 1')
    return args


def build_config(args: argparse.Namespace) -> Config:
    """Apply command line overrides to the default config."""
    config = Config()
    if args.alpha is not None:
        config.ALPHA = args.alpha
    if args.epochs is not None:
        config.EPOCHS = args.epochs
    if args.passes is not None:
        config.TRAIN_PASSES = args.passes
    if args.save_every is not None:
        config.SAVE_EVERY = args.save_every
    if args.seed is not None:
        config.SEED = args.seed
    if args.hidden is not None:
        config.HIDDEN_LAYERS = args.hidden
    if args.hidden_activation:
        config.HIDDEN_ACTIVATION = args.hidden_activation
    if args.output_activation:
        config.OUTPUT_ACTIVATION = args.output_activation
    if args.log_level:
        config.LOG_LEVEL = args.log_level
    if args.log_file:
        config.LOG_TO_FILE = True
    if args.instrument:
        config.INSTRUMENTATION_ENABLED = True
    config.__post_init__()
    return config


def apply_overrides(network: Network, args: argparse.Namespace) -> None:
    if args.alpha is not None:
        network.alpha = args.alpha
    if args.epochs is not None:
        network.epochs = args.epochs


def print_layers(network: Network) -> None:
    print("=" * 60)
    print(f"Network: {network.neuron_count} neurons, alpha={network.alpha}, epochs={network.epochs}")
    print("=" * 60)
    for i, info in enumerate(network.get_layer_info()):
        activation = f", {info['activation']}" if info['activation'] else ""
        print(f"Layer {i}: {info['name']} - {info['neurons']} neurons ({info['type']}{activation})")
    print("=" * 60)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point. Returns the process exit code."""
    args = parse_args(argv)
    config = build_config(args)

    setup_logging(
        log_dir=config.LOG_DIR,
        level=LogLevel.from_name(config.LOG_LEVEL),
        file_output=config.LOG_TO_FILE,
        force=True,
    )
    logger = get_logger('main')
    if config.LOG_TO_FILE:
        logger.info(f"Writing log file {get_log_path()}")

    instrumentation = get_instrumentation()
    if config.INSTRUMENTATION_ENABLED:
        instrumentation.enable()

    try:
        if args.new:
            network = Network(args.inputs, args.outputs, config=config)
            save_network(args.model, network)
            print_layers(network)

        elif args.inspect:
            print_layers(load_network(args.inspect))

        elif args.run is not None:
            network = load_network(args.model)
            outputs = network.run(args.run)
            print(",".join(repr(v) for v in outputs))

        elif args.train:
            network = load_network(args.model)
            apply_overrides(network, args)
            samples = load_samples(args.train)
            trainer = Trainer(network, samples, config)
            try:
                trainer.train()
            except KeyboardInterrupt:
                logger.warning("Training interrupted by user, saving current weights")
            save_network(args.model, network)

        elif args.evaluate:
            network = load_network(args.model)
            evaluator = Evaluator(network, config)
            results = evaluator.evaluate(load_samples(args.evaluate))
            evaluator.log_results(results)
            print(f"accuracy={results.accuracy:.3f} mse={results.mse:.6f}")

    except (EngineError, OSError) as e:
        logger.error(str(e))
        return 1

    if config.INSTRUMENTATION_ENABLED:
        for message in instrumentation.messages:
            print(message)
    return 0


if __name__ == "__main__":
    sys.exit(main())
