"""
Maze Learning Engine - Source Package
=====================================

Hand-written learned controllers for the maze navigation game.

Modules:
    ai/            - Feedforward network, convolution pipeline, training and evaluation
    serialization/ - Shared model text grammar and file storage
    utils/         - Logging and instrumentation
"""

__version__ = "1.0.0"
