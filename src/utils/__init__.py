"""Utility modules for the maze learning engine."""

from .logger import get_logger, setup_logging, LogLevel
from .instrumentation import Instrumentation, get_instrumentation

__all__ = ['get_logger', 'setup_logging', 'LogLevel', 'Instrumentation', 'get_instrumentation']
