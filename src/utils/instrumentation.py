"""
Operation Instrumentation
=========================

Records timing and operation traces for the network and the convolution
pipeline. It only observes: enabling, disabling or reading it never changes
a computed value.

Each engine object takes an `instrumentation=` argument; without one it
attaches to the process-wide instance returned by get_instrumentation().

Usage:
    inst = Instrumentation(enabled=True)
    net = Network(4, 2, instrumentation=inst)
    net.run([0, 1, 0, 1])
    print(inst.messages)
"""

import time
from contextlib import contextmanager
from typing import Iterator, List, Optional

from src.utils.logger import get_logger


logger = get_logger('instrumentation')


class Instrumentation:
    """
    Captures human-readable operation traces.

    Attributes:
        enabled: Whether messages are captured at all
        messages: Captured trace lines, oldest first
        max_messages: Oldest lines are dropped beyond this many (0 = no limit)
    """

    def __init__(self, enabled: bool = False, max_messages: int = 10_000):
        self.enabled = enabled
        self.max_messages = max_messages
        self.messages: List[str] = []

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    def clear(self) -> None:
        """Drop all captured messages."""
        self.messages.clear()

    def record(self, message: str) -> None:
        """Capture one trace line (no-op while disabled)."""
        if not self.enabled:
            return
        self.messages.append(message)
        if self.max_messages and len(self.messages) > self.max_messages:
            del self.messages[:len(self.messages) - self.max_messages]
        logger.debug(message)

    @contextmanager
    def timed(self, operation: str) -> Iterator[None]:
        """Time the enclosed block and record '<operation> took N ms'."""
        if not self.enabled:
            yield
            return
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            self.record(f"{operation} took {elapsed_ms:.3f} ms")


_process_instrumentation: Optional[Instrumentation] = None


def get_instrumentation() -> Instrumentation:
    """Return the process-wide instrumentation, creating it disabled on first use."""
    global _process_instrumentation
    if _process_instrumentation is None:
        _process_instrumentation = Instrumentation(enabled=False)
    return _process_instrumentation
