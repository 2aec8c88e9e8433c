"""
Logging for the maze learning engine.

Every module logs under the 'mazeml' namespace:

    from src.utils.logger import get_logger
    logger = get_logger(__name__)       # src.ai.network -> mazeml.ai.network

main.py calls setup_logging() with LOG_LEVEL and LOG_TO_FILE from config.py.
Anything that logs before that gets console output at INFO.
"""

import logging
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


ROOT_LOGGER_NAME = 'mazeml'
LINE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'


class LogLevel(Enum):
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR

    @classmethod
    def from_name(cls, name: str) -> 'LogLevel':
        return cls[name.upper()]


_initialized = False
_file_handler: Optional[logging.FileHandler] = None


class ColoredFormatter(logging.Formatter):
    """Colours the level name when the console is a terminal."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, fmt: str):
        super().__init__(fmt)
        self.use_colors = sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if self.use_colors and record.levelname in self.COLORS:
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(
    log_dir: str = 'logs',
    level: LogLevel = LogLevel.INFO,
    console_output: bool = True,
    file_output: bool = False,
    force: bool = False,
) -> None:
    """
    Attach handlers to the 'mazeml' logger.

    Args:
        log_dir: Where file output goes (mazeml_YYYYMMDD_HHMMSS.log)
        level: Minimum level for the logger and the console
        console_output: Log to stdout
        file_output: Also log everything down to DEBUG to a file
        force: Replace the handlers of an earlier call
    """
    global _initialized, _file_handler

    if _initialized and not force:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.value)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    _file_handler = None

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level.value)
        console_handler.setFormatter(ColoredFormatter(LINE_FORMAT))
        root_logger.addHandler(console_handler)

    if file_output:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        _file_handler = logging.FileHandler(directory / f'mazeml_{stamp}.log', encoding='utf-8')
        _file_handler.setLevel(logging.DEBUG)
        _file_handler.setFormatter(logging.Formatter(LINE_FORMAT))
        root_logger.addHandler(_file_handler)

    _initialized = True
    root_logger.debug(f"Logging ready (level={level.name}, file={file_output})")


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, under the project namespace."""
    if not _initialized:
        setup_logging()
    if name.startswith('src.'):
        name = name[len('src.'):]
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def get_log_path() -> Optional[Path]:
    if _file_handler is None:
        return None
    return Path(_file_handler.baseFilename)


def log_training_metrics(
    training_pass: int,
    samples: int,
    mse: float,
    accuracy: Optional[float] = None,
    duration: Optional[float] = None,
) -> None:
    """One INFO line per training pass: pass=3 | samples=40 | mse=0.012345 | acc=0.750"""
    fields = [f"pass={training_pass}", f"samples={samples}", f"mse={mse:.6f}"]
    if accuracy is not None:
        fields.append(f"acc={accuracy:.3f}")
    if duration is not None:
        fields.append(f"time={duration:.2f}s")
    get_logger('training').info(" | ".join(fields))


def log_model_event(event: str, path: str, **details) -> None:
    """Log a model save, load or checkpoint as 'SAVE | path | kind=network | ...'."""
    parts = [event.upper(), str(path)]
    parts.extend(f"{key}={value}" for key, value in details.items())
    get_logger('model').info(" | ".join(parts))
