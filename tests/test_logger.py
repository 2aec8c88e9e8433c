"""
Tests for the logging helpers.
"""

import logging
import pytest
import sys
import os
import tempfile

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.utils.logger import (
    LogLevel, get_log_path, get_logger, log_model_event, log_training_metrics, setup_logging
)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    setup_logging(console_output=False, force=True)


class TestLoggerNames:

    def test_project_namespace(self):
        assert get_logger('main').name == 'mazeml.main'

    def test_src_prefix_stripped(self):
        assert get_logger('src.ai.network').name == 'mazeml.ai.network'

    def test_level_from_name(self):
        assert LogLevel.from_name('debug') is LogLevel.DEBUG
        with pytest.raises(KeyError):
            LogLevel.from_name('VERBOSE')


class TestFileOutput:

    def test_no_file_by_default(self):
        setup_logging(console_output=False, force=True)
        assert get_log_path() is None

    def test_file_receives_debug_lines(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            setup_logging(log_dir=tmpdir, level=LogLevel.DEBUG, console_output=False,
                          file_output=True, force=True)
            path = get_log_path()
            assert os.path.samefile(path.parent, tmpdir)
            assert path.name.startswith('mazeml_') and path.suffix == '.log'

            get_logger('test').debug("written to file")
            setup_logging(console_output=False, force=True)

            with open(path, encoding='utf-8') as f:
                assert 'written to file' in f.read()

    def test_force_replaces_handlers(self):
        setup_logging(console_output=True, force=True)
        setup_logging(console_output=True, force=True)
        assert len(logging.getLogger('mazeml').handlers) == 1

    def test_second_call_without_force_is_ignored(self):
        setup_logging(console_output=False, force=True)
        setup_logging(console_output=True)
        assert logging.getLogger('mazeml').handlers == []


class TestEventLines:

    def test_model_event(self, caplog):
        caplog.set_level(logging.INFO, logger='mazeml')
        log_model_event('save', 'models/agent.txt', kind='network', layers=[3, 2])
        assert 'SAVE | models/agent.txt | kind=network | layers=[3, 2]' in caplog.text

    def test_model_event_without_details(self, caplog):
        caplog.set_level(logging.INFO, logger='mazeml')
        log_model_event('load', 'a.txt')
        assert caplog.records[-1].getMessage() == 'LOAD | a.txt'

    def test_training_metrics(self, caplog):
        caplog.set_level(logging.INFO, logger='mazeml')
        log_training_metrics(3, 40, 0.0123456, accuracy=0.75)
        assert caplog.records[-1].getMessage() == 'pass=3 | samples=40 | mse=0.012346 | acc=0.750'
        assert caplog.records[-1].name == 'mazeml.training'
