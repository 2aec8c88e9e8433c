"""
Tests for the command line interface.
"""

import json
import pytest
import sys
import os
import tempfile

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from main import build_config, main, parse_args, parse_sizes, parse_vector
from src.serialization.storage import load_network
from src.utils.instrumentation import get_instrumentation
from src.utils.logger import setup_logging


@pytest.fixture(autouse=True)
def quiet_logging():
    """main() points logging at the captured stdout; detach it afterwards."""
    yield
    setup_logging(console_output=False, force=True)


@pytest.fixture
def workdir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def model_path(workdir):
    """A saved 3-4-2 network."""
    path = os.path.join(workdir, 'models', 'agent.txt')
    assert main(['--new', '--inputs', '3', '--hidden', '4', '--outputs', '2',
                 '--seed', '1', '--model', path]) == 0
    return path


@pytest.fixture
def samples_path(workdir):
    path = os.path.join(workdir, 'samples.json')
    with open(path, 'w', encoding='utf-8') as f:
        json.dump([
            {'inputs': [0, 1, 1], 'outputs': [1, 0]},
            {'inputs': [1, 0, 1], 'outputs': [0, 1]},
        ], f)
    return path


class TestArgumentParsing:
    """Test argument helpers and validation."""

    def test_parse_vector(self):
        assert parse_vector('0.5,1,0') == [0.5, 1.0, 0.0]

    def test_parse_sizes(self):
        assert parse_sizes('8,4') == [8, 4]
        assert parse_sizes('') == []

    def test_mode_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_new_requires_sizes(self):
        with pytest.raises(SystemExit):
            parse_args(['--new', '--model', 'x.txt'])

    def test_run_requires_model(self):
        with pytest.raises(SystemExit):
            parse_args(['--run', '1,2'])

    def test_modes_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse_args(['--inspect', 'a.txt', '--evaluate', 'b.json'])

    @pytest.mark.parametrize("option", [
        ['--alpha', '0'],
        ['--alpha', '-0.5'],
        ['--alpha', 'nan'],
        ['--epochs', '0'],
        ['--passes', '0'],
        ['--save-every', '-1'],
        ['--hidden', '4,0'],
    ])
    def test_out_of_range_values_rejected(self, option, capsys):
        """Bad values are usage errors, not assertion tracebacks."""
        with pytest.raises(SystemExit) as exc_info:
            parse_args(['--inspect', 'a.txt'] + option)
        assert exc_info.value.code == 2
        assert option[0] in capsys.readouterr().err

    def test_new_rejects_empty_layers(self):
        with pytest.raises(SystemExit):
            parse_args(['--new', '--inputs', '0', '--outputs', '2', '--model', 'x.txt'])

    def test_main_reports_bad_epochs_as_usage_error(self, model_path):
        with pytest.raises(SystemExit) as exc_info:
            main(['--run', '1,2,3', '--model', model_path, '--epochs', '0'])
        assert exc_info.value.code == 2

    def test_build_config_overrides(self):
        args = parse_args(['--inspect', 'a.txt', '--alpha', '0.3', '--epochs', '4',
                           '--hidden', '5,6', '--seed', '9', '--log-level', 'DEBUG'])
        cfg = build_config(args)
        assert cfg.ALPHA == 0.3
        assert cfg.EPOCHS == 4
        assert cfg.HIDDEN_LAYERS == [5, 6]
        assert cfg.SEED == 9
        assert cfg.LOG_LEVEL == 'DEBUG'


class TestCommands:
    """Test each mode end to end."""

    def test_new(self, model_path):
        network = load_network(model_path)
        assert network.layer_sizes == [3, 4, 2]

    def test_new_is_seeded(self, workdir, model_path):
        other = os.path.join(workdir, 'other.txt')
        main(['--new', '--inputs', '3', '--hidden', '4', '--outputs', '2',
              '--seed', '1', '--model', other])
        assert load_network(other).serialize() == load_network(model_path).serialize()

    def test_run(self, model_path, capsys):
        expected = ",".join(repr(v) for v in load_network(model_path).run([0.5, 1.0, 0.0]))
        assert main(['--run', '0.5,1,0', '--model', model_path]) == 0
        assert expected in capsys.readouterr().out

    def test_run_wrong_size(self, model_path):
        assert main(['--run', '1,2', '--model', model_path]) == 1

    def test_missing_model(self, workdir):
        assert main(['--run', '1,2,3', '--model', os.path.join(workdir, 'missing.txt')]) == 1

    def test_train_updates_model(self, model_path, samples_path):
        before = load_network(model_path).serialize()
        assert main(['--train', samples_path, '--model', model_path, '--passes', '2']) == 0
        assert load_network(model_path).serialize() != before

    def test_train_overrides_learning_rule(self, model_path, samples_path):
        main(['--train', samples_path, '--model', model_path, '--passes', '1',
              '--alpha', '0.25', '--epochs', '3'])
        network = load_network(model_path)
        assert network.alpha == 0.25
        assert network.epochs == 3

    def test_evaluate(self, model_path, samples_path, capsys):
        assert main(['--evaluate', samples_path, '--model', model_path]) == 0
        assert 'accuracy=' in capsys.readouterr().out

    def test_inspect(self, model_path, capsys):
        assert main(['--inspect', model_path]) == 0
        out = capsys.readouterr().out
        assert 'Layer 0: Input - 3 neurons' in out
        assert 'Layer 2: Output - 2 neurons' in out

    def test_instrument(self, model_path, capsys):
        instrumentation = get_instrumentation()
        try:
            assert main(['--run', '0.5,1,0', '--model', model_path, '--instrument']) == 0
            assert 'Network.run' in capsys.readouterr().out
        finally:
            instrumentation.disable()
            instrumentation.clear()

    def test_log_file(self, model_path, workdir, monkeypatch, capsys):
        monkeypatch.chdir(workdir)
        assert main(['--inspect', model_path, '--log-file']) == 0
        log_files = os.listdir(os.path.join(workdir, 'logs'))
        assert len(log_files) == 1
        assert log_files[0] in capsys.readouterr().out
