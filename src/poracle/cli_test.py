import threading
import time

import pytest
import structlog
from click.testing import CliRunner

from poracle import cli as cli_module
from poracle.cli import cli, solver
from poracle.counter import GuessCounter
from poracle.errors import AttackCancelledError
from poracle.local_oracle import LocalOracle
from poracle.oracle import FunctionOracle

KEY = bytes(range(32, 48))

PLUGIN = f'''
from poracle.local_oracle import LocalOracle

ORACLE = LocalOracle({KEY!r})


def submit_guess(prev_block, target_block):
    return ORACLE.attempt_decrypt(prev_block + target_block)
'''


@pytest.fixture(autouse=True)
def reset_logging():
    """The group callback configures structlog globally; don't leak it into other tests"""
    yield
    structlog.reset_defaults()


class TestCli:
    """Test suite for the command line interface"""

    def test_demo(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["demo", "--no-ui", "--text", "hi there"])
        assert result.exit_code == 0, result.output
        assert "Plaintext: b'hi there'" in result.output
        assert "Guesses: " in result.output

    def test_decrypt_with_plugin(self, tmp_path):
        """The plaintext lands next to the ciphertext file"""
        iv = bytes(range(16))
        oracle = LocalOracle(KEY, iv)
        ciphertext_path = tmp_path / "secret.hex"
        ciphertext_path.write_text((iv + oracle.encrypt(b"plugin oracle")).hex())
        plugin_path = tmp_path / "plugin.py"
        plugin_path.write_text(PLUGIN)

        runner = CliRunner()
        result = runner.invoke(cli, [
            "decrypt", "-c", str(ciphertext_path), "-f", "hex", "--iv-prefixed",
            "-g", str(plugin_path), "--no-ui", "--workers", "2",
        ])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "secret.hex.plaintext").read_bytes() == b"plugin oracle"

    def test_decrypt_with_explicit_iv(self, tmp_path):
        iv = bytes(range(16))
        oracle = LocalOracle(KEY, iv)
        ciphertext_path = tmp_path / "secret.bin"
        ciphertext_path.write_bytes(oracle.encrypt(b"raw file"))
        plugin_path = tmp_path / "plugin.py"
        plugin_path.write_text(PLUGIN)
        output_path = tmp_path / "out.txt"

        runner = CliRunner()
        result = runner.invoke(cli, [
            "decrypt", "-c", str(ciphertext_path), "-f", "raw", "--iv", iv.hex(),
            "-g", str(plugin_path), "--no-ui", "-o", str(output_path),
        ])
        assert result.exit_code == 0, result.output
        assert output_path.read_bytes() == b"raw file"

    def test_decrypt_needs_one_oracle(self, tmp_path):
        ciphertext_path = tmp_path / "secret.hex"
        ciphertext_path.write_text("00" * 32)
        runner = CliRunner()
        result = runner.invoke(cli, ["decrypt", "-c", str(ciphertext_path), "-f", "hex"])
        assert result.exit_code == 2
        assert "--url or --guess-fn" in result.output

    def test_exhausted_guesses_is_reported(self, tmp_path):
        ciphertext_path = tmp_path / "secret.hex"
        ciphertext_path.write_text("00" * 16)
        plugin_path = tmp_path / "plugin.py"
        plugin_path.write_text("def submit_guess(prev_block, target_block):\n    return False\n")

        runner = CliRunner()
        result = runner.invoke(cli, [
            "decrypt", "-c", str(ciphertext_path), "-f", "hex", "-g", str(plugin_path), "--no-ui",
        ])
        assert result.exit_code == 1
        assert "Couldn't find a valid encoding" in result.output

    @pytest.mark.parametrize("fmt, content", [
        ("hex", "00zz"),
        ("hex", "\u00e900"),
        ("b64", "A"),
    ])
    def test_malformed_ciphertext_file(self, tmp_path, fmt, content):
        """A file that doesn't parse is a usage error, not a traceback"""
        ciphertext_path = tmp_path / "secret.txt"
        ciphertext_path.write_text(content, encoding="utf-8")
        plugin_path = tmp_path / "plugin.py"
        plugin_path.write_text(PLUGIN)

        runner = CliRunner()
        result = runner.invoke(cli, [
            "decrypt", "-c", str(ciphertext_path), "-f", fmt, "-g", str(plugin_path), "--no-ui",
        ])
        assert result.exit_code == 2, result.output
        assert "--ciphertext-path" in result.output
        assert f"Not valid {fmt}" in result.output


class TestSolver:
    """Test suite for the solver thread driven by the UI loop"""

    def test_interrupt_stops_the_attack(self, monkeypatch, capsys):
        """Ctrl-C in the UI cancels the attack instead of waiting for it to finish"""
        queried = threading.Event()
        calls = []

        def slow_guess(prev_block, target_block):
            calls.append(1)
            queried.set()
            time.sleep(0.005)
            return False

        def interrupted_ui_loop(state_queue):
            queried.wait(timeout=5)
            raise KeyboardInterrupt

        monkeypatch.setattr(cli_module, "ui_loop", interrupted_ui_loop)
        oracle = FunctionOracle(slow_guess, block_size=16)

        with pytest.raises(AttackCancelledError):
            solver(oracle, bytes(16), show_ui=True)
        # 256 queries would mean the attack ran to exhaustion
        assert 0 < len(calls) < 256
        assert "stopping after the guess in flight" in capsys.readouterr().err

    def test_without_ui(self):
        oracle = LocalOracle(KEY, bytes(16))
        plaintext, counter = solver(oracle, oracle.encrypt(b"no ui"), bytes(16), show_ui=False)
        assert plaintext == b"no ui"
        assert isinstance(counter, GuessCounter) and counter.value > 0
