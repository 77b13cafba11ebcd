"""Tests for the demo command-line client."""

import asyncio

import pytest

from n4313 import cli
from n4313.transport.mock import SimulatedDeviceTransport


class TestParseArgs:
    """Tests for argument parsing."""

    def test_port(self):
        """Test serial port arguments."""
        args = cli.parse_args(["--port", "/dev/ttyUSB0", "--baudrate", "115200"])
        assert args.port == "/dev/ttyUSB0"
        assert args.baudrate == 115200
        assert args.simulate is False
        assert args.log_level == "INFO"

    def test_simulate(self):
        """Test simulated engine selection."""
        args = cli.parse_args(["--simulate", "--scan-timeout", "3"])
        assert args.simulate is True
        assert args.scan_timeout == 3.0

    def test_port_or_simulate_required(self):
        """Test one target must be given."""
        with pytest.raises(SystemExit):
            cli.parse_args([])

    def test_port_and_simulate_exclusive(self):
        """Test targets are mutually exclusive."""
        with pytest.raises(SystemExit):
            cli.parse_args(["--port", "COM3", "--simulate"])

    def test_build_transport(self):
        """Test --simulate yields a simulated device."""
        transport = cli.build_transport(cli.parse_args(["--simulate"]))
        assert isinstance(transport, SimulatedDeviceTransport)


class TestMenu:
    """Tests for the interactive menu."""

    @pytest.mark.asyncio
    async def test_menu_session(self, monkeypatch, capsys):
        """Test scan, continuous, trigger and exit against the simulated engine."""
        answers = iter(["1", "2", "", "3", "9", "4"])

        async def fake_prompt(text=""):
            await asyncio.sleep(0.02)
            return next(answers)

        monkeypatch.setattr(cli, "prompt", fake_prompt)
        monkeypatch.setattr(cli, "build_transport", lambda args: SimulatedDeviceTransport())

        exit_code = await cli.run(cli.parse_args(["--simulate"]))

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Scanned: 123456789" in out
        assert "[CONTINUOUS] Scanned: 4006381333931" in out
        assert "Trigger mode enabled" in out
        assert "Invalid option" in out
        assert "Scanner disconnected." in out
