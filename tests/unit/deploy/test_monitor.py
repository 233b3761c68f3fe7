"""Unit tests for SerialMonitor session handling."""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from sketchpilot.deploy.monitor import MonitorError, SerialMonitor


class TestSerialMonitor:
    """Tests for opening and closing monitor sessions."""

    def test_close_when_not_open(self):
        monitor = SerialMonitor()
        assert asyncio.run(monitor.close_session("COM3")) is False

    def test_open_without_port(self):
        with pytest.raises(MonitorError):
            asyncio.run(SerialMonitor().open_session())

    def test_close_and_reopen(self):
        serial_port = MagicMock()
        serial_port.readline.return_value = b""
        lines = []
        monitor = SerialMonitor(on_line=lines.append)

        async def run():
            await monitor.open_session("COM3", 9600)
            assert monitor.is_open
            assert await monitor.close_session("COM4") is False
            assert await monitor.close_session("COM3") is True
            assert not monitor.is_open
            await monitor.open_session()
            assert monitor.is_open
            await monitor.close_session("COM3")

        with patch("serial.Serial", return_value=serial_port) as serial_class:
            asyncio.run(run())

        assert serial_class.call_count == 2
        serial_class.assert_called_with("COM3", 9600, timeout=0.1)
        assert serial_port.close.call_count == 2
