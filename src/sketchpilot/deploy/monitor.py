"""
Serial monitor sessions.

An upload needs exclusive access to the board's serial port, so the build
orchestrator closes an open monitor session before the upload and reopens
it afterwards.
"""

import asyncio
import logging
import sys
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class MonitorError(Exception):
    """Raised when monitor operations fail."""

    pass


class ISerialMonitor(ABC):
    """Serial monitor as seen by the build orchestrator."""

    @abstractmethod
    async def close_session(self, port: str) -> bool:
        """Close the session if it is open on the given port.

        Returns:
            True if a session was open on the port and has been closed
        """
        pass

    @abstractmethod
    async def open_session(self) -> None:
        """Reopen the last closed session."""
        pass


class SerialMonitor(ISerialMonitor):
    """
    pyserial-backed monitor printing received lines.

    Example:
        monitor = SerialMonitor()
        await monitor.open_session("/dev/ttyUSB0", 115200)
        ...
        await monitor.close_session("/dev/ttyUSB0")
    """

    def __init__(self, baud: int = 115200, on_line: Optional[Callable[[str], None]] = None):
        self.baud = baud
        self.on_line = on_line or self._print_line
        self.port: Optional[str] = None
        self._serial = None
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    @staticmethod
    def _print_line(text: str) -> None:
        print(text)
        sys.stdout.flush()

    @property
    def is_open(self) -> bool:
        return self._serial is not None

    def _reader(self) -> None:
        import serial

        ser = self._serial
        while not self._stop.is_set():
            try:
                line = ser.readline()
            except serial.SerialException as e:
                logger.warning(f"Error reading from serial port {self.port}: {e}")
                break
            if line:
                self.on_line(line.decode("utf-8", errors="replace").rstrip())

    def _open(self, port: str, baud: int) -> None:
        import serial

        try:
            self._serial = serial.Serial(port, baud, timeout=0.1)
        except serial.SerialException as e:
            raise MonitorError(f"Error opening serial port {port}: {e}") from e
        self.port = port
        self.baud = baud
        self._stop.clear()
        self._thread = threading.Thread(target=self._reader, name=f"monitor-{port}", daemon=True)
        self._thread.start()
        logger.info(f"Opened serial monitor on {port} at {baud} baud")

    def _close(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        if self._serial is not None:
            self._serial.close()
            self._serial = None
        logger.info(f"Closed serial monitor on {self.port}")

    async def open_session(self, port: Optional[str] = None, baud: Optional[int] = None) -> None:
        """
        Open a session.

        Args:
            port: Serial port, defaults to the last used port
            baud: Baud rate, defaults to the last used rate

        Raises:
            MonitorError: If no port is known or the port cannot be opened
        """
        port = port or self.port
        if not port:
            raise MonitorError("No serial port to open")
        if self.is_open:
            if port == self.port:
                return
            await self.close_session(self.port)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._open, port, baud or self.baud)

    async def close_session(self, port: str) -> bool:
        if not self.is_open or self.port != port:
            return False
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._close)
        return True
