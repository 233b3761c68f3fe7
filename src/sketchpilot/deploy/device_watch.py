"""Serial device watching."""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Set

logger = logging.getLogger(__name__)

PortsCallback = Callable[[List[str]], None]


class IDeviceWatcher(ABC):
    """Device discovery that can be suspended while an upload owns the port."""

    @abstractmethod
    def pause(self) -> None:
        pass

    @abstractmethod
    def resume(self) -> None:
        pass


def list_serial_ports() -> List[str]:
    from serial.tools import list_ports

    return sorted(port.device for port in list_ports.comports())


class DeviceWatcher(IDeviceWatcher):
    """
    Poll the serial ports in a background thread.

    Pausing stops reporting but keeps the thread. On resume the known port set
    is refreshed silently, so ports that re-enumerate during an upload are not
    reported as plugged or unplugged.

    Example:
        watcher = DeviceWatcher(on_added=lambda p: print("+", p))
        watcher.start()
        watcher.pause()
        ...
        watcher.resume()
        watcher.stop()
    """

    def __init__(
        self,
        on_added: Optional[PortsCallback] = None,
        on_removed: Optional[PortsCallback] = None,
        interval: float = 1.0,
        list_ports: Callable[[], List[str]] = list_serial_ports,
    ):
        self.on_added = on_added
        self.on_removed = on_removed
        self.interval = interval
        self._list_ports = list_ports
        self._known: Set[str] = set()
        self._paused = threading.Event()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    @property
    def ports(self) -> List[str]:
        with self._lock:
            return sorted(self._known)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._known = set(self._list_ports())
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="device-watch", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval * 2)
            self._thread = None

    def pause(self) -> None:
        logger.debug("Device watching paused")
        self._paused.set()

    def resume(self) -> None:
        with self._lock:
            self._known = set(self._list_ports())
        self._paused.clear()
        logger.debug("Device watching resumed")

    def poll(self) -> None:
        """Compare the current ports with the known set and report changes."""
        if self.paused:
            return
        current = set(self._list_ports())
        with self._lock:
            added = sorted(current - self._known)
            removed = sorted(self._known - current)
            self._known = current
        if added:
            logger.info(f"Serial ports added: {', '.join(added)}")
            if self.on_added:
                self.on_added(added)
        if removed:
            logger.info(f"Serial ports removed: {', '.join(removed)}")
            if self.on_removed:
                self.on_removed(removed)

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.poll()
            except OSError as e:
                logger.warning(f"Listing serial ports failed: {e}")
