"""
Serial port collaborators for uploads.

This module provides the serial monitor and device watcher that the build
orchestrator suspends while an upload owns the serial port.
"""

from .device_watch import DeviceWatcher, IDeviceWatcher, list_serial_ports
from .monitor import ISerialMonitor, MonitorError, SerialMonitor

__all__ = [
    "IDeviceWatcher",
    "DeviceWatcher",
    "list_serial_ports",
    "ISerialMonitor",
    "SerialMonitor",
    "MonitorError",
]
