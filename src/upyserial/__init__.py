"""Drive a MicroPython REPL over a serial port."""

from .errors import NoPortsAvailableError, NotConnectedError, SessionBusyError, UpySerialError
from .session import SerialConnection, SessionState

__version__ = "0.1.0"

__all__ = [
    "SerialConnection",
    "SessionState",
    "UpySerialError",
    "NoPortsAvailableError",
    "NotConnectedError",
    "SessionBusyError",
]
