import errno

import serial


class UpySerialError(Exception):
    """Base class for errors raised by upyserial itself."""


class NoPortsAvailableError(UpySerialError):
    def __init__(self, message="No ports available"):
        super().__init__(message)


class NotConnectedError(UpySerialError):
    def __init__(self, message="Not connected. Call open(port) first."):
        super().__init__(message)


class SessionBusyError(UpySerialError):
    """An execution is still being transmitted."""

    def __init__(self, message="An execution is already in progress"):
        super().__init__(message)


# (needles, message): first entry whose needle occurs in the lowercased error text wins
SERIAL_HINTS = (
    (("readiness to read",), "Serial read returned no data. Device disconnected or port used by another program."),
    (("already open",), "Port already open. Close other tools using the port."),
    (("could not open port",), "Could not open serial port. Check permissions and availability."),
    (("not open",), "Serial port is closed. Reconnect and try again."),
)

OS_HINTS = (
    (("no such file or directory",), "Port or file not found. Check the path."),
    (("permission denied", "resource busy"),
     "Serial port busy or permission denied. Close other serial monitors (Thonny, miniterm, rshell)."),
    (("device not configured", "input/output error"),
     "Serial device not available. Reconnect the board or check the cable."),
)

ERRNO_HINTS = {
    errno.ENOENT: OS_HINTS[0][1],
    errno.EACCES: OS_HINTS[1][1],
    errno.EBUSY: OS_HINTS[1][1],
}


def _hint(e, hints):
    text = str(e).lower()
    for needles, message in hints:
        if any(needle in text for needle in needles):
            return message
    return None


def describe_error(e):
    """One-line message and exit status for an error reaching the command line."""
    if isinstance(e, UpySerialError):
        return str(e), 2
    if isinstance(e, serial.SerialException):
        return _hint(e, SERIAL_HINTS) or f"Serial error: {e}", 2
    if isinstance(e, OSError):
        message = ERRNO_HINTS.get(getattr(e, "errno", None)) or _hint(e, OS_HINTS)
        return message or f"OS error: {e}", 2
    return f"Unexpected error: {e}", 1
