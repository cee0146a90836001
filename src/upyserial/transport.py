"""
pyserial-backed byte stream.

Signals emitted (see EventEmitter):
  open   -- the port has been opened
  data   -- bytes received from the device
  error  -- exception raised by the reader thread (the reader stops)
  close  -- the port has been closed
"""

import logging
import threading

import serial
from serial.tools import list_ports

from . import config
from .events import EventEmitter

logger = logging.getLogger(__name__)


class SerialReaderThread(threading.Thread):
    def __init__(self, ser, on_data, on_error):
        super().__init__(daemon=True, name=f"upyserial-reader:{ser.port}")
        self.ser = ser
        self.on_data = on_data
        self.on_error = on_error
        self._running = True

    def stop(self):
        self._running = False

    def run(self):
        while self._running and self.ser.is_open:
            try:
                data = self.ser.read(self.ser.in_waiting or 1)
            except (serial.SerialException, OSError, TypeError) as e:
                # TypeError: pyserial on some platforms when the port is closed under us
                if self._running:
                    try:
                        self.on_error(e)
                    except Exception:
                        logger.exception("error listener failed on %s", self.ser.port)
                break
            if not data:
                continue
            try:
                self.on_data(data)
            except Exception:
                logger.exception("data listener failed on %s", self.ser.port)


class SerialTransport(EventEmitter):
    """One serial port, configured up front and opened explicitly."""

    def __init__(self, port, baudrate=None, timeout=config.READ_TIMEOUT):
        super().__init__()
        # Also accepts pyserial URLs (socket://, rfc2217://, loop://)
        self.serial = serial.serial_for_url(port, baudrate=baudrate or config.BAUD,
                                            timeout=timeout, do_not_open=True)
        self._reader = None
        self._write_lock = threading.Lock()

    @property
    def port(self):
        return self.serial.port

    @property
    def is_open(self):
        return self.serial.is_open

    def open(self):
        self.serial.open()
        logger.debug("opened %s at %d baud", self.port, self.serial.baudrate)
        self._reader = SerialReaderThread(self.serial, self._on_data, self._on_error)
        self._reader.start()
        self.emit("open")

    def write(self, data):
        if isinstance(data, str):
            data = data.encode("utf-8")
        with self._write_lock:
            self.serial.write(data)

    def close(self):
        reader, self._reader = self._reader, None
        if reader is not None:
            reader.stop()
        was_open = self.serial.is_open
        self.serial.close()
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=1.0)
        if was_open:
            logger.debug("closed %s", self.port)
            self.emit("close")

    def _on_data(self, data):
        self.emit("data", data)

    def _on_error(self, e):
        logger.warning("serial read failed on %s: %s", self.port, e)
        self.emit("error", e)

    @staticmethod
    def list_ports():
        return list(list_ports.comports())
