"""
SerialConnection: the public surface.

Every script goes through execute(): interrupt whatever runs, enter the raw
REPL, pace the script out, then leave the raw REPL. Output is not parsed
here; each chunk the board sends is re-emitted as an "output" event.

Events:
  connected, disconnected, execution-started, execution-finished,
  output (str), file-saved, error (Exception from the reader thread)
"""

import codecs
import enum
import logging
import threading
from concurrent.futures import Future

from . import codegen, config
from .errors import NoPortsAvailableError, NotConnectedError, SessionBusyError
from .events import EventEmitter
from .executor import ChunkedExecutor
from .raw_repl import CR, RawRepl
from .transport import SerialTransport

logger = logging.getLogger(__name__)

PREEMPT = "preempt"
REJECT = "reject"


class SessionState(enum.Enum):
    IDLE = "idle"
    ENTERING_RAW = "entering-raw"
    TRANSMITTING = "transmitting"
    EXITING_RAW = "exiting-raw"


class SerialConnection(EventEmitter):
    def __init__(self, baudrate=None, slice_size=config.SLICE_SIZE, pacing_unit=config.PACING_UNIT,
                 on_busy=PREEMPT, transport_factory=SerialTransport):
        super().__init__()
        if on_busy not in (PREEMPT, REJECT):
            raise ValueError(f"on_busy must be {PREEMPT!r} or {REJECT!r}, not {on_busy!r}")
        self.baudrate = baudrate or config.BAUD
        self.on_busy = on_busy
        self.port = None
        self.data = ""
        self.state = SessionState.IDLE
        self._transport_factory = transport_factory
        self._repl = RawRepl(self._write)
        self._executor = ChunkedExecutor(self._write, slice_size, pacing_unit)
        self._pending = None
        self._lock = threading.RLock()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @staticmethod
    def list_available():
        """Serial ports exposing a USB vendor id, in enumeration order."""
        ports = [p for p in SerialTransport.list_ports() if p.vid]
        if not ports:
            raise NoPortsAvailableError()
        return ports

    @property
    def is_open(self):
        return self.port is not None and self.port.is_open

    @property
    def is_executing(self):
        return self.state is not SessionState.IDLE

    @property
    def raw_repl(self):
        return self._repl.active

    def open(self, port):
        if self.port is not None:
            self._cancel_pending()
            self.port.close()
        self._decoder.reset()
        self.port = self._transport_factory(port, self.baudrate)
        self.port.on("open", self._on_open)
        self.port.on("data", self._on_data)
        self.port.on("error", self._on_error)
        self.port.open()

    def close(self):
        self.emit("disconnected")
        self._cancel_pending()
        if self.port is not None:
            self.port.close()
            self.port = None

    def execute(self, code):
        """Run `code` on the board through the raw REPL.

        Returns a Future resolved once the script has been transmitted and
        raw mode exited. The Future is cancelled if the transmission is
        preempted or stopped.
        """
        return self._execute(code)

    def _execute(self, code, success_event=None):
        with self._lock:
            if self._pending is not None and not self._pending.done():
                if self.on_busy == REJECT:
                    raise SessionBusyError()
                logger.warning("new execution preempts one still transmitting")
                self._pending.cancel()
            self.emit("execution-started")
            self.state = SessionState.ENTERING_RAW
            try:
                self._repl.interrupt()
                self._repl.enter()
            except Exception:
                self.state = SessionState.IDLE
                raise
            self.state = SessionState.TRANSMITTING
            done = Future()
            pending = self._executor.submit(code)
            self._pending = pending
        pending.future.add_done_callback(lambda f: self._on_transmitted(pending, done, success_event))
        return done

    def evaluate(self, command):
        self._write(command)

    def stop(self):
        self._cancel_pending()
        self._repl.interrupt()

    def soft_reset(self):
        self._repl.soft_reset()

    def list_files(self, path=None):
        self.data = ""
        return self.execute(codegen.list_files_code(path))

    def load_file(self, path):
        self.data = ""
        return self.execute(codegen.load_file_code(path))

    def write_file(self, path, content):
        if not path or not content:
            return None
        return self._execute(codegen.write_file_code(path, content),
                             success_event="file-saved")

    def remove_file(self, path):
        return self.execute(codegen.remove_file_code(path))

    def rename_file(self, old_path, new_path):
        return self.execute(codegen.rename_file_code(old_path, new_path))

    def _write(self, data):
        if self.port is None:
            raise NotConnectedError()
        self.port.write(data)

    def _cancel_pending(self):
        with self._lock:
            pending, self._pending = self._pending, None
            if pending is not None:
                pending.cancel()
                self.state = SessionState.IDLE

    def _on_transmitted(self, pending, done, success_event=None):
        future = pending.future
        if future.cancelled():
            done.cancel()
            return
        error = future.exception()
        listener_error = None
        if error is None:
            listener_error = self._emit_guarded("execution-finished")
        with self._lock:
            # A newer execution (or close) owns the raw REPL otherwise
            if self._pending is pending:
                self._pending = None
                if error is None:
                    self.state = SessionState.EXITING_RAW
                    try:
                        self._repl.exit()
                    except Exception as e:
                        error = e
                self.state = SessionState.IDLE
        if error is None and success_event is not None:
            listener_error = listener_error or self._emit_guarded(success_event)
        error = error or listener_error
        if error is not None:
            logger.warning("execution failed: %s", error)
            done.set_exception(error)
        else:
            done.set_result(None)

    def _emit_guarded(self, event):
        # Listener errors end up on the execution Future instead of the worker thread
        try:
            self.emit(event)
        except Exception as e:
            logger.exception("%s listener failed", event)
            return e
        return None

    def _on_open(self):
        self.emit("connected")
        self.port.write(CR)

    def _on_data(self, data):
        text = self._decoder.decode(data)
        if text:
            self.emit("output", text)

    def _on_error(self, e):
        self.emit("error", e)
