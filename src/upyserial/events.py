"""
Minimal publish/subscribe used to signal connection lifecycle and output.

Listeners run synchronously on the thread that emits, which may be the
serial reader thread or an executor worker thread.
"""

import logging
import threading
from collections import defaultdict

logger = logging.getLogger(__name__)


class EventEmitter:
    def __init__(self):
        self._listeners = defaultdict(list)
        self._listeners_lock = threading.Lock()

    def on(self, event, callback):
        """Register `callback` for every future `event`. Returns the callback."""
        with self._listeners_lock:
            self._listeners[event].append((callback, False))
        return callback

    def once(self, event, callback):
        """Register `callback` for the next `event` only."""
        with self._listeners_lock:
            self._listeners[event].append((callback, True))
        return callback

    def off(self, event, callback):
        with self._listeners_lock:
            self._listeners[event] = [
                (cb, once) for cb, once in self._listeners[event] if cb is not callback
            ]

    def listener_count(self, event):
        with self._listeners_lock:
            return len(self._listeners[event])

    def emit(self, event, *args):
        """Call the listeners of `event` in registration order.

        Returns True if at least one listener was called. Exceptions raised
        by a listener propagate to the emitter.
        """
        with self._listeners_lock:
            listeners = list(self._listeners[event])
            if any(once for _, once in listeners):
                self._listeners[event] = [(cb, once) for cb, once in listeners if not once]
        if event != "output":
            logger.debug("emit %s (%d listeners)", event, len(listeners))
        for callback, _ in listeners:
            callback(*args)
        return bool(listeners)
