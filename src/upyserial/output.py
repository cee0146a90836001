"""
Consumer-side handling of the text a SerialConnection emits.

Nothing in the session depends on this module; it is what the command line
tool uses to turn raw REPL output into results.
"""

import ast
import json
import re
import threading

from .codegen import BEGIN_MARKER, END_MARKER

NOISE_PATTERNS = [
    r"raw REPL; CTRL-B to exit",
    r"^>+$",
    r"^OK$",
    r"^MicroPython v[0-9.]+",
    r"^Type \"help\(\)\" for more information\.",
]


def filter_line(line):
    # Drops raw REPL banners and prompts
    for pat in NOISE_PATTERNS:
        if re.search(pat, line):
            return False
    return True


def clean_output(text):
    text = text.replace("\x04", "").replace("\r\n", "\n")
    if text.startswith("OK"):
        text = text[2:]
    lines = [line for line in text.split("\n") if filter_line(line.strip())]
    return "\n".join(lines).strip("\n")


def extract_payload(text):
    """Text printed between the sentinels, or None when they are missing."""
    start = text.find(BEGIN_MARKER)
    if start == -1:
        return None
    start += len(BEGIN_MARKER)
    end = text.find(END_MARKER, start)
    if end == -1:
        return None
    payload = text[start:end].replace("\r\n", "\n")
    # print() puts a newline after each marker
    if payload.startswith("\n"):
        payload = payload[1:]
    return payload


def parse_listing(payload):
    data = (payload or "").strip()
    if not data:
        return []
    try:
        return json.loads(data)
    except ValueError:
        try:
            return ast.literal_eval(data)
        except (ValueError, SyntaxError):
            return []


class OutputCollector:
    """Accumulates "output" events until the end sentinel shows up."""

    def __init__(self, marker=END_MARKER):
        self.marker = marker
        self.text = ""
        self._lock = threading.Lock()
        self._seen = threading.Event()

    def __call__(self, fragment):
        with self._lock:
            self.text += fragment
            if self.marker and self.marker in self.text:
                self._seen.set()

    def wait(self, timeout):
        """True if the marker arrived before `timeout` seconds."""
        return self._seen.wait(timeout)
