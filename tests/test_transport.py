import threading

import pytest
import serial

from upyserial.transport import SerialTransport


def test_not_opened_on_construction():
    transport = SerialTransport("loop://", baudrate=9600)
    assert not transport.is_open
    assert transport.serial.baudrate == 9600


def test_open_emits_and_reads_back():
    transport = SerialTransport("loop://")
    events = []
    received = []
    got_data = threading.Event()
    transport.on("open", lambda: events.append("open"))
    transport.on("close", lambda: events.append("close"))

    def on_data(data):
        received.append(data)
        if b"".join(received) == b"\r\x03":
            got_data.set()

    transport.on("data", on_data)
    transport.open()
    try:
        assert transport.is_open
        transport.write("\r")
        transport.write(b"\x03")
        assert got_data.wait(2)
    finally:
        transport.close()
    assert events == ["open", "close"]
    assert not transport.is_open


def test_close_twice_emits_once():
    transport = SerialTransport("loop://")
    closes = []
    transport.on("close", lambda: closes.append(1))
    transport.open()
    transport.close()
    transport.close()
    assert closes == [1]


def test_open_errors_propagate():
    transport = SerialTransport("/dev/this-port-does-not-exist")
    with pytest.raises(serial.SerialException):
        transport.open()


def test_reader_survives_a_failing_data_listener():
    transport = SerialTransport("loop://")
    failed = threading.Event()
    delivered = threading.Event()
    received = []

    def on_data(data):
        if not failed.is_set():
            failed.set()
            raise RuntimeError("listener bug")
        received.append(data)
        delivered.set()

    transport.on("data", on_data)
    transport.open()
    try:
        transport.write(b"a")
        assert failed.wait(2)
        transport.write(b"b")
        assert delivered.wait(2)
        assert transport._reader.is_alive()
    finally:
        transport.close()
    assert received == [b"b"]
