"""Tests for the synchronous event emitter."""

import pytest

from src.utils.events import Event


def test_listeners_called_in_order():
    calls = []
    event = Event("detected")
    event.add_listener(lambda value: calls.append(("first", value)))
    event.add_listener(lambda value: calls.append(("second", value)))

    event.emit(7)

    assert calls == [("first", 7), ("second", 7)]


def test_failing_listener_does_not_stop_others():
    calls = []
    event = Event("detected")

    def broken(value):
        raise RuntimeError("listener failed")

    event.add_listener(broken)
    event.add_listener(calls.append)

    event.emit("record")

    assert calls == ["record"]


def test_remove_listener():
    event = Event("detected")
    event.add_listener(print)
    event.remove_listener(print)
    event.remove_listener(print)

    assert event._listeners == []


def test_rejects_non_callable():
    with pytest.raises(ValueError):
        Event("detected").add_listener("not callable")
