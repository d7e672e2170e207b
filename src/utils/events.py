"""Minimal synchronous event emitter."""

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)


class Event:
    """A named event that calls its listeners in registration order.

    A failing listener is logged and does not stop the others.
    """

    def __init__(self, name: str):
        self.name = name
        self._listeners: List[Callable] = []

    def add_listener(self, listener: Callable):
        if not callable(listener):
            raise ValueError("Listener must be callable")
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, *args, **kwargs):
        for listener in list(self._listeners):
            try:
                listener(*args, **kwargs)
            except Exception:
                logger.exception(f"Error in {self.name} event listener")
