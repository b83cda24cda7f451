"""
Observable State

Minimal reactive-state containers for model elements. A consumer (a view, a
debug panel, another model element) registers a listener and receives a
Subscription handle. The handle must be disposed when the consumer is torn
down, otherwise the observed object keeps the listener alive.

Usage:
    from felab.observable import NumberProperty

    strength = NumberProperty(225, value_range=(0, 300))
    subscription = strength.link(lambda new, old: print(new))
    strength.value = 100      # prints 100
    subscription.dispose()
"""

import math
from typing import Any, Callable, List, Optional, Tuple

import numpy as np

Listener = Callable[..., None]


def _values_equal(a: Any, b: Any) -> bool:
    """Equality that understands numpy arrays."""
    if isinstance(a, np.ndarray) or isinstance(b, np.ndarray):
        return np.array_equal(a, b)
    return a == b


class Subscription:
    """Handle for a registered listener. dispose() unregisters it."""

    def __init__(self, listeners: List[Listener], listener: Listener):
        self._listeners = listeners
        self._listener = listener
        self.disposed = False

    def dispose(self):
        if self.disposed:
            return
        self.disposed = True
        # identity match, the same callable may be registered more than once
        for i, registered in enumerate(self._listeners):
            if registered is self._listener:
                del self._listeners[i]
                break


class Emitter:
    """Notifies listeners each time emit() is called."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def add_listener(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self._listeners, listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, *args):
        # copy, listeners may dispose themselves while being notified
        for listener in list(self._listeners):
            listener(*args)


class Property:
    """
    A value that notifies listeners when it changes.

    Listeners are called with (new_value, old_value). Setting a value equal to
    the current value does not notify.

    Args:
        initial: Initial value, restored by reset()
        validator: Optional callable that raises ValueError for invalid values
    """

    def __init__(self, initial: Any, validator: Optional[Callable[[Any], None]] = None):
        self._validator = validator
        self._validate(initial)
        self._initial = initial
        self._value = initial
        self._listeners: List[Listener] = []

    def _validate(self, value: Any):
        if self._validator is not None:
            self._validator(value)

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new_value: Any):
        self._validate(new_value)
        if _values_equal(new_value, self._value):
            return
        old_value = self._value
        self._value = new_value
        for listener in list(self._listeners):
            listener(new_value, old_value)

    @property
    def initial_value(self) -> Any:
        return self._initial

    def reset(self):
        self.value = self._initial

    def link(self, listener: Listener) -> Subscription:
        """Register listener and call it immediately with the current value."""
        subscription = self.lazy_link(listener)
        listener(self._value, None)
        return subscription

    def lazy_link(self, listener: Listener) -> Subscription:
        """Register listener, called only on subsequent changes."""
        self._listeners.append(listener)
        return Subscription(self._listeners, listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


class NumberProperty(Property):
    """
    A numeric Property with an optional inclusive range and integer constraint.

    Values outside the range are a contract violation and raise ValueError;
    they are never clamped.
    """

    def __init__(self,
                 initial: float,
                 value_range: Optional[Tuple[float, float]] = None,
                 integer: bool = False,
                 name: str = 'value'):
        if value_range is not None and value_range[0] > value_range[1]:
            raise ValueError(f"{name}: invalid range {value_range}")
        self.range = value_range
        self.integer = integer
        self.name = name
        super().__init__(initial, validator=self._check)

    def _check(self, value: float):
        if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
            raise TypeError(f"{self.name} must be a number, got {type(value).__name__}")
        if not math.isfinite(value):
            raise ValueError(f"{self.name} must be finite, got {value}")
        if self.integer and int(value) != value:
            raise ValueError(f"{self.name} must be an integer, got {value}")
        if self.range is not None and not (self.range[0] <= value <= self.range[1]):
            raise ValueError(f"{self.name}={value} is outside range {self.range}")

    @property
    def has_fixed_value(self) -> bool:
        return self.range is not None and self.range[0] == self.range[1]
