#!/usr/bin/env python3
"""
Test Property, NumberProperty and Emitter.
"""

import sys

import numpy as np
import pytest

from felab.observable import Emitter, NumberProperty, Property


def test_link_and_lazy_link():
    prop = Property(1)
    calls = []

    prop.link(lambda new, old: calls.append(('link', new, old)))
    prop.lazy_link(lambda new, old: calls.append(('lazy', new, old)))
    assert calls == [('link', 1, None)]

    prop.value = 2
    assert calls[1:] == [('link', 2, 1), ('lazy', 2, 1)]
    assert prop.listener_count == 2


def test_equal_value_does_not_notify():
    prop = Property(np.array([1.0, 2.0]))
    calls = []
    prop.lazy_link(lambda new, old: calls.append(new))

    prop.value = np.array([1.0, 2.0])
    assert calls == []
    prop.value = np.array([1.0, 3.0])
    assert len(calls) == 1


def test_dispose():
    prop = Property(0)
    calls = []
    subscription = prop.lazy_link(lambda new, old: calls.append(new))

    subscription.dispose()
    subscription.dispose()
    assert subscription.disposed
    assert prop.listener_count == 0

    prop.value = 1
    assert calls == []


def test_validator_blocks_change():
    def positive(value):
        if value <= 0:
            raise ValueError(value)

    prop = Property(1, validator=positive)
    calls = []
    prop.lazy_link(lambda new, old: calls.append(new))

    with pytest.raises(ValueError):
        prop.value = -1
    assert prop.value == 1
    assert calls == []

    with pytest.raises(ValueError):
        Property(0, validator=positive)


def test_reset():
    prop = Property('a')
    prop.value = 'b'
    prop.reset()
    assert prop.value == 'a'
    assert prop.initial_value == 'a'


def test_number_property():
    prop = NumberProperty(5, value_range=(0, 10), name='loops')
    prop.value = 10
    with pytest.raises(ValueError):
        prop.value = 10.5
    with pytest.raises(ValueError):
        prop.value = float('inf')
    with pytest.raises(TypeError):
        prop.value = '3'
    with pytest.raises(TypeError):
        prop.value = True
    assert prop.value == 10

    integer = NumberProperty(2, value_range=(1, 3), integer=True)
    integer.value = 3.0
    with pytest.raises(ValueError):
        integer.value = 2.5

    with pytest.raises(ValueError):
        NumberProperty(0, value_range=(1, 0))
    with pytest.raises(ValueError):
        NumberProperty(11, value_range=(0, 10))

    assert NumberProperty(100, value_range=(100, 100)).has_fixed_value
    assert not prop.has_fixed_value


def test_emitter():
    emitter = Emitter()
    calls = []

    def once():
        calls.append('once')
        subscription.dispose()

    subscription = emitter.add_listener(once)
    emitter.add_listener(lambda: calls.append('always'))

    emitter.emit()
    emitter.emit()
    assert calls == ['once', 'always', 'always']
    assert emitter.listener_count == 1


def test_emitter_passes_arguments():
    emitter = Emitter()
    received = []
    emitter.add_listener(lambda dt: received.append(dt))
    emitter.emit(1.0)
    assert received == [1.0]


def main():
    return pytest.main([__file__, '-v'])


if __name__ == '__main__':
    sys.exit(main())
