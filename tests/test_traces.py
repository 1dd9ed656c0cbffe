import numpy as np
import pytest

from core.ring_buffer import RingBuffer
from core.traces import Trace, TraceMode


def test_clear_write_replaces_buffer_object():
    trace = Trace()
    trace.reset(3)
    before = trace.data
    sweep = np.array([1.0, 2.0, 3.0])

    trace.update(sweep)
    assert trace.data is not before
    assert trace.data is not sweep
    assert np.array_equal(trace.data, sweep)


def test_hold_freezes_trace():
    trace = Trace()
    trace.update(np.array([1.0, 2.0]))
    trace.set_mode(TraceMode.HOLD, 2)

    trace.update(np.array([9.0, 9.0]))
    assert not trace.is_updating
    assert np.array_equal(trace.data, [1.0, 2.0])


def test_min_hold_starts_at_positive_infinity():
    trace = Trace()
    trace.set_mode(TraceMode.MIN_HOLD, 4)
    assert np.all(np.isposinf(trace.data))


def test_average_blends_after_first_sweep():
    trace = Trace()
    trace.set_mode(TraceMode.AVERAGE, 2)

    trace.update(np.array([0.0, 0.0]), average_weight=0.2)
    assert np.array_equal(trace.data, [0.0, 0.0])

    trace.update(np.array([10.0, -10.0]), average_weight=0.2)
    assert trace.data == pytest.approx([2.0, -2.0])


def test_trace_dict_round_trip():
    trace = Trace(TraceMode.MAX_HOLD, is_visible=False)
    trace.reset(3)
    restored = Trace.from_dict(trace.to_dict())

    assert restored.mode is TraceMode.MAX_HOLD
    assert not restored.is_visible
    assert np.array_equal(restored.data, trace.data)


def test_ring_buffer_discards_oldest():
    buffer = RingBuffer(maxsize=2)
    for value in (1.0, 2.0, 3.0):
        buffer.put(np.full(2, value))

    assert buffer.as_array()[:, 0].tolist() == [2.0, 3.0]
    assert buffer.to_list()[-1] == [3.0, 3.0]


def test_ring_buffer_copies_rows():
    buffer = RingBuffer()
    row = np.zeros(2)
    buffer.put(row)
    row[0] = 5.0
    assert buffer.to_list() == [[0.0, 0.0]]


def test_ring_buffer_load_keeps_newest():
    buffer = RingBuffer(maxsize=2)
    buffer.load([[1.0], [2.0], [3.0]])
    assert buffer.to_list() == [[2.0], [3.0]]

    buffer.clear()
    assert buffer.to_list() == []
    assert buffer.as_array().shape == (0, 0)
