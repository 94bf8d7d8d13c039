import numpy as np
import pytest

from xcor.lib.constants import EmptyInputError, IndexOutOfRangeError
from xcor.lib.utils import aggregate

@pytest.mark.parametrize("events,width,expected", [
    ([0, 0, 100, 100, 200], 100, [2, 2, 1]),
    ([5, 250], 100, [1, 0, 1]),
    ([0], 100, [1]),
    ([99], 100, [1]),
    ([100], 100, [0, 1]),
    ([0, 1, 2, 3], 1, [1, 1, 1, 1]),
    ([7, 7, 7], 3, [0, 0, 3]),
])
def test_aggregate(events, width, expected):
    assert list(aggregate(events, width)) == expected

def test_aggregate_length():
    counts = aggregate([12, 345, 6789], 10)
    assert len(counts) == 6789 // 10 + 1

@pytest.mark.parametrize("width", [1, 3, 10, 100, 1000])
def test_aggregate_conserves_events(width):
    rng = np.random.default_rng(width)
    events = np.sort(rng.integers(0, 50000, size=2000))
    counts = aggregate(events, width)
    assert counts.sum() == len(events)

def test_aggregate_bucket_contents():
    rng = np.random.default_rng(1)
    events = np.sort(rng.integers(0, 10000, size=500))
    width = 37
    counts = aggregate(events, width)
    for t in events[::25]:
        index = t // width
        assert counts[index] == np.count_nonzero(events // width == index)

def test_aggregate_empty():
    with pytest.raises(EmptyInputError, match="can't bin empty list of events"):
        aggregate([], 100)

def test_aggregate_unsorted_out_of_range():
    """Size is taken from the last event, so larger earlier events overflow."""
    with pytest.raises(IndexOutOfRangeError) as excinfo:
        aggregate([0, 500, 100], 100)
    e = excinfo.value
    assert (e.event_time, e.index, e.length) == (500, 5, 2)
    assert isinstance(e, IndexError)

def test_aggregate_unsorted_within_range():
    """Unsorted events that still fit are binned without complaint."""
    assert list(aggregate([150, 0, 199], 100)) == [1, 2]

def test_aggregate_invalid_width():
    with pytest.raises(ValueError):
        aggregate([1, 2, 3], 0)

def test_aggregate_does_not_modify_input():
    events = np.array([0, 10, 20, 20])
    copy = events.copy()
    counts = aggregate(events, 10)
    assert np.array_equal(events, copy)
    assert not counts.flags.writeable
