import math

import numpy as np
import pytest

from xcor.lib.constants import EmptyInputError
from xcor.lib.utils import LagCorrelation, crosscorrelate, format_results

def reference_crosscorrelate(input1, input2, max_lag):
    """Direct double-loop evaluation, using plain Python floats."""
    def stats(values):
        n = len(values)
        mean = float(sum(values)) / n
        total_difference = 0.0
        total_variance = 0.0
        for value in values:
            diff = value - mean
            total_difference += diff
            total_variance += diff * diff
        return mean, (total_variance - total_difference * total_difference / n) / (n - 1)

    mean1, variance1 = stats(input1)
    mean2, variance2 = stats(input2)
    result = []
    for lag in range(-max_lag, max_lag + 1):
        total = 0.0
        count = 0
        for index1 in range(len(input1)):
            index2 = index1 + lag
            if 0 <= index2 < len(input2):
                total += (input1[index1] - mean1) * (input2[index2] - mean2)
                count += 1
        result.append((lag, (total / count) / (math.sqrt(variance1) * math.sqrt(variance2))))
    return result

def random_counts(seed, size, high=20):
    rng = np.random.default_rng(seed)
    return [int(v) for v in rng.integers(0, high, size=size)]

@pytest.mark.parametrize("max_lag", [0, 1, 5, 20])
def test_output_shape(max_lag):
    result = crosscorrelate([1, 2, 3], random_counts(0, 50), max_lag)
    assert len(result) == 2 * max_lag + 1
    assert [r.lag for r in result] == list(range(-max_lag, max_lag + 1))

def test_output_pairs():
    result = crosscorrelate([1, 2, 3], [3, 2, 1], 1)
    assert all(isinstance(r, LagCorrelation) for r in result)
    lag, coefficient = result[1]
    assert lag == 0 and coefficient == pytest.approx(-2/3)

def test_binned_autocorrelation():
    """Counts of the trace 0,0,100,100,200 in 100ms bins."""
    result = dict(crosscorrelate([2, 2, 1], [2, 2, 1], 2))
    assert result[0] == pytest.approx(2/3)
    assert result[1] == pytest.approx(-1/6)
    assert result[-1] == pytest.approx(-1/6)
    assert result[2] == pytest.approx(-2/3)
    assert result[-2] == pytest.approx(-2/3)

def test_autocorrelation_at_zero_lag():
    """Mean product over n, normalized by the (n-1) sample variance."""
    x = random_counts(1, 400)
    result = dict(crosscorrelate(x, x, 10))
    assert result[0] == pytest.approx((len(x) - 1) / len(x))

def test_autocorrelation_symmetric():
    x = random_counts(2, 300)
    result = dict(crosscorrelate(x, x, 50))
    for lag in range(1, 51):
        assert result[lag] == result[-lag]

def test_lagged_copy_peaks_at_offset():
    x = random_counts(3, 500)
    shift = 7
    y = [0] * shift + x  # y[i + shift] == x[i]
    result = crosscorrelate(x, y, 20)
    best = max(result, key=lambda r: r.coefficient)
    assert best.lag == shift

def test_matches_direct_evaluation():
    x = random_counts(4, 120)
    y = random_counts(5, 90)
    result = crosscorrelate(x, y, 30)
    expected = reference_crosscorrelate(x, y, 30)
    assert [tuple(r) for r in result] == expected

def test_no_overlap_is_nan():
    result = dict(crosscorrelate([1, 2], [3, 5], 3))
    assert not math.isnan(result[1])
    assert not math.isnan(result[-1])
    for lag in (-3, -2, 2, 3):
        assert math.isnan(result[lag])

def test_zero_variance_is_not_finite():
    result = crosscorrelate([3, 3, 3], [1, 2, 3], 1)
    assert len(result) == 3
    assert all(not math.isfinite(r.coefficient) for r in result)

def test_single_bin_is_nan():
    result = crosscorrelate([4], [4], 2)
    assert all(math.isnan(r.coefficient) for r in result)

def test_empty_input():
    with pytest.raises(EmptyInputError):
        crosscorrelate([], [1, 2], 1)
    with pytest.raises(EmptyInputError):
        crosscorrelate([1, 2], [], 1)

def test_negative_max_lag():
    with pytest.raises(ValueError):
        crosscorrelate([1, 2], [1, 2], -1)

def test_does_not_modify_input():
    x = np.array([1, 5, 2, 8])
    copy = x.copy()
    crosscorrelate(x, x, 2)
    assert np.array_equal(x, copy)

def test_progress_display(capsys):
    result = crosscorrelate([1, 2, 3], [3, 1, 2], 2, display=True)
    assert len(result) == 5
    assert capsys.readouterr().out == ""

def test_format_results():
    results = [
        LagCorrelation(-2, -0.13245321),
        LagCorrelation(-1, 0.5),
        LagCorrelation(0, 1.0),
        LagCorrelation(1, 1e-7),
        LagCorrelation(2, math.nan),
        LagCorrelation(3, math.inf),
        LagCorrelation(4, -math.inf),
    ]
    assert list(format_results(results, 100)) == [
        "-200: -0.132453",
        "-100: 0.5",
        "0: 1",
        "100: 1e-07",
        "200: nan",
        "300: inf",
        "400: -inf",
    ]

@pytest.mark.slow
def test_matches_direct_evaluation_long():
    x = random_counts(6, 3000, high=100)
    y = random_counts(7, 2500, high=100)
    result = crosscorrelate(x, y, 600)
    assert [tuple(r) for r in result] == reference_crosscorrelate(x, y, 600)
