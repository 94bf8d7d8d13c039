import argparse
from typing import Iterable, Iterator, NamedTuple

import numpy as np
import tqdm

from xcor.lib.constants import EmptyInputError, IndexOutOfRangeError


class LagCorrelation(NamedTuple):
    lag: int
    coefficient: float


def _sequential_sum(values: np.ndarray) -> np.float64:
    """Returns the left-to-right running total of 'values'.

    'np.sum' uses pairwise summation, which rounds differently from a plain
    accumulation loop. The last element of 'np.cumsum' does not.
    """
    if len(values) == 0:
        return np.float64(0)
    return np.cumsum(values, dtype=np.float64)[-1]


def aggregate(events: list, bin_duration: int) -> np.ndarray:
    """Returns the number of events falling in each bin.

    Bin i counts events in the half-open interval [i*w, (i+1)*w), where w is
    'bin_duration'. The number of bins is derived from the last event, so
    events must be sorted in non-decreasing order. Any event that falls
    outside the allocated bins raises IndexOutOfRangeError instead of
    growing the histogram.

    Examples:
        >>> aggregate([0, 0, 100, 100, 200], 100)
        array([2, 2, 1])
        >>> aggregate([5, 250], 100)
        array([1, 0, 1])
    """
    events = np.asarray(events, dtype=np.int64)
    if len(events) == 0:
        raise EmptyInputError("can't bin empty list of events")
    if bin_duration <= 0:
        raise ValueError(f"Bin duration must be positive, got {bin_duration}.")

    num_bins = 1 + int(events[-1]) // bin_duration
    indices = events // bin_duration
    oob = (indices < 0) | (indices >= num_bins)
    if oob.any():
        pos = int(np.argmax(oob))
        raise IndexOutOfRangeError(int(events[pos]), int(indices[pos]), num_bins)

    counts = np.bincount(indices, minlength=num_bins)
    counts.flags.writeable = False
    return counts


def statistics(values: list):
    """Returns the mean and sample variance of a sequence of integers.

    The variance carries a correction term for the residual sum of
    deviations, which is not exactly zero since the mean itself is rounded:

        var = (sum(d**2) - sum(d)**2 / n) / (n - 1),  d = x - mean

    A single value yields a NaN variance, which is left to propagate.
    """
    values = np.asarray(values, dtype=np.int64)
    n = len(values)
    if n == 0:
        raise EmptyInputError("can't calculate statistics on empty sequence")

    mean = np.float64(int(values.sum())) / n
    diffs = values.astype(np.float64) - mean
    total_difference = _sequential_sum(diffs)
    total_variance = _sequential_sum(diffs * diffs)
    with np.errstate(divide="ignore", invalid="ignore"):
        variance = (
            (total_variance - total_difference * total_difference / n)
            / np.float64(n - 1)
        )
    return float(mean), float(variance)


def crosscorrelate(
        input1: list,
        input2: list,
        max_lag: int,
        display: bool = False,
    ) -> list:
    """Returns the normalized cross-correlation for lags in [-max_lag, max_lag].

    For each lag, 'input1[i]' is paired with 'input2[i + lag]' wherever both
    indices are valid, and the mean product of deviations is divided by the
    product of standard deviations of the full sequences.

    Lags with no overlap, and inputs with zero variance, do not raise: the
    coefficient is the IEEE result of the division, i.e. NaN or +/-inf.

    Args:
        input1: Binned counts of the reference trace.
        input2: Binned counts of the lagged trace.
        max_lag: Maximum lag, in bins, on either side of zero.
        display: Show a progress bar over lags on stderr.
    """
    if max_lag < 0:
        raise ValueError(f"Maximum lag must be non-negative, got {max_lag}.")

    mean1, variance1 = statistics(input1)
    mean2, variance2 = statistics(input2)
    dev1 = np.asarray(input1, dtype=np.int64) - np.float64(mean1)
    dev2 = np.asarray(input2, dtype=np.int64) - np.float64(mean2)
    len1, len2 = len(dev1), len(dev2)

    lags = range(-max_lag, max_lag + 1)
    if display:
        lags = tqdm.tqdm(lags, desc="Correlating", unit="lag")

    result = []
    with np.errstate(divide="ignore", invalid="ignore"):
        norm = np.sqrt(np.float64(variance1)) * np.sqrt(np.float64(variance2))
        for lag in lags:
            # Range of 'index1' for which 'index1 + lag' is a valid 'index2'
            start = max(0, -lag)
            stop = min(len1, len2 - lag)
            count = max(0, stop - start)

            total = np.float64(0)
            if count != 0:
                total = _sequential_sum(
                    dev1[start:stop] * dev2[start+lag:stop+lag]
                )
            coefficient = (total / np.float64(count)) / norm
            result.append(LagCorrelation(lag, float(coefficient)))
    return result


def format_results(results: Iterable, bin_duration: int) -> Iterator[str]:
    """Yields output lines '<lag in time units>: <coefficient>'.

    Coefficients use the shortest '%g' rendering with six significant digits,
    so perfect correlation prints as '1' and degenerate values as 'nan',
    'inf' or '-inf'.
    """
    for lag, coefficient in results:
        yield f"{lag * bin_duration:d}: {coefficient:g}"


def parse_docstring_description(docstring: str) -> str:
    """Returns the leading description of a module docstring.

    Everything from the first section header onwards, e.g. 'Changelog:' or
    'Sample recipes:', is dropped.
    """
    if not docstring:
        return ""
    lines = []
    for line in docstring.strip().splitlines():
        stripped = line.strip()
        if stripped.endswith(":") and not line.startswith(" ") and lines:
            break
        lines.append(line)
    return "\n".join(lines).rstrip()


# https://stackoverflow.com/a/23941599
class ArgparseCustomFormatter(argparse.RawDescriptionHelpFormatter):

    RAW_INDICATOR = "rawtext|"

    def _format_action_invocation(self, action):
        if not action.option_strings:
            metavar, = self._metavar_formatter(action, action.dest)(1)
            return metavar

        # Optionals taking a value are shown as '-s, --long ARGS'
        # instead of '-s ARGS, --long ARGS'
        parts = list(action.option_strings)
        if action.nargs != 0:
            default = action.dest.upper()
            parts[-1] += " %s" % self._format_args(action, default)
        return ", ".join(parts)

    def _split_lines(self, text, width):
        marker = ArgparseCustomFormatter.RAW_INDICATOR
        if text.startswith(marker):
            return text[len(marker):].splitlines()
        return super()._split_lines(text, width)
