"""Cross-correlation of packet arrival traces."""

__version__ = "0.2.0"

from xcor.lib.constants import (
    DEFAULT_LAG_WINDOW_MS,
    XcorError, UsageError, ParseError, TraceIOError,
    EmptyInputError, IndexOutOfRangeError,
)
from xcor.lib.parse_traces import parse_int, read_integer_sequence, read_trace
from xcor.lib.utils import (
    LagCorrelation, aggregate, statistics, crosscorrelate, format_results,
)
