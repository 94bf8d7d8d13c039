#!/usr/bin/env python3
"""Reads and writes packet arrival traces.

A trace is a text file holding one non-negative decimal integer per line,
each being the arrival time of a single event (usually in milliseconds).
Timestamps are assumed to be sorted in non-decreasing order; this is not
checked here, see 'aggregate' for the consequences of unsorted traces.

Only the canonical decimal representation of each timestamp is accepted,
i.e. no sign, no leading zeros and no surrounding whitespace. Reading stops
at the end of the stream, or at the first blank line, whichever comes first.

Sample recipes:

    Read a trace into memory:
        >>> events = read_trace("traces/uplink.trace")

    Summarize a trace, binned into 100ms intervals:
        $ python -m xcor.lib.parse_traces -b 100 traces/uplink.trace
"""

import argparse
import contextlib
import pathlib
import sys
from typing import Optional, TextIO, BinaryIO, Union

import numpy as np

from xcor.lib.constants import ParseError, TraceIOError
from xcor.lib.utils import aggregate, statistics

INT_MAX = int(np.iinfo(np.int64).max)


#############
#  READERS  #
#############

def parse_int(text: str) -> int:
    """Parses a non-negative integer, verifying that it round-trips.

    The string must be exactly the canonical decimal representation of the
    value, otherwise a ParseError is raised, e.g. '007', '-5', '+5', ' 5'
    and '12a' are all rejected.
    """
    if not (text.isascii() and text.isdigit()):
        raise ParseError(text)
    if len(text) > len(str(INT_MAX)):
        raise ParseError(text, f"integer out of range: {text}")
    value = int(text)
    if str(value) != text:
        raise ParseError(text)
    if value > INT_MAX:
        raise ParseError(text, f"integer out of range: {text}")
    return value

def read_integer_sequence(stream: Union[TextIO, BinaryIO]) -> np.ndarray:
    """Reads newline-delimited integers from an open stream.

    Both text and binary streams are accepted; binary lines are decoded as
    ASCII. Only the line terminator is removed before parsing, so a trailing
    carriage return or space will fail the canonical check. A blank line
    terminates the read early, and any lines following it are ignored.

    The stream is consumed but not closed.
    """
    values = []
    for line in stream:
        if isinstance(line, bytes):
            try:
                line = line.decode("ascii")
            except UnicodeDecodeError:
                raise ParseError(line.decode("ascii", errors="replace").rstrip("\n"))
        if line.endswith("\n"):
            line = line[:-1]
        if line == "":
            break
        values.append(parse_int(line))
    return np.array(values, dtype=np.int64)

@contextlib.contextmanager
def open_trace(filename: Union[str, pathlib.Path]):
    """Opens a trace file for reading, in binary mode.

    Raises TraceIOError if the file cannot be opened. The file is closed
    when the context exits, including on parsing failures.
    """
    try:
        f = open(filename, "rb")
    except OSError as e:
        raise TraceIOError(filename, reason=e.strerror) from e
    with f:
        yield f

def read_trace(filename: Union[str, pathlib.Path]) -> np.ndarray:
    """Reads a trace file into a read-only array of timestamps."""
    with open_trace(filename) as f:
        events = read_integer_sequence(f)
    events.flags.writeable = False
    return events


#############
#  WRITERS  #
#############

def write_trace(filename: Union[str, pathlib.Path], events: list):
    """Writes timestamps in canonical form, one per line.

    Negative timestamps cannot be read back and are rejected.
    """
    events = np.asarray(events, dtype=np.int64)
    if events.size != 0 and events.min() < 0:
        raise ValueError("Timestamps must be non-negative.")
    with open(filename, "w") as f:
        for event in events:
            f.write(f"{int(event):d}\n")


##############
#  PRINTERS  #
##############

def print_statistics(
        filename: str,
        events: list,
        bin_duration: Optional[int] = None,
        file: Optional[TextIO] = None,
    ):
    """Prints summary statistics of a trace.

    If 'bin_duration' is supplied, the statistics of the binned event counts
    are reported as well, i.e. what 'crosscorrelate' normalizes against.
    """
    def _print(*args):
        print(*args, file=file)

    _print(f"Name: {str(filename)}")
    if pathlib.Path(filename).is_file():
        filesize = pathlib.Path(filename).stat().st_size/(1 << 20)
        _print(f"Filesize (MB): {filesize:.3f}")
    num_events = len(events)
    width = 0
    if num_events != 0:
        width = int(np.floor(np.log10(num_events))) + 1
    _print(    f"Total events    : {num_events:>{width}d}")
    if num_events == 0:
        return

    start, end = int(events[0]), int(events[-1])
    duration = end - start
    _print(f"Duration (ms) : {duration:d}")
    _print(f"  ~ start     : {start:d}")
    _print(f"  ~ end       : {end:d}")
    if duration != 0:
        _print(f"Event rate (/s) : {num_events * 1000 / duration:.3f}")

    if bin_duration is not None:
        counts = aggregate(events, bin_duration)
        mean, variance = statistics(counts)
        _print(f"Bins ({bin_duration:d} ms) : {len(counts):d}")
        _print(f"  ~ mean      : {mean:g}")
        _print(f"  ~ variance  : {variance:g}")


def main():
    parser = argparse.ArgumentParser(
        description="Prints statistics of packet arrival traces.")
    parser.add_argument(
        "-b", "--bin-duration", type=parse_int,
        help="Bin width for count statistics, in ms")
    parser.add_argument("traces", nargs="+", help="Trace files")

    # Print help if no arguments supplied
    if len(sys.argv) == 1:
        parser.print_help(sys.stderr)
        sys.exit(1)

    args = parser.parse_args()
    for filename in args.traces:
        events = read_trace(filename)
        print_statistics(filename, events, args.bin_duration)

if __name__ == "__main__":
    main()
