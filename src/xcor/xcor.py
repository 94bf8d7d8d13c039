#!/usr/bin/env python3
"""Calculate the cross-correlation between two packet arrival traces.

Each trace records the arrival time of every packet, one integer per line in
milliseconds. The arrivals are first binned into throughput counts, i.e.
packets per BIN_DURATION milliseconds, then the two count series are
cross-correlated at every lag within a one minute window on either side.

One line is printed per lag, '<lag in ms>: <coefficient>', in increasing
order of lag. Supply the same file twice to obtain the autocorrelation.

Sample recipes:

    Cross-correlate uplink and downlink traces in 100ms bins:
        $ xcor 100 uplink.trace downlink.trace > xcor.txt

    Save options to a configuration file for later runs:
        $ xcor -w 30000 --save xcor.conf
        $ xcor --config xcor.conf 100 uplink.trace downlink.trace
"""

import inspect
import functools
import os
import sys
import time
from pathlib import Path

import configargparse

from xcor.lib.constants import (
    DEFAULT_LAG_WINDOW_MS, ParseError, UsageError, XcorError,
)
from xcor.lib.logging import get_logger, set_logfile, verbosity2level
from xcor.lib.parse_traces import open_trace, parse_int, read_integer_sequence
from xcor.lib.utils import (
    ArgparseCustomFormatter, parse_docstring_description,
    aggregate, crosscorrelate, format_results,
)

logger = get_logger(__name__, human_readable=True)

USAGE = "BIN_DURATION (in milliseconds) trace1 trace2"

PROFILE_LEVEL = 0
def profile(f):
    """Performs a simple timing profile.

    Modifies the logging facility to log the name of the function being
    called, instead of the usual encapsulating function.
    """

    # Allows actual function to be logged rather than wrapped
    caller = inspect.getframeinfo(inspect.stack()[1][0])
    extras = {
        "_funcname": f"[{f.__name__}]",
        "_filename": os.path.basename(caller.filename),
    }

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        global PROFILE_LEVEL
        pad = "  " * PROFILE_LEVEL
        logger.debug(
            "%sSTART PROFILING", pad,
            stacklevel=2, extra=extras,
        )
        PROFILE_LEVEL += 1

        try:
            start = time.time()
            result = f(*args, **kwargs)
        finally:
            end = time.time()
            elapsed = end - start
            logger.debug(
                "%sEND PROFILING: %.3f s", pad, elapsed,
                stacklevel=2, extra=extras,
            )
            PROFILE_LEVEL -= 1

        return result
    return wrapper


def parse_duration(text: str, name: str) -> int:
    """Parses a strictly positive duration given on the command line."""
    value = parse_int(text)
    if value == 0:
        raise ParseError(text, f"invalid {name}: {text}")
    return value

def get_max_lag(bin_duration: int, lag_window: int = DEFAULT_LAG_WINDOW_MS) -> int:
    """Returns the one-sided lag window in units of bins, rounded down."""
    return lag_window // bin_duration


# Main algorithm
@profile
def xcor(
        trace1: str,
        trace2: str,
        bin_duration: int,
        lag_window: int = DEFAULT_LAG_WINDOW_MS,
        display: bool = False,
    ):
    """Reads, bins and cross-correlates two trace files.

    Both traces are opened before either is read, so that a missing file is
    reported ahead of any parsing errors. The files are released before the
    correlation starts.

    Args:
        trace1: Path to the reference trace.
        trace2: Path to the lagged trace.
        bin_duration: Width of each throughput bin, in ms.
        lag_window: Maximum lag on either side of zero, in ms.
        display: Show a progress bar during correlation.

    Returns:
        List of (lag, coefficient) pairs, with lag in units of bins.
    """
    with open_trace(trace1) as f1, open_trace(trace2) as f2:
        arrivals1 = read_integer_sequence(f1)
        arrivals2 = read_integer_sequence(f2)
    logger.debug(
        "  Read %d and %d arrivals.", len(arrivals1), len(arrivals2),
    )

    counts1 = aggregate(arrivals1, bin_duration)
    counts2 = aggregate(arrivals2, bin_duration)
    max_lag = get_max_lag(bin_duration, lag_window)
    logger.debug("  Binned arrivals:", extra={"details": [
        f"Bin width: {bin_duration:d} ms",
        f"Bins: {len(counts1):d} and {len(counts2):d}",
        f"Max lag: +/-{max_lag:d} bins",
    ]})

    return crosscorrelate(counts1, counts2, max_lag, display=display)


def main(argv=None):
    script_name = Path(sys.argv[0]).name
    if argv is None:
        argv = sys.argv[1:]
    parser = configargparse.ArgumentParser(
        default_config_files=[f"{script_name}.default.conf"],
        description=parse_docstring_description(__doc__),
        formatter_class=ArgparseCustomFormatter,
        add_help=False,
        usage=f"{script_name} [options] {USAGE}",
    )

    # Disable Black formatting
    # fmt: off

    # Display arguments (group with defaults)
    pgroup_config = parser.add_argument_group("display/configuration")
    pgroup_config.add_argument(
        "-h", "--help", action="store_true",
        help="Show this help message and exit")
    pgroup_config.add_argument(
        "-v", "--verbosity", action="count", default=0,
        help="Specify debug verbosity, e.g. -vv for more verbosity")
    pgroup_config.add_argument(
        "-L", "--logging", metavar="",
        help="Log to file, if specified. Log level follows verbosity.")
    pgroup_config.add_argument(
        "-q", "--quiet", action="store_true",
        help="Suppress error messages, exit status is unaffected")
    pgroup_config.add_argument(
        "--config", metavar="", is_config_file_arg=True,
        help="Path to configuration file")
    pgroup_config.add_argument(
        "--save", metavar="", is_write_out_config_file_arg=True,
        help="Path to configuration file for saving, then immediately exit")
    pgroup_config.add_argument(
        "-p", "--progress", action="store_true",
        help="Display progress bar during correlation")

    # Correlation parameters
    pgroup_xcor = parser.add_argument_group("correlation parameters")
    pgroup_xcor.add_argument(
        "bin_duration", nargs="?", metavar="BIN_DURATION",
        help="Width of throughput bins, in units of ms")
    pgroup_xcor.add_argument(
        "trace1", nargs="?",
        help="Trace of packet arrival times (reference)")
    pgroup_xcor.add_argument(
        "trace2", nargs="?",
        help="Trace of packet arrival times (lagged)")
    pgroup_xcor.add_argument(
        "-w", "--lag-window", metavar="", default=str(DEFAULT_LAG_WINDOW_MS),
        help="Specify maximum lag on either side, in units of ms (default: %(default)sms)")
    pgroup_xcor.add_argument(
        "-o", "--output", metavar="",
        help="Write results to file instead of stdout")

    # fmt: on
    args, unknown = parser.parse_known_args(argv)

    # Check whether options have been supplied, and print help otherwise
    args_sources = parser.get_source_to_settings_dict().keys()
    config_supplied = any(map(lambda x: x.startswith("config_file"), args_sources))
    if args.help or (len(argv) == 0 and not config_supplied):
        parser.print_help(sys.stderr)
        sys.exit(1)

    # Set logging level and log arguments
    if args.logging is not None:
        set_logfile(logger, args.logging, human_readable=True)
    logger.setLevel(verbosity2level(args.verbosity))
    logger.info("%s", args)

    try:
        positionals = (args.bin_duration, args.trace1, args.trace2)
        if unknown or None in positionals:
            raise UsageError(f"usage: {script_name} {USAGE}")

        bin_duration = parse_duration(args.bin_duration, "bin duration")
        lag_window = parse_int(args.lag_window)
        results = xcor(
            args.trace1, args.trace2, bin_duration,
            lag_window=lag_window, display=args.progress,
        )

        # Print out the cross-correlation as a function of lag, in ms
        lines = format_results(results, bin_duration)
        if args.output is None:
            for line in lines:
                print(line, file=sys.stdout)
        else:
            with open(args.output, "w") as f:
                for line in lines:
                    f.write(f"{line}\n")
            logger.info("Results written to '%s'.", args.output)
    except (XcorError, OSError) as e:
        logger.debug("Correlation aborted.", exc_info=True)
        if not args.quiet:
            print(f"{script_name}: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
