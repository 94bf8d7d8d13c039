#!/usr/bin/env python3
"""Plot the cross-correlation between two packet arrival traces.

The correlation is computed exactly as 'xcor' does, then the coefficient is
plotted against the lag in milliseconds. Lags with undefined coefficients
are left as gaps in the plot.
"""

import sys
from pathlib import Path

import configargparse
import matplotlib.pyplot as plt
import numpy as np

from xcor.lib.constants import DEFAULT_LAG_WINDOW_MS, XcorError
from xcor.lib.logging import get_logger, set_logfile, verbosity2level
from xcor.lib.parse_traces import parse_int
from xcor.lib.utils import ArgparseCustomFormatter, parse_docstring_description
from xcor.xcor import parse_duration, xcor

logger = get_logger(__name__, human_readable=True)

def plotter(results, bin_duration, title=None, save=False, show=True):
    """Plots correlation coefficients against lag.

    Returns the figure, so that callers may further annotate it.
    """
    lags = np.array([r.lag for r in results]) * bin_duration
    coefficients = np.array([r.coefficient for r in results])
    coefficients[~np.isfinite(coefficients)] = np.nan

    fig, ax = plt.subplots()
    ax.plot(lags, coefficients)
    ax.axhline(0, color="grey", linewidth=0.5)
    ax.set_xlabel("Lag (ms)")
    ax.set_ylabel("Cross-correlation")
    if title:
        ax.set_title(title)
    if save:
        fig.savefig(save)
    if show:
        plt.show()
    return fig


def main(argv=None):
    script_name = Path(sys.argv[0]).name
    if argv is None:
        argv = sys.argv[1:]
    parser = configargparse.ArgumentParser(
        default_config_files=[f"{script_name}.default.conf"],
        description=parse_docstring_description(__doc__),
        formatter_class=ArgparseCustomFormatter,
        add_help=False,
    )

    # Boilerplate
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
        "--config", metavar="", is_config_file_arg=True,
        help="Path to configuration file")

    # Plotting parameters
    pgroup = parser.add_argument_group("plotting")
    pgroup.add_argument(
        "bin_duration", metavar="BIN_DURATION",
        help="Width of throughput bins, in units of ms")
    pgroup.add_argument("trace1", help="Trace of packet arrival times (reference)")
    pgroup.add_argument("trace2", help="Trace of packet arrival times (lagged)")
    pgroup.add_argument(
        "-w", "--lag-window", metavar="", type=parse_int, default=DEFAULT_LAG_WINDOW_MS,
        help="Specify maximum lag on either side, in units of ms (default: %(default)dms)")
    pgroup.add_argument(
        "--save-plot", metavar="",
        help="Specify filename to save the plot to")
    pgroup.add_argument(
        "--no-show", action="store_true",
        help="Do not open an interactive window")

    if len(argv) == 0 or "-h" in argv or "--help" in argv:
        parser.print_help(sys.stderr)
        sys.exit(1)

    args = parser.parse_args(argv)
    if args.logging is not None:
        set_logfile(logger, args.logging, human_readable=True)
    logger.setLevel(verbosity2level(args.verbosity))
    logger.debug("%s", args)

    try:
        bin_duration = parse_duration(args.bin_duration, "bin duration")
        results = xcor(args.trace1, args.trace2, bin_duration, args.lag_window)

        title = f"{Path(args.trace1).name} vs {Path(args.trace2).name}"
        plotter(
            results, bin_duration, title=title,
            save=args.save_plot, show=not args.no_show,
        )
    except (XcorError, OSError) as e:
        print(f"{script_name}: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
