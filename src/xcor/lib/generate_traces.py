#!/usr/bin/env python3
# Companion script to create synthetic packet arrival traces for xcor
#
# Examples:
#
#   1. Generate a 10 minute trace at 500 packets/s and save to file:
#
#      python -m xcor.lib.generate_traces -r 500 -d 600 -s 1 -o a.trace
#
#   2. Generate the same trace delayed by 2 seconds, then correlate.
#      The correlation peak should appear at a lag of 2000ms:
#
#      python -m xcor.lib.generate_traces -r 500 -d 600 -s 1 -l 2000 -o b.trace
#      xcor 100 a.trace b.trace
#
#   3. Pipe timestamps directly to stdout:
#
#      python -m xcor.lib.generate_traces -r 10 -d 5 | head
#

import argparse
import sys
from typing import Optional

import numpy as np

from xcor.lib.parse_traces import write_trace

def generate_trace(
        rate: float,
        duration: int,
        seed: Optional[int] = None,
        offset: int = 0,
    ) -> np.ndarray:
    """Returns sorted Poisson arrival times, in ms.

    Events falling before zero after applying 'offset' are dropped, so that
    the trace stays readable by xcor.

    Args:
        rate: Mean arrival rate, in events per second.
        duration: Length of the trace before shifting, in ms.
        seed: Seed for the random generator, for reproducible traces.
        offset: Delay added to every arrival, in ms.
    """
    assert rate >= 0 and duration >= 0
    rng = np.random.default_rng(seed)
    num_events = rng.poisson(rate * duration / 1000)
    events = np.sort(rng.integers(0, max(duration, 1), size=num_events))
    events = events + offset
    return events[events >= 0]

def main():
    parser = argparse.ArgumentParser(description="Generates packet arrival traces for testing xcor.")
    parser.add_argument("-r", type=float, default=100, help="arrival rate, in events/s (default: %(default)s)")
    parser.add_argument("-d", type=float, default=60, help="trace duration, in s (default: %(default)s)")
    parser.add_argument("-s", type=int, help="random seed")
    parser.add_argument("-l", type=int, default=0, help="delay applied to all arrivals, in ms (default: %(default)s)")
    parser.add_argument("-o", help="output file, defaults to stdout stream")
    args = parser.parse_args()

    events = generate_trace(args.r, int(args.d * 1000), seed=args.s, offset=args.l)
    if args.o:
        write_trace(args.o, events)
    else:
        for event in events:
            sys.stdout.write(f"{event:d}\n")

if __name__ == "__main__":
    main()
