"""Command line entry point."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from onejoin.cluster import one_cluster
from onejoin.models import Algorithm, OutputValues
from onejoin.timing import Timer
from onejoin.join import onejoin
from onejoin.utils import init_logging, read_dataset, save_report

DEFAULT_MIN_POINTS = 10

logger = logging.getLogger(__name__)

_REQUIRED = ("read", "device", "samplingrange", "countfilter", "batch_size")


def build_parser() -> argparse.ArgumentParser:
    """Options of the onejoin command."""
    parser = argparse.ArgumentParser(prog="onejoin", description="onejoin [options]", add_help=False)
    parser.add_argument("-h", "--help", action="store_true", help="Display help")
    parser.add_argument("-a", "--alg", type=int, help="Algorithm to use: 1-join [default], 2-cluster")
    parser.add_argument("-r", "--read", help="File containing input strings")
    parser.add_argument("-d", "--device", type=int, help="Device: 0-CPU; 1-GPU; 2-both devices")
    parser.add_argument("-s", "--samplingrange", type=int, help="Max char to embed")
    parser.add_argument(
        "-c",
        "--countfilter",
        type=int,
        help="Min number of occurrencies for a pair to be considered a candidate",
    )
    parser.add_argument("-b", "--batch_size", type=int, help="Size of input strings batches")
    parser.add_argument("-v", "--verbose", action="store_true", help="[optional] Print debug information")
    parser.add_argument(
        "-n", "--dataset_name", default="", help="[optional] Name of dataset to use in the report name"
    )
    parser.add_argument(
        "-t",
        "--num_thread_ed_dist",
        type=int,
        default=0,
        help="[optional] Number of thread to use for edit distance. Default 0 (hardware concurrency)",
    )
    parser.add_argument(
        "-p",
        "--min_pts",
        type=int,
        default=DEFAULT_MIN_POINTS,
        help="[optional] Min number of neighbours a point has to have. Default 10",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run a join or a clustering from command line arguments; return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.help:
        parser.print_help(sys.stderr)
        return 0
    if any(getattr(args, name) is None for name in _REQUIRED):
        parser.print_help(sys.stderr)
        return 1

    alg = args.alg if args.alg in (Algorithm.JOIN, Algorithm.CLUSTER) else Algorithm.JOIN
    init_logging(args.verbose)

    try:
        strings = read_dataset(args.read)
    except OSError:
        return 1

    timer = Timer(alg == Algorithm.CLUSTER)
    output = OutputValues()
    try:
        if alg == Algorithm.JOIN:
            result = onejoin(
                strings,
                args.batch_size,
                args.device,
                args.samplingrange,
                args.countfilter,
                timer,
                num_threads=args.num_thread_ed_dist,
            )
            output = OutputValues(
                dev=result.device,
                num_candidates=result.num_candidates,
                num_outputs=result.num_outputs,
            )
        else:
            one_cluster(
                strings,
                args.batch_size,
                args.device,
                args.samplingrange,
                args.countfilter,
                timer,
                args.min_pts,
            )
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    save_report(args.device, args.batch_size, args.dataset_name, output, timer)
    return 0


if __name__ == "__main__":
    sys.exit(main())