"""Logging set-up, dataset reading and report files."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from onejoin.constants import Params
from onejoin.models import Device, OutputValues
from onejoin.timing import Timer

LOGGER_NAME = "onejoin"
_HANDLER_NAME = "onejoin-console"
_LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
_LABEL_WIDTH = 50

logger = logging.getLogger(LOGGER_NAME)


def init_logging(debug: bool = False) -> logging.Logger:
    """Send package log records to stdout; debug records only when asked."""
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    return logger


def print_configuration(
    params: Params,
    batch_size: int,
    n_batches: int,
    num_strings: int,
    countfilter: int,
    samplingrange: int,
) -> None:
    """Log the parameters a join runs with."""
    rows = [
        ("\tNum of strings:", num_strings),
        ("\tLen output:", params.len_output()),
        ("\tSamplingrange:", samplingrange),
        ("\tNumber of Hash Function:", params.num_hash),
        ("\tNumber of Bits per hash function:", params.num_bits),
        ("\tNumber of Random Strings per input string:", params.num_str),
        ("\tNumber of Replication per input string:", params.num_rep()),
        ("\tK distance:", params.k_input),
        ("\tCount filter:", countfilter),
        ("\tBatch size:", batch_size),
        ("\tNumber of batches:", n_batches),
    ]
    logger.info("%s", "Parameter selected:".ljust(_LABEL_WIDTH))
    for label, value in rows:
        logger.info("%s%s", label.ljust(_LABEL_WIDTH), value)


def report_file_name(device: int, batch_size: int) -> str:
    """Suffix of the report file naming the device and the batch size."""
    names = {Device.CPU: "-CPU-", Device.GPU: "-GPU-", Device.BOTH: "-BOTH-"}
    try:
        prefix = names[Device(device)]
    except ValueError:
        prefix = "-ERROR"
    return f"{prefix}{batch_size}"


def read_dataset(filename: str | Path) -> list[str]:
    """Read one input string per line."""
    logger.info("Reading dataset...")
    try:
        with open(filename, encoding="utf-8", newline="") as handle:
            content = handle.read()
    except OSError:
        logger.error("Error opening input file")
        raise
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def save_report(
    device: int,
    batch_size: int,
    dataset_name: str,
    output_values: OutputValues,
    timer: Timer,
) -> Path | None:
    """Write the timing report to report-<dataset><device><batch>.csv.

    Returns the path written, or None when the file could not be opened.
    """
    path = Path(f"report-{dataset_name}{report_file_name(device, batch_size)}.csv")
    try:
        with open(path, "w", encoding="utf-8") as out:
            timer.write_report(
                output_values.dev,
                output_values.num_candidates,
                output_values.num_outputs,
                out,
            )
    except OSError:
        logger.warning("Cannot write report file %s", path)
        return None
    return path