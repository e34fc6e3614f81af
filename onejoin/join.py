"""The similarity join: embed, hash, collect candidates and verify them."""

from __future__ import annotations

import logging
import os
import platform
import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from itertools import groupby
from pathlib import Path
from typing import Iterable, Sequence

from onejoin.candidates import create_buckets, generate_candidates, initialize_candidate_pairs
from onejoin.constants import Params
from onejoin.embedding import (
    DEFAULT_SEED,
    build_dictionary,
    embed_all,
    generate_random_strings,
    setup_lsh,
)
from onejoin.models import Candidate, Device, make_batches
from onejoin.timing import Phase, Timer
from onejoin.utils import print_configuration
from onejoin.verification import edit_distance

DEFAULT_OUTPUT = "join_output_parallel.txt"
TEST_BATCHES = 2
MAX_REPLICATIONS = 127

logger = logging.getLogger(__name__)

Pair = tuple[int, int]


@dataclass(frozen=True)
class JoinResult:
    """Outcome of a join.

    pairs: sorted distinct pairs of string ids within the edit distance threshold.
    device: name of the device the join ran on.
    num_candidates: number of candidate pairs that were verified.
    num_outputs: number of verified pairs.
    """

    pairs: list[Pair]
    device: str
    num_candidates: int
    num_outputs: int


def _identity(candidate: Candidate) -> tuple[int, int, int, int]:
    return (candidate.idx_str1, candidate.idx_str2, candidate.len_diff, candidate.rep12_eq_bit)


def process_candidates(
    candidates: Iterable[Candidate], k_input: int, countfilter: int
) -> list[Candidate]:
    """Filter, count and deduplicate generated candidates.

    Drops pairs whose length difference exceeds k_input, whose hash bits
    differ, or that pair a string with itself. Identical candidates are
    counted; only those seen more than countfilter times survive, with the
    count stored in len_diff. Finally one candidate is kept per string pair.
    """
    kept = [
        c
        for c in candidates
        if c.len_diff <= k_input and not (c.rep12_eq_bit & 0x1) and c.idx_str1 != c.idx_str2
    ]
    kept.sort(key=Candidate.sort_key)

    frequent = []
    for _, run in groupby(kept, key=_identity):
        group = list(run)
        first = group[0]
        if len(group) > countfilter:
            frequent.append(
                Candidate(
                    idx_str1=first.idx_str1,
                    len_diff=len(group),
                    idx_str2=first.idx_str2,
                    rep12_eq_bit=first.rep12_eq_bit,
                )
            )

    return [next(run) for _, run in groupby(frequent, key=lambda c: (c.idx_str1, c.idx_str2))]


def verify_pairs(
    strings: Sequence[str], candidates: Sequence[Candidate], k: int, num_threads: int = 0
) -> list[Pair]:
    """Pairs of candidate strings whose edit distance is at most k, in candidate order.

    num_threads of 0 uses one thread per available processor.
    """
    if num_threads < 0:
        raise ValueError(f"number of threads must not be negative, got {num_threads}")
    workers = num_threads or os.cpu_count() or 1
    logger.info("Verification")
    logger.debug("\tNumber of threads for edit distance: %d", workers)
    logger.info("\tTo verify: %d", len(candidates))

    def check(candidate: Candidate) -> Pair | None:
        first, second = candidate.idx_str1, candidate.idx_str2
        if edit_distance(strings[second], strings[first], k) is None:
            return None
        return (first, second)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(check, candidates))
    return [pair for pair in results if pair is not None]


def _sorted_unique(pairs: Iterable[Pair]) -> list[Pair]:
    return sorted(set(pairs))


def write_output(strings: Sequence[str], pairs: Iterable[Pair], path: str | Path) -> list[Pair]:
    """Write each distinct pair followed by its two strings; return the sorted pairs."""
    unique = _sorted_unique(pairs)
    logger.info("Start saving results")
    with open(path, "w", encoding="utf-8") as out:
        for first, second in unique:
            out.write(f"{first} {second}\n{strings[first]}\n{strings[second]}\n")
    return unique


def _select_device(device: int) -> str:
    device = Device(device)
    if device in (Device.GPU, Device.BOTH):
        logger.warning("Attention: no GPU device detected. The program will run on CPU.")
    return platform.processor() or platform.machine() or "CPU"


def onejoin(
    strings: Iterable[str],
    batch_size: int,
    device: int,
    samplingrange: int,
    countfilter: int,
    timer: Timer | None = None,
    params: Params | None = None,
    num_threads: int = 0,
    write_all: bool | None = None,
    output_path: str | Path = DEFAULT_OUTPUT,
) -> JoinResult:
    """Find all pairs of strings whose edit distance is at most params.k_input.

    Raises ValueError when the input cannot be split into enough batches
    or the parameters are out of range.
    """
    strings = list(strings)
    params = Params() if params is None else params
    timer = Timer(False) if timer is None else timer
    write_all = params.all_output_result if write_all is None else write_all

    timer.start(Phase.TOTAL_ALG_TOTAL)
    batches = make_batches(len(strings), batch_size)
    print_configuration(params, batch_size, len(batches), len(strings), countfilter, samplingrange)

    if params.num_rep() > MAX_REPLICATIONS:
        raise ValueError(
            f"Are not supported more than {MAX_REPLICATIONS} sub-strings (ED_DIST/SHIFT) per input string."
        )
    device_name = _select_device(device)
    num_devices = 1
    if len(batches) <= num_devices * TEST_BATCHES:
        raise ValueError(
            "You need at least 3 batches for one device only or 5 batches for two devices. "
            "Try to decrease the batch size."
        )

    with timer.measure(Phase.INIT_TOTAL):
        with timer.measure(Phase.INIT_DATA):
            lengths = [len(s) for s in strings]
        rng = random.Random(DEFAULT_SEED)
        with timer.measure(Phase.INIT_LSH):
            setup = setup_lsh(params, samplingrange, rng)
    logger.info("Start parallel algorithm...")

    with timer.measure(Phase.EMBED_TOTAL):
        with timer.measure(Phase.EMBED_RAND_STR):
            random_strings = generate_random_strings(params, setup.samplingrange, rng)
        dictionary = build_dictionary(params.num_char)
        with timer.measure(Phase.EMBED_COMPUTE):
            embeddings = embed_all(strings, params, setup, random_strings, dictionary)

    timer.start(Phase.LSH_TOTAL)
    with timer.measure(Phase.BUCKETS_TOTAL):
        with timer.measure(Phase.BUCKETS_COMPUTE):
            buckets = create_buckets(embeddings, params, setup.a, dictionary)
        with timer.measure(Phase.BUCKETS_SORT):
            buckets.sort()

    with timer.measure(Phase.CAND_INIT_TOTAL):
        positions = initialize_candidate_pairs(buckets)
    logger.info("Time initialize candidate pairs: %g", timer.step_time(Phase.CAND_INIT_TOTAL))

    with timer.measure(Phase.CAND_TOTAL):
        with timer.measure(Phase.CAND_COMPUTE):
            generated = generate_candidates(positions, buckets, embeddings, lengths, params)
    del buckets, embeddings, positions

    logger.info("Starting candidate processing analysis")
    logger.debug("\tCandidates size: %d", len(generated))
    with timer.measure(Phase.CAND_PROC_TOTAL):
        candidates = process_candidates(generated, params.k_input, countfilter)
    timer.end(Phase.LSH_TOTAL)

    with timer.measure(Phase.EDIT_DIST_TOTAL):
        verified = verify_pairs(strings, candidates, params.k_input, num_threads)
    num_outputs = len(verified)
    num_candidates = len(candidates)
    logger.info("\tNum output: %d", num_outputs)
    timer.end(Phase.TOTAL_ALG_TOTAL)

    timer.write_summary(num_candidates, num_outputs)

    if write_all:
        pairs = write_output(strings, verified, output_path)
    else:
        pairs = _sorted_unique(verified)

    return JoinResult(
        pairs=pairs,
        device=device_name,
        num_candidates=num_candidates,
        num_outputs=num_outputs,
    )