"""Density-based clustering of similar strings and their consensus sequences."""

from __future__ import annotations

import logging
import math
from collections import Counter
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from onejoin.constants import Params
from onejoin.join import DEFAULT_OUTPUT, onejoin
from onejoin.timing import Phase, Timer

UNDEFINED = -2
NOISE = -1
CONSENSUS_ALPHABET = frozenset("ACGTN")
RESULT_PREFIX = "consensus_results_chunk_"

logger = logging.getLogger(__name__)

Pair = tuple[int, int]


def _char_at(text: str, position: int) -> str:
    return text[position] if position < len(text) else "\0"


def consensus(strings: Sequence[str], labels: Sequence[int], length: int) -> list[tuple[str, int]]:
    """Majority string of every cluster, with the number of its members.

    Clusters come out in increasing label order; noise points are ignored.
    Ties between characters go to the one with the lowest code. Raises
    ValueError when the majority character is not one of A, C, G, T, N.
    """
    clusters: dict[int, list[int]] = {}
    for index, label in enumerate(labels):
        if label != NOISE:
            clusters.setdefault(label, []).append(index)

    result = []
    for label in sorted(clusters):
        members = clusters[label]
        chars = []
        for digit in range(length):
            counts = Counter(_char_at(strings[i], digit) for i in members)
            best = max(sorted(counts), key=counts.__getitem__)
            if best not in CONSENSUS_ALPHABET:
                logger.error("Error character")
                raise ValueError(f"unexpected character {best!r} in cluster {label}")
            chars.append(best)
        result.append(("".join(chars), len(members)))
    return result


def build_neighbourhoods(pairs: Iterable[Pair], num_strings: int) -> dict[int, list[int]]:
    """Neighbour lists: each string first, followed by the second id of its pairs."""
    neighbourhoods: dict[int, list[int]] = {i: [i] for i in range(num_strings)}
    for first, second in pairs:
        neighbourhoods.setdefault(first, []).append(second)
    logger.debug("Size indexes: %d", len(neighbourhoods))
    return neighbourhoods


def dbscan(neighbourhoods: Mapping[int, Sequence[int]], min_points: int, size: int) -> list[int]:
    """Label every point with its cluster (numbered from 1) or NOISE.

    A point is a core point when its neighbour list, the point itself
    included, holds at least min_points entries.
    """
    labels = [UNDEFINED] * size
    cluster = 0
    for point in range(size):
        if labels[point] != UNDEFINED:
            continue
        neighbours = neighbourhoods[point]
        if len(neighbours) < min_points:
            labels[point] = NOISE
            continue
        cluster += 1
        labels[point] = cluster

        seen = set(neighbours[1:])
        pending = sorted(seen, reverse=True)
        while pending:
            q = pending.pop()
            if labels[q] == NOISE:
                labels[q] = cluster
                continue
            if labels[q] != UNDEFINED:
                continue
            labels[q] = cluster
            reachable = neighbourhoods[q]
            if len(reachable) >= min_points:
                for other in reachable[1:]:
                    if other not in seen:
                        seen.add(other)
                        pending.append(other)
    logger.info("Number of cluster: %d", cluster)
    logger.info("Min points: %d", min_points)
    return labels


def one_cluster(
    strings: Iterable[str],
    batch_size: int,
    device: int,
    samplingrange: int,
    countfilter: int,
    timer: Timer | None = None,
    min_points: int = 10,
    params: Params | None = None,
    chunk_size: int | None = None,
    out_dir: str | Path = ".",
) -> list[tuple[str, int]]:
    """Cluster strings chunk by chunk, then cluster the chunks' consensus strings.

    The final consensus strings and their cluster sizes are written to
    consensus_results_chunk_<n> in out_dir and returned.
    """
    data = list(strings)
    if not data:
        raise ValueError("no input strings to cluster")
    params = Params() if params is None else params
    timer = Timer(True) if timer is None else timer
    chunk_size = params.clustering_chunk_size if chunk_size is None else chunk_size
    if chunk_size <= 0:
        raise ValueError(f"chunk size must be positive, got {chunk_size}")
    out_dir = Path(out_dir)

    logger.info("Starting OneCluster...")
    length = len(data[0])
    num_iterations = math.ceil(len(data) / chunk_size)
    collected: list[str] = []
    position = 0
    chunk_num = 0

    while True:
        timer.start(Phase.CLUSTER_TOTAL)
        with timer.measure(Phase.CLUSTER_INIT):
            if num_iterations == 1:
                chunk = data
                last = True
            elif chunk_num == num_iterations:
                chunk = collected
                last = True
            else:
                chunk = data[position:position + chunk_size]
                position += len(chunk)
                last = False
            logger.debug("\tChunk size: %d", len(chunk))

        logger.info("Computing OneJoin...")
        with timer.measure(Phase.CLUSTER_ONEJOIN):
            result = onejoin(
                chunk,
                batch_size,
                device,
                samplingrange,
                countfilter,
                timer,
                params,
                output_path=out_dir / DEFAULT_OUTPUT,
            )
        logger.debug("\tSize of results: %d", len(result.pairs))

        logger.info("Creating indexes")
        with timer.measure(Phase.CLUSTER_CREATE_INDEXES):
            both_ways = list(result.pairs) + [(b, a) for a, b in result.pairs]
            with timer.measure(Phase.CLUSTER_SORT):
                both_ways.sort(key=lambda pair: pair[0])
            neighbourhoods = build_neighbourhoods(both_ways, len(chunk))

        logger.info("Start DBSCAN algorithm")
        with timer.measure(Phase.CLUSTER_DBSCAN):
            labels = dbscan(neighbourhoods, min_points, len(chunk))
        logger.debug("Time oneDBSCAN: %g", timer.step_time(Phase.CLUSTER_DBSCAN))

        with timer.measure(Phase.CLUSTER_CONSENSUS):
            found = consensus(chunk, labels, length)
        logger.debug("Time consensus: %g", timer.step_time(Phase.CLUSTER_CONSENSUS))

        if last:
            logger.debug("Saving final chunk results...")
            path = out_dir / f"{RESULT_PREFIX}{chunk_num}"
            with open(path, "w", encoding="utf-8") as out:
                for text, count in found:
                    out.write(f"{text} {count}\n")
            timer.end(Phase.CLUSTER_TOTAL)
            return found

        collected.extend(text for text, _ in found)
        chunk_num += 1
        timer.end(Phase.CLUSTER_TOTAL)