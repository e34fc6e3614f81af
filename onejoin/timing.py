"""Phase timers and the timing report."""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterator, TextIO


class Phase(Enum):
    """Measured phases of the join and cluster algorithms."""

    INIT_TOTAL = "init.total"
    INIT_DATA = "init.init_data"
    INIT_LSH = "init.init_lsh"
    INIT_REV_LSH = "init.rev_lsh"
    EMBED_TOTAL = "embed.total"
    EMBED_ALLOC = "embed.alloc"
    EMBED_RAND_STR = "embed.rand_str"
    EMBED_MEASURE = "embed.measure"
    EMBED_COMPUTE = "embed.compute"
    BUCKETS_TOTAL = "buckets.total"
    BUCKETS_ALLOCATION = "buckets.allocation"
    BUCKETS_MEASURE = "buckets.measure"
    BUCKETS_COMPUTE = "buckets.compute"
    BUCKETS_SORT = "buckets.sort"
    CAND_INIT_TOTAL = "cand_init.total"
    CAND_INIT_COMP_BUCK_DELIM = "cand_init.comp_buck_delim"
    CAND_INIT_FILTER_BUCK_DELIM = "cand_init.filter_buck_delim"
    CAND_INIT_RESIZE = "cand_init.resize"
    CAND_INIT_SCAN_CAND = "cand_init.scan_cand"
    CAND_TOTAL = "cand.total"
    CAND_MEASURE = "cand.measure"
    CAND_COMPUTE = "cand.compute"
    CAND_PROC_TOTAL = "cand_proc.total"
    CAND_PROC_REM_CAND = "cand_proc.rem_cand"
    CAND_PROC_SORT_CAND = "cand_proc.sort_cand"
    CAND_PROC_COUNT_FREQ = "cand_proc.count_freq"
    CAND_PROC_REM_DUP = "cand_proc.rem_dup"
    CAND_PROC_SORT_CAND_TO_VERIFY = "cand_proc.sort_cand_to_verify"
    CAND_PROC_FILTER_LOW_FREQ = "cand_proc.filter_low_freq"
    CAND_PROC_MAKE_UNIQ = "cand_proc.make_uniq"
    EDIT_DIST_TOTAL = "edit_dist.total"
    LSH_TOTAL = "lsh.total"
    TOTAL_ALG_TOTAL = "total_alg.total"
    CLUSTER_TOTAL = "cluster.total"
    CLUSTER_INIT = "cluster.init"
    CLUSTER_ONEJOIN = "cluster.onejoin"
    CLUSTER_CREATE_INDEXES = "cluster.create_indexes"
    CLUSTER_SORT = "cluster.sort"
    CLUSTER_DBSCAN = "cluster.dbscan"
    CLUSTER_CONSENSUS = "cluster.consensus"


# (label, phase, whether the device name follows the time)
_CLUSTER_ROWS = [
    ("Total Cluster time,\t,\t,", Phase.CLUSTER_TOTAL, False),
    ("\t,Initialization,\t,", Phase.CLUSTER_INIT, False),
    ("\t,OneJoin*,\t,", Phase.CLUSTER_ONEJOIN, False),
    ("\t,Create indexes,\t,", Phase.CLUSTER_CREATE_INDEXES, False),
    ("\t,\t,Sorting,", Phase.CLUSTER_SORT, False),
    ("\t,DBSCAN,\t,", Phase.CLUSTER_DBSCAN, False),
    ("\t,Consensus,\t,", Phase.CLUSTER_CONSENSUS, False),
]

_JOIN_ROWS = [
    ("Initialization,\t,\t,", Phase.INIT_TOTAL, False),
    ("\t,Init Dataset,\t,", Phase.INIT_DATA, False),
    ("\t,Init LSH bits,\t,", Phase.INIT_LSH, False),
    ("\t,Init Rev LSH array,\t,", Phase.INIT_REV_LSH, False),
    ("Embedding,\t,\t,", Phase.EMBED_TOTAL, True),
    ("\t,USM allocation,\t,", Phase.EMBED_ALLOC, False),
    ("\t,Random string generation,\t,", Phase.EMBED_RAND_STR, False),
    ("\t,Measurement,\t,", Phase.EMBED_MEASURE, False),
    ("\t,Computing,\t,", Phase.EMBED_COMPUTE, False),
    ("LSH time,\t,\t,", Phase.LSH_TOTAL, False),
    ("\t,Create Buckets,\t,", Phase.BUCKETS_TOTAL, True),
    ("\t,\t,Buckets Allocation,", Phase.BUCKETS_ALLOCATION, True),
    ("\t,\t,Measurement,", Phase.BUCKETS_MEASURE, False),
    ("\t,\t,Computing,", Phase.BUCKETS_COMPUTE, False),
    ("\t,\t,Sort Buckets,", Phase.BUCKETS_SORT, False),
    ("\t,Candidate Initialization,\t,", Phase.CAND_INIT_TOTAL, False),
    ("\t,\t,Compute buckets delimiter,", Phase.CAND_INIT_COMP_BUCK_DELIM, False),
    ("\t,\t,Filter one element buckets,", Phase.CAND_INIT_FILTER_BUCK_DELIM, False),
    ("\t,\t,Allocate candidate vector,", Phase.CAND_INIT_RESIZE, False),
    ("\t,\t,Scan cand vector (write i and j),", Phase.CAND_INIT_SCAN_CAND, False),
    ("\t,Generate Candidate,\t,", Phase.CAND_TOTAL, True),
    ("\t,\t,Measurement,", Phase.CAND_MEASURE, False),
    ("\t,\t,Computing,", Phase.CAND_COMPUTE, False),
    ("\t,Candidates processing,\t,", Phase.CAND_PROC_TOTAL, False),
    ("\t,\t,Remove candidates,", Phase.CAND_PROC_REM_CAND, False),
    ("\t,\t,Sort candidates,", Phase.CAND_PROC_SORT_CAND, False),
    ("\t,\t,Counting frequencies,", Phase.CAND_PROC_COUNT_FREQ, False),
    ("\t,\t,Remove duplicates,", Phase.CAND_PROC_REM_DUP, False),
    ("\t,\t,Sorting candidates to verify,", Phase.CAND_PROC_SORT_CAND_TO_VERIFY, False),
    ("\t,\t,Remove low frequencies candidates,", Phase.CAND_PROC_FILTER_LOW_FREQ, False),
    ("\t,\t,Removing duplicates,", Phase.CAND_PROC_MAKE_UNIQ, False),
    ("Edit Distance,\t,\t,", Phase.EDIT_DIST_TOTAL, False),
    ("Total OneJoin time,\t,\t,", Phase.TOTAL_ALG_TOTAL, False),
]

_SUMMARY_ROWS = [
    ("Time init input data: ", Phase.INIT_TOTAL, ""),
    ("Time PARALLEL embedding data:\t", Phase.EMBED_TOTAL, "sec"),
    ("Time PARALLEL buckets generation:\t", Phase.BUCKETS_TOTAL, "sec"),
    ("Time buckets sorting:\t", Phase.BUCKETS_SORT, "sec"),
    ("Time candidate initialization:\t", Phase.CAND_INIT_TOTAL, "sec"),
    ("Time PARALLEL candidates generation:\t", Phase.CAND_TOTAL, "sec"),
    ("Time candidates sorting (within cand-processing):\t", Phase.CAND_PROC_SORT_CAND, "sec"),
    ("Time compute edit distance:\t", Phase.EDIT_DIST_TOTAL, "sec"),
    ("Total time parallel join:\t", Phase.LSH_TOTAL, "sec"),
    ("Total elapsed time :\t", Phase.TOTAL_ALG_TOTAL, "sec"),
]


def _fmt(seconds: float) -> str:
    return f"{seconds:g}"


class Timer:
    """Records start/end times of phases and accumulates whole milliseconds."""

    def __init__(self, is_cluster: bool = False, clock: Callable[[], float] = time.monotonic) -> None:
        self.is_cluster = is_cluster
        self._clock = clock
        self._intervals: dict[Phase, list[float | None]] = {}
        self._history_ms: dict[Phase, int] = {}

    def start(self, phase: Phase) -> None:
        """Mark the beginning of a phase."""
        self._intervals[phase] = [self._clock(), None]

    def end(self, phase: Phase) -> None:
        """Mark the end of a phase and add its duration to the phase total."""
        interval = self._intervals.get(phase)
        if interval is None:
            raise ValueError(f"phase {phase.name} was never started")
        interval[1] = self._clock()
        self._history_ms[phase] = self._history_ms.get(phase, 0) + self._interval_ms(interval)

    @contextmanager
    def measure(self, phase: Phase) -> Iterator["Timer"]:
        """Time the enclosed block as one run of a phase."""
        self.start(phase)
        try:
            yield self
        finally:
            self.end(phase)

    def step_time(self, phase: Phase) -> float:
        """Seconds taken by the latest completed run of a phase."""
        interval = self._intervals.get(phase)
        if interval is None or interval[1] is None:
            return 0.0
        return self._interval_ms(interval) / 1000.0

    def total(self, phase: Phase) -> float:
        """Seconds accumulated over all runs of a phase."""
        return self._history_ms.get(phase, 0) / 1000.0

    def write_report(self, device: str, num_candidates: int, num_outputs: int, out: TextIO | None = None) -> None:
        """Write the CSV timing report."""
        out = sys.stdout if out is None else out
        out.write("MainStep,Step,SubStep,Time(sec),Device\n")
        if self.is_cluster:
            for label, phase, _ in _CLUSTER_ROWS:
                out.write(f"{label}{_fmt(self.total(phase))},\n")
            out.write("\n")
        for label, phase, with_device in _JOIN_ROWS:
            suffix = device if with_device else ""
            out.write(f"{label}{_fmt(self.total(phase))},{suffix}\n")
        out.write(f"Number candidates,\t{num_candidates},\t,\t,\n")
        out.write(f"Number output,\t{num_outputs},\t,\t,\n")

    def write_summary(self, num_candidates: int, num_outputs: int, out: TextIO | None = None) -> None:
        """Write a short human-readable summary of the main phases."""
        out = sys.stdout if out is None else out
        out.write("\n\n\nSummary:\n\n")
        for label, phase, unit in _SUMMARY_ROWS:
            out.write(f"{label}{_fmt(self.total(phase))}{unit}\n")
        out.write(f"Number of candidates verified: {num_candidates}\n")
        out.write(f"Number of output pairs: {num_outputs}\n")

    @staticmethod
    def _interval_ms(interval: list[float | None]) -> int:
        start, stop = interval
        return int((stop - start) * 1000)