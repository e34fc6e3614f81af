"""Records shared by the join and cluster pipelines."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Device(IntEnum):
    """Where the parallel stages run."""

    CPU = 0
    GPU = 1
    BOTH = 2


class Algorithm(IntEnum):
    """Algorithm selected on the command line."""

    JOIN = 1
    CLUSTER = 2


@dataclass(frozen=True, order=True, slots=True)
class Bucket:
    """One hash value of one embedded replication of an input string.

    Buckets order by random string, hash function, hash value, string and
    replication, so equal hash values of the same function end up adjacent.
    """

    idx_rand_str: int = 0
    idx_hash_func: int = 0
    hash_id: int = 0
    idx_str: int = 0
    idx_rep: int = 0


@dataclass(slots=True)
class Candidate:
    """A candidate pair of input strings.

    Before candidate generation idx_str1/len_diff hold bucket positions and
    idx_str2 the end of the bucket; afterwards they hold the string ids and
    the length difference (later reused as the pair frequency). rep12_eq_bit
    packs both replication ids and whether the compared hash bits differ.
    """

    idx_str1: int = 0
    len_diff: int = 0
    idx_str2: int = 0
    rep12_eq_bit: int = 0

    def sort_key(self) -> tuple[int, int, int]:
        """Ordering key: first string, second string, packed replication bits."""
        return (self.idx_str1, self.idx_str2, self.rep12_eq_bit)

    def __lt__(self, other: "Candidate") -> bool:
        if not isinstance(other, Candidate):
            return NotImplemented
        return self.sort_key() < other.sort_key()


@dataclass(frozen=True, slots=True)
class BatchHeader:
    """A batch of consecutive input strings."""

    size: int
    offset: int


@dataclass(slots=True)
class OutputValues:
    """Figures reported at the end of a join."""

    dev: str = ""
    num_candidates: int = 0
    num_outputs: int = 0


def make_batches(num_strings: int, batch_size: int) -> list[BatchHeader]:
    """Split num_strings strings into full batches plus a smaller final one."""
    if batch_size <= 0:
        raise ValueError(f"batch size must be positive, got {batch_size}")
    if num_strings < 0:
        raise ValueError(f"number of strings must not be negative, got {num_strings}")
    full, rest = divmod(num_strings, batch_size)
    sizes = [batch_size] * full + ([rest] if rest else [])
    headers = []
    offset = 0
    for size in sizes:
        headers.append(BatchHeader(size=size, offset=offset))
        offset += size
    return headers