"""LSH buckets, work allocation and candidate pair generation."""

from __future__ import annotations

import logging
import math
from itertools import combinations, groupby
from typing import Iterable, Mapping, Sequence

from onejoin.constants import Params
from onejoin.models import Bucket, Candidate

MAX_BUFFER_SIZE = 0xFFFFFFFF

logger = logging.getLogger(__name__)

Embeddings = Sequence[Sequence[Sequence[str]]]


def allocate_work(times: Sequence[int], num_dev: int, units: int) -> list[list[int]]:
    """Share units of work between at most two devices by measured speed.

    times holds the profiled time of one kernel run for each device. The
    faster device gets the larger share; a device with no measurable time
    is treated as the fastest. Returns one single-element list per device.
    """
    if num_dev < 0:
        raise ValueError(f"number of devices must not be negative, got {num_dev}")
    if num_dev > 2:
        raise ValueError("work can be allocated to at most 2 devices")
    if units < 0:
        raise ValueError(f"units to allocate must not be negative, got {units}")
    if len(times) < num_dev:
        raise ValueError(f"expected {num_dev} measured times, got {len(times)}")

    for t in times:
        logger.debug("\tTimes kernel: %gsec", t / 1000)

    sizes: list[list[int]] = [[] for _ in range(num_dev)]
    if num_dev == 2:
        first, second = times[0], times[1]
        if first <= 0 and second <= 0:
            slowest, fastest, idx_slowest, idx_fastest = 1, 1, 0, 1
        elif first <= 0:
            slowest, fastest, idx_slowest, idx_fastest = 1, 0, 1, 0
        elif second <= 0:
            slowest, fastest, idx_slowest, idx_fastest = 1, 0, 0, 1
        else:
            idx_slowest = 0 if first >= second else 1
            idx_fastest = 1 - idx_slowest
            slowest, fastest = times[idx_slowest], times[idx_fastest]
        n_slow = math.floor(fastest / (fastest + slowest) * units)
        n_fast = units - n_slow
        sizes[idx_fastest].append(n_fast)
        sizes[idx_slowest].append(n_slow)
        logger.debug("\tn_fast: %d", n_fast)
        logger.debug("\tn_slow: %d", n_slow)
    elif num_dev == 1:
        sizes[0].append(units)
        logger.debug("\tn_fast: %d", units)
    return sizes


def split_sizes(
    sizes: Sequence[Sequence[int]], element_size: int, limit: int = MAX_BUFFER_SIZE
) -> list[list[int]]:
    """Split each device's single share into parts that fit in one buffer.

    Each share is divided into the fewest equal parts whose byte size does
    not exceed limit; the last part also takes the remainder.
    """
    if element_size < 0:
        raise ValueError(f"element size must not be negative, got {element_size}")
    if limit < 0:
        raise ValueError(f"limit must not be negative, got {limit}")
    result = []
    for device_sizes in sizes:
        if len(device_sizes) != 1:
            raise ValueError("only one element should be in each device's list at this point")
        size = device_sizes[0]
        num_part = (size * element_size) // (limit + 1) + 1
        part, rest = divmod(size, num_part)
        logger.debug("\tSplit buffer in %d parts of %d as dim.", num_part, part)
        result.append([part] * (num_part - 1) + [part + rest])
    return result


def create_buckets(
    embeddings: Embeddings,
    params: Params,
    a: Sequence[int],
    dictionary: Mapping[str, int],
) -> list[Bucket]:
    """Hash every embedded replication with every hash function.

    embeddings[i][t][q] is replication q of string i under random string t.
    Buckets come out in generation order; sort them before delimiting.
    """
    if len(a) < params.num_bits:
        raise ValueError(f"expected {params.num_bits} hash multipliers, got {len(a)}")
    logger.info("Create buckets")
    logger.debug("\tLen output: %d", params.len_output())
    buckets = []
    for i, per_string in enumerate(embeddings):
        for t in range(params.num_str):
            for q in range(params.num_rep()):
                embedded = per_string[t][q]
                for k in range(params.num_hash):
                    bits = embedded[k * params.num_bits:(k + 1) * params.num_bits]
                    value = sum(dictionary.get(ch, 0) * mult for ch, mult in zip(bits, a))
                    buckets.append(
                        Bucket(
                            idx_rand_str=t,
                            idx_hash_func=k,
                            hash_id=value % params.hash_sz,
                            idx_str=i,
                            idx_rep=q,
                        )
                    )
    return buckets


def _bucket_key(bucket: Bucket) -> tuple[int, int, int]:
    return (bucket.idx_rand_str, bucket.idx_hash_func, bucket.hash_id)


def bucket_delimiters(buckets: Sequence[Bucket]) -> list[tuple[int, int]]:
    """(start, size) of every run of sorted buckets sharing a hash value.

    Runs of a single bucket are left out, since they give no candidates.
    """
    delimiters = []
    start = 0
    for _, run in groupby(buckets, key=_bucket_key):
        size = sum(1 for _ in run)
        if size >= 2:
            delimiters.append((start, size))
        start += size
    logger.debug("\t\tSize after remove: %d", len(delimiters))
    return delimiters


def initialize_candidate_pairs(buckets: Sequence[Bucket]) -> list[Candidate]:
    """One candidate for every pair of positions inside the same bucket.

    idx_str1 and len_diff hold the two bucket positions, idx_str2 the end
    of the bucket run.
    """
    logger.info("Initialize candidate vector")
    candidates = []
    for start, size in bucket_delimiters(buckets):
        end = start + size
        candidates.extend(
            Candidate(idx_str1=i, len_diff=j, idx_str2=end)
            for i, j in combinations(range(start, end), 2)
        )
    logger.info("\tAllocation of %d elements", len(candidates))
    return candidates


def generate_candidates(
    pairs: Iterable[Candidate],
    buckets: Sequence[Bucket],
    embeddings: Embeddings,
    lengths: Sequence[int],
    params: Params,
) -> list[Candidate]:
    """Turn pairs of bucket positions into pairs of strings.

    Each result holds both string ids, the difference of their lengths and
    rep12_eq_bit: replication of the first string in bits 8 and up, of the
    second in bits 1-7, and bit 0 set when the compared hash bits differ.
    """
    logger.info("Generate candidates")
    result = []
    for pair in pairs:
        first = buckets[pair.idx_str1]
        second = buckets[pair.len_diff]
        t1, k1 = first.idx_rand_str, first.idx_hash_func
        i1, q1 = first.idx_str, first.idx_rep
        i2, q2 = second.idx_str, second.idx_rep

        lo, hi = k1 * params.num_bits, (k1 + 1) * params.num_bits
        bits1 = embeddings[i1][t1][q1][lo:hi]
        bits2 = embeddings[i2][t1][q2][lo:hi]
        differs = any(c1 != c2 for c1, c2 in zip(bits1, bits2) if c1 != "\0" and c2 != "\0")

        packed = (((q1 << 7) + q2) << 1) + (1 if differs else 0)
        result.append(
            Candidate(
                idx_str1=i1,
                len_diff=abs(lengths[i1] - lengths[i2]),
                idx_str2=i2,
                rep12_eq_bit=packed & 0xFFFF,
            )
        )
    return result