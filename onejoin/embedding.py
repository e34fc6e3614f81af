"""Random-walk (CGK) embedding of input strings and LSH bit selection."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from itertools import chain
from typing import Iterable, Sequence

from onejoin.constants import Params

DEFAULT_SEED = 11110
EMPTY = "\0"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LshSetup:
    """Sampled LSH bits.

    hash_lsh: for each hash function, the index into lshnumber of each bit.
    a: random multipliers of the second level hash.
    lshnumber: sorted distinct embedding positions that are sampled.
    positions: for each entry of lshnumber, the output positions it fills.
    samplingrange: largest sampled embedding position.
    """

    hash_lsh: tuple[tuple[int, ...], ...]
    a: tuple[int, ...]
    lshnumber: tuple[int, ...]
    positions: tuple[tuple[int, ...], ...]
    samplingrange: int


def build_dictionary(num_char: int) -> dict[str, int]:
    """Map each alphabet character to its code; unknown characters count as 0."""
    letters = [chr(c) for c in range(ord("A"), ord("Z") + 1)]
    if num_char == 4:
        alphabet = ["A", "C", "G", "T"]
    elif num_char == 5:
        alphabet = ["A", "C", "G", "T", "N"]
    elif num_char in (25, 26):
        alphabet = letters
    elif num_char == 37:
        alphabet = letters + [str(d) for d in range(10)] + [" "]
    else:
        raise ValueError(f"unsupported alphabet size {num_char}: check the dictionary of your input")
    return {ch: code for code, ch in enumerate(alphabet)}


def setup_lsh(params: Params, samplingrange: int, rng: random.Random | None = None) -> LshSetup:
    """Sample the LSH bits and compute where each lands in an embedded string."""
    if samplingrange <= 0:
        raise ValueError(f"sampling range must be positive, got {samplingrange}")
    if params.hash_sz < 2:
        raise ValueError("hash table size must be at least 2")
    rng = random.Random(DEFAULT_SEED) if rng is None else rng

    sampled = [
        [rng.randrange(samplingrange) for _ in range(params.num_bits)]
        for _ in range(params.num_hash)
    ]
    a = tuple(rng.randrange(params.hash_sz - 1) for _ in range(params.num_bits))

    lshnumber = tuple(sorted(set(chain.from_iterable(sampled))))
    rank = {value: index for index, value in enumerate(lshnumber)}
    hash_lsh = tuple(tuple(rank[value] for value in row) for row in sampled)

    positions: list[list[int]] = [[] for _ in lshnumber]
    for output_pos, index in enumerate(chain.from_iterable(hash_lsh)):
        positions[index].append(output_pos)

    return LshSetup(
        hash_lsh=hash_lsh,
        a=a,
        lshnumber=lshnumber,
        positions=tuple(tuple(p) for p in positions),
        samplingrange=lshnumber[-1],
    )


def _run_lengths(bits: Sequence[int]) -> list[int]:
    """For each position, the number of consecutive ones starting there."""
    result = [0] * len(bits)
    run = 0
    for d in reversed(range(len(bits))):
        run = run + 1 if bits[d] else 0
        result[d] = run
    return result


def generate_random_strings(
    params: Params, samplingrange: int, rng: random.Random | None = None
) -> list[list[list[int]]]:
    """Random walks used by the embedding, indexed by [string][character][step].

    Each value is how many extra steps the walk advances at that position.
    """
    if samplingrange < 0:
        raise ValueError(f"sampling range must not be negative, got {samplingrange}")
    rng = random.Random(DEFAULT_SEED) if rng is None else rng
    length = samplingrange + 1
    return [
        [
            _run_lengths([1 - rng.randrange(2) for _ in range(length)])
            for _ in range(params.num_char)
        ]
        for _ in range(params.num_str)
    ]


def embed_string(
    text: str,
    params: Params,
    setup: LshSetup,
    random_strings: Sequence[Sequence[Sequence[int]]],
    dictionary: dict[str, int],
) -> list[list[str]]:
    """Embed one string: result[l][k] is replication k under random string l.

    Each embedded string keeps only the sampled LSH bits, len_output
    characters long, with unfilled positions set to NUL.
    """
    len_output = params.len_output()
    bounds = setup.lshnumber
    limit = setup.samplingrange
    result = []
    for walk in random_strings[: params.num_str]:
        replications = []
        for k in range(params.num_rep()):
            out = [EMPTY] * len_output
            part = 0
            j = 0
            for ch in text[params.shift * k:]:
                if j > limit:
                    break
                j += walk[dictionary.get(ch, 0)][j] + 1
                while part < len(bounds) and j > bounds[part]:
                    for pos in setup.positions[part]:
                        out[pos] = ch
                    part += 1
            replications.append("".join(out))
        result.append(replications)
    return result


def embed_all(
    strings: Iterable[str],
    params: Params,
    setup: LshSetup,
    random_strings: Sequence[Sequence[Sequence[int]]],
    dictionary: dict[str, int],
) -> list[list[list[str]]]:
    """Embed every input string, in order."""
    logger.info("Parallel Embedding")
    logger.debug("\tLen output: %d", params.len_output())
    return [embed_string(text, params, setup, random_strings, dictionary) for text in strings]