"""Tunable parameters of the embedding, hashing and verification stages."""

from __future__ import annotations

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class Params:
    """Algorithm parameters.

    num_str: number of CGK embeddings computed for each input string (r).
    num_hash: number of hash functions for each embedded string (z).
    num_bits: number of bits in each hash function (m).
    num_char: alphabet size of the input strings (4 for ACGT, 5 with N,
        25/26 for A..Z, 37 for A..Z, 0..9 and space).
    all_output_result: whether the joined pairs are written to a file.
    shift: distance between the starting points of two replications.
    hash_sz: size of the second level hash table.
    k_input: edit distance threshold.
    clustering_chunk_size: number of strings clustered at once.
    """

    num_str: int = 7
    num_hash: int = 16
    num_bits: int = 12
    num_char: int = 4
    all_output_result: bool = False
    shift: int = 50
    hash_sz: int = 1000003
    k_input: int = 150
    clustering_chunk_size: int = 100000

    def __post_init__(self) -> None:
        for field in fields(self):
            if field.name == "all_output_result":
                continue
            value = getattr(self, field.name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{field.name} must be an integer")
            minimum = 0 if field.name == "k_input" else 1
            if value < minimum:
                raise ValueError(f"{field.name} must be at least {minimum}, got {value}")

    def num_rep(self) -> int:
        """Number of replications of each input string: ceil(k_input / shift)."""
        return (self.k_input + self.shift - 1) // self.shift

    def len_output(self) -> int:
        """Number of characters kept from each embedded string."""
        return self.num_hash * self.num_bits