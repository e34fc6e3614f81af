import pytest

from onejoin.cluster import (
    NOISE,
    build_neighbourhoods,
    consensus,
    dbscan,
    one_cluster,
)
from onejoin.constants import Params
from onejoin.timing import Timer

SMALL = Params(num_str=2, num_hash=2, num_bits=4, k_input=2, shift=2)
A, C, G, T = ("A" * 20, "C" * 20, "G" * 20, "T" * 20)


def test_consensus_majority_per_position():
    result = consensus(["ACGT", "ACGA", "TCGA"], [1, 1, 1], 4)
    assert result == [("ACGA", 3)]


def test_consensus_ignores_noise_and_orders_by_label():
    strings = ["AAAA", "CCCC", "GGGG", "CCCC"]
    result = consensus(strings, [2, 1, NOISE, 1], 4)
    assert result == [("CCCC", 2), ("AAAA", 1)]


def test_consensus_rejects_foreign_character():
    with pytest.raises(ValueError):
        consensus(["XX", "XX"], [1, 1], 2)


def test_consensus_all_noise_is_empty():
    assert consensus(["AC", "GT"], [NOISE, NOISE], 2) == []


def test_build_neighbourhoods_puts_point_first():
    result = build_neighbourhoods([(0, 1), (1, 0)], 3)
    assert result == {0: [0, 1], 1: [1, 0], 2: [2]}


def test_dbscan_pair_and_noise():
    neighbourhoods = build_neighbourhoods([(0, 1), (1, 0)], 3)
    assert dbscan(neighbourhoods, 2, 3) == [1, 1, NOISE]


def test_dbscan_noise_border_point_joins_cluster():
    neighbourhoods = {0: [0, 1], 1: [1, 0, 2], 2: [2, 1]}
    assert dbscan(neighbourhoods, 3, 3) == [1, 1, 1]


def test_dbscan_expands_through_core_points():
    pairs = [(0, 1), (1, 2), (2, 3)]
    both = pairs + [(b, a) for a, b in pairs]
    neighbourhoods = build_neighbourhoods(both, 5)
    labels = dbscan(neighbourhoods, 2, 5)
    assert labels[:4] == [1, 1, 1, 1]
    assert labels[4] == NOISE


def test_dbscan_separate_clusters_get_increasing_ids():
    pairs = [(0, 1), (2, 3)]
    both = pairs + [(b, a) for a, b in pairs]
    labels = dbscan(build_neighbourhoods(both, 4), 2, 4)
    assert labels == [1, 1, 2, 2]


def test_dbscan_missing_neighbourhood_raises():
    with pytest.raises(KeyError):
        dbscan({0: [0]}, 1, 2)


def test_one_cluster_single_chunk(tmp_path):
    strings = [A, A, A, C, C, C, G, G, G, T, T, T]
    result = one_cluster(strings, 3, 0, 20, 0, Timer(True), 3, SMALL, out_dir=tmp_path)
    assert result == [(A, 3), (C, 3), (G, 3), (T, 3)]
    lines = (tmp_path / "consensus_results_chunk_0").read_text().splitlines()
    assert lines == [f"{A} 3", f"{C} 3", f"{G} 3", f"{T} 3"]


def test_one_cluster_reclusters_chunk_consensus(tmp_path):
    strings = [A, A, A, C, C, C] * 2
    result = one_cluster(
        strings, 1, 0, 20, 0, Timer(True), 2, SMALL, chunk_size=6, out_dir=tmp_path
    )
    assert result == [(A, 2), (C, 2)]
    assert (tmp_path / "consensus_results_chunk_2").read_text() == f"{A} 2\n{C} 2\n"
    assert not (tmp_path / "consensus_results_chunk_0").exists()


def test_one_cluster_rejects_empty_input(tmp_path):
    with pytest.raises(ValueError):
        one_cluster([], 1, 0, 20, 0, params=SMALL, out_dir=tmp_path)


def test_one_cluster_rejects_bad_chunk_size(tmp_path):
    with pytest.raises(ValueError):
        one_cluster([A, A, A], 1, 0, 20, 0, params=SMALL, chunk_size=0, out_dir=tmp_path)