import pytest

from onejoin.cli import build_parser, main

DATA = ["A" * 20] * 3 + ["C" * 20] * 3 + ["G" * 20] * 3 + ["T" * 20] * 3


@pytest.fixture
def dataset(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "data.txt"
    path.write_text("\n".join(DATA) + "\n")
    return path


def _args(path, *extra):
    return ["-r", str(path), "-d", "0", "-s", "20", "-c", "0", "-b", "1", *extra]


def test_parser_reads_short_options():
    args = build_parser().parse_args(
        ["-a", "2", "-r", "in.txt", "-d", "1", "-s", "91", "-c", "3", "-b", "500", "-p", "4", "-v"]
    )
    assert (args.alg, args.read, args.device) == (2, "in.txt", 1)
    assert (args.samplingrange, args.countfilter, args.batch_size) == (91, 3, 500)
    assert args.min_pts == 4
    assert args.verbose is True


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.min_pts == 10
    assert args.num_thread_ed_dist == 0
    assert args.dataset_name == ""
    assert args.verbose is False


def test_help_returns_zero(capsys):
    assert main(["-h"]) == 0
    assert "--read" in capsys.readouterr().err


def test_missing_required_returns_one(capsys):
    assert main(["-r", "in.txt"]) == 1
    assert "--batch_size" in capsys.readouterr().err


def test_missing_file_returns_one(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert main(_args(tmp_path / "absent.txt")) == 1


def test_too_few_batches_returns_one(dataset):
    assert main(["-r", str(dataset), "-d", "0", "-s", "20", "-c", "0", "-b", "100"]) == 1
    assert not (dataset.parent / "report--CPU-100.csv").exists()


def test_invalid_device_returns_one(dataset):
    assert main(["-r", str(dataset), "-d", "7", "-s", "20", "-c", "0", "-b", "1"]) == 1


def test_join_writes_report(dataset):
    assert main(_args(dataset)) == 0
    report = (dataset.parent / "report--CPU-1.csv").read_text().splitlines()
    assert report[0] == "MainStep,Step,SubStep,Time(sec),Device"
    assert any(line.startswith("Number output,\t") for line in report)
    assert not any(line.startswith("Total Cluster time") for line in report)


def test_dataset_name_in_report_name(dataset):
    assert main(_args(dataset, "-n", "sample")) == 0
    assert (dataset.parent / "report-sample-CPU-1.csv").exists()


def test_cluster_writes_consensus_and_report(dataset):
    assert main(_args(dataset, "-a", "2", "-p", "3")) == 0
    lines = (dataset.parent / "consensus_results_chunk_0").read_text().splitlines()
    total = 0
    for line in lines:
        text, count = line.split(" ")
        assert len(text) == 20
        assert set(text) <= set("ACGTN")
        total += int(count)
    assert total <= len(DATA)
    report = (dataset.parent / "report--CPU-1.csv").read_text().splitlines()
    assert report[1].startswith("Total Cluster time,")


def test_unknown_algorithm_falls_back_to_join(dataset):
    assert main(_args(dataset, "-a", "9")) == 0
    report = (dataset.parent / "report--CPU-1.csv").read_text()
    assert "Total Cluster time" not in report
    assert not (dataset.parent / "consensus_results_chunk_0").exists()