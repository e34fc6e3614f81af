import io

import pytest

from onejoin.timing import Phase, Timer


def fake_clock(*values):
    return iter(values).__next__


def test_single_run_total_and_step():
    timer = Timer(clock=fake_clock(0.0, 1.5))
    timer.start(Phase.INIT_TOTAL)
    timer.end(Phase.INIT_TOTAL)
    assert timer.total(Phase.INIT_TOTAL) == 1.5
    assert timer.step_time(Phase.INIT_TOTAL) == 1.5


def test_runs_accumulate_while_step_is_latest():
    first, second = 2.0, 0.5
    timer = Timer(clock=fake_clock(0.0, first, 10.0, 10.0 + second))
    timer.start(Phase.CAND_TOTAL)
    timer.end(Phase.CAND_TOTAL)
    timer.start(Phase.CAND_TOTAL)
    timer.end(Phase.CAND_TOTAL)
    assert timer.total(Phase.CAND_TOTAL) == first + second
    assert timer.step_time(Phase.CAND_TOTAL) == second


def test_durations_truncate_to_milliseconds():
    timer = Timer(clock=fake_clock(0.0, 0.0009))
    timer.start(Phase.LSH_TOTAL)
    timer.end(Phase.LSH_TOTAL)
    assert timer.total(Phase.LSH_TOTAL) == 0.0


def test_measure_context_manager():
    timer = Timer(clock=fake_clock(1.0, 4.0))
    with timer.measure(Phase.EDIT_DIST_TOTAL):
        pass
    assert timer.total(Phase.EDIT_DIST_TOTAL) == 3.0


def test_measure_records_even_on_error():
    timer = Timer(clock=fake_clock(0.0, 2.0))
    with pytest.raises(RuntimeError):
        with timer.measure(Phase.BUCKETS_SORT):
            raise RuntimeError("boom")
    assert timer.total(Phase.BUCKETS_SORT) == 2.0


def test_unmeasured_phase_is_zero():
    timer = Timer()
    assert timer.total(Phase.EMBED_TOTAL) == 0.0
    assert timer.step_time(Phase.EMBED_TOTAL) == 0.0


def test_end_without_start_raises():
    timer = Timer()
    with pytest.raises(ValueError):
        timer.end(Phase.INIT_DATA)


def test_report_header_counts_and_device():
    timer = Timer(clock=fake_clock(0.0, 2.0))
    timer.start(Phase.EMBED_TOTAL)
    timer.end(Phase.EMBED_TOTAL)
    out = io.StringIO()
    timer.write_report("cpu0", 7, 5, out)
    lines = out.getvalue().splitlines()
    assert lines[0] == "MainStep,Step,SubStep,Time(sec),Device"
    assert "Embedding,\t,\t,2,cpu0" in lines
    assert "Number candidates,\t7,\t,\t," in lines
    assert lines[-1] == "Number output,\t5,\t,\t,"
    assert not any(line.startswith("Total Cluster time") for line in lines)


def test_report_cluster_section_only_for_cluster():
    out_join = io.StringIO()
    Timer(is_cluster=False).write_report("", 0, 0, out_join)
    out_cluster = io.StringIO()
    Timer(is_cluster=True).write_report("", 0, 0, out_cluster)
    cluster_lines = out_cluster.getvalue().splitlines()
    assert cluster_lines[1].startswith("Total Cluster time,")
    assert "" in cluster_lines
    assert len(cluster_lines) > len(out_join.getvalue().splitlines())


def test_summary_lines():
    timer = Timer(clock=fake_clock(0.0, 3.0))
    with timer.measure(Phase.TOTAL_ALG_TOTAL):
        pass
    out = io.StringIO()
    timer.write_summary(11, 4, out)
    text = out.getvalue()
    assert "Summary:" in text
    assert "Total elapsed time :\t3sec" in text
    assert text.rstrip("\n").endswith("Number of output pairs: 4")
    assert "Number of candidates verified: 11" in text