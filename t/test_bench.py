"""
Smoke tests for the benchmark driver.
"""
from compact_hash_bench import bench_sizes, main, time_calls


def test_time_calls():
    seen = []
    timings = time_calls(seen.append, [b"a", b"bc"])
    assert seen == [b"a", b"bc"]
    assert len(timings) == 2
    assert all(t >= 0 for t in timings)


def test_bench_sizes():
    results = bench_sizes([0, 16, 100], repeat=5)
    assert list(results.keys()) == [0, 16, 100]
    assert results[0].mb_per_s == 0.0
    for timing in results.values():
        assert timing.calls == 5
        assert timing.median_ns >= 0


def test_bench_extended():
    results = bench_sizes([8], repeat=3, n_words=4)
    assert results[8].calls == 3


def test_main(capsys):
    results = main(["1", "32", "--repeat", "2", "--words", "2"])
    assert list(results.keys()) == [1, 32]
    out = capsys.readouterr().out
    assert "ns/call" in out
