import threading

from envsnapshot.combinators import first_success, settle_all


def test_first_success_skips_failures_and_nones():
    calls = []

    def boom():
        calls.append("boom")
        raise ConnectionError("down")

    def empty():
        calls.append("empty")
        return None

    def third():
        calls.append("third")
        return "found"

    def never():
        calls.append("never")
        return "too late"

    assert first_success([boom, empty, third, never]) == "found"
    assert calls == ["boom", "empty", "third"]


def test_first_success_exhausted_returns_none():
    assert first_success([lambda: None]) is None
    assert first_success([]) is None


def test_settle_all_collects_each_outcome():
    outcomes = settle_all({
        "ok": lambda: 42,
        "bad": lambda: (_ for _ in ()).throw(ValueError("malformed")),
    })

    assert outcomes["ok"].ok
    assert outcomes["ok"].value == 42
    assert not outcomes["bad"].ok
    assert isinstance(outcomes["bad"].error, ValueError)
    assert outcomes["bad"].value_or_none() is None


def test_settle_all_runs_tasks_concurrently():
    # each task waits for the other; a sequential run would time out
    barrier = threading.Barrier(2, timeout=5)

    def task():
        barrier.wait()
        return "done"

    outcomes = settle_all({"a": task, "b": task})
    assert outcomes["a"].value == "done"
    assert outcomes["b"].value == "done"


def test_settle_all_empty():
    assert settle_all({}) == {}
