"""Tests for the worker pool tracker."""

import threading

from jobdaemon.local.supervisor import WorkerPool


def test_add_and_count():
    pool = WorkerPool()

    pool.add(10)
    pool.add(11)

    assert pool.count() == 2
    assert len(pool) == 2
    assert 10 in pool
    assert sorted(pool.pids()) == [10, 11]


def test_adding_the_same_pid_twice_keeps_one_record():
    pool = WorkerPool()

    pool.add(10)
    pool.add(10)

    assert pool.count() == 1


def test_remove_is_idempotent():
    pool = WorkerPool()
    pool.add(10)

    pool.remove(10)
    pool.remove(10)
    pool.remove(999)

    assert pool.count() == 0
    assert 10 not in pool


def test_pids_returns_a_snapshot():
    pool = WorkerPool()
    pool.add(1)
    snapshot = pool.pids()

    pool.add(2)

    assert snapshot == [1]


def test_concurrent_add_and_remove():
    pool = WorkerPool()

    def churn(offset):
        for pid in range(offset, offset + 500):
            pool.add(pid)
        for pid in range(offset, offset + 500):
            pool.remove(pid)

    threads = [threading.Thread(target=churn, args=(i * 1000,)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert pool.count() == 0
