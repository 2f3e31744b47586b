"""Tests for ReadWriteLock."""

import threading
import time

from crit.rwlock import ReadWriteLock


def test_readers_share_the_lock():
    """Two readers can hold the lock at once."""
    lock = ReadWriteLock()
    both_inside = threading.Barrier(2, timeout=2)
    results = []

    def reader():
        with lock.read():
            both_inside.wait()
            results.append(True)

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=3)

    assert results == [True, True]


def test_writer_excludes_readers():
    lock = ReadWriteLock()
    events = []

    lock.acquire_write()
    reader = threading.Thread(target=lambda: (lock.acquire_read(), events.append("read"), lock.release_read()))
    reader.start()
    time.sleep(0.05)
    events.append("write-done")
    lock.release_write()
    reader.join(timeout=2)

    assert events == ["write-done", "read"]


def test_waiting_writer_blocks_new_readers():
    """Once a writer waits, later readers queue behind it."""
    lock = ReadWriteLock()
    events = []

    lock.acquire_read()

    def writer():
        with lock.write():
            events.append("write")

    def late_reader():
        with lock.read():
            events.append("late-read")

    w = threading.Thread(target=writer)
    w.start()
    time.sleep(0.05)
    r = threading.Thread(target=late_reader)
    r.start()
    time.sleep(0.05)
    assert events == []

    lock.release_read()
    w.join(timeout=2)
    r.join(timeout=2)

    assert events == ["write", "late-read"]
