"""Bulk load runner tests."""

from __future__ import annotations

import threading
from unittest.mock import patch

import pytest

from autocrud.core.bulk.runner import BulkLoadRunner


class TestBulkLoadRunner:
    def test_submit_returns_future(self, runner):
        future = runner.submit(lambda: 7, table="customers")
        assert future.result(timeout=5) == 7

    def test_wait_collects_failures(self, runner):
        def boom():
            raise ValueError("bad row")

        runner.submit(boom, table="customers")
        runner.submit(lambda: 1, table="customers")
        errors = runner.wait(timeout=5)
        assert len(errors) == 1
        assert isinstance(errors[0], ValueError)

    def test_wait_forgets_observed_jobs(self, runner):
        runner.submit(lambda: 1, table="customers")
        runner.wait(timeout=5)
        assert runner.wait(timeout=5) == []
        assert runner.pending == 0

    def test_wait_timeout(self, runner):
        release = threading.Event()
        runner.submit(lambda: release.wait(5), table="customers")
        try:
            with pytest.raises(TimeoutError):
                runner.wait(timeout=0.05)
            assert runner.pending == 1
        finally:
            release.set()
        assert runner.wait(timeout=5) == []

    def test_context_manager_drains(self):
        done = []
        with BulkLoadRunner(max_workers=1) as runner:
            runner.submit(lambda: done.append(1), table="customers")
        assert done == [1]

    def test_finished_jobs_are_not_retained(self):
        runner = BulkLoadRunner(max_workers=4)
        for _ in range(50):
            runner.submit(lambda: 1, table="customers")
        runner.shutdown(wait=True)
        assert runner.pending == 0
        assert len(runner._futures) == 0

    def test_failure_kept_without_traceback(self):
        runner = BulkLoadRunner(max_workers=1)
        batch = list(range(1000))

        def boom():
            raise ValueError(f"bad row in batch of {len(batch)}")

        runner.submit(boom, table="customers")
        runner.shutdown(wait=True)
        assert runner.pending == 0
        [error] = runner.wait(timeout=5)
        assert error.__traceback__ is None

    def test_failures_are_bounded(self):
        runner = BulkLoadRunner(max_workers=1, max_failures=3)

        def boom(n):
            raise ValueError(str(n))

        for n in range(10):
            runner.submit(lambda n=n: boom(n), table="customers")
        errors = runner.wait(timeout=5)
        runner.shutdown()
        assert [str(e) for e in errors] == ["7", "8", "9"]
        assert runner.wait(timeout=5) == []

    def test_failure_log_carries_category(self, runner):
        def boom():
            raise ConnectionResetError("peer reset")

        with patch("autocrud.core.bulk.runner.logger") as mock_logger:
            runner.submit(boom, table="customers")
            runner.wait(timeout=5)
        kwargs = mock_logger.error.call_args.kwargs
        assert mock_logger.error.call_args.args[0] == "bulk_load_failed"
        assert kwargs["category"] == "NETWORK"
        assert kwargs["retryable"] is True
