"""
Unit tests for connector host contexts.
"""

import threading

import pytest

from connector.context import ConnectorContext, RecordingContext


class TestConnectorContext:
    """Test the base contract"""

    def test_methods_not_implemented(self):
        context = ConnectorContext()

        with pytest.raises(NotImplementedError):
            context.request_task_reconfiguration()
        with pytest.raises(NotImplementedError):
            context.raise_error(RuntimeError("boom"))


class TestRecordingContext:
    """Test RecordingContext"""

    def test_counts_requests(self):
        context = RecordingContext()

        context.request_task_reconfiguration()
        context.request_task_reconfiguration()

        assert context.reconfiguration_count == 2
        assert context.failed is False

    def test_records_errors(self):
        context = RecordingContext()
        error = RuntimeError("monitor died")

        context.raise_error(error)

        assert context.errors == [error]
        assert context.failed is True

    def test_wait_times_out(self):
        assert RecordingContext().wait_for_reconfiguration(timeout=0.01) is False

    def test_wait_consumes_request(self):
        context = RecordingContext()
        context.request_task_reconfiguration()

        assert context.wait_for_reconfiguration(timeout=0.01) is True
        assert context.wait_for_reconfiguration(timeout=0.01) is False

    def test_error_wakes_waiter(self):
        context = RecordingContext()
        woken = []
        waiter = threading.Thread(
            target=lambda: woken.append(context.wait_for_reconfiguration(timeout=2.0))
        )
        waiter.start()

        context.raise_error(RuntimeError("monitor died"))
        waiter.join(timeout=2.0)

        assert woken == [True]

    def test_concurrent_requests_all_counted(self):
        context = RecordingContext()
        threads = [
            threading.Thread(target=context.request_task_reconfiguration) for _ in range(20)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert context.reconfiguration_count == 20
