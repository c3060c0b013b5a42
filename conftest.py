"""Shared pytest fixtures for vcalc tests."""
import threading

import pytest

from utils import md5_digest


class RecordingSink:
    """Stands in for DiagnosticsSink and keeps every report in order."""

    def __init__(self):
        self.reports = []
        self._lock = threading.Lock()

    def report(self, message, is_critical):
        with self._lock:
            self.reports.append((message, is_critical))

    def messages(self):
        return [message for message, _ in self.reports]


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def user_db(tmp_path):
    """Credential table with alice/wonderland and bob/builder."""
    path = tmp_path / "vcalc.conf"
    path.write_text(
        f"alice:{md5_digest('wonderland')}\n"
        f"bob:{md5_digest('builder')}\n",
        encoding="utf-8",
    )
    return path
