import pytest

from credentials import CredentialRecord, CredentialStore, parse_line
from logging_util import DiagnosticsSink
from utils import md5_digest


def write_db(path, lines):
    path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    return path


def test_load_valid_database(tmp_path):
    path = write_db(tmp_path / "users.conf", [
        "user1:password123",
        "user2:secret456",
        "admin:adminpass",
    ])
    store = CredentialStore.load(str(path))
    assert len(store) == 3
    assert store.lookup("user1") == "password123"
    assert store.lookup("user2") == "secret456"
    assert store.lookup("admin") == "adminpass"
    assert all(store.lookup(name) is not None for name in store.usernames())


def test_load_empty_file(tmp_path, sink):
    path = tmp_path / "empty.conf"
    path.write_text("", encoding="utf-8")
    store = CredentialStore.load(str(path), sink)
    assert len(store) == 0
    assert sink.reports == []


def test_load_missing_file_reports_and_returns_empty(tmp_path, sink):
    store = CredentialStore.load(str(tmp_path / "missing.conf"), sink)
    assert len(store) == 0
    assert len(sink.reports) == 1
    message, is_critical = sink.reports[0]
    assert "missing.conf" in message
    assert is_critical is False


def test_load_non_utf8_file(tmp_path, sink):
    path = tmp_path / "binary.conf"
    path.write_bytes(b"alice:\xff\xfe\n")
    store = CredentialStore.load(str(path), sink)
    assert len(store) == 0
    assert sink.reports and sink.reports[0][1] is False


def test_malformed_lines_are_skipped(tmp_path, sink):
    path = write_db(tmp_path / "users.conf", [
        "alice:" + md5_digest("wonderland"),
        "no-separator",
        ":EMPTYUSER",
        "emptydigest:",
        "",
        "bob:" + md5_digest("builder"),
    ])
    store = CredentialStore.load(str(path), sink)
    assert sorted(store.usernames()) == ["alice", "bob"]
    assert len(sink.reports) == 3
    assert all(not critical for _, critical in sink.reports)
    assert ":2:" in sink.reports[0][0]


def test_duplicate_username_last_wins(tmp_path, sink):
    path = write_db(tmp_path / "users.conf", ["carol:FIRST", "carol:SECOND"])
    store = CredentialStore.load(str(path), sink)
    assert len(store) == 1
    assert store.lookup("carol") == "SECOND"
    assert "duplicate user 'carol'" in sink.messages()[0]


def test_lookup_is_case_sensitive(user_db):
    store = CredentialStore.load(str(user_db))
    assert "alice" in store
    assert store.lookup("Alice") is None
    assert store.lookup("nobody") is None


def test_store_is_read_only():
    store = CredentialStore({"alice": "X"})
    with pytest.raises(TypeError):
        store._records["mallory"] = "Y"


def test_parse_line():
    assert parse_line("  dave:ABC \r\n") == CredentialRecord("dave", "ABC")
    assert parse_line("   \n") is None
    assert parse_line("eve:a:b") == CredentialRecord("eve", "a:b")
    with pytest.raises(ValueError):
        parse_line("nocolon")


def test_diagnostics_sink_appends_to_file(tmp_path):
    log_file = tmp_path / "log" / "vcalc.log"
    diagnostics = DiagnosticsSink(str(log_file))
    try:
        diagnostics.report("first problem", False)
        diagnostics.report("second problem", True)
    finally:
        diagnostics.close()
    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert "WARNING" in lines[0] and "first problem" in lines[0]
    assert "CRITICAL" in lines[1] and "second problem" in lines[1]


def test_diagnostics_sink_survives_unwritable_path(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    diagnostics = DiagnosticsSink(str(blocker / "vcalc.log"))
    try:
        diagnostics.report("still fine", True)
    finally:
        diagnostics.close()


def test_diagnostics_sinks_on_same_file_are_independent(tmp_path):
    log_file = tmp_path / "shared.log"
    first = DiagnosticsSink(str(log_file))
    second = DiagnosticsSink(str(log_file))
    try:
        first.close()
        second.report("after first closed", False)
    finally:
        second.close()
    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    assert "after first closed" in lines[0]
