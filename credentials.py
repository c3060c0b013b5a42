"""Credential table: ``username:DIGEST`` lines loaded once at startup."""
from types import MappingProxyType
from typing import Dict, Iterator, NamedTuple, Optional

from logging_util import setup_logger

logger = setup_logger("credentials")


class CredentialRecord(NamedTuple):
    username: str
    secret_digest: str


def parse_line(line: str) -> Optional[CredentialRecord]:
    """Parse one table line. Blank lines give None; malformed ones raise ValueError."""
    line = line.strip()
    if not line:
        return None
    username, sep, secret_digest = line.partition(':')
    username = username.strip()
    secret_digest = secret_digest.strip()
    if not sep:
        raise ValueError("missing ':' separator")
    if not username:
        raise ValueError("empty username")
    if not secret_digest:
        raise ValueError("empty digest")
    return CredentialRecord(username, secret_digest)


class CredentialStore:
    """Read-only mapping of username to stored secret digest."""

    def __init__(self, records: Optional[Dict[str, str]] = None):
        self._records = MappingProxyType(dict(records or {}))

    @classmethod
    def load(cls, path: str, diagnostics=None) -> "CredentialStore":
        """Load the table at ``path``.

        Missing or unreadable files give an empty store. Malformed lines are
        skipped. Both are reported as non-critical and never raise. When a
        username repeats, the last line wins.
        """
        def report(message):
            if diagnostics is not None:
                diagnostics.report(message, False)
            else:
                logger.warning(message)

        records: Dict[str, str] = {}
        try:
            with open(path, 'r', encoding='utf-8') as f:
                for lineno, line in enumerate(f, start=1):
                    try:
                        record = parse_line(line)
                    except ValueError as e:
                        report(f"{path}:{lineno}: skipping malformed credential line ({e})")
                        continue
                    if record is None:
                        continue
                    if record.username in records:
                        report(f"{path}:{lineno}: duplicate user '{record.username}', later entry overrides")
                    records[record.username] = record.secret_digest
        except (OSError, UnicodeDecodeError) as e:
            report(f"Cannot read user database {path}: {e}")
            return cls()

        logger.info(f"Loaded {len(records)} user(s) from {path}")
        return cls(records)

    def lookup(self, username: str) -> Optional[str]:
        return self._records.get(username)

    def usernames(self) -> Iterator[str]:
        return iter(self._records)

    def __contains__(self, username) -> bool:
        return username in self._records

    def __len__(self) -> int:
        return len(self._records)
