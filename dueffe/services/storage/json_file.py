"""
JSON File Storage Implementation

DESIGN DECISION: The whole ledger is one JSON document because:
1. Personal ledgers are small (thousands of rows, not millions)
2. The file is human-readable and easy to back up or diff
3. It doubles as the export format

TRADEOFFS:
- Every save rewrites the file (fine at this size)
- No partial reads (we always need the full state anyway)

Writes go to a temporary file in the same directory which then replaces
the target, so a crash mid-write never leaves a truncated ledger.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog
from pydantic import ValidationError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from dueffe.config import StorageSettings
from dueffe.models.ledger import LedgerSnapshot
from dueffe.services.storage.interface import (
    CorruptDataError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)

logger = structlog.get_logger(__name__)


class JsonFileLedgerStorage(LedgerStorageInterface):
    """
    Ledger snapshot persisted as a single JSON file.

    Usage:
        storage = JsonFileLedgerStorage("ledger.json", missing_ok=True)
        snapshot = storage.load()
    """

    def __init__(
        self,
        path: Union[str, Path],
        settings: Optional[StorageSettings] = None,
        missing_ok: bool = False,
    ):
        """
        Args:
            path: Target JSON file
            settings: Retry policy. Defaults to StorageSettings().
            missing_ok: load() returns an empty snapshot instead of raising
                NotFoundError when the file does not exist yet
        """
        self._path = Path(path)
        self._settings = settings or StorageSettings()
        self._missing_ok = missing_ok

    @property
    def path(self) -> Path:
        return self._path

    def _retrying(self) -> Retrying:
        # Only OS-level failures are worth retrying; bad data stays bad
        return Retrying(
            stop=stop_after_attempt(self._settings.retry_attempts),
            wait=wait_exponential(
                multiplier=1,
                min=self._settings.retry_min_wait,
                max=self._settings.retry_max_wait,
            ),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> LedgerSnapshot:
        if not self.exists():
            if self._missing_ok:
                return LedgerSnapshot()
            raise NotFoundError(f"Ledger file not found: {self._path}")

        try:
            raw = self._retrying()(self._path.read_text, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read ledger file {self._path}: {e}")

        try:
            snapshot = LedgerSnapshot.model_validate_json(raw)
        except ValidationError as e:
            raise CorruptDataError(f"Ledger file {self._path} is not a valid snapshot: {e}")

        logger.debug(
            "ledger_loaded",
            path=str(self._path),
            accounts=len(snapshot.accounts),
            envelopes=len(snapshot.envelopes),
            transactions=len(snapshot.transactions),
        )
        return snapshot

    def save(self, snapshot: LedgerSnapshot) -> bool:
        payload = snapshot.model_dump_json(indent=2)
        try:
            self._retrying()(self._write_atomically, payload)
        except OSError as e:
            raise StorageError(f"Failed to save ledger file {self._path}: {e}")
        return True

    def _write_atomically(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
