"""Custom logging handlers."""

import logging
import threading
from pathlib import Path

DEFAULT_MAX_BYTES = 5 * 1024 * 1024


class HalvingFileHandler(logging.FileHandler):
    """File handler that drops the oldest half of the file once it grows too big.

    Unlike rotation this keeps a single file, so ``tail -f`` keeps working and
    the most recent history survives.
    """

    def __init__(
        self,
        filename: str,
        max_bytes: int = DEFAULT_MAX_BYTES,
        encoding: str = "utf-8",
    ) -> None:
        Path(filename).parent.mkdir(parents=True, exist_ok=True)
        super().__init__(filename, mode="a", encoding=encoding, delay=True)
        self.max_bytes = max_bytes
        self._halving_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            with self._halving_lock:
                self._halve_if_needed()
            super().emit(record)
        except Exception:
            self.handleError(record)

    def _halve_if_needed(self) -> None:
        path = Path(self.baseFilename)
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            if self.stream is not None:
                self.stream.close()
                self.stream = None
            path.parent.mkdir(parents=True, exist_ok=True)
            return
        if size <= self.max_bytes:
            return

        if self.stream is not None:
            self.stream.close()
            self.stream = None

        data = path.read_bytes()
        tail = data[len(data) // 2 :]
        newline = tail.find(b"\n")
        if newline != -1:
            tail = tail[newline + 1 :]
        path.write_bytes(tail)
