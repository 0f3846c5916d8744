"""Logging setup plus a per-image flight recorder for forensic dumps."""

import logging
import sys
from collections import deque
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from alttext.core.config import get_config

FLIGHT_LOG_CAPACITY = 50_000
NO_IMAGE = "-"
CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
FLIGHT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s <%(image_id)s>: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_current_image: ContextVar[str | None] = ContextVar("alttext_current_image", default=None)
_flight_logger: "FlightLogger | None" = None


@contextmanager
def image_context(image_id: str) -> Iterator[None]:
    """Tag every record logged inside the block (including awaited tasks) with image_id."""
    token = _current_image.set(image_id)
    try:
        yield
    finally:
        _current_image.reset(token)


def current_image() -> str | None:
    return _current_image.get()


class FlightLogger(logging.Handler):
    """
    Keeps the newest log records of every level in memory, each stamped with the image
    being analyzed when it was emitted (record.image_id, "-" outside any image_context).

    dump(session_id) writes the whole buffer; dump(session_id, image_id) writes only that
    image's records, so a failed analysis can be inspected without the rest of the page.
    """

    def __init__(
        self,
        capacity: int = FLIGHT_LOG_CAPACITY,
        forensics_dir: str | Path | None = None,
    ) -> None:
        super().__init__(level=logging.DEBUG)
        self._buffer: deque[logging.LogRecord] = deque(maxlen=capacity)
        self._forensics_dir = Path(forensics_dir) if forensics_dir is not None else Path.cwd() / "logs" / "forensics"

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "image_id"):
            record.image_id = _current_image.get() or NO_IMAGE
        self._buffer.append(record)

    def records(self, image_id: str | None = None) -> list[logging.LogRecord]:
        if image_id is None:
            return list(self._buffer)
        return [r for r in self._buffer if getattr(r, "image_id", NO_IMAGE) == image_id]

    def dump(self, session_id: str, image_id: str | None = None) -> str:
        """Write the (optionally image-filtered) buffer to the forensics dir; return the file path."""
        selected = self.records(image_id)
        self._forensics_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        stem = f"{session_id}_{image_id}" if image_id is not None else session_id
        path = self._forensics_dir / f"{stem}_{stamp}.log"
        formatter = self.formatter or logging.Formatter(FLIGHT_FORMAT, datefmt=DATE_FORMAT)
        with open(path, "w") as f:
            for record in selected:
                f.write(formatter.format(record) + "\n")
        logging.getLogger(__name__).info(
            "Flight log for %s (%s): %d records -> %s", session_id, image_id or "all images", len(selected), path
        )
        return str(path)

    def __len__(self) -> int:
        return len(self._buffer)


def get_flight_logger() -> FlightLogger | None:
    """The FlightLogger installed by setup_logging(), if any."""
    return _flight_logger


def setup_logging(verbose: bool = False) -> None:
    """
    Route everything to the flight recorder and only WARNING and above (INFO when verbose)
    to stderr. Safe to call more than once: existing root handlers are replaced.
    """
    global _flight_logger
    cfg = get_config()

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in root.handlers[:]:
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.INFO if verbose else logging.WARNING)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(console)

    _flight_logger = FlightLogger(forensics_dir=cfg.forensics_dir)
    _flight_logger.setFormatter(logging.Formatter(FLIGHT_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(_flight_logger)
