"""Unique output directory and file naming."""

import re
import secrets
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional


def sanitize_name(name: str) -> str:
    """Reduce free text to a file-system safe name, e.g. 'Event 3 Men 500 Free' -> 'Event_3_Men_500_Free'."""
    cleaned = re.sub(r"[^A-Za-z0-9]+", "_", name).strip("_")
    return cleaned or "Unnamed"


class OutputNamer:
    """
    Issues "<name>_<timestamp>_<random>" names that are unique for the life
    of the process.

    All output paths go through one instance so that the timestamp/random
    state is not shared with the parser.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or datetime.now
        self._issued: set[str] = set()
        self._lock = threading.Lock()

    def unique_name(self, base: str) -> str:
        with self._lock:
            while True:
                stamp = self._clock().strftime("%Y%m%d_%H%M%S")
                name = f"{sanitize_name(base)}_{stamp}_{secrets.token_hex(3)}"
                if name not in self._issued:
                    self._issued.add(name)
                    return name

    def make_dir(self, parent: Path, base: str) -> tuple[Path, str]:
        """Create a new uniquely named directory under parent. Returns (path, name)."""
        parent.mkdir(parents=True, exist_ok=True)
        while True:
            name = self.unique_name(base)
            path = parent / name
            try:
                path.mkdir()
            except FileExistsError:
                continue
            return path, name
