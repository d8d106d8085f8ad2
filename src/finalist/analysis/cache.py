"""Content-addressed verdict cache shared between concurrent analyses."""

from __future__ import annotations

import hashlib
import logging
import threading
from dataclasses import fields, is_dataclass

from .model import Variable, Verdict

LOG = logging.getLogger(__name__)


def fingerprint(block: object) -> str:
    """Stable digest of a block's structure and positions.

    The tree is walked with an explicit stack; node types, list lengths and
    scalar reprs are fed to the digest in pre-order.
    """
    digest = hashlib.sha256()
    stack: list[object] = [block]
    while stack:
        item = stack.pop()
        if isinstance(item, list):
            digest.update(b"[" + str(len(item)).encode("ascii") + b"]")
            stack.extend(reversed(item))
        elif is_dataclass(item):
            digest.update(type(item).__name__.encode("utf-8") + b"(")
            stack.extend(getattr(item, f.name) for f in reversed(fields(item)))
        else:
            digest.update(repr(item).encode("utf-8") + b",")
    return digest.hexdigest()


class VerdictCache:
    """Append-only map from (owner, fingerprint) to raw verdicts.

    Two threads missing on the same key both compute; the first put wins and
    the second result is dropped. Results are equal either way.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], dict[Variable, Verdict]] = {}
        self._lock = threading.Lock()
        self.hits: int = 0
        self.misses: int = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, owner: str, key: str) -> dict[Variable, Verdict] | None:
        with self._lock:
            found = self._entries.get((owner, key))
            if found is None:
                self.misses += 1
            else:
                self.hits += 1
        if found is None:
            LOG.debug("cache miss for %s", owner)
            return None
        LOG.debug("cache hit for %s", owner)
        return dict(found)

    def put(
        self, owner: str, key: str, verdicts: dict[Variable, Verdict]
    ) -> dict[Variable, Verdict]:
        """Store verdicts unless present. Returns the stored entry."""
        with self._lock:
            stored = self._entries.setdefault((owner, key), dict(verdicts))
        return dict(stored)
