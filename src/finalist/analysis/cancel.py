"""Cooperative cancellation flag."""

from __future__ import annotations

import threading

from .errors import AnalysisCancelled


class CancelToken:
    """Shared flag checked at every worklist step.

    Set from any thread; the analysis unwinds with AnalysisCancelled at its
    next check.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def check(self) -> None:
        if self._event.is_set():
            raise AnalysisCancelled("analysis cancelled")


def check(token: CancelToken | None) -> None:
    if token is not None:
        token.check()
