"""Analysis failures."""

from __future__ import annotations


class AnalysisError(Exception):
    """Internal invariant violation; fatal for one block only."""

    def __init__(self, msg: str, line: int, col: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))


class AnalysisCancelled(Exception):
    """Cooperative cancellation; partial results are discarded."""
