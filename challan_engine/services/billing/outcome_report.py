"""
Per-item outcome accounting for multi-challan operations.
"""

from typing import Generic, TypeVar

TResult = TypeVar("TResult")


class OutcomeReport(Generic[TResult]):
    """
    Accumulates per-item outcomes with a bounded message list.

    ``result`` is any schema carrying ``success_count``,
    ``failure_count``, ``errors`` and ``errors_truncated``. Counts stay
    exact once messages are capped.
    """

    def __init__(self, result: TResult, max_messages: int):
        self.result = result
        self._max_messages = max_messages

    def succeeded(self) -> None:
        self.result.success_count += 1

    def failed(self, message: str) -> None:
        self.result.failure_count += 1
        if len(self.result.errors) < self._max_messages:
            self.result.errors.append(message)
        else:
            self.result.errors_truncated = True
