"""Cooperative cancellation polled at directory and file boundaries."""

from __future__ import annotations

import threading


class OperationCancelled(Exception):
    """Raised when a walk or resolution notices its token was cancelled."""


class CancellationToken:
    """Thread-safe cancellation flag shared between a caller and a worker."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled()


def check(token: CancellationToken | None) -> None:
    """Raise OperationCancelled if *token* is set. A None token never cancels."""
    if token is not None:
        token.raise_if_cancelled()
