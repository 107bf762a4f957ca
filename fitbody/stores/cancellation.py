"""Cancellation tokens for store requests.

A consumer that goes away (a screen closing, a CLI command timing out) cancels
its token. Any response that arrives afterwards is discarded instead of being
applied to store state.
"""

import threading
from typing import List, Optional


class CancellationToken:
    """Thread-safe, one-way cancellation flag."""

    def __init__(self):
        self._event = threading.Event()
        self._children: List["CancellationToken"] = []
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Cancel this token and every token derived from it."""
        with self._lock:
            self._event.set()
            children = list(self._children)
        for child in children:
            child.cancel()

    def child(self) -> "CancellationToken":
        """Return a token cancelled whenever this one is."""
        token = CancellationToken()
        with self._lock:
            if self._event.is_set():
                token.cancel()
            else:
                self._children.append(token)
        return token


def is_cancelled(token: Optional[CancellationToken]) -> bool:
    return token is not None and token.cancelled
