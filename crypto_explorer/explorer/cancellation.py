"""Cancellation token shared by every outbound fetch of one view."""

import threading

from crypto_explorer.errors import OperationCancelled


class CancellationToken:
    """One-way flag; once cancelled, results of in-flight fetches are discarded."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelled if `cancel` has been called."""
        if self._event.is_set():
            raise OperationCancelled()
