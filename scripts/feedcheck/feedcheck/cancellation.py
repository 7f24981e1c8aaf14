"""Cooperative cancellation signal shared between a caller and long operations."""

import threading

from feedcheck.exceptions import OperationCancelledError


class CancellationToken:
    """A one-way cancellation flag.

    Operations check the token at their entry points and abort without
    partial work once it is set. Setting is irreversible.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    def throw_if_cancellation_requested(self) -> None:
        """Raise OperationCancelledError when cancellation was requested.

        Raises:
            OperationCancelledError: If cancel() has been called
        """
        if self._event.is_set():
            raise OperationCancelledError("The operation was cancelled")


def check(token: CancellationToken | None) -> None:
    """Honor an optional token."""
    if token is not None:
        token.throw_if_cancellation_requested()
