"""Run-level cancellation shared by every pipeline stage."""

import threading
from typing import Optional

from ..exceptions import OperationCancelledError


class CancellationToken:
    """
    Cooperative cancellation flag.

    One token is created per run and passed explicitly to each stage.
    Workers check it between units of work; stages check it before
    committing results so a cancelled run never half-applies a change.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "Run cancelled") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError(self._reason or "Run cancelled")
