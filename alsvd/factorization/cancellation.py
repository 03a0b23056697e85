"""
Cooperative cancellation for long-running fits.
"""

import threading
from typing import Callable, Optional

from ..exceptions import FitCancelled


class CancellationToken:
    """
    Flag polled by the fitter once per ALS iteration.

    Parameters
    ----------
    poll : callable, optional
        Zero-argument hook returning True when the host wants the fit
        stopped (for example a check on a UI or signal flag). Consulted each
        time the token is polled.
    """

    def __init__(self, poll: Optional[Callable[[], bool]] = None):
        self._event = threading.Event()
        self._poll = poll

    def cancel(self) -> None:
        """Request cancellation; safe to call from another thread."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if not self._event.is_set() and self._poll is not None and self._poll():
            self._event.set()
        return self._event.is_set()

    def raise_if_cancelled(self, rank: int, iteration: int) -> None:
        if self.cancelled:
            raise FitCancelled(rank, iteration)

    def __repr__(self):
        return f"CancellationToken(cancelled={self._event.is_set()})"
