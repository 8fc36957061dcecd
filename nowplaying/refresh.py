"""Debounced refresh with a fallback tick while visible."""

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

REFRESH_INTERVAL = 0.5


class ImmediateCall:
    """Timer-like handle for a zero-delay callback queued with ``call_later``.

    Textual timers cannot run with a zero interval, so immediate refreshes
    are posted to the message queue instead. ``stop()`` before delivery
    drops the call; the callback runs at most once.
    """

    def __init__(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True

    def __call__(self) -> None:
        if self.stopped:
            return
        self.stopped = True
        self._callback()


class RefreshScheduler:
    """Collapses refresh requests into a single pending timer.

    ``set_timer(delay, callback)`` must return an object with ``stop()``;
    a Textual widget's ``set_timer`` fits. At most one timer is pending:
    every request stops the previous one and arms a new one. When the timer
    fires, ``render`` runs and, while visible, the scheduler re-arms itself
    with ``interval`` so a live clock keeps advancing without change events.
    """

    def __init__(
        self,
        set_timer: Callable,
        render: Callable[[], None],
        interval: float = REFRESH_INTERVAL,
    ) -> None:
        self._set_timer = set_timer
        self._render = render
        self.interval = interval
        self.visible = False
        self.pending_delay: Optional[float] = None
        self._timer = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def request_refresh(self, delay: float = 0.0) -> None:
        if not self.visible:
            return
        self.cancel()
        self.pending_delay = delay
        self._timer = self._set_timer(delay, self._fire)

    def cancel(self) -> None:
        timer, self._timer = self._timer, None
        self.pending_delay = None
        if timer is not None:
            timer.stop()

    def set_visible(self, visible: bool) -> None:
        self.visible = visible
        if visible:
            self.request_refresh(0.0)
        else:
            self.cancel()

    def _fire(self) -> None:
        self._timer = None
        self.pending_delay = None
        self._render()
        if self.visible and self._timer is None:
            self.request_refresh(self.interval)
