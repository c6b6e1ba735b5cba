"""
Status notifier: one ephemeral status line plus user-visible alerts.
"""
import asyncio
from typing import Callable, List, Optional

DEFAULT_CLEAR_MS = 3000


class StatusNotifier:
    """Holds the current status text and the timer that clears it.

    Only one auto-clear timer is outstanding at a time: setting a new status
    cancels the previous timer, so an older timer can never blank a newer
    status. teardown() cancels whatever is left.
    """

    def __init__(self,
                 default_clear_ms: int = DEFAULT_CLEAR_MS,
                 loop: Optional[asyncio.AbstractEventLoop] = None,
                 on_change: Optional[Callable[[str], None]] = None,
                 on_alert: Optional[Callable[[str], None]] = None,
                 verbose: bool = False):
        self.default_clear_ms = default_clear_ms
        self.text = ""
        self.alerts: List[str] = []
        self.on_change = on_change
        self.on_alert = on_alert
        self.verbose = verbose
        self._loop = loop
        self._timer: Optional[asyncio.TimerHandle] = None
        self._closed = False

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    def set(self, text: str, duration_ms: Optional[int] = None) -> None:
        """Replace the status. A non-positive duration keeps it until replaced."""
        if duration_ms is None:
            duration_ms = self.default_clear_ms

        self._cancel_timer()
        self._update(text)

        if duration_ms <= 0 or self._closed:
            return

        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                print(f"[status] No running event loop; {text!r} will not auto-clear")
                return
        self._timer = loop.call_later(duration_ms / 1000, self._expire)

    def clear(self) -> None:
        """Empty the status and drop any pending auto-clear."""
        self._cancel_timer()
        self._update("")

    def alert(self, text: str) -> None:
        """Raise a user-visible failure notification."""
        self.alerts.append(text)
        if self.on_alert is not None:
            self.on_alert(text)
        else:
            print(f"[status] ALERT: {text}")

    def teardown(self) -> None:
        """Cancel the outstanding timer; no timers are scheduled afterwards."""
        self._cancel_timer()
        self._closed = True

    def reopen(self) -> None:
        """Allow timers again after teardown()."""
        self._closed = False

    def _expire(self) -> None:
        self._timer = None
        self._update("")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _update(self, text: str) -> None:
        if text == self.text:
            return
        self.text = text
        if self.verbose:
            print(f"[status] {text!r}")
        if self.on_change is not None:
            self.on_change(text)
