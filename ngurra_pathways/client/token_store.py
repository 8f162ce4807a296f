"""In-memory token store with an idle timeout.

Overview
--------
Holds exactly one access token (and its refresh token) for the lifetime of a
client process. Tokens are never written to disk. Any use of the store
(``set_tokens``, ``get_access_token``, ``touch``) counts as activity; once the
store has been idle for longer than ``idle_timeout_seconds`` the tokens are
dropped and ``on_expire`` is called.

Expiry is enforced twice: lazily, by comparing the clock on every read, and
eagerly, by a ``threading.Timer`` re-armed on each activity so that
``on_expire`` fires even when nothing reads the store.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT_SECONDS = 30 * 60


class TokenStore:
    """Single-session token holder.

    Args:
        idle_timeout_seconds: Seconds of inactivity after which tokens are cleared.
        on_expire: Called once, without arguments, when tokens expire from idleness.
        clock: Monotonic time source; injectable for tests.
        use_timer: Arm a background ``threading.Timer``. Disable for purely
            clock-driven expiry.
    """

    def __init__(
        self,
        idle_timeout_seconds: float = DEFAULT_IDLE_TIMEOUT_SECONDS,
        on_expire: Optional[Callable[[], None]] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        use_timer: bool = True,
    ) -> None:
        self.idle_timeout_seconds = idle_timeout_seconds
        self.on_expire = on_expire
        self._clock = clock
        self._use_timer = use_timer
        self._lock = threading.RLock()
        self._access_token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._last_activity: Optional[float] = None
        self._timer: Optional[threading.Timer] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set_tokens(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        with self._lock:
            self._access_token = access_token
            if refresh_token is not None:
                self._refresh_token = refresh_token
            self._mark_activity()

    def get_access_token(self) -> Optional[str]:
        """Return the access token, or ``None`` when absent or idle-expired.

        A successful read counts as activity.
        """
        with self._lock:
            if self._access_token is None:
                return None
            if self._idle_expired():
                self._expire()
                return None
            self._mark_activity()
            return self._access_token

    def get_refresh_token(self) -> Optional[str]:
        with self._lock:
            if self._refresh_token is not None and self._idle_expired():
                self._expire()
            return self._refresh_token

    def touch(self) -> None:
        """Record activity without reading the token."""
        with self._lock:
            if self._access_token is not None and not self._idle_expired():
                self._mark_activity()

    def clear(self) -> None:
        """Forget the tokens without calling ``on_expire``."""
        with self._lock:
            self._cancel_timer()
            self._access_token = None
            self._refresh_token = None
            self._last_activity = None

    def is_authenticated(self) -> bool:
        return self.get_access_token() is not None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _idle_expired(self) -> bool:
        if self._last_activity is None:
            return False
        return self._clock() - self._last_activity >= self.idle_timeout_seconds

    def _mark_activity(self) -> None:
        self._last_activity = self._clock()
        if self._use_timer:
            self._cancel_timer()
            self._timer = threading.Timer(self.idle_timeout_seconds, self._on_timer)
            self._timer.daemon = True
            self._timer.start()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        with self._lock:
            if self._access_token is not None and self._idle_expired():
                self._expire()

    def _expire(self) -> None:
        logger.info("Session expired after %s seconds of inactivity", self.idle_timeout_seconds)
        self.clear()
        if self.on_expire is not None:
            self.on_expire()
