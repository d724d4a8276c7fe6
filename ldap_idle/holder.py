from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Mapping

from ldap3 import Connection

from .client import open_connection
from .errors import StaleConnectionError, TeardownError

log = logging.getLogger(__name__)

ConnectFn = Callable[[Mapping[str, Any]], Connection]
ClockFn = Callable[[], int]


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class ConnectionHolder:
    """Owns a single LDAP connection and decides when it is too old to use.

    A connection idle for `idle_timeout` milliseconds or longer may have been
    dropped by a load balancer or NAT without either side noticing. On the
    next use the holder unbinds it and then either opens a fresh one
    (`idle_refresh=True`) or raises StaleConnectionError so an outer layer
    can acquire a new session (`idle_refresh=False`).

    The first connection is opened in the constructor: binding is also how
    bad credentials are detected, and that failure must surface right away.

    Idleness is checked lazily on access; there is no timer thread.
    """

    def __init__(
        self,
        config: Mapping[str, Any],
        idle_timeout: int,
        idle_refresh: bool,
        *,
        connect: ConnectFn = open_connection,
        clock: ClockFn = monotonic_ms,
    ) -> None:
        if isinstance(idle_timeout, bool) or not isinstance(idle_timeout, int) or idle_timeout < 0:
            raise ValueError(f"idle_timeout must be a non-negative int (ms), got {idle_timeout!r}")

        self._config = dict(config)
        self.idle_timeout = idle_timeout
        self.idle_refresh = bool(idle_refresh)
        self._connect = connect
        self._clock = clock
        self._lock = threading.Lock()

        self._handle: Connection | None = self._connect(self._config)
        self._last_access = self._clock()

    @property
    def config(self) -> dict[str, Any]:
        return dict(self._config)

    @property
    def has_handle(self) -> bool:
        """Liveness marker. ldap3's own state after unbind() is not reliable."""
        return self._handle is not None

    def idle_age(self) -> int:
        return self._clock() - self._last_access

    def get_handle(self) -> Connection:
        with self._lock:
            now = self._clock()
            idle_age = now - self._last_access

            if self._handle is not None:
                if idle_age < self.idle_timeout:
                    self._last_access = now
                    return self._handle

                log.info("LDAP connection idle for %dms (limit %dms), closing it", idle_age, self.idle_timeout)
                # Teardown failure does not block recreation. With refresh
                # disabled it is chained to the stale error.
                teardown_error: TeardownError | None = None
                try:
                    self._release()
                except TeardownError as e:
                    log.warning("Closing idle LDAP connection failed", exc_info=True)
                    teardown_error = e

                if not self.idle_refresh:
                    log.warning("LDAP connection rejected as stale after %dms idle", idle_age)
                    raise StaleConnectionError(idle_age) from teardown_error

            # No handle: after close(), after a stale rejection, or refreshing.
            self._handle = self._connect(self._config)
            self._last_access = self._clock()
            log.info("LDAP connection (re)established")
            return self._handle

    def close(self) -> None:
        """Unbind the owned connection. Safe to call more than once."""
        with self._lock:
            self._release()

    def _release(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            handle.unbind()
        except Exception as e:
            raise TeardownError(f"LDAP unbind failed: {e}") from e
