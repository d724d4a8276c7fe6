from __future__ import annotations

from typing import Any, Mapping

from .environment import get_idle_refresh, get_idle_timeout, sanitize
from .holder import ClockFn, ConnectFn, ConnectionHolder
from .proxy import IdleGuardedConnection


def get_initial_connection(
    environment: Mapping[str, Any],
    *,
    connect: ConnectFn | None = None,
    clock: ClockFn | None = None,
) -> IdleGuardedConnection:
    """Bind a first connection and wrap it in an idle guard.

    Idle settings come from the `ldap.idle.*` keys of `environment`, falling
    back to LDAP_IDLE_TIMEOUT / LDAP_IDLE_REFRESH. The remaining keys go to
    the connection factory (open_connection unless `connect` is given).

    Bind errors surface here as ConnectionEstablishmentError, not on first use.
    """
    holder_kwargs: dict[str, Any] = {}
    if connect is not None:
        holder_kwargs["connect"] = connect
    if clock is not None:
        holder_kwargs["clock"] = clock

    holder = ConnectionHolder(
        sanitize(environment),
        get_idle_timeout(environment),
        get_idle_refresh(environment),
        **holder_kwargs,
    )
    return IdleGuardedConnection(holder)
