"""Connection environment handling.

An environment is a flat mapping of connection parameters plus two idle
control keys:

    ldap.idle.timeout=180000     # milliseconds
    ldap.idle.refresh=false      # true: reconnect silently, false: raise

To route connections through the guard, point `ldap.factory.initial` at
GUARDED_FACTORY. The guard rewrites that key to UNDERLYING_FACTORY before
handing the parameters to the real connection factory.
"""
from __future__ import annotations

from typing import Any, Mapping

from .env_settings import get_env

IDLE_TIMEOUT = "ldap.idle.timeout"
IDLE_REFRESH = "ldap.idle.refresh"
INITIAL_FACTORY = "ldap.factory.initial"

UNDERLYING_FACTORY = "ldap_idle.client.open_connection"
GUARDED_FACTORY = "ldap_idle.factory.get_initial_connection"

CONTROL_KEYS = (IDLE_TIMEOUT, IDLE_REFRESH)


def get_idle_timeout(environment: Mapping[str, Any]) -> int:
    raw = environment.get(IDLE_TIMEOUT)
    if raw is None:
        return int(get_env().idle_timeout_ms)

    if isinstance(raw, bool):
        raise ValueError(f"{IDLE_TIMEOUT} must be a number of milliseconds, got {raw!r}")
    try:
        value = raw if isinstance(raw, int) else int(str(raw).strip())
    except ValueError as e:
        raise ValueError(f"{IDLE_TIMEOUT} must be a number of milliseconds, got {raw!r}") from e

    if value < 0:
        raise ValueError(f"{IDLE_TIMEOUT} must not be negative, got {value}")
    return value


def get_idle_refresh(environment: Mapping[str, Any]) -> bool:
    """Only bool True or the string "true" (any case) enable refresh."""
    raw = environment.get(IDLE_REFRESH)
    if raw is None:
        return bool(get_env().idle_refresh)
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() == "true"


def sanitize(environment: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of the environment that is safe to pass to the connection factory."""
    out: dict[str, Any] = {}
    for key, value in environment.items():
        if key in CONTROL_KEYS:
            continue
        if key == INITIAL_FACTORY:
            out[INITIAL_FACTORY] = UNDERLYING_FACTORY
            continue
        out[key] = value
    return out
