from __future__ import annotations

from typing import Any

from ldap3.core.exceptions import LDAPException


class IdleGuardError(LDAPException):
    """Base class for errors raised by the idle guard itself.

    Derived from ldap3's LDAPException so callers that already catch
    LDAPException around directory calls keep working unchanged.
    """


class ConnectionEstablishmentError(IdleGuardError):
    """Open, StartTLS or bind failed while creating a connection."""

    def __init__(self, message: str, result: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.result = dict(result or {})


class StaleConnectionError(IdleGuardError):
    """The connection was idle too long and refresh is disabled.

    Signals the caller to discard the session and acquire a new one.
    """

    def __init__(self, idle_age: int) -> None:
        super().__init__(f"LDAP connection idle for {idle_age}ms")
        self.idle_age = idle_age


class TeardownError(IdleGuardError):
    """unbind() of an owned connection failed."""
