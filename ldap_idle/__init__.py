"""Idle guard for long-lived ldap3 connections.

Public API:
    - get_initial_connection
    - IdleGuardedConnection
    - ConnectionHolder
    - open_connection
    - ConnectionEstablishmentError, StaleConnectionError, TeardownError
"""

from .errors import (
    ConnectionEstablishmentError,
    IdleGuardError,
    StaleConnectionError,
    TeardownError,
)
from .client import open_connection
from .holder import ConnectionHolder
from .proxy import IdleGuardedConnection
from .factory import get_initial_connection

__all__ = [
    "ConnectionEstablishmentError",
    "ConnectionHolder",
    "IdleGuardError",
    "IdleGuardedConnection",
    "StaleConnectionError",
    "TeardownError",
    "get_initial_connection",
    "open_connection",
]
