"""Shared fakes: a controllable millisecond clock and an ldap3-shaped connection."""

from __future__ import annotations

import pytest
from ldap3.core.exceptions import LDAPException

from ldap_idle.env_settings import get_env
from ldap_idle.holder import ConnectionHolder


class DirectoryDown(LDAPException):
    pass


class FakeClock:
    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms

    def set(self, ms: int) -> None:
        self.now = ms


class FakeConnection:
    """Records what is sent to it, like a tiny ldap3.Connection."""

    def __init__(self, serial: int, params: dict, unbind_error: Exception | None = None):
        self.serial = serial
        self.params = params
        self.unbind_error = unbind_error
        self.unbind_calls = 0
        self.calls: list[tuple] = []
        self.entries: list[str] = []
        self.result: dict = {}
        self.delete_error = DirectoryDown(f"connection {serial} reset by peer")

    def unbind(self, controls=None):
        self.unbind_calls += 1
        if self.unbind_error is not None:
            raise self.unbind_error
        return True

    def search(self, search_base, search_filter, **kwargs):
        self.calls.append(("search", search_base, search_filter))
        self.entries = [f"{search_filter}#{self.serial}"]
        self.result = {"result": 0, "description": "success"}
        return True

    def delete(self, dn, controls=None):
        self.calls.append(("delete", dn))
        raise self.delete_error

    def __repr__(self):
        return f"<FakeConnection #{self.serial}>"


class RecordingFactory:
    """Connection factory that hands out numbered FakeConnections."""

    def __init__(self):
        self.created: list[FakeConnection] = []
        self.received: list[dict] = []
        self.fail_with: Exception | None = None
        self.unbind_error: Exception | None = None

    def __call__(self, params):
        self.received.append(dict(params))
        if self.fail_with is not None:
            raise self.fail_with
        conn = FakeConnection(len(self.created), dict(params), unbind_error=self.unbind_error)
        self.created.append(conn)
        return conn


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "LDAP_IDLE_TIMEOUT",
        "LDAP_IDLE_REFRESH",
        "LDAP_LOG_LEVEL",
        "LDAP_LOG_DIR",
        "LDAP_LOG_RETENTION_DAYS",
    ):
        monkeypatch.delenv(name, raising=False)
    get_env.cache_clear()
    yield
    get_env.cache_clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def factory():
    return RecordingFactory()


@pytest.fixture
def make_holder(clock, factory):
    def _make(idle_timeout: int = 180000, idle_refresh: bool = False, config: dict | None = None):
        return ConnectionHolder(
            config if config is not None else {"host": "dc1.example.com"},
            idle_timeout,
            idle_refresh,
            connect=factory,
            clock=clock,
        )

    return _make
