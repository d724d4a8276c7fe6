from __future__ import annotations

from typing import Any

from .holder import ConnectionHolder


class IdleGuardedConnection:
    """Stand-in for an ldap3.Connection that re-resolves the real one on every use.

    Any attribute not defined here (search, add, modify, entries, result, ...)
    is looked up on whatever connection the holder currently considers
    usable, so a replacement after an idle timeout is invisible to the caller.
    If the holder raises, the attribute is never looked up and nothing is
    sent to the server.

    unbind() and close() tear down the holder's connection instead of being
    forwarded. The next operation opens a new one. Leaving a `with` block
    does not close anything.
    """

    __slots__ = ("_holder",)

    def __init__(self, holder: ConnectionHolder) -> None:
        object.__setattr__(self, "_holder", holder)

    @property
    def holder(self) -> ConnectionHolder:
        return self._holder

    @property
    def closed(self) -> bool:
        return not self._holder.has_handle

    def unbind(self, controls: Any = None) -> bool:
        self._holder.close()
        return True

    def close(self) -> None:
        self._holder.close()

    def __getattr__(self, name: str) -> Any:
        # Slot not set yet (copy/pickle look up attributes before __init__).
        if name == "_holder":
            raise AttributeError(name)
        return getattr(self._holder.get_handle(), name)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(
            f"cannot set {name!r} on {type(self).__name__}: the underlying connection may be replaced at any time"
        )

    def __enter__(self) -> "IdleGuardedConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        # The connection stays bound across blocks, as with an already bound
        # ldap3.Connection. Exceptions from the block propagate unchanged.
        return False

    def __repr__(self) -> str:
        h = self._holder
        state = "closed" if not h.has_handle else "open"
        return f"<{type(self).__name__} {state} idle_timeout={h.idle_timeout}ms idle_refresh={h.idle_refresh}>"
