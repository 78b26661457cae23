"""Entrypoint guards shared by pools and the allocation engine."""

from __future__ import annotations

import functools
import threading
from collections.abc import Callable
from typing import Any, TypeVar

from .core.errors import ReentrantCall, Unauthorized

F = TypeVar("F", bound=Callable[..., Any])


class Serialized:
    """Mixin giving each instance one lock and one in-flight flag.

    Calls from different threads queue on the lock; a nested call from the
    thread already inside an entrypoint is rejected with :class:`ReentrantCall`.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._entered = False


def entrypoint(method: F) -> F:
    """Run ``method`` as an atomic, non-reentrant unit on its instance."""

    @functools.wraps(method)
    def wrapper(self: Serialized, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            if self._entered:
                raise ReentrantCall(
                    f"{type(self).__name__}.{method.__name__} called during an in-flight call"
                )
            self._entered = True
            try:
                return method(self, *args, **kwargs)
            finally:
                self._entered = False

    return wrapper  # type: ignore[return-value]


def authenticated(method: F) -> F:
    """Reject calls whose ``sender`` is not the instance's ``authorized_caller``.

    Authentication sits outside the wrapped handler so business logic only
    ever runs for the trusted forwarder identity.
    """

    @functools.wraps(method)
    def wrapper(self: Any, sender: str, *args: Any, **kwargs: Any) -> Any:
        if sender != self.authorized_caller:
            raise Unauthorized(f"{sender!r} is not the authorized relay caller")
        return method(self, sender, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_owner(owner: str, caller: str) -> None:
    if caller != owner:
        raise Unauthorized(f"{caller!r} is not the owner")


__all__ = ["Serialized", "authenticated", "entrypoint", "require_owner"]
