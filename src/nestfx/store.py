"""Store: key-based shared state that a subscription tree hangs off.

The store is the root every Subscription ultimately attaches to. From the
tree's point of view it only needs two things: get_state() and subscribe().
Any object offering those works; this one is a small reference store.

Every effective change replaces the state mapping instead of mutating it, so
`old is not store.get_state()` tells a reader that something changed.

Mutations inside `with store.transaction()` notify once, when the outermost
scope exits. This keeps listeners from seeing half-applied updates.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, Mapping

from nestfx.batch import BatchFn
from nestfx.listeners import ListenerCollection, Unsubscribe


class Store:
    """Key-based state container with change subscription."""

    def __init__(self, schema: dict[str, object], initial: dict | None = None, *, batch: BatchFn | None = None) -> None:
        self._state: dict[str, object] = {
            key: initial.get(key, default) if initial else default
            for key, default in schema.items()
        }
        self._listeners = ListenerCollection(batch)
        self._depth = 0
        self._changed = False

    def get_state(self) -> Mapping[str, object]:
        """Current state snapshot. Treat as read-only."""
        return self._state

    def subscribe(self, callback: Callable[[], None]) -> Unsubscribe:
        """Call callback after every change. Returns an idempotent unsubscribe."""
        return self._listeners.subscribe(callback)

    def get(self, key: str) -> object:
        return self._state.get(key)

    def set(self, key: str, value: object) -> None:
        if key not in self._state:
            return
        old = self._state[key]
        if old is value or old == value:
            return
        state = dict(self._state)
        state[key] = value
        self._state = state
        self._changed = True
        if self._depth == 0:
            self._emit()

    def update(self, values: dict) -> None:
        """Apply several keys with a single notification."""
        with self.transaction():
            for key, value in values.items():
                self.set(key, value)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Defer notification until the outermost transaction exits.

        Usage:
            with store.transaction():
                store.set("a", 1)
                store.set("b", 2)
                # listeners fire here, once
        """
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
            if self._depth == 0 and self._changed:
                self._emit()

    def _emit(self) -> None:
        self._changed = False
        self._listeners.notify()

    def dispose(self) -> None:
        """Drop every subscriber."""
        self._listeners.clear()

    def __repr__(self) -> str:
        return f"Store({self._state!r})"
