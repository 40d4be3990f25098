"""Subscription: one node in the tree that relays store changes downward.

A Subscription attaches either to the store (root) or to a parent
Subscription, and keeps its own ListenerCollection for its children. Store
changes reach a node through `handle_change_wrapper`, which calls whatever
the owner installed in `on_state_change`:

- a pass-through owner sets `on_state_change = sub.notify_nested_subs`;
- a reactive owner recomputes first, then calls `notify_nested_subs`
  itself (or later, after its own update has committed).

Children are only reachable through the parent's collection, and a parent
only notifies them after its own handler has run, so no descendant ever
sees a change before its ancestor has dealt with it.

Teardown does not cascade. Children of a detached node must unsubscribe
themselves; that ordering belongs to whoever owns the tree.
"""

from __future__ import annotations

import logging
from typing import Callable

from nestfx.batch import BatchFn
from nestfx.listeners import NULL_LISTENERS, ListenerCollection, Unsubscribe

logger = logging.getLogger("nestfx.subscription")


class Subscription:
    """A tree node that relays upstream changes to nested subscriptions.

    Construction never subscribes. The node attaches upstream the first time
    try_subscribe() runs, which add_nested_sub() does on behalf of a child.

    Owners must reset `on_state_change` to None on teardown so the closures
    it captured can be released.
    """

    __slots__ = ("store", "parent", "on_state_change", "_batch", "_listeners", "_unsubscribe")

    def __init__(self, store, parent: Subscription | None = None, *, batch: BatchFn | None = None) -> None:
        self.store = store
        self.parent = parent
        self.on_state_change: Callable[[], None] | None = None
        self._batch = batch
        self._listeners = NULL_LISTENERS
        self._unsubscribe: Unsubscribe | None = None

    def add_nested_sub(self, callback: Callable[[], None]) -> Unsubscribe:
        """Register a child's handler, attaching this node upstream if needed."""
        self.try_subscribe()
        return self._listeners.subscribe(callback)

    def notify_nested_subs(self) -> None:
        self._listeners.notify()

    def handle_change_wrapper(self) -> None:
        """The handler registered upstream. Ignored once unsubscribed."""
        if self._unsubscribe is None:
            # Upstream may still deliver a change that was in flight when we detached.
            return
        on_state_change = self.on_state_change
        if on_state_change is not None:
            on_state_change()

    def is_subscribed(self) -> bool:
        return self._unsubscribe is not None

    def try_subscribe(self) -> None:
        """Attach upstream. No-op if already subscribed."""
        if self._unsubscribe is not None:
            return
        self._listeners = ListenerCollection(self._batch)
        try:
            if self.parent is not None:
                self._unsubscribe = self.parent.add_nested_sub(self.handle_change_wrapper)
            else:
                self._unsubscribe = self.store.subscribe(self.handle_change_wrapper)
        except BaseException:
            self._listeners = NULL_LISTENERS
            raise
        logger.debug("Attached %r", self)

    def try_unsubscribe(self) -> None:
        """Detach upstream and drop all nested subscriptions. No-op if not subscribed."""
        unsubscribe = self._unsubscribe
        if unsubscribe is None:
            return
        listeners = self._listeners
        self._unsubscribe = None
        self._listeners = NULL_LISTENERS
        try:
            unsubscribe()
        finally:
            listeners.clear()
        logger.debug("Detached %r", self)

    def get_listeners(self):
        """The collection children are registered in (introspection only)."""
        return self._listeners

    def __repr__(self) -> str:
        upstream = "parent" if self.parent is not None else "store"
        state = "subscribed" if self.is_subscribed() else "unsubscribed"
        return f"Subscription({upstream}, {state}, {len(self._listeners)} nested)"
