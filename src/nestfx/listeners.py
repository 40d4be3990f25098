"""Listener collections: ordered callbacks with O(1) add/remove.

Listeners live in an intrusive doubly linked list. Subscribing appends at the
tail; the returned unsubscribe callable unlinks exactly that node by fixing
up its neighbours. A removed node keeps its own `next`, so a notify pass that
is currently standing on it (or that will reach it through a stale pointer)
can still walk forward. Removed nodes are skipped, never called.

Insertion order is notification order.
"""

from __future__ import annotations

from typing import Callable

from nestfx.batch import BatchFn, get_batch

Callback = Callable[[], None]
Unsubscribe = Callable[[], None]


class Listener:
    """One node in a ListenerCollection. Never handed out to callers."""

    __slots__ = ("callback", "prev", "next", "linked")

    def __init__(self, callback: Callback, prev: Listener | None) -> None:
        self.callback = callback
        self.prev = prev
        self.next: Listener | None = None
        self.linked = True

    def __repr__(self) -> str:
        state = "linked" if self.linked else "removed"
        return f"Listener({self.callback!r}, {state})"


class ListenerCollection:
    """Ordered listeners with O(1) subscribe/unsubscribe and removal-safe notify."""

    __slots__ = ("_batch", "_first", "_last", "_generation")

    def __init__(self, batch: BatchFn | None = None) -> None:
        self._batch = batch if batch is not None else get_batch()
        self._first: Listener | None = None
        self._last: Listener | None = None
        # Bumped by clear(); unsubscribe callables and passes from an older
        # generation see the collection as gone.
        self._generation = 0

    def subscribe(self, callback: Callback) -> Unsubscribe:
        """Append callback at the tail. Returns an idempotent unsubscribe."""
        listener = Listener(callback, self._last)
        if listener.prev is not None:
            listener.prev.next = listener
        else:
            self._first = listener
        self._last = listener
        generation = self._generation

        def unsubscribe() -> None:
            if not listener.linked or generation != self._generation:
                return
            listener.linked = False

            if listener.next is not None:
                listener.next.prev = listener.prev
            else:
                self._last = listener.prev
            if listener.prev is not None:
                listener.prev.next = listener.next
            else:
                self._first = listener.next

        return unsubscribe

    def notify(self) -> None:
        """Call every linked listener in order, inside the batch function."""
        generation = self._generation

        def run() -> None:
            listener = self._first
            while listener is not None:
                if listener.linked:
                    listener.callback()
                if generation != self._generation:
                    break
                listener = listener.next

        self._batch(run)

    def get(self) -> list[Callback]:
        """Snapshot of linked callbacks in notification order."""
        callbacks = []
        listener = self._first
        while listener is not None:
            callbacks.append(listener.callback)
            listener = listener.next
        return callbacks

    def clear(self) -> None:
        """Drop every listener at once. Outstanding unsubscribes become no-ops."""
        self._first = None
        self._last = None
        self._generation += 1

    def __len__(self) -> int:
        return len(self.get())

    def __repr__(self) -> str:
        return f"ListenerCollection({len(self)} listeners)"


class _NullListenerCollection:
    """Inert collection held by subscriptions that are not subscribed."""

    __slots__ = ()

    def subscribe(self, callback: Callback) -> Unsubscribe:
        raise RuntimeError("cannot subscribe to an inactive listener collection")

    def notify(self) -> None:
        pass

    def get(self) -> list[Callback]:
        return []

    def clear(self) -> None:
        pass

    def __len__(self) -> int:
        return 0

    def __repr__(self) -> str:
        return "NULL_LISTENERS"


NULL_LISTENERS = _NullListenerCollection()
