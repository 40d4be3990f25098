"""Provider: the root of a subscription tree.

The provider owns the one Subscription that talks to the store directly.
Its handler is a pure pass-through: every store change goes straight to the
nested subscriptions registered under it.

    store = Store({"count": 0})
    with Provider(store) as root:
        binding = root.connect(lambda state, props: state["count"], print)
        binding.mount()
        store.set("count", 1)
"""

from __future__ import annotations

import logging
from typing import Callable

from nestfx.batch import BatchFn
from nestfx.binding import SelectorBinding
from nestfx.subscription import Subscription

logger = logging.getLogger("nestfx.provider")


class Provider:
    """Root binding: attaches the tree to the store."""

    def __init__(self, store, *, batch: BatchFn | None = None) -> None:
        if not callable(getattr(store, "get_state", None)) or not callable(getattr(store, "subscribe", None)):
            raise TypeError(f"store must provide get_state() and subscribe(), got {store!r}")
        self.store = store
        self._batch = batch
        self.subscription = Subscription(store, batch=batch)
        self.subscription.on_state_change = self.subscription.notify_nested_subs
        # State seen at creation; mount() catches up on anything newer.
        self._previous_state = store.get_state()

    def mount(self) -> None:
        """Subscribe to the store, notifying children if state moved since creation."""
        subscription = self.subscription
        if subscription.on_state_change is None:
            subscription.on_state_change = subscription.notify_nested_subs
        subscription.try_subscribe()
        logger.debug("Mounted provider for %r", self.store)
        if self._previous_state is not self.store.get_state():
            self._previous_state = self.store.get_state()
            subscription.notify_nested_subs()

    def unmount(self) -> None:
        """Detach from the store. Nested subscriptions must detach themselves."""
        self.subscription.try_unsubscribe()
        self.subscription.on_state_change = None
        logger.debug("Unmounted provider for %r", self.store)

    def connect(
        self,
        selector: Callable[[object, object], object],
        render: Callable[[object], None],
        **kwargs,
    ) -> SelectorBinding:
        """Create a binding nested directly under the root."""
        kwargs.setdefault("batch", self._batch)
        return SelectorBinding(self.store, selector, render, parent=self.subscription, **kwargs)

    def __enter__(self) -> Provider:
        self.mount()
        return self

    def __exit__(self, *exc_info) -> None:
        self.unmount()

    def __repr__(self) -> str:
        return f"Provider({self.subscription!r})"
