"""SelectorBinding: a reactive owner for one node of the subscription tree.

A binding derives a value from store state with a selector, hands changed
values to a render callback, and only then lets the change continue to its
nested subscriptions. When the selected value did not change, the change is
passed straight through.

    binding = SelectorBinding(store, lambda state, props: state["user"], show_user,
                              parent=provider.subscription)
    binding.mount()
    ...
    binding.unmount()

With defer_commit=True, render() only schedules the update; the owner calls
commit() once it has actually been applied. Children are notified then, and
not before.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

from nestfx.batch import BatchFn
from nestfx.subscription import Subscription

logger = logging.getLogger("nestfx.binding")

S = TypeVar("S")
T = TypeVar("T")

_UNSET = object()

Disposer = Callable[[], None]


class SelectorBinding(Generic[T]):
    """Recompute a selector on upstream change; render, then notify children."""

    def __init__(
        self,
        store,
        selector: Callable[[S, object], T],
        render: Callable[[T], None],
        *,
        parent: Subscription | None = None,
        props: object = None,
        defer_commit: bool = False,
        batch: BatchFn | None = None,
    ) -> None:
        self.store = store
        self.subscription = Subscription(store, parent, batch=batch)
        self._selector = selector
        self._render = render
        self._props = props
        self._defer_commit = defer_commit
        self._batch = batch
        self._owner: SelectorBinding | None = None
        self._owner_disposer: Disposer | None = None
        self._children: list[SelectorBinding] = []  # mounted children, for cascading unmount
        self._last_value: object = _UNSET
        self._render_scheduled = False
        self._from_store_update = False
        self._last_error: BaseException | None = None
        self._mounted = False
        self._did_unsubscribe = False

    @property
    def value(self) -> T:
        """The most recently selected value."""
        if self._last_value is _UNSET:
            raise LookupError("binding has not selected a value yet")
        return self._last_value

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def render_scheduled(self) -> bool:
        return self._render_scheduled

    def connect(
        self,
        selector: Callable[[S, object], T],
        render: Callable[[T], None],
        **kwargs,
    ) -> SelectorBinding:
        """Create a child binding nested under this one.

        The child is tracked for cascading unmount only while it is mounted.
        """
        kwargs.setdefault("batch", self._batch)
        child = SelectorBinding(self.store, selector, render, parent=self.subscription, **kwargs)
        child._owner = self
        return child

    def mount(self) -> None:
        """Attach upstream and pick up any change made since construction."""
        if self._mounted:
            return
        self._mounted = True
        self._did_unsubscribe = False
        if self._owner is not None:
            self._owner_disposer = self._owner._track_child(self)
        self.subscription.on_state_change = self.check_for_updates
        self.subscription.try_subscribe()
        logger.debug("Mounted %r", self)
        self.check_for_updates()

    def check_for_updates(self) -> None:
        """Handle one upstream change."""
        self._update(from_store=True)

    def set_props(self, props: object) -> None:
        """Replace the props passed to the selector and re-select.

        A props-driven render does not notify nested subscriptions; only
        store changes travel down the tree.
        """
        self._props = props
        self._update(from_store=False)

    def _update(self, *, from_store: bool) -> None:
        if self._did_unsubscribe or not self._mounted:
            return

        try:
            new_value = self._selector(self.store.get_state(), self._props)
        except Exception as e:
            self._last_error = e
            logger.debug("Selector failed in %r: %r", self, e)
            raise
        self._last_error = None

        last = self._last_value
        if last is not _UNSET and (new_value is last or new_value == last):
            if from_store and not self._render_scheduled:
                self.subscription.notify_nested_subs()
            return

        self._last_value = new_value
        # A pending store-driven render keeps its claim on notifying children.
        self._from_store_update = self._from_store_update or from_store
        self._render_scheduled = True
        try:
            self._render(new_value)
        except Exception:
            self._render_scheduled = False
            self._from_store_update = False
            raise
        if not self._defer_commit:
            self.commit()

    def commit(self) -> None:
        """Mark the last render as applied and let a store change reach children."""
        self._render_scheduled = False
        if self._from_store_update:
            self._from_store_update = False
            self.subscription.notify_nested_subs()

    def unmount(self) -> None:
        """Detach every mounted child (last first), then this node.

        Every child is unmounted even if one of them raises. If a child or
        this node's selector failed and never recovered, the first such error
        is raised here, after the upstream subscription has been released.
        """
        if not self._mounted:
            return
        errors: list[BaseException] = []
        try:
            for child in list(reversed(self._children)):
                try:
                    child.unmount()
                except Exception as e:
                    errors.append(e)
        finally:
            self._mounted = False
            self._did_unsubscribe = True
            self.subscription.try_unsubscribe()
            self.subscription.on_state_change = None
            if self._owner_disposer is not None:
                self._owner_disposer()
                self._owner_disposer = None
            logger.debug("Unmounted %r", self)

        if self._last_error is not None:
            errors.append(self._last_error)
            self._last_error = None
        if not errors:
            return
        for extra in errors[1:]:
            logger.warning("Further teardown error in %r", self, exc_info=extra)
        raise errors[0]

    def _track_child(self, child: SelectorBinding) -> Disposer:
        """Register a mounted child for cascading unmount. Returns a disposer that removes it."""
        self._children.append(child)

        def _remove() -> None:
            try:
                self._children.remove(child)
            except ValueError:
                pass

        return _remove

    def __enter__(self) -> SelectorBinding[T]:
        self.mount()
        return self

    def __exit__(self, *exc_info) -> None:
        self.unmount()

    def __repr__(self) -> str:
        name = getattr(self._selector, "__name__", "selector")
        state = "mounted" if self._mounted else "unmounted"
        return f"SelectorBinding({name}, {state})"
