"""Textual integration for nestfx. Opt-in, requires textual.

Notification passes run inside `app.batch_update()`, so a store change that
re-renders many widgets repaints once. Renders are skipped while the widget
tree is being swapped out (`pause`) or the app is not running, and widget
queries that miss (`NoMatches`) are ignored.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from nestfx.binding import SelectorBinding

# id(app) for every app currently inside pause(); entries never outlive the scope.
_paused_apps: set[int] = set()


def batch_for(app):
    """Batch function that suspends the app's repaints for the whole pass."""

    def _batch(work):
        with app.batch_update():
            work()

    return _batch


@contextmanager
def pause(app):
    """Hold back widget renders while the app rebuilds its widget tree.

    Bindings keep selecting and keep notifying their children; only the
    render into widgets is dropped.
    """
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """True when renders may touch the app's widgets."""
    return app.is_running and id(app) not in _paused_apps


def connect(app, store, selector, effect, *, parent=None, props=None):
    """Build a SelectorBinding that renders into the app's widgets.

    `effect(value)` receives each newly selected value. It is not called
    while the app is paused or stopped, it runs on the app thread, and a
    widget lookup that finds nothing is ignored. The binding's notification
    passes are batched through `app.batch_update()`.
    """
    app_thread = threading.get_ident()

    def _render(value):
        if not is_safe(app):
            return
        if threading.get_ident() == app_thread:
            _apply(value)
        else:
            app.call_from_thread(_apply, value)

    def _apply(value):
        try:
            effect(value)
        except NoMatches:
            pass

    return SelectorBinding(
        store,
        selector,
        _render,
        parent=parent,
        props=props,
        batch=batch_for(app),
    )
