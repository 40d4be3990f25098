"""Batching: the process-wide hook that wraps every notification pass.

Each ListenerCollection.notify() runs its whole pass inside a batch function.
The default runs the work immediately. A UI layer installs its own so that
redraws triggered by many listeners collapse into one pass:

    nestfx.set_batch(lambda work: with_repaints_suspended(work))

A batch function must call `work` synchronously before it returns. It marks
a transaction boundary, not an async one: ancestors are only guaranteed to
finish before descendants if the whole pass runs to completion in place.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator

BatchFn = Callable[[Callable[[], None]], None]


def default_batch(work: Callable[[], None]) -> None:
    """Run work immediately. Used when nothing else is installed."""
    work()


_batch: BatchFn = default_batch


def get_batch() -> BatchFn:
    """Return the batch function new listener collections will use."""
    return _batch


def set_batch(batch: BatchFn | None) -> None:
    """Install the process-wide batch function. None restores the default.

    Collections capture the batch function when they are created, so call
    this before building the subscription tree.
    """
    global _batch
    _batch = batch if batch is not None else default_batch


@contextmanager
def use_batch(batch: BatchFn | None) -> Iterator[BatchFn]:
    """Temporarily install a batch function, restoring the previous one on exit.

    Usage:
        with use_batch(recording_batch):
            provider.mount()
            store.set("x", 1)
    """
    previous = _batch
    set_batch(batch)
    try:
        yield get_batch()
    finally:
        set_batch(previous)
