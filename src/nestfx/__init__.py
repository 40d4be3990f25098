"""nestfx: top-down nested subscriptions for shared state stores."""

from importlib.metadata import version as _version

__version__ = _version("nestfx")

from nestfx.batch import default_batch, get_batch, set_batch, use_batch
from nestfx.listeners import NULL_LISTENERS, ListenerCollection
from nestfx.subscription import Subscription
from nestfx.store import Store
from nestfx.binding import SelectorBinding
from nestfx.provider import Provider
# textual NOT auto-imported: opt-in only

__all__ = [
    "ListenerCollection",
    "NULL_LISTENERS",
    "Subscription",
    "Store",
    "SelectorBinding",
    "Provider",
    "default_batch",
    "get_batch",
    "set_batch",
    "use_batch",
]
