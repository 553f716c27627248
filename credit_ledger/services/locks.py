# credit_ledger/services/locks.py

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator, Tuple

from credit_ledger.constants import ParentKind

_registry_lock = threading.Lock()
# entries vanish once no caller holds or waits on the lock
_parent_locks: "weakref.WeakValueDictionary[Tuple[ParentKind, int], threading.Lock]" = (
    weakref.WeakValueDictionary()
)


def _lock_for(kind: ParentKind, parent_id: int) -> threading.Lock:
    key = (kind, int(parent_id))
    with _registry_lock:
        lock = _parent_locks.get(key)
        if lock is None:
            lock = _parent_locks[key] = threading.Lock()
    return lock


@contextmanager
def parent_lock(kind: ParentKind, parent_id: int) -> Iterator[None]:
    """
    Serialize balance-check-then-write sequences on one sale or layaway.
    Hold it around the whole transaction, not just the insert.
    """
    lock = _lock_for(kind, parent_id)
    with lock:
        yield
