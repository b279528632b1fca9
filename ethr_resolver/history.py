"""
ethr_resolver.history
---------------------
Backward walk over an identity's change log.

The registry stores, per identity, the block of its latest change; every
event stores the block of the change before it. Walking those pointers
costs one round trip per block in which the identity changed, independent
of chain length.
"""

from __future__ import annotations
import threading
from typing import Callable, List, Optional, TypeVar

from .errors import MalformedEvent, RegistryUnavailable, ResolutionCancelled
from .logger import get_logger
from .registry.models import ChangeEvent
from .registry.provider import RegistryProvider

log = get_logger("Ethr.History")

T = TypeVar("T")


def call_registry(fn: Callable[..., T], *args, cancel: Optional[threading.Event] = None) -> T:
    """Run one registry read, mapping every failure to RegistryUnavailable."""
    if cancel is not None and cancel.is_set():
        raise ResolutionCancelled("resolution cancelled")
    try:
        return fn(*args)
    except RegistryUnavailable:
        raise
    except Exception as e:
        raise RegistryUnavailable(f"{getattr(fn, '__name__', 'registry call')} failed: {e}") from e


class HistoryWalker:
    def __init__(self, registry: RegistryProvider):
        self.registry = registry

    def collect_events(self, identity: str, cancel: Optional[threading.Event] = None) -> List[ChangeEvent]:
        """Return every change event of `identity`, most recent first."""
        block = call_registry(self.registry.last_change_block, identity, cancel=cancel)
        events: List[ChangeEvent] = []
        visited = 0

        while block is not None:
            batch = call_registry(self.registry.events_at, identity, block, cancel=cancel)
            if not batch:
                # a dangling pointer means the log we were given is incomplete
                raise MalformedEvent(f"no events for {identity} in block {block}")

            previous = None
            reaches_back = False
            for ev in reversed(batch):
                events.append(ev)
                pointer = ev.previous_change
                if pointer == block:
                    continue
                reaches_back = True
                if pointer is None:
                    continue
                if pointer > block:
                    raise MalformedEvent(f"event in block {block} points forward to {pointer}")
                previous = pointer if previous is None else min(previous, pointer)
            if not reaches_back:
                # the first change in a block always points below it
                raise MalformedEvent(f"no event in block {block} links to earlier history")

            visited += 1
            block = previous

        log.debug(f"[HISTORY] identity={identity} blocks={visited} events={len(events)}")
        return events
