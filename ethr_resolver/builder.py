"""
ethr_resolver.builder
---------------------
Folds an identity's change history into a ResolvedDocument.

Resolution is one linear pass through ResolutionState:

    START -> OWNER_LOOKUP -> HISTORY_COLLECTION -> FOLDING -> ENCODING -> DONE

with FAILED reachable from any state that talks to the registry. Nothing
partial is ever returned: a failure anywhere raises.
"""

from __future__ import annotations
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

from . import keys
from .constants import OWNER_AUTH_TYPE, OWNER_KEY_TYPE
from .did import Identity
from .document import Authentication, PublicKey, ResolvedDocument, Service
from .errors import ResolverError
from .history import HistoryWalker, call_registry
from .logger import get_logger
from .registry.models import AttributeChanged, ChangeEvent, DelegateChanged, OwnerChanged
from .registry.provider import RegistryProvider
from .utils import now_ts, to_0x_hex

log = get_logger("Ethr.Builder")

Entry = Union[DelegateChanged, AttributeChanged]


class ResolutionState(str, Enum):
    START = "start"
    OWNER_LOOKUP = "owner_lookup"
    HISTORY_COLLECTION = "history_collection"
    FOLDING = "folding"
    ENCODING = "encoding"
    DONE = "done"
    FAILED = "failed"


@dataclass
class FoldResult:
    owner: str
    entries: List[Entry] = field(default_factory=list)   # live entries, slot creation order
    hidden: int = 0                                       # events newer than at_time


def fold(identity: Identity, events: Sequence[ChangeEvent], at_time: int) -> FoldResult:
    """
    Apply `events` (most recent first, as collected) oldest to newest.

    Delegates are keyed by (type, address) and attributes by name; the last
    event for a slot wins. A live event updates its slot in place, a dead one
    (valid_to <= at_time) removes it, so a re-added key moves to the end.
    """
    owner = identity.effective_owner
    slots: Dict[tuple, Entry] = {}
    hidden = 0

    for ev in reversed(events):
        if ev.timestamp is not None and ev.timestamp > at_time:
            hidden += 1
            continue
        if isinstance(ev, OwnerChanged):
            owner = ev.new_owner
        elif ev.valid_to > at_time:
            slots[ev.slot] = ev
        else:
            slots.pop(ev.slot, None)

    return FoldResult(owner=owner, entries=list(slots.values()), hidden=hidden)


def encode(identity: Identity, owner: str, entries: Sequence[Entry], at_time: int) -> ResolvedDocument:
    did = identity.did
    owner_id = f"{did}#owner"

    owner_material = [("ethereumAddress", owner)]
    if identity.public_key and owner == identity.address:
        owner_material.append(("publicKeyHex", identity.public_key))

    public_keys = [PublicKey(owner_id, OWNER_KEY_TYPE, did, tuple(owner_material))]
    authentication = [Authentication(OWNER_AUTH_TYPE, owner_id)]
    services: List[Service] = []
    raw = []

    for ev in entries:
        if isinstance(ev, DelegateChanged):
            entry = keys.delegate_entry(ev.delegate_type, ev.delegate)
            if entry is None:
                log.warning(f"[BUILD] skipping delegate {ev.delegate} with unknown type {ev.delegate_type!r}")
                continue
        else:
            raw.append((ev.name, to_0x_hex(ev.value)))
            entry = keys.decode(ev.name, ev.value)
            if isinstance(entry, keys.Unrecognized):
                continue
            if isinstance(entry, keys.ServiceEntry):
                services.append(Service(f"{did}#service-{len(services) + 1}", entry.type, entry.endpoint))
                continue

        key_id = f"{did}#delegate-{len(public_keys)}"
        public_keys.append(PublicKey(key_id, entry.type, did, entry.material))
        if entry.authentication:
            authentication.append(Authentication(entry.type, key_id))

    return ResolvedDocument(
        id=did,
        controller=owner,
        public_key=tuple(public_keys),
        authentication=tuple(authentication),
        service=tuple(services),
        raw_attributes=tuple(raw),
        at_time=at_time,
    )


class DocumentBuilder:
    """Drives one resolution: owner lookup, history walk, fold, encode."""

    def __init__(self, registry: RegistryProvider, walker: Optional[HistoryWalker] = None):
        self.registry = registry
        self.walker = walker or HistoryWalker(registry)

    def resolve(self, identity: Identity, at_time: Optional[int] = None,
                cancel: Optional[threading.Event] = None) -> ResolvedDocument:
        at_time = now_ts() if at_time is None else at_time
        state = ResolutionState.START
        log.info(f"[RESOLVE] identity={identity.address} at_time={at_time}")

        def advance(next_state: ResolutionState) -> ResolutionState:
            log.debug(f"[RESOLVE] {identity.address}: {state.value} -> {next_state.value}")
            return next_state

        try:
            state = advance(ResolutionState.OWNER_LOOKUP)
            registry_owner = call_registry(self.registry.owner_of, identity.address, cancel=cancel)

            state = advance(ResolutionState.HISTORY_COLLECTION)
            events = self.walker.collect_events(identity.address, cancel=cancel)

            state = advance(ResolutionState.FOLDING)
            folded = fold(identity, events, at_time)
            if folded.hidden:
                # resolving the past: the registry only knows the present owner
                owner = folded.owner
            else:
                owner = registry_owner
                if registry_owner != folded.owner:
                    log.warning(f"[RESOLVE] owner mismatch for {identity.address}: "
                                f"registry={registry_owner} history={folded.owner}")

            state = advance(ResolutionState.ENCODING)
            document = encode(identity, owner, folded.entries, at_time)
        except ResolverError as e:
            log.error(f"[RESOLVE] {identity.address}: {state.value} -> {ResolutionState.FAILED.value}: {e}")
            raise

        state = advance(ResolutionState.DONE)
        log.info(f"[RESOLVE] identity={identity.address} keys={len(document.public_key)} "
                 f"services={len(document.service)} events={len(events)}")
        return document
