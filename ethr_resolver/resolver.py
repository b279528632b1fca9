"""
ethr_resolver.resolver
----------------------
Public entry points.

- EthrDidResolver: resolves `did:ethr` identifiers against one registry.
- DIDResolver: dispatches a DID to the resolver registered for its method,
  so callers can hold a single object for every method they support.
"""

from __future__ import annotations
import threading
from typing import Dict, Optional

from .builder import DocumentBuilder
from .constants import DID_METHOD
from .did import parse_did, parse_method
from .document import ResolvedDocument
from .errors import UnsupportedMethod
from .history import call_registry
from .logger import get_logger
from .registry import RegistryProvider, load_registry_provider

log = get_logger("Ethr.Resolver")


class EthrDidResolver:
    method = DID_METHOD

    def __init__(self, registry: Optional[RegistryProvider] = None, config: Optional[dict] = None):
        self.registry = registry or load_registry_provider(config)
        self.builder = DocumentBuilder(self.registry)

    def resolve(self, did: str, at_time: Optional[int] = None,
                cancel: Optional[threading.Event] = None) -> ResolvedDocument:
        """
        Resolve `did` as of `at_time` (unix seconds, default now).

        Raises UnsupportedMethod for identifiers this resolver cannot read
        (no network call is made) and RegistryUnavailable when the registry
        cannot be read completely.
        """
        identity = parse_did(did)
        return self.builder.resolve(identity, at_time=at_time, cancel=cancel)

    def lookup_owner(self, did: str) -> str:
        identity = parse_did(did)
        return call_registry(self.registry.owner_of, identity.address)


class DIDResolver:
    def __init__(self):
        self._methods: Dict[str, object] = {}

    def register(self, method: str, resolver) -> None:
        log.info(f"[DID] registering resolver for method '{method}'")
        self._methods[method] = resolver

    def resolve(self, did: str, **kwargs) -> ResolvedDocument:
        method = parse_method(did)
        resolver = self._methods.get(method)
        if resolver is None:
            raise UnsupportedMethod(f"Unsupported DID method: '{method}'")
        return resolver.resolve(did, **kwargs)


def register_ethr(did_resolver: DIDResolver, registry: Optional[RegistryProvider] = None,
                  config: Optional[dict] = None) -> EthrDidResolver:
    """Attach a `did:ethr` resolver to `did_resolver` and return it."""
    ethr = EthrDidResolver(registry=registry, config=config)
    did_resolver.register(DID_METHOD, ethr)
    return ethr
