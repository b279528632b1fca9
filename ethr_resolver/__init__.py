"""
Ethr DID Resolver
=================
Resolves `did:ethr` identifiers into DID documents by replaying the change
history an identity has in the EthereumDIDRegistry contract.

Provides:
- registry providers (JSON-RPC node, in-memory simulation)
- the history walker, document builder and key encoder
- EthrDidResolver / DIDResolver entry points
"""
from .did import Identity, parse_did
from .document import ResolvedDocument
from .errors import (
    ResolverError, UnsupportedMethod, RegistryUnavailable, MalformedEvent,
    ResolutionCancelled, UnrecognizedAttribute,
)
from .registry import InMemoryRegistry, JsonRpcRegistry, load_registry_provider
from .resolver import DIDResolver, EthrDidResolver, register_ethr

__all__ = [
    "Identity",
    "parse_did",
    "ResolvedDocument",
    "ResolverError",
    "UnsupportedMethod",
    "RegistryUnavailable",
    "MalformedEvent",
    "ResolutionCancelled",
    "UnrecognizedAttribute",
    "InMemoryRegistry",
    "JsonRpcRegistry",
    "load_registry_provider",
    "DIDResolver",
    "EthrDidResolver",
    "register_ethr",
]
