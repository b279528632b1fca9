"""
ethr_resolver.did
-----------------
Parsing of `did:ethr` identifiers into the Identity the registry is keyed on.

Two identifier forms are accepted:

- `did:ethr:0x<40 hex>`  an Ethereum address
- `did:ethr:0x<66 hex>`  a compressed secp256k1 public key; the identity is
  the address derived from it

Registry lookups use the lowercased address; the document id keeps the DID
as written, mixed-case checksum addresses included.

Anything else is rejected with UnsupportedMethod before any network call.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Optional

from .constants import DID_METHOD
from .crypto import public_key_to_address
from .errors import UnsupportedMethod

_DID_RE = re.compile(r"^did:([a-z0-9]+):(.+)$")
_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_PUBKEY_RE = re.compile(r"^0x0[23][0-9a-fA-F]{64}$")


@dataclass(frozen=True)
class Identity:
    address: str                      # lowercase 0x address
    owner: Optional[str] = None       # explicit owner; None means self
    public_key: Optional[str] = None  # compressed key hex (no 0x) for public-key DIDs
    source: Optional[str] = None      # the DID exactly as the caller wrote it

    @property
    def effective_owner(self) -> str:
        return self.owner or self.address

    @property
    def did(self) -> str:
        if self.source:
            return self.source
        if self.public_key:
            return f"did:{DID_METHOD}:0x{self.public_key}"
        return f"did:{DID_METHOD}:{self.address}"


def parse_method(did: str) -> str:
    m = _DID_RE.match(did or "")
    if not m:
        raise UnsupportedMethod(f"Invalid DID: {did!r}")
    return m.group(1)


def parse_did(did: str) -> Identity:
    method = parse_method(did)
    if method != DID_METHOD:
        raise UnsupportedMethod(f"Unsupported DID method: '{method}'")

    ident = did.split(":", 2)[2]
    if _ADDRESS_RE.match(ident):
        return Identity(address=ident.lower(), source=did)
    if _PUBKEY_RE.match(ident):
        try:
            address = public_key_to_address(bytes.fromhex(ident[2:]))
        except ValueError as e:
            raise UnsupportedMethod(f"Not a secp256k1 public key: {ident}") from e
        return Identity(address=address, public_key=ident[2:].lower(), source=did)
    raise UnsupportedMethod(f"Invalid did:ethr identifier: {ident!r}")


def to_did(address: str) -> str:
    return f"did:{DID_METHOD}:{address.lower()}"
