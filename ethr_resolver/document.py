"""
ethr_resolver.document
----------------------
The resolved DID document: a frozen snapshot produced by a single
resolution. Entries are tuples so the document cannot be mutated once
returned, and to_json() is canonical so equal inputs give equal bytes.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Tuple
from .constants import DID_CONTEXT
from .utils import canonical_json


@dataclass(frozen=True)
class PublicKey:
    id: str
    type: str
    controller: str
    material: Tuple[Tuple[str, str], ...]   # e.g. (("publicKeyHex", "04ab..."),)

    def to_dict(self) -> Dict[str, Any]:
        d = {"id": self.id, "type": self.type, "controller": self.controller}
        d.update(self.material)
        return d

    def __getitem__(self, field: str) -> str:
        return dict(self.material)[field]


@dataclass(frozen=True)
class Authentication:
    type: str
    public_key: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "publicKey": self.public_key}


@dataclass(frozen=True)
class Service:
    id: str
    type: str
    service_endpoint: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.type, "serviceEndpoint": self.service_endpoint}


@dataclass(frozen=True)
class ResolvedDocument:
    id: str
    controller: str                                  # current owner address
    public_key: Tuple[PublicKey, ...]
    authentication: Tuple[Authentication, ...] = ()
    service: Tuple[Service, ...] = ()
    raw_attributes: Tuple[Tuple[str, str], ...] = ()  # every live attribute, name -> 0x hex
    at_time: int = 0

    @property
    def raw(self) -> Dict[str, str]:
        return dict(self.raw_attributes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "@context": DID_CONTEXT,
            "id": self.id,
            "controller": self.controller,
            "publicKey": [pk.to_dict() for pk in self.public_key],
            "authentication": [a.to_dict() for a in self.authentication],
            "service": [s.to_dict() for s in self.service],
        }

    def to_json(self) -> bytes:
        return canonical_json(self.to_dict())
