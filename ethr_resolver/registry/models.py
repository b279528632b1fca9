# ethr_resolver/registry/models.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class OwnerChanged:
    identity: str
    block_number: int
    previous_change: Optional[int]      # None when this is the identity's first change
    new_owner: str
    timestamp: Optional[int] = None     # block timestamp, when the provider knows it
    log_index: int = 0

    kind = "owner"


@dataclass(frozen=True)
class DelegateChanged:
    identity: str
    block_number: int
    previous_change: Optional[int]
    delegate_type: str                  # "veriKey" | "sigAuth" | ...
    delegate: str
    valid_to: int
    timestamp: Optional[int] = None
    log_index: int = 0

    kind = "delegate"

    @property
    def slot(self):
        return ("delegate", self.delegate_type, self.delegate)


@dataclass(frozen=True)
class AttributeChanged:
    """
    Attribute set or revoked on an identity.

    `value` is the raw bytes carried by the event; interpretation belongs to
    the key encoder.
    """
    identity: str
    block_number: int
    previous_change: Optional[int]
    name: str
    value: bytes
    valid_to: int
    timestamp: Optional[int] = None
    log_index: int = 0

    kind = "attribute"

    @property
    def slot(self):
        return ("attribute", self.name)


ChangeEvent = Union[OwnerChanged, DelegateChanged, AttributeChanged]
