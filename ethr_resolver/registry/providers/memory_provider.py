from typing import Optional, Dict, List, Tuple, Union
from ethr_resolver.registry.models import (
    ChangeEvent, OwnerChanged, DelegateChanged, AttributeChanged,
)
from ethr_resolver.registry.provider import RegistryProvider
from ethr_resolver.utils import strip_0x


def _value_bytes(value: Union[bytes, str]) -> bytes:
    if isinstance(value, bytes):
        return value
    if value[:2] in ("0x", "0X"):
        return bytes.fromhex(strip_0x(value))
    return value.encode("utf-8")


class InMemoryRegistry(RegistryProvider):
    """
    Local stand-in for the EthereumDIDRegistry contract.

    Writes behave like the contract: each event records the identity's
    previous change block, then the identity's change pointer moves to the
    current block. Events written without calling mine() share a block.
    """
    name = "memory"

    def __init__(self, start_block: int = 1, start_time: int = 1_600_000_000, block_time: int = 15):
        self.block_number = start_block
        self.block_time = block_time
        self.timestamps: Dict[int, int] = {start_block: start_time}
        self.owners: Dict[str, str] = {}
        self.changed: Dict[str, int] = {}
        self.logs: Dict[Tuple[str, int], List[ChangeEvent]] = {}
        self._log_index = 0

    # chain
    @property
    def now(self) -> int:
        return self.timestamps[self.block_number]

    def mine(self, seconds: Optional[int] = None) -> int:
        ts = self.now + (self.block_time if seconds is None else seconds)
        self.block_number += 1
        self.timestamps[self.block_number] = ts
        self._log_index = 0
        return self.block_number

    def _emit(self, event_cls, identity: str, **fields) -> ChangeEvent:
        identity = identity.lower()
        ev = event_cls(
            identity=identity,
            block_number=self.block_number,
            previous_change=self.changed.get(identity),
            timestamp=self.now,
            log_index=self._log_index,
            **fields,
        )
        self._log_index += 1
        self.logs.setdefault((identity, self.block_number), []).append(ev)
        self.changed[identity] = self.block_number
        return ev

    # contract writes
    def change_owner(self, identity: str, new_owner: str) -> ChangeEvent:
        self.owners[identity.lower()] = new_owner.lower()
        return self._emit(OwnerChanged, identity, new_owner=new_owner.lower())

    def add_delegate(self, identity: str, delegate_type: str, delegate: str, validity: int = 86400) -> ChangeEvent:
        return self._emit(DelegateChanged, identity, delegate_type=delegate_type,
                          delegate=delegate.lower(), valid_to=self.now + validity)

    def revoke_delegate(self, identity: str, delegate_type: str, delegate: str) -> ChangeEvent:
        # contract stamps revocations with the current block time
        return self._emit(DelegateChanged, identity, delegate_type=delegate_type,
                          delegate=delegate.lower(), valid_to=self.now)

    def set_attribute(self, identity: str, name: str, value: Union[bytes, str], validity: int = 86400) -> ChangeEvent:
        return self._emit(AttributeChanged, identity, name=name,
                          value=_value_bytes(value), valid_to=self.now + validity)

    def revoke_attribute(self, identity: str, name: str, value: Union[bytes, str]) -> ChangeEvent:
        return self._emit(AttributeChanged, identity, name=name,
                          value=_value_bytes(value), valid_to=0)

    # reads
    def owner_of(self, identity: str) -> str:
        identity = identity.lower()
        return self.owners.get(identity, identity)

    def last_change_block(self, identity: str) -> Optional[int]:
        return self.changed.get(identity.lower())

    def events_at(self, identity: str, block_number: int) -> List[ChangeEvent]:
        return list(self.logs.get((identity.lower(), block_number), []))
