# ethr_resolver/registry/provider.py
from __future__ import annotations
from typing import List, Optional
from ethr_resolver.registry.models import ChangeEvent


class RegistryProvider:
    """
    Read-only view of the identity registry.

    Implementations must be safe for concurrent read-only use. Any failure
    is reported as RegistryUnavailable (or a subclass of it).
    """
    name: str = "base"

    def owner_of(self, identity: str) -> str:
        raise NotImplementedError

    def last_change_block(self, identity: str) -> Optional[int]:
        """Block of the identity's latest change, or None if it never changed."""
        raise NotImplementedError

    def events_at(self, identity: str, block_number: int) -> List[ChangeEvent]:
        """All events for `identity` in `block_number`, in log order."""
        raise NotImplementedError

    def close(self) -> None:
        return
