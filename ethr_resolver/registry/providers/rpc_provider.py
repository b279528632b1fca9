# ethr_resolver/registry/providers/rpc_provider.py
import itertools
from typing import Any, Dict, List, Optional

import requests
from eth_utils import big_endian_to_int, decode_hex, keccak, to_normalized_address

from ethr_resolver.constants import DEFAULT_RPC_TIMEOUT
from ethr_resolver.errors import MalformedEvent, RegistryUnavailable
from ethr_resolver.logger import get_logger
from ethr_resolver.registry.models import (
    AttributeChanged, ChangeEvent, DelegateChanged, OwnerChanged,
)
from ethr_resolver.registry.provider import RegistryProvider

log = get_logger("Ethr.Registry.RPC")

IDENTITY_OWNER = keccak(text="identityOwner(address)")[:4]
CHANGED = keccak(text="changed(address)")[:4]

OWNER_CHANGED_TOPIC = "0x" + keccak(text="DIDOwnerChanged(address,address,uint256)").hex()
DELEGATE_CHANGED_TOPIC = "0x" + keccak(text="DIDDelegateChanged(address,bytes32,address,uint256,uint256)").hex()
ATTRIBUTE_CHANGED_TOPIC = "0x" + keccak(text="DIDAttributeChanged(address,bytes32,bytes,uint256,uint256)").hex()


def _pad_address(address: str) -> bytes:
    return b"\x00" * 12 + decode_hex(address)


def _words(data: bytes, minimum: int) -> List[bytes]:
    if len(data) % 32 or len(data) < minimum * 32:
        raise MalformedEvent(f"bad ABI payload length {len(data)}")
    return [data[i:i + 32] for i in range(0, len(data), 32)]


def _uint(word: bytes) -> int:
    return big_endian_to_int(word)


def _address(word: bytes) -> str:
    return to_normalized_address(word[12:])


def _bytes32_text(word: bytes) -> str:
    return word.rstrip(b"\x00").decode("utf-8", errors="replace")


def _pointer(word: bytes) -> Optional[int]:
    # the contract stores 0 for "never changed"
    return _uint(word) or None


def decode_log(entry: Dict[str, Any], timestamp: Optional[int] = None) -> Optional[ChangeEvent]:
    """
    Decode one eth_getLogs entry into a ChangeEvent.

    Returns None for logs of other events. Raises MalformedEvent when the
    entry looks like a registry event but its payload does not decode.
    """
    try:
        topics = [t.lower() for t in entry["topics"]]
        data = decode_hex(entry.get("data") or "0x")
        block_number = int(entry["blockNumber"], 16)
        log_index = int(entry.get("logIndex") or "0x0", 16)
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedEvent(f"undecodable log entry: {e}") from e

    if not topics or topics[0] not in (OWNER_CHANGED_TOPIC, DELEGATE_CHANGED_TOPIC, ATTRIBUTE_CHANGED_TOPIC):
        return None
    if len(topics) < 2:
        raise MalformedEvent("registry event without identity topic")
    identity = _address(decode_hex(topics[1]))
    common = dict(identity=identity, block_number=block_number, timestamp=timestamp, log_index=log_index)

    if topics[0] == OWNER_CHANGED_TOPIC:
        w = _words(data, 2)
        return OwnerChanged(new_owner=_address(w[0]), previous_change=_pointer(w[1]), **common)

    if topics[0] == DELEGATE_CHANGED_TOPIC:
        w = _words(data, 4)
        return DelegateChanged(
            delegate_type=_bytes32_text(w[0]),
            delegate=_address(w[1]),
            valid_to=_uint(w[2]),
            previous_change=_pointer(w[3]),
            **common,
        )

    # DIDAttributeChanged: name, offset(value), validTo, previousChange, len, value...
    w = _words(data, 5)
    offset = _uint(w[1])
    if offset % 32 or offset + 32 > len(data):
        raise MalformedEvent(f"attribute value offset {offset} out of range")
    length = _uint(data[offset:offset + 32])
    start = offset + 32
    if start + length > len(data):
        raise MalformedEvent(f"attribute value length {length} out of range")
    return AttributeChanged(
        name=_bytes32_text(w[0]),
        value=bytes(data[start:start + length]),
        valid_to=_uint(w[2]),
        previous_change=_pointer(w[3]),
        **common,
    )


class JsonRpcRegistry(RegistryProvider):
    """
    Registry reader speaking Ethereum JSON-RPC over HTTP.

    Every request is an independent POST carrying `timeout`, so one instance
    can serve concurrent resolutions.
    """
    name = "rpc"

    def __init__(self, rpc_url: str, registry_address: str, timeout: float = DEFAULT_RPC_TIMEOUT,
                 headers: Optional[Dict[str, str]] = None):
        self.rpc_url = rpc_url
        self.registry_address = to_normalized_address(registry_address)
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self._ids = itertools.count(1)

    def _rpc(self, method: str, params: list) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        log.debug(f"[RPC] → {self.rpc_url} | method={method}")
        try:
            res = requests.post(self.rpc_url, json=payload, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            log.error(f"[RPC] {method} transport error: {e}")
            raise RegistryUnavailable(f"{method} failed: {e}") from e

        if not res.ok:
            log.error(f"[RPC] {method} {res.status_code}: {res.text}")
            raise RegistryUnavailable(f"{method} returned HTTP {res.status_code}")
        try:
            body = res.json()
        except ValueError as e:
            raise MalformedEvent(f"{method} returned non-JSON body") from e

        if body.get("error"):
            err = body["error"]
            log.error(f"[RPC] {method} error: {err}")
            raise RegistryUnavailable(f"{method} error: {err.get('message', err) if isinstance(err, dict) else err}")
        if "result" not in body:
            raise MalformedEvent(f"{method} response without result")
        return body["result"]

    def _eth_call(self, selector: bytes, identity: str) -> bytes:
        data = "0x" + (selector + _pad_address(identity)).hex()
        result = self._rpc("eth_call", [{"to": self.registry_address, "data": data}, "latest"])
        try:
            raw = decode_hex(result)
        except (TypeError, ValueError) as e:
            raise MalformedEvent(f"eth_call returned {result!r}") from e
        if len(raw) != 32:
            raise MalformedEvent(f"eth_call returned {len(raw)} bytes, expected 32")
        return raw

    def owner_of(self, identity: str) -> str:
        return _address(self._eth_call(IDENTITY_OWNER, identity))

    def last_change_block(self, identity: str) -> Optional[int]:
        return _pointer(self._eth_call(CHANGED, identity))

    def block_timestamp(self, block_number: int) -> int:
        block = self._rpc("eth_getBlockByNumber", [hex(block_number), False])
        try:
            return int(block["timestamp"], 16)
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedEvent(f"block {block_number} without timestamp") from e

    def events_at(self, identity: str, block_number: int) -> List[ChangeEvent]:
        entries = self._rpc("eth_getLogs", [{
            "address": self.registry_address,
            "fromBlock": hex(block_number),
            "toBlock": hex(block_number),
            "topics": [None, "0x" + _pad_address(identity).hex()],
        }])
        if not isinstance(entries, list):
            raise MalformedEvent(f"eth_getLogs returned {type(entries).__name__}")

        timestamp = self.block_timestamp(block_number) if entries else None
        events = []
        for entry in entries:
            ev = decode_log(entry, timestamp)
            if ev is None:
                log.debug(f"[RPC] skipping foreign log in block {block_number}")
                continue
            if ev.identity != identity.lower() or ev.block_number != block_number:
                raise MalformedEvent(f"node returned log for {ev.identity}@{ev.block_number}")
            events.append(ev)
        events.sort(key=lambda ev: ev.log_index)
        log.debug(f"[RPC] block={block_number} identity={identity} events={len(events)}")
        return events
