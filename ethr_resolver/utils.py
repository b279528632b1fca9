"""
ethr_resolver.utils
-------------------
Small helpers for hex/base64 conversion, wall-clock timestamps and canonical
JSON serialization. Documents are rendered through canonical_json so that two
resolutions of the same state are byte-identical.
"""

from __future__ import annotations
import base64, json, time
from typing import Any, Dict

def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def now_ts() -> int:
    # unix seconds, same unit as block timestamps and validTo
    return int(time.time())

def strip_0x(s: str) -> str:
    return s[2:] if s[:2] in ("0x", "0X") else s

def to_0x_hex(b: bytes) -> str:
    return "0x" + b.hex()

def canonical_json(obj: Dict[str, Any]) -> bytes:
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False).encode("utf-8")
