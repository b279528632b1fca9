"""
ethr_resolver.keys
------------------
Key encoder: turns registry attributes and delegates into document entries.

Attribute names are slash separated:

    did/pub/<keyType>/<purpose>[/<encoding>]   public keys
    did/svc/<serviceType>                      service endpoints

Key types, purposes and encodings are open registries: new entries can be
added at runtime with register_key_type(), register_purpose() and
register_encoding(). Unknown key types and encodings fall through to a
default arm; anything that cannot be read becomes Unrecognized and never
fails the resolution.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union

import base58

from .errors import UnrecognizedAttribute
from .logger import get_logger
from .utils import b64e, to_0x_hex

log = get_logger("Ethr.KeyEncoder")

DELEGATE_KEY_TYPE = "Secp256k1"


@dataclass(frozen=True)
class Purpose:
    suffix: str
    authentication: bool = False


@dataclass(frozen=True)
class KeyEntry:
    type: str
    material: Tuple[Tuple[str, str], ...]
    authentication: bool = False


@dataclass(frozen=True)
class ServiceEntry:
    type: str
    endpoint: str


@dataclass(frozen=True)
class Unrecognized:
    name: str
    value: bytes
    reason: str = ""


Decoded = Union[KeyEntry, ServiceEntry, Unrecognized]


def _text(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError as e:
        raise UnrecognizedAttribute(f"value is not UTF-8 text: {e}") from e


KEY_TYPES: Dict[str, str] = {
    "Secp256k1": "Secp256k1",
    "Ed25519": "Ed25519",
    "RSA": "Rsa",
    "X25519": "X25519",
}

PURPOSES: Dict[str, Purpose] = {
    "veriKey": Purpose("VerificationKey2018"),
    "sigAuth": Purpose("SignatureAuthentication2018", authentication=True),
    "enc": Purpose("KeyAgreementKey2019"),
}

# encoding segment -> (document field, value renderer)
ENCODINGS: Dict[str, Tuple[str, Callable[[bytes], str]]] = {
    "hex": ("publicKeyHex", lambda v: v.hex()),
    "base64": ("publicKeyBase64", b64e),
    "base58": ("publicKeyBase58", lambda v: base58.b58encode(v).decode("ascii")),
    "pem": ("value", to_0x_hex),   # opaque, the consumer hex-decodes it
    "value": ("value", to_0x_hex),
}
DEFAULT_ENCODING = "hex"
FALLBACK_ENCODING = "value"


def register_key_type(name: str, type_prefix: Optional[str] = None) -> None:
    KEY_TYPES[name] = type_prefix or name

def register_purpose(name: str, suffix: str, authentication: bool = False) -> None:
    PURPOSES[name] = Purpose(suffix, authentication)

def register_encoding(name: str, field: str, render: Callable[[bytes], str]) -> None:
    ENCODINGS[name] = (field, render)


def _decode_pub(parts, value: bytes) -> KeyEntry:
    if len(parts) not in (4, 5):
        raise UnrecognizedAttribute(f"expected did/pub/<keyType>/<purpose>[/<encoding>], got {len(parts)} segments")
    key_type, purpose_name = parts[2], parts[3]
    encoding = parts[4] if len(parts) == 5 else DEFAULT_ENCODING
    if not key_type or not encoding:
        raise UnrecognizedAttribute("empty key type or encoding segment")

    purpose = PURPOSES.get(purpose_name)
    if purpose is None:
        raise UnrecognizedAttribute(f"unknown key purpose {purpose_name!r}")

    field, render = ENCODINGS.get(encoding, ENCODINGS[FALLBACK_ENCODING])
    return KeyEntry(
        type=KEY_TYPES.get(key_type, key_type) + purpose.suffix,
        material=((field, render(value)),),
        authentication=purpose.authentication,
    )


def _decode_svc(parts, value: bytes) -> ServiceEntry:
    if len(parts) != 3 or not parts[2]:
        raise UnrecognizedAttribute(f"expected did/svc/<serviceType>, got {len(parts)} segments")
    return ServiceEntry(type=parts[2], endpoint=_text(value))


def decode(name: str, value: bytes) -> Decoded:
    """Interpret one attribute. Never raises for bad names or values."""
    parts = name.split("/")
    try:
        if len(parts) >= 2 and parts[0] == "did":
            if parts[1] == "pub":
                return _decode_pub(parts, value)
            if parts[1] == "svc":
                return _decode_svc(parts, value)
        raise UnrecognizedAttribute("outside did/pub/ and did/svc/")
    except UnrecognizedAttribute as e:
        log.warning(f"[KEYS] unrecognized attribute {name!r}: {e}")
        return Unrecognized(name=name, value=value, reason=str(e))


def delegate_entry(delegate_type: str, delegate: str) -> Optional[KeyEntry]:
    """Key entry for a delegate address; None for delegate types with no key purpose."""
    purpose = PURPOSES.get(delegate_type)
    if purpose is None:
        return None
    return KeyEntry(
        type=DELEGATE_KEY_TYPE + purpose.suffix,
        material=(("ethereumAddress", delegate),),
        authentication=purpose.authentication,
    )
