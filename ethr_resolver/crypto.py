"""
ethr_resolver.crypto
--------------------
secp256k1 helpers used for public-key DIDs (`did:ethr:0x02...`):

- parse and decompress a SEC1 encoded public key
- derive the Ethereum address controlled by that key
"""
from __future__ import annotations
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives import serialization
from eth_utils import keccak, to_normalized_address


def load_secp256k1_public_key(encoded: bytes) -> ec.EllipticCurvePublicKey:
    """Parse a compressed (33 byte) or uncompressed (65 byte) SEC1 point.

    Raises ValueError when the bytes are not a point on the curve.
    """
    return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), encoded)

def uncompressed_public_key(encoded: bytes) -> bytes:
    pk = load_secp256k1_public_key(encoded)
    return pk.public_bytes(serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint)

def public_key_to_address(encoded: bytes) -> str:
    # address = last 20 bytes of keccak(x || y)
    raw = uncompressed_public_key(encoded)[1:]
    return to_normalized_address(keccak(raw)[12:])
