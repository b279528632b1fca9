# tests/test_resolution.py
# CMD Line Usage: pytest -v -s --log-cli-level=DEBUG tests/test_resolution.py

import base64
import json
import pytest
from ethr_resolver import EthrDidResolver, InMemoryRegistry, RegistryUnavailable

IDENTITY = "0x" + "11" * 20
DID = f"did:ethr:{IDENTITY}"
NEW_OWNER = "0x" + "bb" * 20
DELEGATE = "0x" + "dd" * 20
DELEGATE_2 = "0x" + "ee" * 20
PUBLIC_KEY_HEX = "0x043e82ae1c5056ece9e12f1fe036a5430eae6b5b6ea06e97ff9484042aaf1e9621efdb928e47f4cde38d5e8694951abe156e625a15eaae0af0e303d5a40e3fe7d6"
DAY = 86400


@pytest.fixture
def registry():
    return InMemoryRegistry()


@pytest.fixture
def resolver(registry):
    return EthrDidResolver(registry=registry)


def addresses(doc):
    return [dict(pk.material).get("ethereumAddress") for pk in doc.public_key]


def test_zero_history_document(resolver, registry):
    doc = resolver.resolve(DID, at_time=registry.now)

    assert doc.id == DID
    assert doc.controller == IDENTITY
    assert len(doc.public_key) == 1
    assert doc.public_key[0].id == f"{DID}#owner"
    assert doc.public_key[0]["ethereumAddress"] == IDENTITY
    assert doc.to_dict()["@context"]
    assert doc.service == ()


def test_owner_changed(resolver, registry):
    registry.change_owner(IDENTITY, NEW_OWNER)
    doc = resolver.resolve(DID, at_time=registry.now)

    assert doc.controller == NEW_OWNER
    assert len(doc.public_key) == 1
    assert doc.public_key[0]["ethereumAddress"] == NEW_OWNER
    assert resolver.lookup_owner(DID) == NEW_OWNER


def test_owner_changed_back_to_self(resolver, registry):
    registry.change_owner(IDENTITY, NEW_OWNER)
    registry.mine()
    registry.change_owner(IDENTITY, IDENTITY)

    doc = resolver.resolve(DID, at_time=registry.now)
    assert doc.controller == IDENTITY


def test_hex_attribute_adds_second_key(resolver, registry):
    registry.set_attribute(IDENTITY, "did/pub/Secp256k1/veriKey/hex", PUBLIC_KEY_HEX, DAY)
    doc = resolver.resolve(DID, at_time=registry.now)

    assert len(doc.public_key) == 2
    key = doc.public_key[1]
    assert key.id == f"{DID}#delegate-1"
    assert key.type == "Secp256k1VerificationKey2018"
    assert key.controller == DID
    assert key["publicKeyHex"] == PUBLIC_KEY_HEX[2:]


def test_malformed_attribute_only_in_raw_view(resolver, registry, caplog):
    registry.set_attribute(IDENTITY, "did/pub/BadFormat", "0x1234", DAY)
    doc = resolver.resolve(DID, at_time=registry.now)

    assert len(doc.public_key) == 1
    assert doc.raw == {"did/pub/BadFormat": "0x1234"}
    assert "did/pub/BadFormat" not in doc.to_json().decode()
    assert "unrecognized attribute" in caplog.text


def test_resolving_before_any_event_gives_zero_history(registry):
    t0 = registry.now
    registry.add_delegate(IDENTITY, "veriKey", DELEGATE, DAY)
    registry.mine()
    registry.set_attribute(IDENTITY, "did/svc/HubService", "https://hub.example", DAY)
    registry.mine()
    registry.change_owner(IDENTITY, NEW_OWNER)

    past = EthrDidResolver(registry=registry).resolve(DID, at_time=t0 - 1)
    empty = EthrDidResolver(registry=InMemoryRegistry()).resolve(DID, at_time=t0 - 1)

    assert past.to_json() == empty.to_json()
    assert past.controller == IDENTITY


def test_historical_owner(registry, resolver):
    registry.mine()
    before = registry.now
    registry.mine()
    registry.change_owner(IDENTITY, NEW_OWNER)

    assert resolver.resolve(DID, at_time=before).controller == IDENTITY
    assert resolver.resolve(DID, at_time=registry.now).controller == NEW_OWNER


def test_resolution_is_idempotent(resolver, registry):
    registry.add_delegate(IDENTITY, "sigAuth", DELEGATE, DAY)
    registry.set_attribute(IDENTITY, "did/pub/Ed25519/veriKey/base64", b"\x01\x02\x03", DAY)
    at = registry.now

    assert resolver.resolve(DID, at_time=at).to_json() == resolver.resolve(DID, at_time=at).to_json()


def test_expiry_boundary_is_strict(resolver, registry):
    registry.add_delegate(IDENTITY, "veriKey", DELEGATE, 100)
    valid_to = registry.now + 100

    assert DELEGATE not in addresses(resolver.resolve(DID, at_time=valid_to))
    assert DELEGATE in addresses(resolver.resolve(DID, at_time=valid_to - 1))


def test_later_expired_event_wins(resolver, registry):
    registry.add_delegate(IDENTITY, "veriKey", DELEGATE, 10 * DAY)
    registry.mine()
    registry.add_delegate(IDENTITY, "veriKey", DELEGATE, 10)

    doc = resolver.resolve(DID, at_time=registry.now + 100)
    assert DELEGATE not in addresses(doc)


def test_revoked_delegate_is_absent(resolver, registry):
    registry.add_delegate(IDENTITY, "veriKey", DELEGATE, DAY)
    registry.mine()
    registry.revoke_delegate(IDENTITY, "veriKey", DELEGATE)

    assert addresses(resolver.resolve(DID, at_time=registry.now)) == [IDENTITY]


def test_readded_key_moves_to_end(resolver, registry):
    registry.add_delegate(IDENTITY, "veriKey", DELEGATE, DAY)
    registry.mine()
    registry.add_delegate(IDENTITY, "veriKey", DELEGATE_2, DAY)
    registry.mine()
    registry.revoke_delegate(IDENTITY, "veriKey", DELEGATE)
    registry.mine()
    registry.add_delegate(IDENTITY, "veriKey", DELEGATE, DAY)

    doc = resolver.resolve(DID, at_time=registry.now)
    assert addresses(doc) == [IDENTITY, DELEGATE_2, DELEGATE]
    assert [pk.id for pk in doc.public_key[1:]] == [f"{DID}#delegate-1", f"{DID}#delegate-2"]


def test_renewed_key_keeps_its_position(resolver, registry):
    registry.add_delegate(IDENTITY, "veriKey", DELEGATE, DAY)
    registry.mine()
    registry.add_delegate(IDENTITY, "veriKey", DELEGATE_2, DAY)
    registry.mine()
    registry.add_delegate(IDENTITY, "veriKey", DELEGATE, 2 * DAY)

    assert addresses(resolver.resolve(DID, at_time=registry.now)) == [IDENTITY, DELEGATE, DELEGATE_2]


def test_same_address_with_two_delegate_types(resolver, registry):
    registry.add_delegate(IDENTITY, "veriKey", DELEGATE, DAY)
    registry.add_delegate(IDENTITY, "sigAuth", DELEGATE, DAY)

    doc = resolver.resolve(DID, at_time=registry.now)
    assert [pk.type for pk in doc.public_key[1:]] == [
        "Secp256k1VerificationKey2018",
        "Secp256k1SignatureAuthentication2018",
    ]
    assert [a.public_key for a in doc.authentication] == [f"{DID}#owner", f"{DID}#delegate-2"]


def test_unknown_delegate_type_is_skipped(resolver, registry):
    registry.add_delegate(IDENTITY, "attestor", DELEGATE, DAY)
    assert addresses(resolver.resolve(DID, at_time=registry.now)) == [IDENTITY]


def test_only_latest_attribute_value_per_name(resolver, registry):
    name = "did/pub/Secp256k1/veriKey/hex"
    registry.set_attribute(IDENTITY, name, "0xaaaa", DAY)
    registry.mine()
    registry.set_attribute(IDENTITY, name, "0xbbbb", DAY)

    doc = resolver.resolve(DID, at_time=registry.now)
    assert len(doc.public_key) == 2
    assert doc.public_key[1]["publicKeyHex"] == "bbbb"
    assert doc.raw == {name: "0xbbbb"}


def test_revoked_attribute_leaves_raw_view(resolver, registry):
    name = "did/svc/HubService"
    registry.set_attribute(IDENTITY, name, "https://hub.example", DAY)
    registry.mine()
    registry.revoke_attribute(IDENTITY, name, "https://hub.example")

    doc = resolver.resolve(DID, at_time=registry.now)
    assert doc.service == ()
    assert doc.raw == {}


def test_service_endpoint(resolver, registry):
    registry.set_attribute(IDENTITY, "did/svc/HubService", "https://hubs.uport.me", DAY)
    doc = resolver.resolve(DID, at_time=registry.now)

    assert doc.to_dict()["service"] == [{
        "id": f"{DID}#service-1",
        "type": "HubService",
        "serviceEndpoint": "https://hubs.uport.me",
    }]
    assert len(doc.public_key) == 1


def test_large_pem_value_round_trips(resolver, registry):
    value = {
        "revocations": "/orbitdb/QmXecs3KW51MvHnH2qzN19gu5fmEtkoU5KwvGavoHEedXM/revocations",
        "publicKeyPem": "-----BEGIN PGP PUBLIC KEY BLOCK-----\r\nVersion: OpenPGP.js v4.0.1\r\n\r\nxk8EW/coshMFK4EEAAoCAwT3\r\n-----END PGP PUBLIC KEY BLOCK-----\r\n",
    }
    registry.set_attribute(IDENTITY, "did/pub/Secp256k1/veriKey/pem", "0x" + json.dumps(value).encode("utf-8").hex(), DAY)

    doc = resolver.resolve(DID, at_time=registry.now)
    pk = doc.to_dict()["publicKey"][1]
    assert json.loads(bytes.fromhex(pk["value"][2:])) == value


def test_base64_attribute(resolver, registry):
    raw = bytes(range(32))
    registry.set_attribute(IDENTITY, "did/pub/Ed25519/veriKey/base64", raw, DAY)

    key = resolver.resolve(DID, at_time=registry.now).public_key[1]
    assert key.type == "Ed25519VerificationKey2018"
    assert base64.b64decode(key["publicKeyBase64"]) == raw


class OwnerOnlyFails(InMemoryRegistry):
    def owner_of(self, identity):
        raise TimeoutError("rpc timeout")


def test_owner_lookup_failure_aborts():
    with pytest.raises(RegistryUnavailable):
        EthrDidResolver(registry=OwnerOnlyFails()).resolve(DID, at_time=0)
