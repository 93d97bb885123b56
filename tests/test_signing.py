# tests/test_signing.py
"""
CipherBox Ed25519 and Key Derivation Test Suite

Categories:
  S1. Known answers (RFC 8032)
  S2. Sign / verify behaviour
  S3. Keypair forms
  K1. Deterministic signing-key derivation
  K2. Derivation input validation
"""

import pytest

from cipherbox.crypto.common import InvalidInput, InvalidKeySize, SigningFailed
from cipherbox.crypto.kdf import (
    derive_item_keypair,
    derive_key,
    derive_registry_keypair,
    derive_root_container_keypair,
    derive_signing_keypair,
)
from cipherbox.crypto.signing import (
    SigningKeypair,
    generate_signing_keypair,
    sign,
    verify,
)
from cipherbox.naming.names import derive_address_name

from vectors import (
    ADDRESS_NAME_PREFIX,
    ED25519_EMPTY_SIGNATURE,
    ED25519_PUBLIC,
    ED25519_SEED,
)


ITEM_ID = "3f2a9c1e-77b4-4c36-9a1f-0c5d2e8b9a10"


# =============================================================================
# S1. Known Answers
# =============================================================================

def test_s1_1_rfc8032_test_1():
    keypair = SigningKeypair.from_seed(ED25519_SEED)
    assert keypair.public_key == ED25519_PUBLIC
    assert sign(b"", ED25519_SEED) == ED25519_EMPTY_SIGNATURE
    assert verify(ED25519_EMPTY_SIGNATURE, b"", ED25519_PUBLIC)


# =============================================================================
# S2. Sign / Verify
# =============================================================================

def test_s2_1_deterministic():
    keypair = generate_signing_keypair()
    message = b"/ipfs/bafkreigh2akiscaildc"
    assert sign(message, keypair.private_key) == sign(message, keypair.private_key)
    assert len(sign(message, keypair.private_key)) == 64


def test_s2_2_verify_never_raises():
    keypair = generate_signing_keypair()
    signature = sign(b"message", keypair.private_key)
    assert verify(signature, b"message", keypair.public_key)
    assert not verify(signature, b"messagf", keypair.public_key)
    assert not verify(signature[:63], b"message", keypair.public_key)
    assert not verify(signature, b"message", keypair.public_key[:31])
    assert not verify(signature, b"message", generate_signing_keypair().public_key)
    assert not verify(bytes(64), b"message", bytes(32))


def test_s2_3_bad_private_key():
    with pytest.raises(SigningFailed) as excinfo:
        sign(b"message", bytes(31))
    assert excinfo.value.code == "SIGNING_FAILED"


# =============================================================================
# S3. Keypair Forms
# =============================================================================

def test_s3_1_interchange_form():
    keypair = SigningKeypair.from_seed(ED25519_SEED)
    with keypair.to_interchange() as raw:
        assert len(raw) == 64
        assert bytes(raw) == ED25519_SEED + ED25519_PUBLIC
        parsed = SigningKeypair.from_interchange(raw)
    assert parsed.public_key == ED25519_PUBLIC


def test_s3_2_interchange_mismatch_rejected():
    raw = ED25519_SEED + generate_signing_keypair().public_key
    with pytest.raises(InvalidKeySize):
        SigningKeypair.from_interchange(raw)
    with pytest.raises(InvalidKeySize):
        SigningKeypair.from_interchange(ED25519_SEED)


def test_s3_3_context_manager_wipes():
    with generate_signing_keypair() as keypair:
        seed = keypair.private_key
        assert not seed.is_wiped
    assert seed.is_wiped


# =============================================================================
# K1. Derivation
# =============================================================================

def test_k1_1_deterministic(master_secret):
    a = derive_root_container_keypair(master_secret)
    b = derive_root_container_keypair(master_secret)
    assert a.keypair.public_key == b.keypair.public_key
    assert a.address_name == b.address_name
    assert a.address_name.startswith(ADDRESS_NAME_PREFIX)
    assert a.address_name == derive_address_name(a.keypair.public_key)


def test_k1_2_domains_separate(master_secret):
    names = {
        derive_root_container_keypair(master_secret).address_name,
        derive_registry_keypair(master_secret).address_name,
        derive_item_keypair(master_secret, ITEM_ID).address_name,
        derive_item_keypair(master_secret, ITEM_ID + "x").address_name,
    }
    assert len(names) == 4


def test_k1_3_different_masters(master_secret):
    other = bytes(reversed(master_secret))
    assert (
        derive_root_container_keypair(master_secret).address_name
        != derive_root_container_keypair(other).address_name
    )


def test_k1_4_matches_explicit_hkdf(master_secret):
    with derive_key(master_secret, b"CipherBox-v1", b"cipherbox-vault-ipns-v1") as seed:
        expected = SigningKeypair.from_seed(seed).public_key
    with derive_signing_keypair(master_secret, b"cipherbox-vault-ipns-v1") as derived:
        assert derived.keypair.public_key == expected
    assert derived.keypair.private_key.is_wiped


# =============================================================================
# K2. Validation
# =============================================================================

def test_k2_1_master_secret_size():
    with pytest.raises(InvalidKeySize):
        derive_root_container_keypair(bytes(31))
    with pytest.raises(InvalidKeySize):
        derive_registry_keypair(bytes(33))


@pytest.mark.parametrize("item_id", ["", "short", "123456789"])
def test_k2_2_item_id_too_short(master_secret, item_id):
    with pytest.raises(InvalidInput):
        derive_item_keypair(master_secret, item_id)


def test_k2_3_item_id_minimum(master_secret):
    assert derive_item_keypair(master_secret, "0123456789").address_name.startswith(ADDRESS_NAME_PREFIX)
