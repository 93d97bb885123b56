# tests/test_ecies.py
"""
CipherBox ECIES Key Wrapping Test Suite

Categories:
  E1. Wrap / unwrap correctness
  E2. Wire layout and boundaries
  E3. Rejection (wrong key, tampering, bad recipients)
  E4. Re-wrap
  E5. Keypairs
"""

import pytest

from cipherbox.crypto.common import (
    InvalidInput,
    InvalidKeySize,
    KeyRewrapFailed,
    KeyUnwrapFailed,
    KeyWrapFailed,
    SecretBuffer,
    generate_key,
)
from cipherbox.crypto.ecies import (
    generate_user_keypair,
    rewrap_key,
    unwrap_key,
    user_keypair_from_private,
    validate_public_key,
    wrap_key,
)


# =============================================================================
# E1. Correctness
# =============================================================================

def test_e1_1_round_trip(user):
    key = generate_key()
    wrapped = wrap_key(key, user.public_key)
    with unwrap_key(wrapped, user.private_key) as recovered:
        assert isinstance(recovered, SecretBuffer)
        assert recovered == key
    assert recovered.is_wiped


def test_e1_2_randomized(user):
    key = generate_key()
    assert wrap_key(key, user.public_key) != wrap_key(key, user.public_key)


def test_e1_3_arbitrary_payload(user):
    payload = b'{"version":"v1","devices":[]}' * 20
    assert unwrap_key(wrap_key(payload, user.public_key), user.private_key) == payload


# =============================================================================
# E2. Layout
# =============================================================================

def test_e2_1_overhead_is_97_bytes(user):
    wrapped = wrap_key(bytes(32), user.public_key)
    assert len(wrapped) == 32 + 97
    assert wrapped[0] == 0x04


def test_e2_2_empty_plaintext(user):
    wrapped = wrap_key(b"", user.public_key)
    assert len(wrapped) == 97
    assert unwrap_key(wrapped, user.private_key) == b""


def test_e2_3_truncated_rejected(user):
    wrapped = wrap_key(b"", user.public_key)
    with pytest.raises(KeyUnwrapFailed):
        unwrap_key(wrapped[:96], user.private_key)


# =============================================================================
# E3. Rejection
# =============================================================================

def test_e3_1_wrong_private_key(user, other_user):
    wrapped = wrap_key(generate_key(), user.public_key)
    with pytest.raises(KeyUnwrapFailed) as excinfo:
        unwrap_key(wrapped, other_user.private_key)
    assert excinfo.value.code == "KEY_UNWRAPPING_FAILED"
    assert str(excinfo.value) == "Key unwrapping failed"


@pytest.mark.parametrize("pos", [0, 70, 85, 100, -1])
def test_e3_2_tampering(user, pos):
    wrapped = bytearray(wrap_key(generate_key(), user.public_key))
    wrapped[pos] ^= 0x01
    with pytest.raises(KeyUnwrapFailed):
        unwrap_key(bytes(wrapped), user.private_key)


def test_e3_3_bad_private_key_size(user):
    wrapped = wrap_key(generate_key(), user.public_key)
    with pytest.raises(KeyUnwrapFailed):
        unwrap_key(wrapped, bytes(user.private_key)[:31])


def test_e3_4_invalid_recipient_keys(user):
    compressed = b"\x02" + user.public_key[1:33]
    off_curve = b"\x04" + bytes(64)
    wrong_prefix = b"\x05" + user.public_key[1:]
    for bad in (b"", compressed, off_curve, wrong_prefix, user.public_key[:64]):
        with pytest.raises(KeyWrapFailed):
            validate_public_key(bad)
        with pytest.raises(KeyWrapFailed):
            wrap_key(generate_key(), bad)


# =============================================================================
# E4. Re-wrap
# =============================================================================

def test_e4_1_rewrap_to_recipient(user, other_user):
    key = generate_key()
    wrapped = wrap_key(key, user.public_key)
    shared = rewrap_key(wrapped, user.private_key, other_user.public_key)
    assert unwrap_key(shared, other_user.private_key) == key
    with pytest.raises(KeyUnwrapFailed):
        unwrap_key(shared, user.private_key)


def test_e4_2_rewrap_failures(user, other_user):
    wrapped = wrap_key(generate_key(), user.public_key)
    with pytest.raises(KeyRewrapFailed) as excinfo:
        rewrap_key(wrapped, other_user.private_key, other_user.public_key)
    assert str(excinfo.value) == "Key re-wrapping failed"
    with pytest.raises(KeyRewrapFailed):
        rewrap_key(wrapped, user.private_key, b"\x04" + bytes(64))


# =============================================================================
# E5. Keypairs
# =============================================================================

def test_e5_1_generated_keypair_shape():
    keypair = generate_user_keypair()
    assert len(keypair.public_key) == 65
    assert len(keypair.private_key) == 32
    assert "private_key" not in repr(keypair)
    keypair.wipe()
    assert keypair.private_key.is_wiped


def test_e5_2_from_private(user):
    rebuilt = user_keypair_from_private(user.private_key)
    assert rebuilt.public_key == user.public_key


def test_e5_3_from_private_rejects(user):
    with pytest.raises(InvalidKeySize):
        user_keypair_from_private(bytes(16))
    with pytest.raises(InvalidInput):
        user_keypair_from_private(bytes(32))
