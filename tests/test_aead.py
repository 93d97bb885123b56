# tests/test_aead.py
"""
CipherBox AES-256-GCM Test Suite

Categories:
  G1. Known answers (zero key / zero IV)
  G2. Round trip and sizes
  G3. Tamper detection
  G4. Sealed form and JSON envelope
  G5. Key buffers
"""

import pytest

from cipherbox.crypto.aead import (
    AeadEnvelope,
    decrypt_aes_gcm,
    encrypt_aes_gcm,
    seal_aes_gcm,
    unseal_aes_gcm,
)
from cipherbox.crypto.common import (
    DecryptionFailed,
    InvalidIvSize,
    InvalidKeySize,
    SecretBuffer,
    generate_iv,
    generate_key,
    hkdf_sha256,
    zeroize,
)

from vectors import (
    GCM_BLOCK_CIPHERTEXT,
    GCM_BLOCK_PLAINTEXT,
    GCM_BLOCK_TAG,
    GCM_EMPTY_TAG,
    GCM_ZERO_IV,
    GCM_ZERO_KEY,
    HKDF_INFO,
    HKDF_IKM,
    HKDF_LENGTH,
    HKDF_OKM,
    HKDF_SALT,
)


# =============================================================================
# G1. Known Answers
# =============================================================================

def test_g1_1_empty_plaintext_is_tag_only():
    out = encrypt_aes_gcm(b"", GCM_ZERO_KEY, GCM_ZERO_IV)
    assert out == GCM_EMPTY_TAG


def test_g1_2_single_block():
    out = encrypt_aes_gcm(GCM_BLOCK_PLAINTEXT, GCM_ZERO_KEY, GCM_ZERO_IV)
    assert out == GCM_BLOCK_CIPHERTEXT + GCM_BLOCK_TAG
    assert decrypt_aes_gcm(out, GCM_ZERO_KEY, GCM_ZERO_IV) == GCM_BLOCK_PLAINTEXT


def test_g1_3_hkdf_rfc5869_case_1():
    okm = hkdf_sha256(HKDF_IKM, salt=HKDF_SALT, info=HKDF_INFO, length=HKDF_LENGTH)
    assert isinstance(okm, SecretBuffer)
    assert bytes(okm) == HKDF_OKM


# =============================================================================
# G2. Round Trip
# =============================================================================

def test_g2_1_output_is_plaintext_plus_tag():
    key, iv = generate_key(), generate_iv()
    out = encrypt_aes_gcm(b"Hello, CipherBox!", key, iv)
    assert len(out) == 33
    assert decrypt_aes_gcm(out, key, iv) == b"Hello, CipherBox!"


@pytest.mark.parametrize("size", [0, 1, 15, 16, 17, 4096])
def test_g2_2_sizes(size):
    key, iv = generate_key(), generate_iv()
    plaintext = bytes(range(256)) * (size // 256) + bytes(range(size % 256))
    assert decrypt_aes_gcm(encrypt_aes_gcm(plaintext, key, iv), key, iv) == plaintext


def test_g2_3_bad_key_and_iv_sizes():
    with pytest.raises(InvalidKeySize):
        encrypt_aes_gcm(b"x", bytes(16), generate_iv())
    with pytest.raises(InvalidIvSize):
        encrypt_aes_gcm(b"x", generate_key(), bytes(16))
    with pytest.raises(InvalidKeySize):
        decrypt_aes_gcm(bytes(32), bytes(31), generate_iv())
    with pytest.raises(InvalidIvSize):
        decrypt_aes_gcm(bytes(32), generate_key(), bytes(11))


# =============================================================================
# G3. Tamper Detection
# =============================================================================

def test_g3_1_flipped_bit_rejected():
    key, iv = generate_key(), generate_iv()
    out = bytearray(encrypt_aes_gcm(b"Hello, CipherBox!", key, iv))
    for pos in (0, len(out) - 1):
        tampered = bytearray(out)
        tampered[pos] ^= 0x01
        with pytest.raises(DecryptionFailed):
            decrypt_aes_gcm(bytes(tampered), key, iv)


def test_g3_2_wrong_key_or_iv_rejected():
    key, iv = generate_key(), generate_iv()
    out = encrypt_aes_gcm(b"secret", key, iv)
    with pytest.raises(DecryptionFailed):
        decrypt_aes_gcm(out, generate_key(), iv)
    with pytest.raises(DecryptionFailed):
        decrypt_aes_gcm(out, key, generate_iv())


def test_g3_3_shorter_than_tag_rejected():
    with pytest.raises(DecryptionFailed):
        decrypt_aes_gcm(bytes(15), generate_key(), generate_iv())


def test_g3_4_errors_carry_codes():
    with pytest.raises(DecryptionFailed) as excinfo:
        decrypt_aes_gcm(bytes(20), generate_key(), generate_iv())
    assert excinfo.value.code == "DECRYPTION_FAILED"
    assert str(excinfo.value) == "Decryption failed"


# =============================================================================
# G4. Sealed Form and Envelope
# =============================================================================

def test_g4_1_seal_layout():
    key = generate_key()
    sealed = seal_aes_gcm(b"", key)
    assert len(sealed) == 28
    assert unseal_aes_gcm(sealed, key) == b""


def test_g4_2_seal_uses_fresh_iv():
    key = generate_key()
    assert seal_aes_gcm(b"same", key) != seal_aes_gcm(b"same", key)


def test_g4_3_unseal_minimum_length():
    with pytest.raises(DecryptionFailed):
        unseal_aes_gcm(bytes(27), generate_key())


def test_g4_4_envelope_dict_form():
    key = generate_key()
    envelope = AeadEnvelope.encrypt(b'{"a":1}', key)
    wire = envelope.to_dict()
    assert set(wire) == {"iv", "data"}
    assert len(wire["iv"]) == 24
    assert AeadEnvelope.from_dict(wire).decrypt(key) == b'{"a":1}'


@pytest.mark.parametrize("wire", [
    None,
    [],
    {"data": "AAAA"},
    {"iv": "00" * 11, "data": "AAAA"},
    {"iv": "zz" * 12, "data": "AAAA"},
    {"iv": "00" * 12, "data": "not base64!"},
    {"iv": "00" * 12, "data": 5},
])
def test_g4_5_malformed_envelope(wire):
    with pytest.raises(DecryptionFailed):
        AeadEnvelope.from_dict(wire)


# =============================================================================
# G5. Key Buffers
# =============================================================================

def test_g5_1_secret_buffer_wiped_on_exit():
    with generate_key() as key:
        assert len(key) == 32
        held = key
    assert held.is_wiped


def test_g5_2_secret_buffer_wiped_on_error():
    key = generate_key()
    with pytest.raises(RuntimeError):
        with key:
            raise RuntimeError("boom")
    assert key.is_wiped


def test_g5_3_zeroize_and_repr():
    buf = bytearray(b"\x01\x02\x03")
    zeroize(buf)
    assert buf == bytearray(3)
    zeroize(None)
    assert repr(SecretBuffer(b"\xff" * 4)) == "SecretBuffer(<4 bytes>)"
