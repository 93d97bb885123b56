# tests/vectors.py
"""
Known-answer vectors for the primitive layers.

Sources:
    AES-256-GCM   McGrew & Viega GCM test cases 13 and 14 (zero key, zero IV)
    AES-256-CTR   NIST SP 800-38A F.5.5
    HKDF-SHA256   RFC 5869 A.1
    Ed25519       RFC 8032 7.1 TEST 1
"""

# =============================================================================
# AES-256-GCM
# =============================================================================

GCM_ZERO_KEY = bytes(32)
GCM_ZERO_IV = bytes(12)

GCM_EMPTY_TAG = bytes.fromhex("530f8afbc74536b9a963b4f1c4cb738b")

GCM_BLOCK_PLAINTEXT = bytes(16)
GCM_BLOCK_CIPHERTEXT = bytes.fromhex("cea7403d4d606b6e074ec5d3baf39d18")
GCM_BLOCK_TAG = bytes.fromhex("d0d1c8a799996bf0265b98b5d48ab919")


# =============================================================================
# AES-256-CTR
# =============================================================================

CTR_KEY = bytes.fromhex("603deb1015ca71be2b73aef0857d77811f352c073b6108d72d9810a30914dff4")
CTR_IV = bytes.fromhex("f0f1f2f3f4f5f6f7f8f9fafbfcfdfeff")

CTR_PLAINTEXT = bytes.fromhex(
    "6bc1bee22e409f96e93d7e117393172a"
    "ae2d8a571e03ac9c9eb76fac45af8e51"
)
CTR_CIPHERTEXT = bytes.fromhex(
    "601ec313775789a5b7a7f504bbf3d228"
    "f443e3ca4d62b59aca84e990cacaf5c5"
)


# =============================================================================
# HKDF-SHA256
# =============================================================================

HKDF_IKM = bytes([0x0B] * 22)
HKDF_SALT = bytes(range(0x00, 0x0D))
HKDF_INFO = bytes(range(0xF0, 0xFA))
HKDF_LENGTH = 42
HKDF_OKM = bytes.fromhex(
    "3cb25f25faacd57a90434f64d0362f2a2d2d0a90cf1a5a4c5db02d56ecc4c5bf"
    "34007208d5b887185865"
)


# =============================================================================
# Ed25519
# =============================================================================

ED25519_SEED = bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60")
ED25519_PUBLIC = bytes.fromhex("d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a")
ED25519_EMPTY_SIGNATURE = bytes.fromhex(
    "e5564300c360ac729086e2cc806e828a84877f1eb8e5d974d873e06522490155"
    "5fb8821590a33bacc61e39701cf9b46bd25bf5f0595bbe24655141438e7a100b"
)


# =============================================================================
# Address Records
# =============================================================================

# a5 (map, 5 pairs) | "TTL" | uint64 300_000_000_000 | "Value"
RECORD_BODY_PREFIX = b"\xa5\x63TTL\x1b\x00\x00\x00\x45\xd9\x64\xb8\x00\x65Value"

ADDRESS_NAME_PREFIX = "k51qzi5uqu5"
