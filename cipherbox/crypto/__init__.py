# cipherbox/crypto/__init__.py
"""
CipherBox Cryptography Module

Primitive Layers:
  - aead:     AES-256-GCM for metadata and small content
  - stream:   AES-256-CTR for seekable media content
  - ecies:    secp256k1 ECIES key wrapping to user public keys
  - signing:  Ed25519 signatures for mutable address records
  - kdf:      HKDF-derived signing keypairs with domain separation

Error Policy:
  - One generic message per failure category
  - Raised exceptions carry no library cause (`raise ... from None`)
"""

# Common utilities and error taxonomy
from .common import (
    # Sizes
    AES_KEY_SIZE,
    AES_IV_SIZE,
    AES_TAG_SIZE,
    AES_CTR_IV_SIZE,
    SEALED_MIN_SIZE,
    ECIES_OVERHEAD,
    SECP256K1_PUBLIC_KEY_SIZE,
    ED25519_PUBLIC_KEY_SIZE,
    ED25519_SIGNATURE_SIZE,
    # Errors
    CryptoError,
    InvalidKeySize,
    InvalidIvSize,
    InvalidInput,
    EncryptionFailed,
    DecryptionFailed,
    KeyWrapFailed,
    KeyUnwrapFailed,
    KeyRewrapFailed,
    SigningFailed,
    SchemaValidationFailed,
    UnsupportedSchemaVersion,
    # Key buffers
    SecretBuffer,
    zeroize,
    zeroize_all,
    # Randomness / encoding
    random_bytes,
    generate_key,
    generate_iv,
    generate_ctr_iv,
    bytes_to_hex,
    hex_to_bytes,
    bytes_to_base64,
    base64_to_bytes,
    hkdf_sha256,
)

# AES-GCM
from .aead import (
    AeadEnvelope,
    encrypt_aes_gcm,
    decrypt_aes_gcm,
    seal_aes_gcm,
    unseal_aes_gcm,
)

# AES-CTR
from .stream import (
    CtrStreamEncryptor,
    CtrStreamDecryptor,
    encrypt_aes_ctr,
    decrypt_aes_ctr,
    decrypt_aes_ctr_range,
)

# ECIES
from .ecies import (
    UserKeypair,
    generate_user_keypair,
    user_keypair_from_private,
    validate_public_key,
    wrap_key,
    unwrap_key,
    rewrap_key,
)

# Ed25519
from .signing import (
    SigningKeypair,
    generate_signing_keypair,
    sign,
    verify,
)

# Derivation (imports the naming layer, keep last)
from .kdf import (
    DerivedKeypair,
    derive_key,
    derive_signing_keypair,
    derive_root_container_keypair,
    derive_registry_keypair,
    derive_item_keypair,
)

__all__ = [
    # Sizes
    "AES_KEY_SIZE",
    "AES_IV_SIZE",
    "AES_TAG_SIZE",
    "AES_CTR_IV_SIZE",
    "SEALED_MIN_SIZE",
    "ECIES_OVERHEAD",
    "SECP256K1_PUBLIC_KEY_SIZE",
    "ED25519_PUBLIC_KEY_SIZE",
    "ED25519_SIGNATURE_SIZE",
    # Errors
    "CryptoError",
    "InvalidKeySize",
    "InvalidIvSize",
    "InvalidInput",
    "EncryptionFailed",
    "DecryptionFailed",
    "KeyWrapFailed",
    "KeyUnwrapFailed",
    "KeyRewrapFailed",
    "SigningFailed",
    "SchemaValidationFailed",
    "UnsupportedSchemaVersion",
    # Key buffers
    "SecretBuffer",
    "zeroize",
    "zeroize_all",
    # Utilities
    "random_bytes",
    "generate_key",
    "generate_iv",
    "generate_ctr_iv",
    "bytes_to_hex",
    "hex_to_bytes",
    "bytes_to_base64",
    "base64_to_bytes",
    "hkdf_sha256",
    # AES-GCM
    "AeadEnvelope",
    "encrypt_aes_gcm",
    "decrypt_aes_gcm",
    "seal_aes_gcm",
    "unseal_aes_gcm",
    # AES-CTR
    "CtrStreamEncryptor",
    "CtrStreamDecryptor",
    "encrypt_aes_ctr",
    "decrypt_aes_ctr",
    "decrypt_aes_ctr_range",
    # ECIES
    "UserKeypair",
    "generate_user_keypair",
    "user_keypair_from_private",
    "validate_public_key",
    "wrap_key",
    "unwrap_key",
    "rewrap_key",
    # Ed25519
    "SigningKeypair",
    "generate_signing_keypair",
    "sign",
    "verify",
    # Derivation
    "DerivedKeypair",
    "derive_key",
    "derive_signing_keypair",
    "derive_root_container_keypair",
    "derive_registry_keypair",
    "derive_item_keypair",
]
