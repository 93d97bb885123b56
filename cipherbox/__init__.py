# cipherbox/__init__.py
"""
CipherBox: Zero-Knowledge Encrypted Storage Engine

Client-side cryptography for an end-to-end encrypted file vault stored on
content-addressed storage. The relay server only ever sees ciphertext,
wrapped keys and signed records.

Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │  cipherbox                                               │
    │  ├── params.py         # Protocol constants & domains    │
    │  ├── crypto/           # Primitives                      │
    │  │   ├── aead.py       # AES-256-GCM                     │
    │  │   ├── stream.py     # AES-256-CTR (seekable)          │
    │  │   ├── ecies.py      # secp256k1 key wrapping          │
    │  │   ├── signing.py    # Ed25519                         │
    │  │   └── kdf.py        # HKDF-derived signing keys       │
    │  ├── naming/           # Mutable address records         │
    │  ├── vault/            # Container keys, export/recovery │
    │  ├── metadata/         # Listings, items, device registry│
    │  └── sharing/          # Re-wrap sharing, lazy rotation  │
    └──────────────────────────────────────────────────────────┘

Key Hierarchy:
    user secp256k1 key
      └── wraps container keys + container signing seeds
            └── container key encrypts the listing and its item records
                  └── item records hold content keys (wrapped to the user)
"""

__version__ = "1.0.0"
__author__ = "CipherBox"

from .crypto import (
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
    SecretBuffer,
    AeadEnvelope,
    encrypt_aes_gcm,
    decrypt_aes_gcm,
    seal_aes_gcm,
    unseal_aes_gcm,
    encrypt_aes_ctr,
    decrypt_aes_ctr,
    decrypt_aes_ctr_range,
    wrap_key,
    unwrap_key,
    rewrap_key,
    generate_user_keypair,
    SigningKeypair,
    generate_signing_keypair,
    sign,
    verify,
    derive_root_container_keypair,
    derive_registry_keypair,
    derive_item_keypair,
)
from .naming import (
    AddressRecord,
    RecordRejected,
    RecordValidator,
    create_record,
    verify_record,
    marshal_record,
    unmarshal_record,
    derive_address_name,
    public_key_from_address_name,
)
from .vault import (
    ContainerRootBundle,
    WrappedContainerBundle,
    init_container,
    wrap_container_bundle,
    unwrap_container_bundle,
    build_export,
    parse_export,
    recover_root,
    walk_container_tree,
)
from .metadata import (
    ContainerListing,
    SubcontainerRef,
    ItemPointerRef,
    ItemRecord,
    DeviceRegistry,
    encrypt_listing,
    decrypt_listing,
    encrypt_item_record,
    decrypt_item_record,
    encrypt_device_registry,
    decrypt_device_registry,
)
from .sharing import (
    ShareAborted,
    InvalidShareTransition,
    ShareGrant,
    ShareState,
    share_key,
    share_subtree,
    rotate_container,
    complete_rotation,
)

__all__ = [
    "__version__",
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
    "RecordRejected",
    "ShareAborted",
    "InvalidShareTransition",
    # Primitives
    "SecretBuffer",
    "AeadEnvelope",
    "encrypt_aes_gcm",
    "decrypt_aes_gcm",
    "seal_aes_gcm",
    "unseal_aes_gcm",
    "encrypt_aes_ctr",
    "decrypt_aes_ctr",
    "decrypt_aes_ctr_range",
    "wrap_key",
    "unwrap_key",
    "rewrap_key",
    "generate_user_keypair",
    "SigningKeypair",
    "generate_signing_keypair",
    "sign",
    "verify",
    "derive_root_container_keypair",
    "derive_registry_keypair",
    "derive_item_keypair",
    # Naming
    "AddressRecord",
    "RecordValidator",
    "create_record",
    "verify_record",
    "marshal_record",
    "unmarshal_record",
    "derive_address_name",
    "public_key_from_address_name",
    # Vault
    "ContainerRootBundle",
    "WrappedContainerBundle",
    "init_container",
    "wrap_container_bundle",
    "unwrap_container_bundle",
    "build_export",
    "parse_export",
    "recover_root",
    "walk_container_tree",
    # Metadata
    "ContainerListing",
    "SubcontainerRef",
    "ItemPointerRef",
    "ItemRecord",
    "DeviceRegistry",
    "encrypt_listing",
    "decrypt_listing",
    "encrypt_item_record",
    "decrypt_item_record",
    "encrypt_device_registry",
    "decrypt_device_registry",
    # Sharing
    "ShareGrant",
    "ShareState",
    "share_key",
    "share_subtree",
    "rotate_container",
    "complete_rotation",
    # Status
    "status",
]


def status() -> dict:
    """
    Versions of the engine and its backing libraries.

    Example:
        >>> import cipherbox
        >>> cipherbox.status()["version"]
        '1.0.0'
    """
    from importlib.metadata import PackageNotFoundError, version

    def _version(dist: str):
        try:
            return version(dist)
        except PackageNotFoundError:
            return None

    return {
        "version": __version__,
        "cryptography": _version("cryptography"),
        "pynacl": _version("PyNaCl"),
        "coincurve": _version("coincurve"),
        "cbor2": _version("cbor2"),
    }
