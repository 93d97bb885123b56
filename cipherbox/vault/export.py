# cipherbox/vault/export.py
"""
CipherBox Vault Export and Recovery

The export document holds the minimum needed to recover a vault without
the relay: the root address name and the two root secrets, still wrapped
to the user's key.

Format:
    {
      "format": "cipherbox-vault-export",
      "version": "1.0",
      "exportedAt": "2026-02-11T12:00:00.000Z",
      "rootIpnsName": "k51qzi5uqu5...",
      "encryptedRootFolderKey": <hex ECIES>,
      "encryptedRootIpnsPrivateKey": <hex ECIES>,
      "derivationMethod": "web3auth" | null
    }

Recovery:
    1. parse_export() + recover_root() unwrap the root bundle
    2. walk_container_tree() resolves each address through a RecordResolver,
       verifies the record, fetches and decrypts the listing or item
       record it points to, and yields every entry depth-first

Resolvers:
    RecordResolver is the boundary to the network; InMemoryResolver is a
    local implementation for offline use and tests.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from ..crypto.aead import AeadEnvelope
from ..crypto.common import (
    BytesLike,
    DecryptionFailed,
    InvalidKeySize,
    KeyUnwrapFailed,
    bytes_to_hex,
)
from ..crypto.ecies import unwrap_key
from ..crypto.signing import SigningKeypair
from ..metadata.item import ItemRecord, decrypt_item_record
from ..metadata.listing import SubcontainerRef, decrypt_listing
from ..metadata.schema import Schema
from ..naming.cid import raw_content_cid
from ..naming.names import derive_address_name
from ..naming.validator import RecordRejected, RecordValidator
from .container import (
    ContainerRootBundle,
    WrappedContainerBundle,
    unwrap_container_bundle,
)


logger = logging.getLogger("cipherbox.export")

EXPORT_FORMAT = "cipherbox-vault-export"
EXPORT_VERSION = "1.0"

_SCHEMA = Schema("Invalid export format")


# =============================================================================
# Export Document
# =============================================================================

def _iso_now(now: Optional[datetime] = None) -> str:
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class VaultExport:
    root_address_name: str
    encrypted_root_key: bytes
    encrypted_root_signing_key: bytes
    exported_at: str
    derivation_method: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": EXPORT_FORMAT,
            "version": EXPORT_VERSION,
            "exportedAt": self.exported_at,
            "rootIpnsName": self.root_address_name,
            "encryptedRootFolderKey": bytes_to_hex(self.encrypted_root_key),
            "encryptedRootIpnsPrivateKey": bytes_to_hex(self.encrypted_root_signing_key),
            "derivationMethod": self.derivation_method,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def build_export(
    wrapped: WrappedContainerBundle,
    derivation_method: Optional[str] = None,
    now: Optional[datetime] = None,
) -> VaultExport:
    """Build the export document from the user's wrapped root bundle."""
    return VaultExport(
        root_address_name=wrapped.address_name,
        encrypted_root_key=wrapped.wrapped_root_key,
        encrypted_root_signing_key=wrapped.wrapped_signing_private_key,
        exported_at=_iso_now(now),
        derivation_method=derivation_method,
    )


def parse_export(text: str) -> VaultExport:
    """
    Parse and validate an export document.

    Raises:
        SchemaValidationFailed: On a wrong format tag or version, or any
            malformed field
    """
    s = _SCHEMA
    try:
        obj = json.loads(text)
    except (TypeError, ValueError):
        raise s.fail() from None
    obj = s.mapping(obj)

    if obj.get("format") != EXPORT_FORMAT or obj.get("version") != EXPORT_VERSION:
        raise s.fail()

    return VaultExport(
        root_address_name=s.text(obj.get("rootIpnsName"), non_empty=True),
        encrypted_root_key=s.hex_bytes(obj.get("encryptedRootFolderKey")),
        encrypted_root_signing_key=s.hex_bytes(obj.get("encryptedRootIpnsPrivateKey")),
        exported_at=s.text(obj.get("exportedAt")),
        derivation_method=s.nullable_text(obj.get("derivationMethod")),
    )


def recover_root(export: VaultExport, user_private_key: BytesLike) -> ContainerRootBundle:
    """
    Unwrap the root bundle from an export.

    The signing public key is recomputed from the unwrapped seed and must
    map back to the exported address name.

    Raises:
        KeyUnwrapFailed: If a field fails to unwrap (`field` names it) or the
            recovered key does not match the address name
    """
    try:
        with unwrap_key(export.encrypted_root_signing_key, user_private_key) as seed:
            with SigningKeypair.from_seed(seed) as keypair:
                public_key = keypair.public_key
    except (KeyUnwrapFailed, InvalidKeySize):
        raise KeyUnwrapFailed(field="encryptedRootIpnsPrivateKey") from None

    if derive_address_name(public_key) != export.root_address_name:
        raise KeyUnwrapFailed(field="rootIpnsName")

    wrapped = WrappedContainerBundle(
        wrapped_root_key=export.encrypted_root_key,
        wrapped_signing_private_key=export.encrypted_root_signing_key,
        signing_public_key=public_key,
    )
    return unwrap_container_bundle(wrapped, user_private_key)


# =============================================================================
# Resolvers
# =============================================================================

class RecordResolver(ABC):
    """Read-only view of the record and content stores."""

    @abstractmethod
    def resolve(self, address_name: str) -> Optional[bytes]:
        """Marshaled record currently published at an address, or None."""

    @abstractmethod
    def fetch(self, pointer: str) -> bytes:
        """Content bytes behind a content pointer ("/ipfs/<cid>")."""


def content_pointer(data: BytesLike) -> str:
    """Content pointer of raw bytes: /ipfs/ + CIDv1(raw, sha2-256), base32."""
    return f"/ipfs/{raw_content_cid(data).encode('base32')}"


class InMemoryResolver(RecordResolver):
    """Dict-backed resolver for offline recovery and tests."""

    def __init__(self):
        self._records: Dict[str, bytes] = {}
        self._content: Dict[str, bytes] = {}

    def put(self, data: BytesLike) -> str:
        pointer = content_pointer(data)
        self._content[pointer] = bytes(data)
        return pointer

    def publish(self, address_name: str, record: bytes) -> None:
        self._records[address_name] = bytes(record)

    def resolve(self, address_name: str) -> Optional[bytes]:
        return self._records.get(address_name)

    def fetch(self, pointer: str) -> bytes:
        try:
            return self._content[pointer]
        except KeyError:
            raise LookupError(f"Content not found: {pointer}") from None


# =============================================================================
# Recovery Walk
# =============================================================================

@dataclass(frozen=True)
class RecoveredEntry:
    """
    One entry found while walking a vault.

    Attributes:
        path: Slash-joined names from the root ("/" for the root itself)
        kind: "folder" or "file"
        id: Child id from the parent listing ("root" for the root)
        address_name: Address the entry's record is published at
        item: Decrypted item record, for files
    """
    path: str
    kind: str
    id: str
    address_name: str
    item: Optional[ItemRecord] = None


def _load_envelope(raw: bytes) -> AeadEnvelope:
    try:
        obj = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise DecryptionFailed("Decryption failed") from None
    return AeadEnvelope.from_dict(obj)


def _fetch_target(resolver: RecordResolver, validator: RecordValidator, address_name: str) -> AeadEnvelope:
    raw_record = resolver.resolve(address_name)
    if raw_record is None:
        logger.debug("No record published at %s", address_name)
        raise RecordRejected()
    record = validator.accept(address_name, raw_record)
    return _load_envelope(resolver.fetch(record.value_text))


def _join(path: str, name: str) -> str:
    return f"{path.rstrip('/')}/{name}"


def _walk(
    resolver: RecordResolver,
    validator: RecordValidator,
    address_name: str,
    container_key: BytesLike,
    user_private_key: BytesLike,
    path: str,
) -> Iterator[RecoveredEntry]:
    listing = decrypt_listing(_fetch_target(resolver, validator, address_name), container_key)

    for child in listing.children:
        child_path = _join(path, child.name)
        if isinstance(child, SubcontainerRef):
            yield RecoveredEntry(child_path, "folder", child.id, child.ipns_name)
            with unwrap_key(child.folder_key_encrypted, user_private_key) as sub_key:
                yield from _walk(resolver, validator, child.ipns_name, sub_key, user_private_key, child_path)
        else:
            envelope = _fetch_target(resolver, validator, child.file_meta_ipns_name)
            item = decrypt_item_record(envelope, container_key)
            yield RecoveredEntry(child_path, "file", child.id, child.file_meta_ipns_name, item)


def walk_container_tree(
    resolver: RecordResolver,
    root_bundle: ContainerRootBundle,
    user_private_key: BytesLike,
    validator: Optional[RecordValidator] = None,
) -> Iterator[RecoveredEntry]:
    """
    Walk a vault from its root, depth-first.

    Every record is checked by `validator` (a fresh RecordValidator by
    default) before the content it points to is fetched.

    Raises:
        RecordRejected: If a record is missing, forged, expired or stale
        DecryptionFailed, SchemaValidationFailed: If a fetched document does
            not decrypt or validate
    """
    validator = validator or RecordValidator()
    yield RecoveredEntry("/", "folder", "root", root_bundle.address_name)
    yield from _walk(
        resolver, validator, root_bundle.address_name,
        root_bundle.container_key, user_private_key, "/",
    )
