# cipherbox/metadata/listing.py
"""
CipherBox Container Listings

The encrypted directory document of one container. It names the
container's children and carries what is needed to open them:

    folder  subcontainer: its address name plus its signing seed and
            container key, both ECIES-wrapped to the owner
    file    item pointer: only the address name of the item's own record;
            content fields live in the item record, never inline

Wire (JSON, then AES-256-GCM under the container key):
    {
      "version": "v2",
      "children": [
        {"type": "folder", "id", "name", "ipnsName", "ipnsPrivateKeyEncrypted",
         "folderKeyEncrypted", "createdAt", "modifiedAt"},
        {"type": "file", "id", "name", "fileMetaIpnsName", "createdAt", "modifiedAt"}
      ]
    }

Versions:
    v2  current
    v1  legacy (inline file content); recognised and rejected
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from ..crypto.aead import AeadEnvelope
from ..crypto.common import BytesLike, bytes_to_hex
from .schema import Schema, dump_json


logger = logging.getLogger("cipherbox.listing")

LISTING_VERSION = "v2"
LEGACY_LISTING_VERSIONS = ("v1",)

_SCHEMA = Schema("Invalid listing format")
_INLINE_CONTENT_KEYS = ("cid", "fileKeyEncrypted", "fileIv")


@dataclass(frozen=True)
class SubcontainerRef:
    id: str
    name: str
    ipns_name: str
    ipns_private_key_encrypted: bytes
    folder_key_encrypted: bytes
    created_at: float
    modified_at: float

    type = "folder"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "ipnsName": self.ipns_name,
            "ipnsPrivateKeyEncrypted": bytes_to_hex(self.ipns_private_key_encrypted),
            "folderKeyEncrypted": bytes_to_hex(self.folder_key_encrypted),
            "createdAt": self.created_at,
            "modifiedAt": self.modified_at,
        }

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> SubcontainerRef:
        s = _SCHEMA
        return cls(
            id=s.text(obj.get("id"), non_empty=True),
            name=s.text(obj.get("name")),
            ipns_name=s.text(obj.get("ipnsName"), non_empty=True),
            ipns_private_key_encrypted=s.hex_bytes(obj.get("ipnsPrivateKeyEncrypted")),
            folder_key_encrypted=s.hex_bytes(obj.get("folderKeyEncrypted")),
            created_at=s.number(obj.get("createdAt")),
            modified_at=s.number(obj.get("modifiedAt")),
        )


@dataclass(frozen=True)
class ItemPointerRef:
    id: str
    name: str
    file_meta_ipns_name: str
    created_at: float
    modified_at: float

    type = "file"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "fileMetaIpnsName": self.file_meta_ipns_name,
            "createdAt": self.created_at,
            "modifiedAt": self.modified_at,
        }

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> ItemPointerRef:
        s = _SCHEMA
        s.forbid(obj, _INLINE_CONTENT_KEYS)
        return cls(
            id=s.text(obj.get("id"), non_empty=True),
            name=s.text(obj.get("name")),
            file_meta_ipns_name=s.text(obj.get("fileMetaIpnsName"), non_empty=True),
            created_at=s.number(obj.get("createdAt")),
            modified_at=s.number(obj.get("modifiedAt")),
        )


ListingChild = Union[SubcontainerRef, ItemPointerRef]

_CHILD_TYPES = {
    "folder": SubcontainerRef,
    "file": ItemPointerRef,
}


@dataclass
class ContainerListing:
    children: List[ListingChild] = field(default_factory=list)
    version: str = LISTING_VERSION

    @property
    def subcontainers(self) -> List[SubcontainerRef]:
        return [c for c in self.children if isinstance(c, SubcontainerRef)]

    @property
    def items(self) -> List[ItemPointerRef]:
        return [c for c in self.children if isinstance(c, ItemPointerRef)]

    def find(self, child_id: str):
        for child in self.children:
            if child.id == child_id:
                return child
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "children": [c.to_dict() for c in self.children],
        }

    @classmethod
    def from_dict(cls, obj: Any) -> ContainerListing:
        """
        Validate a decoded listing.

        Raises:
            UnsupportedSchemaVersion: For v1 or any unknown version
            SchemaValidationFailed: For any structural problem
        """
        s = _SCHEMA
        obj = s.mapping(obj)
        if obj.get("version") in LEGACY_LISTING_VERSIONS:
            logger.debug("Rejecting legacy %s listing", obj.get("version"))
        version = s.version(obj, LISTING_VERSION)

        children: List[ListingChild] = []
        for raw in s.array(obj.get("children")):
            raw = s.mapping(raw)
            child_cls = _CHILD_TYPES.get(raw.get("type"))
            if child_cls is None:
                raise s.fail()
            children.append(child_cls.from_dict(raw))
        return cls(children=children, version=version)


def encrypt_listing(listing: ContainerListing, container_key: BytesLike) -> AeadEnvelope:
    """Serialize and encrypt a listing under a fresh IV."""
    return AeadEnvelope.encrypt(dump_json(listing.to_dict()), container_key)


def decrypt_listing(
    envelope: Union[AeadEnvelope, Dict[str, Any]],
    container_key: BytesLike,
) -> ContainerListing:
    """
    Decrypt and validate a listing.

    Raises:
        DecryptionFailed: Wrong key or tampered ciphertext
        SchemaValidationFailed: Decrypted document is malformed
    """
    if not isinstance(envelope, AeadEnvelope):
        envelope = AeadEnvelope.from_dict(envelope)
    return ContainerListing.from_dict(_SCHEMA.load(envelope.decrypt(container_key)))
