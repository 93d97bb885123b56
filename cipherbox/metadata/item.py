# cipherbox/metadata/item.py
"""
CipherBox Item Records

Per-item metadata published at the item's own address and encrypted under
the parent container's key. Updating an item's content republishes only
this record; the parent listing is untouched.

Wire (JSON, then AES-256-GCM under the parent container key):
    {
      "version": "v1",
      "cid", "fileKeyEncrypted", "fileIv", "size", "mimeType",
      "encryptionMode": "GCM" | "CTR",        optional, default GCM
      "createdAt", "modifiedAt",
      "versions": [                           optional, newest first
        {"cid", "fileKeyEncrypted", "fileIv", "size", "timestamp", "encryptionMode"}
      ]
    }

History Policy (cipherbox.params.HISTORY_POLICY):
    - A content update keeps the superseded content as a history entry only
      if the newest entry is older than the cooldown (or on force)
    - At most `max_entries` entries are kept; the oldest are pruned
    - Restoring an entry swaps it with the current content
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from ..crypto.aead import AeadEnvelope
from ..crypto.common import BytesLike, InvalidInput, bytes_to_hex
from ..params import HISTORY_POLICY, HistoryPolicy
from .schema import Schema, dump_json


logger = logging.getLogger("cipherbox.item")

ITEM_RECORD_VERSION = "v1"

_SCHEMA = Schema("Invalid item record format")


class CipherMode(str, Enum):
    GCM = "GCM"
    CTR = "CTR"


@dataclass(frozen=True)
class HistoryEntry:
    """A superseded content version."""
    cid: str
    file_key_encrypted: bytes
    file_iv: bytes
    size: int
    timestamp: float
    cipher_mode: CipherMode

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cid": self.cid,
            "fileKeyEncrypted": bytes_to_hex(self.file_key_encrypted),
            "fileIv": bytes_to_hex(self.file_iv),
            "size": self.size,
            "timestamp": self.timestamp,
            "encryptionMode": self.cipher_mode.value,
        }

    @classmethod
    def from_dict(cls, obj: Any) -> HistoryEntry:
        s = _SCHEMA
        obj = s.mapping(obj)
        return cls(
            cid=s.text(obj.get("cid"), non_empty=True),
            file_key_encrypted=s.hex_bytes(obj.get("fileKeyEncrypted")),
            file_iv=s.hex_bytes(obj.get("fileIv")),
            size=s.integer(obj.get("size")),
            timestamp=s.number(obj.get("timestamp")),
            cipher_mode=CipherMode(s.one_of(obj.get("encryptionMode"), ("GCM", "CTR"))),
        )


@dataclass(frozen=True)
class ItemRecord:
    """
    Current content of one item plus its version history.

    Attributes:
        cid: Content pointer of the encrypted content
        file_key_encrypted: Content key, ECIES-wrapped to the owner
        file_iv: IV used for the content (12 bytes GCM, 16 bytes CTR)
        size: Plaintext size in bytes
        mime_type: Original MIME type
        cipher_mode: GCM or CTR
        created_at / modified_at: Milliseconds since the epoch
        history: Prior versions, newest first
    """
    cid: str
    file_key_encrypted: bytes
    file_iv: bytes
    size: int
    mime_type: str
    created_at: float
    modified_at: float
    cipher_mode: CipherMode = CipherMode.GCM
    history: Tuple[HistoryEntry, ...] = field(default_factory=tuple)
    version: str = ITEM_RECORD_VERSION

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "version": self.version,
            "cid": self.cid,
            "fileKeyEncrypted": bytes_to_hex(self.file_key_encrypted),
            "fileIv": bytes_to_hex(self.file_iv),
            "size": self.size,
            "mimeType": self.mime_type,
            "encryptionMode": self.cipher_mode.value,
            "createdAt": self.created_at,
            "modifiedAt": self.modified_at,
        }
        if self.history:
            out["versions"] = [h.to_dict() for h in self.history]
        return out

    @classmethod
    def from_dict(cls, obj: Any) -> ItemRecord:
        """
        Validate a decoded item record.

        Missing `encryptionMode` defaults to GCM; missing `versions` to none.
        """
        s = _SCHEMA
        obj = s.mapping(obj)
        version = s.version(obj, ITEM_RECORD_VERSION)

        mode = obj.get("encryptionMode", "GCM")
        history: Tuple[HistoryEntry, ...] = ()
        if "versions" in obj:
            history = tuple(HistoryEntry.from_dict(v) for v in s.array(obj["versions"]))

        return cls(
            cid=s.text(obj.get("cid"), non_empty=True),
            file_key_encrypted=s.hex_bytes(obj.get("fileKeyEncrypted")),
            file_iv=s.hex_bytes(obj.get("fileIv")),
            size=s.integer(obj.get("size")),
            mime_type=s.text(obj.get("mimeType")),
            created_at=s.number(obj.get("createdAt")),
            modified_at=s.number(obj.get("modifiedAt")),
            cipher_mode=CipherMode(s.one_of(mode, ("GCM", "CTR"))),
            history=history,
            version=version,
        )

    def current_entry(self, timestamp: float) -> HistoryEntry:
        """The current content expressed as a history entry."""
        return HistoryEntry(
            cid=self.cid,
            file_key_encrypted=self.file_key_encrypted,
            file_iv=self.file_iv,
            size=self.size,
            timestamp=timestamp,
            cipher_mode=self.cipher_mode,
        )


# =============================================================================
# Encryption
# =============================================================================

def encrypt_item_record(record: ItemRecord, parent_key: BytesLike) -> AeadEnvelope:
    return AeadEnvelope.encrypt(dump_json(record.to_dict()), parent_key)


def decrypt_item_record(
    envelope: Union[AeadEnvelope, Dict[str, Any]],
    parent_key: BytesLike,
) -> ItemRecord:
    """
    Decrypt and validate an item record.

    Raises:
        DecryptionFailed: Wrong key or tampered ciphertext
        SchemaValidationFailed: Decrypted document is malformed
    """
    if not isinstance(envelope, AeadEnvelope):
        envelope = AeadEnvelope.from_dict(envelope)
    return ItemRecord.from_dict(_SCHEMA.load(envelope.decrypt(parent_key)))


# =============================================================================
# History Policy
# =============================================================================

def should_record_history(
    record: ItemRecord,
    now: float,
    force: bool = False,
    policy: HistoryPolicy = HISTORY_POLICY,
) -> bool:
    """
    Whether superseded content should be kept as a history entry.

    True when forced, when there is no history yet, or when the newest
    entry is at least `policy.min_interval_ms` old.
    """
    if force or not record.history:
        return True
    return now - record.history[0].timestamp >= policy.min_interval_ms


def _cap(entries: List[HistoryEntry], policy: HistoryPolicy) -> Tuple[Tuple[HistoryEntry, ...], List[HistoryEntry]]:
    return tuple(entries[:policy.max_entries]), entries[policy.max_entries:]


def record_new_content(
    record: ItemRecord,
    cid: str,
    file_key_encrypted: bytes,
    file_iv: bytes,
    size: int,
    now: float,
    cipher_mode: Optional[CipherMode] = None,
    force: bool = False,
    policy: HistoryPolicy = HISTORY_POLICY,
) -> Tuple[ItemRecord, List[HistoryEntry]]:
    """
    Replace an item's content, applying the history policy.

    Returns:
        (updated record, dropped entries). Dropped entries are content that
        is no longer referenced: pruned history, or the superseded content
        itself when it was not kept. Callers unpin their content pointers.
    """
    superseded = record.current_entry(now)
    if should_record_history(record, now, force, policy):
        history, dropped = _cap([superseded] + list(record.history), policy)
    else:
        history, dropped = record.history, [superseded]

    updated = replace(
        record,
        cid=cid,
        file_key_encrypted=file_key_encrypted,
        file_iv=file_iv,
        size=size,
        cipher_mode=cipher_mode or record.cipher_mode,
        modified_at=now,
        history=history,
    )
    logger.debug("Item content replaced (%d history, %d dropped)", len(history), len(dropped))
    return updated, dropped


def restore_history_entry(
    record: ItemRecord,
    index: int,
    now: float,
    policy: HistoryPolicy = HISTORY_POLICY,
) -> Tuple[ItemRecord, List[HistoryEntry]]:
    """
    Make history entry `index` (0 = newest) current again.

    The current content becomes the newest history entry, so restoring is
    never destructive (beyond the entry cap).

    Raises:
        InvalidInput: If index is out of range
    """
    if not 0 <= index < len(record.history):
        raise InvalidInput("Invalid history index")

    target = record.history[index]
    remaining = [h for i, h in enumerate(record.history) if i != index]
    history, dropped = _cap([record.current_entry(now)] + remaining, policy)

    updated = replace(
        record,
        cid=target.cid,
        file_key_encrypted=target.file_key_encrypted,
        file_iv=target.file_iv,
        size=target.size,
        cipher_mode=target.cipher_mode,
        modified_at=now,
        history=history,
    )
    return updated, dropped


def delete_history_entry(record: ItemRecord, index: int) -> Tuple[ItemRecord, HistoryEntry]:
    """
    Remove one history entry.

    Returns:
        (updated record, removed entry)

    Raises:
        InvalidInput: If index is out of range
    """
    if not 0 <= index < len(record.history):
        raise InvalidInput("Invalid history index")
    removed = record.history[index]
    history = tuple(h for i, h in enumerate(record.history) if i != index)
    return replace(record, history=history), removed
