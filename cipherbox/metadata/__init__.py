# cipherbox/metadata/__init__.py
"""
CipherBox Metadata Module

Encrypted structured documents:
  - listing:   container listings (AES-GCM under the container key)
  - item:      per-item records + version history (AES-GCM under the parent key)
  - registry:  device registry (ECIES to the owner)
"""

from .listing import (
    LISTING_VERSION,
    ContainerListing,
    SubcontainerRef,
    ItemPointerRef,
    encrypt_listing,
    decrypt_listing,
)
from .item import (
    ITEM_RECORD_VERSION,
    CipherMode,
    HistoryEntry,
    ItemRecord,
    encrypt_item_record,
    decrypt_item_record,
    should_record_history,
    record_new_content,
    restore_history_entry,
    delete_history_entry,
)
from .registry import (
    REGISTRY_VERSION,
    DeviceKeypair,
    DeviceRecord,
    DeviceRegistry,
    derive_device_id,
    generate_device_keypair,
    encrypt_device_registry,
    decrypt_device_registry,
)

__all__ = [
    "LISTING_VERSION",
    "ContainerListing",
    "SubcontainerRef",
    "ItemPointerRef",
    "encrypt_listing",
    "decrypt_listing",
    "ITEM_RECORD_VERSION",
    "CipherMode",
    "HistoryEntry",
    "ItemRecord",
    "encrypt_item_record",
    "decrypt_item_record",
    "should_record_history",
    "record_new_content",
    "restore_history_entry",
    "delete_history_entry",
    "REGISTRY_VERSION",
    "DeviceKeypair",
    "DeviceRecord",
    "DeviceRegistry",
    "derive_device_id",
    "generate_device_keypair",
    "encrypt_device_registry",
    "decrypt_device_registry",
]
