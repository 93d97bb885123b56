# cipherbox/sharing/share.py
"""
CipherBox Sharing

Grants another user read access to a container or item by re-wrapping
its key (and, for a container, every descendant key) from the owner to
the recipient. The relay only ever sees wrapped keys.

Subtree Share:
    1. collect_descendant_keys() walks the container depth-first and lists
       every descendant key still wrapped to the owner
    2. share_subtree() re-wraps the root and each descendant on a bounded
       thread pool, then joins
    3. Any single failure cancels pending work and raises ShareAborted
       naming the item, so no partially shared subtree is ever returned
"""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from ..crypto.common import BytesLike, CryptoError, KeyRewrapFailed
from ..crypto.ecies import rewrap_key, unwrap_key, validate_public_key
from ..metadata.item import ItemRecord
from ..metadata.listing import ContainerListing, ItemPointerRef, SubcontainerRef
from ..params import SHARE_FANOUT


logger = logging.getLogger("cipherbox.share")

KEY_TYPE_FOLDER = "folder"
KEY_TYPE_FILE = "file"


class ShareAborted(CryptoError):
    """
    A subtree share failed; nothing from it may be used.

    Attributes:
        item_id: The item whose key failed to re-wrap ("root" for the
            shared container's own key)
    """
    code = "SHARE_ABORTED"

    def __init__(self, item_id: str, message: str = "Share aborted"):
        self.item_id = item_id
        super().__init__(message)


@dataclass(frozen=True)
class ChildKey:
    """A descendant key, ECIES-wrapped (to the owner before sharing, to the recipient after)."""
    item_id: str
    key_type: str
    wrapped: bytes


@dataclass(frozen=True)
class ShareBundle:
    root_key_wrapped: bytes
    child_keys: List[ChildKey] = field(default_factory=list)


def share_key(owner_private_key: BytesLike, wrapped_for_owner: BytesLike, recipient_public_key: BytesLike) -> bytes:
    """Re-wrap one key from the owner to a recipient."""
    return rewrap_key(wrapped_for_owner, owner_private_key, recipient_public_key)


# =============================================================================
# Traversal
# =============================================================================

ListingLoader = Callable[[SubcontainerRef, BytesLike], ContainerListing]
ItemLoader = Callable[[ItemPointerRef, BytesLike], ItemRecord]


def collect_descendant_keys(
    listing: ContainerListing,
    container_key: BytesLike,
    owner_private_key: BytesLike,
    load_listing: ListingLoader,
    load_item: ItemLoader,
) -> List[ChildKey]:
    """
    List every descendant key of a container, depth-first.

    A subcontainer's key comes before its own descendants. Loaders are
    called with the reference and the plaintext key of its parent
    container, and return the decrypted listing or item record.
    """
    out: List[ChildKey] = []
    for child in listing.children:
        if isinstance(child, SubcontainerRef):
            out.append(ChildKey(child.id, KEY_TYPE_FOLDER, child.folder_key_encrypted))
            with unwrap_key(child.folder_key_encrypted, owner_private_key) as sub_key:
                sub_listing = load_listing(child, sub_key)
                out.extend(collect_descendant_keys(
                    sub_listing, sub_key, owner_private_key, load_listing, load_item,
                ))
        else:
            record = load_item(child, container_key)
            out.append(ChildKey(child.id, KEY_TYPE_FILE, record.file_key_encrypted))
    return out


# =============================================================================
# Parallel Re-wrap
# =============================================================================

def share_subtree(
    owner_private_key: BytesLike,
    root_wrapped: BytesLike,
    descendants: Sequence[ChildKey],
    recipient_public_key: BytesLike,
    max_workers: Optional[int] = SHARE_FANOUT,
) -> ShareBundle:
    """
    Re-wrap a container key and all its descendant keys for a recipient.

    Returns:
        ShareBundle with child keys in the same order as `descendants`

    Raises:
        KeyWrapFailed: If the recipient public key is invalid
        ShareAborted: If any single re-wrap fails
    """
    validate_public_key(recipient_public_key)

    try:
        root = share_key(owner_private_key, root_wrapped, recipient_public_key)
    except KeyRewrapFailed:
        raise ShareAborted("root") from None

    if not descendants:
        return ShareBundle(root_key_wrapped=root)

    def _rewrap(child: ChildKey) -> ChildKey:
        return ChildKey(
            child.item_id,
            child.key_type,
            share_key(owner_private_key, child.wrapped, recipient_public_key),
        )

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(_rewrap, c) for c in descendants]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)

        for future, child in zip(futures, descendants):
            if future in done and future.exception() is not None:
                for p in pending:
                    p.cancel()
                logger.debug(
                    "Subtree share aborted at %s (%d pending cancelled)",
                    child.item_id, len(pending),
                )
                raise ShareAborted(child.item_id) from None

    rewrapped = [f.result() for f in futures]
    logger.debug("Shared subtree: root + %d descendants", len(rewrapped))
    return ShareBundle(root_key_wrapped=root, child_keys=rewrapped)
