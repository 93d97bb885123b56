# cipherbox/sharing/rotation.py
"""
CipherBox Lazy Key Rotation

Revoking a share does not re-encrypt anything immediately. The grant moves
to REVOKED_PENDING_ROTATION and keeps its wrapped key; the next structural
write by the owner runs rotate_container(), and only once the rotated
container is published for every remaining recipient does
complete_rotation() discard the revoked grants.

Grant States:
    ACTIVE ──revoke()──▶ REVOKED_PENDING_ROTATION ──complete_rotation()──▶ ROTATION_COMPLETE

Rotation:
    1. Fresh container key
    2. Item records of the container's items re-encrypted under it
    3. Subcontainer key references re-issued (fresh wraps to the owner)
    4. Listing re-encrypted under it
    5. New key wrapped to the owner and to every ACTIVE recipient

A revoked recipient keeps what it already fetched with the old key but
cannot read anything encrypted after step 1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

from ..crypto.aead import AeadEnvelope
from ..crypto.common import (
    BytesLike,
    CryptoError,
    InvalidInput,
    KeyWrapFailed,
    SecretBuffer,
    bytes_to_hex,
    generate_key,
)
from ..crypto.ecies import rewrap_key, wrap_key
from ..metadata.item import ItemRecord, encrypt_item_record
from ..metadata.listing import ContainerListing, SubcontainerRef, encrypt_listing


logger = logging.getLogger("cipherbox.rotation")


class InvalidShareTransition(CryptoError):
    code = "INVALID_SHARE_TRANSITION"

    def __init__(self, message: str = "Invalid share state transition"):
        super().__init__(message)


class ShareState(str, Enum):
    ACTIVE = "active"
    REVOKED_PENDING_ROTATION = "revoked_pending_rotation"
    ROTATION_COMPLETE = "rotation_complete"


@dataclass
class ShareGrant:
    """
    One recipient's access to one container.

    Attributes:
        share_id: Caller-assigned identifier
        recipient_public_key: 65-byte secp256k1 key of the recipient
        wrapped_root_key: Container key wrapped to the recipient; None once
            the grant has been discarded
        state: Lifecycle state
    """
    share_id: str
    recipient_public_key: bytes
    wrapped_root_key: Optional[bytes]
    state: ShareState = ShareState.ACTIVE

    @property
    def recipient_id(self) -> str:
        return bytes_to_hex(self.recipient_public_key)

    def revoke(self) -> None:
        if self.state is not ShareState.ACTIVE:
            raise InvalidShareTransition()
        self.state = ShareState.REVOKED_PENDING_ROTATION
        logger.debug("Share %s revoked, pending rotation", self.share_id)

    def _discard(self) -> None:
        if self.state is not ShareState.REVOKED_PENDING_ROTATION:
            raise InvalidShareTransition()
        self.state = ShareState.ROTATION_COMPLETE
        self.wrapped_root_key = None


@dataclass
class RotationResult:
    """
    Output of rotate_container(); nothing here has been published yet.

    The new container key is plaintext; wipe() (or use as a context
    manager) once the caller has finished with it.
    """
    container_key: SecretBuffer = field(repr=False)
    listing: ContainerListing
    listing_envelope: AeadEnvelope
    item_envelopes: Dict[str, AeadEnvelope]
    owner_wrapped_key: bytes
    recipient_wrapped_keys: Dict[str, bytes]
    failed_recipients: List[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.failed_recipients

    def wipe(self) -> None:
        self.container_key.wipe()

    def __enter__(self) -> RotationResult:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()


def _reissue_subcontainer(ref: SubcontainerRef, owner_private_key: BytesLike, owner_public_key: BytesLike) -> SubcontainerRef:
    return replace(
        ref,
        folder_key_encrypted=rewrap_key(ref.folder_key_encrypted, owner_private_key, owner_public_key),
        ipns_private_key_encrypted=rewrap_key(ref.ipns_private_key_encrypted, owner_private_key, owner_public_key),
    )


def rotate_container(
    listing: ContainerListing,
    items: Mapping[str, ItemRecord],
    owner_private_key: BytesLike,
    owner_public_key: BytesLike,
    grants: Sequence[ShareGrant],
) -> RotationResult:
    """
    Rotate a container's key.

    Args:
        listing: Current decrypted listing
        items: Decrypted item records of every item in the listing, by id
        owner_private_key / owner_public_key: The owner's secp256k1 keys
        grants: All grants on this container; ACTIVE ones are the
            remaining recipients

    Raises:
        InvalidInput: If an item of the listing is missing from `items`
        KeyRewrapFailed: If a subcontainer reference cannot be re-issued
        KeyWrapFailed: If the new key cannot be wrapped to the owner

    A recipient whose wrap fails is reported in `failed_recipients`
    instead of raising, so the caller can see the rotation is partial.
    """
    missing = [c.id for c in listing.items if c.id not in items]
    if missing:
        raise InvalidInput("Missing item records for rotation")

    new_key = generate_key()
    try:
        children = []
        for child in listing.children:
            if isinstance(child, SubcontainerRef):
                child = _reissue_subcontainer(child, owner_private_key, owner_public_key)
            children.append(child)
        new_listing = ContainerListing(children=children, version=listing.version)

        item_envelopes = {
            c.id: encrypt_item_record(items[c.id], new_key) for c in listing.items
        }
        listing_envelope = encrypt_listing(new_listing, new_key)
        owner_wrapped = wrap_key(new_key, owner_public_key)

        recipient_keys: Dict[str, bytes] = {}
        failed: List[str] = []
        for grant in grants:
            if grant.state is not ShareState.ACTIVE:
                continue
            try:
                recipient_keys[grant.recipient_id] = wrap_key(new_key, grant.recipient_public_key)
            except KeyWrapFailed:
                failed.append(grant.recipient_id)
    except Exception:
        new_key.wipe()
        raise

    logger.debug(
        "Rotated container: %d items, %d recipients, %d failed",
        len(item_envelopes), len(recipient_keys), len(failed),
    )
    return RotationResult(
        container_key=new_key,
        listing=new_listing,
        listing_envelope=listing_envelope,
        item_envelopes=item_envelopes,
        owner_wrapped_key=owner_wrapped,
        recipient_wrapped_keys=recipient_keys,
        failed_recipients=failed,
    )


def complete_rotation(
    result: RotationResult,
    grants: Sequence[ShareGrant],
    published: bool = True,
) -> List[ShareGrant]:
    """
    Finish a rotation once its output has been published.

    Active grants receive their new wrapped key and revoked grants move to
    ROTATION_COMPLETE, but only if the caller confirms publication and
    every active recipient has a new wrapped key and no revoked recipient
    does. A grant revoked after rotate_container() ran already holds the new
    key, so that rotation cannot complete its revocation; nothing changes
    and revoked grants stay pending for the next rotation.

    Returns:
        Grants that moved to ROTATION_COMPLETE
    """
    active = [g for g in grants if g.state is ShareState.ACTIVE]
    if not published or not result.is_complete:
        return []
    if any(g.recipient_id not in result.recipient_wrapped_keys for g in active):
        return []
    active_ids = {g.recipient_id for g in active}
    if any(
        g.state is ShareState.REVOKED_PENDING_ROTATION
        and g.recipient_id in result.recipient_wrapped_keys
        and g.recipient_id not in active_ids
        for g in grants
    ):
        logger.debug("Rotation included a revoked recipient; revocations stay pending")
        return []

    for grant in active:
        grant.wrapped_root_key = result.recipient_wrapped_keys[grant.recipient_id]

    completed = []
    for grant in grants:
        if grant.state is ShareState.REVOKED_PENDING_ROTATION:
            grant._discard()
            completed.append(grant)
    logger.debug("Rotation complete: %d grants discarded", len(completed))
    return completed
