# tests/test_sharing.py
"""
CipherBox Sharing and Rotation Test Suite

Categories:
  R1. Single-key share
  R2. Descendant key collection
  R3. Parallel subtree share (ordering, abort)
  R4. Grant lifecycle
  R5. Lazy rotation (fresh key, re-encryption, completion gating)
"""

import pytest

from cipherbox.crypto.common import (
    DecryptionFailed,
    InvalidInput,
    KeyWrapFailed,
    generate_key,
)
from cipherbox.crypto.ecies import generate_user_keypair, unwrap_key, wrap_key
from cipherbox.metadata.item import ItemRecord, decrypt_item_record
from cipherbox.metadata.listing import (
    ContainerListing,
    ItemPointerRef,
    SubcontainerRef,
    decrypt_listing,
)
from cipherbox.sharing.rotation import (
    InvalidShareTransition,
    ShareGrant,
    ShareState,
    complete_rotation,
    rotate_container,
)
from cipherbox.sharing.share import (
    KEY_TYPE_FILE,
    KEY_TYPE_FOLDER,
    ChildKey,
    ShareAborted,
    collect_descendant_keys,
    share_key,
    share_subtree,
)


T0 = 1_700_000_000_000


def _item_record(owner, content_key):
    return ItemRecord(
        cid="bafkreiexample",
        file_key_encrypted=wrap_key(content_key, owner.public_key),
        file_iv=bytes(12),
        size=10,
        mime_type="text/plain",
        created_at=T0,
        modified_at=T0,
    )


def _subcontainer(owner, ref_id, key):
    return SubcontainerRef(
        id=ref_id,
        name=ref_id,
        ipns_name=f"k51qzi5uqu5{ref_id}",
        ipns_private_key_encrypted=wrap_key(bytes(32), owner.public_key),
        folder_key_encrypted=wrap_key(key, owner.public_key),
        created_at=T0,
        modified_at=T0,
    )


def _pointer(ref_id):
    return ItemPointerRef(ref_id, ref_id, f"k51qzi5uqu5{ref_id}", T0, T0)


@pytest.fixture
def tree(user):
    """
    root/
      f1/
        i2
      i1
    """
    keys = {"f1": generate_key(), "i1": generate_key(), "i2": generate_key()}
    listings = {
        "root": ContainerListing(children=[_subcontainer(user, "f1", keys["f1"]), _pointer("i1")]),
        "f1": ContainerListing(children=[_pointer("i2")]),
    }
    records = {
        "i1": _item_record(user, keys["i1"]),
        "i2": _item_record(user, keys["i2"]),
    }
    return keys, listings, records


# =============================================================================
# R1. Single Key
# =============================================================================

def test_r1_1_share_key(user, other_user):
    key = generate_key()
    shared = share_key(user.private_key, wrap_key(key, user.public_key), other_user.public_key)
    assert unwrap_key(shared, other_user.private_key) == key


# =============================================================================
# R2. Collection
# =============================================================================

def test_r2_1_depth_first_order(user, tree):
    keys, listings, records = tree
    seen_parent_keys = []

    def load_listing(ref, key):
        seen_parent_keys.append(bytes(key))
        return listings[ref.id]

    def load_item(ref, parent_key):
        return records[ref.id]

    collected = collect_descendant_keys(
        listings["root"], generate_key(), user.private_key, load_listing, load_item,
    )
    assert [(c.item_id, c.key_type) for c in collected] == [
        ("f1", KEY_TYPE_FOLDER),
        ("i2", KEY_TYPE_FILE),
        ("i1", KEY_TYPE_FILE),
    ]
    assert seen_parent_keys == [bytes(keys["f1"])]


# =============================================================================
# R3. Subtree Share
# =============================================================================

def _descendants(user, count):
    return [
        ChildKey(f"item-{i}", KEY_TYPE_FILE, wrap_key(bytes([i]) * 32, user.public_key))
        for i in range(count)
    ]


def test_r3_1_all_keys_rewrapped_in_order(user, other_user):
    root_key = generate_key()
    descendants = _descendants(user, 20)
    bundle = share_subtree(
        user.private_key, wrap_key(root_key, user.public_key), descendants, other_user.public_key,
        max_workers=4,
    )
    assert unwrap_key(bundle.root_key_wrapped, other_user.private_key) == root_key
    assert [c.item_id for c in bundle.child_keys] == [c.item_id for c in descendants]
    for i, child in enumerate(bundle.child_keys):
        assert unwrap_key(child.wrapped, other_user.private_key) == bytes([i]) * 32


def test_r3_2_empty_subtree(user, other_user):
    bundle = share_subtree(user.private_key, wrap_key(generate_key(), user.public_key), [], other_user.public_key)
    assert bundle.child_keys == []


def test_r3_3_bad_child_aborts(user, other_user):
    descendants = _descendants(user, 6)
    descendants[3] = ChildKey("broken-item", KEY_TYPE_FILE, b"\x04" + bytes(120))
    with pytest.raises(ShareAborted) as excinfo:
        share_subtree(
            user.private_key, wrap_key(generate_key(), user.public_key), descendants, other_user.public_key,
        )
    assert excinfo.value.item_id == "broken-item"
    assert excinfo.value.code == "SHARE_ABORTED"


def test_r3_4_bad_root_aborts(user, other_user):
    with pytest.raises(ShareAborted) as excinfo:
        share_subtree(user.private_key, bytes(97), _descendants(user, 2), other_user.public_key)
    assert excinfo.value.item_id == "root"


def test_r3_5_invalid_recipient(user):
    with pytest.raises(KeyWrapFailed):
        share_subtree(user.private_key, wrap_key(generate_key(), user.public_key), [], b"\x04" + bytes(64))


# =============================================================================
# R4. Grant Lifecycle
# =============================================================================

def _grant(share_id):
    recipient = generate_user_keypair()
    return ShareGrant(share_id, recipient.public_key, b"old-wrap"), recipient


def test_r4_1_revoke_once():
    grant, _ = _grant("s1")
    grant.revoke()
    assert grant.state is ShareState.REVOKED_PENDING_ROTATION
    assert grant.wrapped_root_key == b"old-wrap"
    with pytest.raises(InvalidShareTransition):
        grant.revoke()


# =============================================================================
# R5. Rotation
# =============================================================================

def test_r5_1_rotation_produces_fresh_key(user, tree, container_key):
    _, listings, records = tree
    old_key = bytes(container_key)
    keep, keep_keys = _grant("keep")
    gone, _ = _grant("gone")
    gone.revoke()

    with rotate_container(listings["root"], records, user.private_key, user.public_key, [keep, gone]) as result:
        assert bytes(result.container_key) != old_key
        assert unwrap_key(result.owner_wrapped_key, user.private_key) == result.container_key
        assert set(result.recipient_wrapped_keys) == {keep.recipient_id}
        assert result.is_complete

        listing = decrypt_listing(result.listing_envelope, result.container_key)
        assert [c.id for c in listing.children] == ["f1", "i1"]
        assert decrypt_item_record(result.item_envelopes["i1"], result.container_key) == records["i1"]

        with pytest.raises(DecryptionFailed):
            decrypt_listing(result.listing_envelope, old_key)
        with pytest.raises(DecryptionFailed):
            decrypt_item_record(result.item_envelopes["i1"], old_key)

        new_wrap = result.recipient_wrapped_keys[keep.recipient_id]
        assert unwrap_key(new_wrap, keep_keys.private_key) == result.container_key
    assert result.container_key.is_wiped


def test_r5_2_subcontainer_refs_reissued(user, tree):
    keys, listings, records = tree
    original = listings["root"].subcontainers[0]
    with rotate_container(listings["root"], records, user.private_key, user.public_key, []) as result:
        reissued = result.listing.subcontainers[0]
    assert reissued.folder_key_encrypted != original.folder_key_encrypted
    assert unwrap_key(reissued.folder_key_encrypted, user.private_key) == keys["f1"]
    assert reissued.ipns_name == original.ipns_name


def test_r5_3_missing_item_record(user, tree):
    _, listings, records = tree
    with pytest.raises(InvalidInput):
        rotate_container(listings["root"], {}, user.private_key, user.public_key, [])


def test_r5_4_complete_discards_revoked(user, tree):
    _, listings, records = tree
    keep, _ = _grant("keep")
    gone, _ = _grant("gone")
    gone.revoke()
    grants = [keep, gone]

    with rotate_container(listings["root"], records, user.private_key, user.public_key, grants) as result:
        completed = complete_rotation(result, grants)

    assert completed == [gone]
    assert gone.state is ShareState.ROTATION_COMPLETE
    assert gone.wrapped_root_key is None
    assert keep.state is ShareState.ACTIVE
    assert keep.wrapped_root_key == result.recipient_wrapped_keys[keep.recipient_id]


def test_r5_5_unpublished_rotation_keeps_pending(user, tree):
    _, listings, records = tree
    keep, _ = _grant("keep")
    gone, _ = _grant("gone")
    gone.revoke()
    grants = [keep, gone]

    with rotate_container(listings["root"], records, user.private_key, user.public_key, grants) as result:
        assert complete_rotation(result, grants, published=False) == []

    assert gone.state is ShareState.REVOKED_PENDING_ROTATION
    assert gone.wrapped_root_key == b"old-wrap"
    assert keep.wrapped_root_key == b"old-wrap"


def test_r5_6_failed_recipient_blocks_completion(user, tree):
    _, listings, records = tree
    broken = ShareGrant("broken", b"\x04" + bytes(64), b"old-wrap")
    gone, _ = _grant("gone")
    gone.revoke()
    grants = [broken, gone]

    with rotate_container(listings["root"], records, user.private_key, user.public_key, grants) as result:
        assert not result.is_complete
        assert result.failed_recipients == [broken.recipient_id]
        assert complete_rotation(result, grants) == []

    assert gone.state is ShareState.REVOKED_PENDING_ROTATION


def test_r5_7_completed_grant_cannot_revoke(user, tree):
    _, listings, records = tree
    gone, _ = _grant("gone")
    gone.revoke()
    with rotate_container(listings["root"], records, user.private_key, user.public_key, [gone]) as result:
        complete_rotation(result, [gone])
    with pytest.raises(InvalidShareTransition):
        gone.revoke()


def test_r5_8_revoked_after_rotation_stays_pending(user, tree):
    _, listings, records = tree
    keep, _ = _grant("keep")
    late, late_keys = _grant("late")
    grants = [keep, late]

    with rotate_container(listings["root"], records, user.private_key, user.public_key, grants) as result:
        late.revoke()
        assert unwrap_key(result.recipient_wrapped_keys[late.recipient_id], late_keys.private_key) == result.container_key
        assert complete_rotation(result, grants) == []

    assert late.state is ShareState.REVOKED_PENDING_ROTATION
    assert keep.wrapped_root_key == b"old-wrap"

    with rotate_container(listings["root"], records, user.private_key, user.public_key, grants) as result:
        assert late.recipient_id not in result.recipient_wrapped_keys
        assert complete_rotation(result, grants) == [late]
    assert late.state is ShareState.ROTATION_COMPLETE
