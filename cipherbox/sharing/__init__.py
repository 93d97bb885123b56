# cipherbox/sharing/__init__.py
"""
CipherBox Sharing Module

  - share:     owner-to-recipient re-wrap, parallel subtree sharing
  - rotation:  share grant lifecycle and lazy container key rotation
"""

from .share import (
    KEY_TYPE_FILE,
    KEY_TYPE_FOLDER,
    ChildKey,
    ShareAborted,
    ShareBundle,
    share_key,
    collect_descendant_keys,
    share_subtree,
)
from .rotation import (
    InvalidShareTransition,
    ShareState,
    ShareGrant,
    RotationResult,
    rotate_container,
    complete_rotation,
)

__all__ = [
    "KEY_TYPE_FILE",
    "KEY_TYPE_FOLDER",
    "ChildKey",
    "ShareAborted",
    "ShareBundle",
    "share_key",
    "collect_descendant_keys",
    "share_subtree",
    "InvalidShareTransition",
    "ShareState",
    "ShareGrant",
    "RotationResult",
    "rotate_container",
    "complete_rotation",
]
