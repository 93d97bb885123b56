# cipherbox/vault/__init__.py
"""
CipherBox Vault Module

  - container:  per-container key bundles, wrap / unwrap for storage
  - export:     recovery document and the offline recovery walk
"""

from .container import (
    ContainerRootBundle,
    WrappedContainerBundle,
    init_container,
    wrap_container_bundle,
    unwrap_container_bundle,
)
from .export import (
    EXPORT_FORMAT,
    EXPORT_VERSION,
    VaultExport,
    build_export,
    parse_export,
    recover_root,
    RecordResolver,
    InMemoryResolver,
    content_pointer,
    RecoveredEntry,
    walk_container_tree,
)

__all__ = [
    "ContainerRootBundle",
    "WrappedContainerBundle",
    "init_container",
    "wrap_container_bundle",
    "unwrap_container_bundle",
    "EXPORT_FORMAT",
    "EXPORT_VERSION",
    "VaultExport",
    "build_export",
    "parse_export",
    "recover_root",
    "RecordResolver",
    "InMemoryResolver",
    "content_pointer",
    "RecoveredEntry",
    "walk_container_tree",
]
