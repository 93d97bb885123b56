# cipherbox/params.py
"""
CipherBox Protocol Parameters

Declares every constant that is part of the wire contract between
implementations: derivation domains, address-record defaults, the item
history policy and the share fan-out bound.

Derivation Domains:
    - root-container:  "cipherbox-vault-ipns-v1"
    - device-registry: "cipherbox-device-registry-ipns-v1"
    - item:            "cipherbox-file-ipns-v1:{item_id}"

All domains share the salt "CipherBox-v1". Changing any value here breaks
address discovery for already-published content.

Usage:
    from cipherbox.params import get_domain, RECORD_DEFAULTS

    domain = get_domain("item")
    info = domain.info_for("3f2a9c1e-77b4-4c36-9a1f-0c5d2e8b9a10")

Updated: 2026-02-11
Version: 1.0.0
"""

from dataclasses import dataclass
from typing import Dict, Optional


# =============================================================================
# Derivation Domains
# =============================================================================

HKDF_SALT: bytes = b"CipherBox-v1"


@dataclass(frozen=True)
class DerivationDomain:
    """HKDF info string for one family of derived signing keypairs."""
    name: str
    info: str
    requires_id: bool = False
    min_id_length: int = 0

    def info_for(self, item_id: Optional[str] = None) -> bytes:
        """Build the HKDF info bytes, embedding the identifier when required."""
        if not self.requires_id:
            if item_id is not None:
                raise ValueError(f"Domain {self.name!r} takes no identifier")
            return self.info.encode("utf-8")

        if not isinstance(item_id, str) or len(item_id) < self.min_id_length:
            raise ValueError(
                f"Domain {self.name!r} requires an identifier of at least "
                f"{self.min_id_length} characters"
            )
        return f"{self.info}:{item_id}".encode("utf-8")


DOMAINS: Dict[str, DerivationDomain] = {
    "root-container": DerivationDomain(
        name="root-container",
        info="cipherbox-vault-ipns-v1",
    ),
    "device-registry": DerivationDomain(
        name="device-registry",
        info="cipherbox-device-registry-ipns-v1",
    ),
    "item": DerivationDomain(
        name="item",
        info="cipherbox-file-ipns-v1",
        requires_id=True,
        min_id_length=10,
    ),
}


def get_domain(name: str) -> DerivationDomain:
    """
    Get derivation domain by name.

    Raises:
        ValueError: If the domain is unknown
    """
    if name not in DOMAINS:
        raise ValueError(f"Unknown derivation domain: {name!r}. Valid: {list(DOMAINS.keys())}")
    return DOMAINS[name]


# =============================================================================
# Address Records
# =============================================================================

@dataclass(frozen=True)
class RecordParams:
    """Defaults for newly created address records."""
    lifetime_ms: int
    ttl_ns: int
    validity_type: int       # 0 = EOL (end of life)
    signature_prefix: bytes


RECORD_DEFAULTS = RecordParams(
    lifetime_ms=24 * 60 * 60 * 1000,   # 24 hours
    ttl_ns=300 * 1_000_000_000,         # 5 minutes
    validity_type=0,
    signature_prefix=b"ipns-signature:",
)


# =============================================================================
# Item History
# =============================================================================

@dataclass(frozen=True)
class HistoryPolicy:
    """Retention rules for prior content versions of an item."""
    max_entries: int
    min_interval_ms: int


HISTORY_POLICY = HistoryPolicy(
    max_entries=10,
    min_interval_ms=15 * 60 * 1000,
)


# =============================================================================
# Sharing
# =============================================================================

# Upper bound on concurrent re-wraps while sharing a subtree
SHARE_FANOUT: int = 8
