# cipherbox/naming/record.py
"""
CipherBox Address Records

A signed, sequence-numbered record that points a mutable address name at
an immutable content pointer (for example "/ipfs/bafy...").

Record Body (CBOR map, keys in this fixed order):
    TTL           uint   cache hint in nanoseconds
    Value         bytes  content pointer
    Sequence      uint   strictly increasing per address
    Validity      bytes  RFC 3339 expiry, "YYYY-MM-DDTHH:MM:SS.nnnnnnnnnZ"
    ValidityType  uint   0 = EOL (end of life)

Signatures:
    signature_v2  Ed25519("ipns-signature:" || body)          required
    signature_v1  Ed25519(value || validity || "EOL")         legacy, optional

The outer record repeats the body fields so that older readers can use
them; verify_record() checks that both copies agree.

Usage:
    from cipherbox.naming import create_record, verify_record

    record = create_record(keypair.private_key, "/ipfs/bafy...", sequence=1)
    assert verify_record(record, keypair.public_key)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

import cbor2

from ..crypto.common import BytesLike, InvalidInput
from ..crypto.signing import sign, verify
from ..params import RECORD_DEFAULTS


logger = logging.getLogger("cipherbox.record")

_LEGACY_EOL = b"EOL"

_VALIDITY_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?Z$"
)

_BODY_KEYS = ("TTL", "Value", "Sequence", "Validity", "ValidityType")


# =============================================================================
# Record
# =============================================================================

@dataclass(frozen=True)
class AddressRecord:
    """
    Signed address record.

    Attributes:
        value: Content pointer bytes
        validity: RFC 3339 expiry as ASCII bytes
        validity_type: 0 (EOL)
        sequence: Monotonic sequence number
        ttl_ns: Cache TTL in nanoseconds
        signature_v2: Signature over the prefixed CBOR body
        data: CBOR body
        signature_v1: Legacy signature, if present
        public_key: Embedded 32-byte public key, if present
    """
    value: bytes
    validity: bytes
    validity_type: int
    sequence: int
    ttl_ns: int
    signature_v2: bytes
    data: bytes
    signature_v1: Optional[bytes] = None
    public_key: Optional[bytes] = None

    @property
    def value_text(self) -> str:
        return self.value.decode("utf-8", errors="replace")

    @property
    def expires_at(self) -> datetime:
        """Expiry as an aware UTC datetime (sub-microsecond digits truncated)."""
        return parse_validity(self.validity)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now >= self.expires_at


# =============================================================================
# Validity Timestamps
# =============================================================================

def format_validity(when: datetime) -> bytes:
    """Format an expiry time as RFC 3339 UTC with nanosecond precision."""
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    when = when.astimezone(timezone.utc)
    text = when.strftime("%Y-%m-%dT%H:%M:%S") + f".{when.microsecond * 1000:09d}Z"
    return text.encode("ascii")


def parse_validity(validity: BytesLike) -> datetime:
    """
    Parse an RFC 3339 UTC expiry.

    Raises:
        InvalidInput: If the text is not in the expected form
    """
    try:
        text = bytes(validity).decode("ascii")
    except UnicodeDecodeError:
        raise InvalidInput("Invalid validity") from None

    match = _VALIDITY_RE.match(text)
    if match is None:
        raise InvalidInput("Invalid validity")

    year, month, day, hour, minute, second, frac = match.groups()
    micro = int((frac or "0").ljust(9, "0")[:6])
    try:
        return datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second), micro,
            tzinfo=timezone.utc,
        )
    except ValueError:
        raise InvalidInput("Invalid validity") from None


# =============================================================================
# Body
# =============================================================================

def encode_body(value: bytes, validity: bytes, sequence: int, ttl_ns: int, validity_type: int = 0) -> bytes:
    """CBOR-encode the signed body with keys in canonical record order."""
    return cbor2.dumps({
        "TTL": ttl_ns,
        "Value": value,
        "Sequence": sequence,
        "Validity": validity,
        "ValidityType": validity_type,
    })


def decode_body(data: BytesLike) -> dict:
    """
    Decode and shape-check a record body.

    Raises:
        InvalidInput: If the body is not a CBOR map with the five record fields
    """
    try:
        body = cbor2.loads(bytes(data))
    except (cbor2.CBORDecodeError, ValueError, TypeError):
        raise InvalidInput("Invalid record body") from None

    if not isinstance(body, dict) or set(body.keys()) != set(_BODY_KEYS):
        raise InvalidInput("Invalid record body")
    for key in ("TTL", "Sequence", "ValidityType"):
        if not isinstance(body[key], int) or isinstance(body[key], bool) or body[key] < 0:
            raise InvalidInput("Invalid record body")
    for key in ("Value", "Validity"):
        if not isinstance(body[key], bytes):
            raise InvalidInput("Invalid record body")
    return body


def _legacy_payload(value: bytes, validity: bytes) -> bytes:
    return value + validity + _LEGACY_EOL


# =============================================================================
# Create / Verify
# =============================================================================

def create_record(
    signing_private_key: BytesLike,
    value: Union[str, bytes],
    sequence: int,
    lifetime_ms: int = RECORD_DEFAULTS.lifetime_ms,
    ttl_ns: int = RECORD_DEFAULTS.ttl_ns,
    now: Optional[datetime] = None,
    legacy_signature: bool = True,
) -> AddressRecord:
    """
    Create and sign an address record.

    Args:
        signing_private_key: 32-byte Ed25519 seed of the address
        value: Content pointer ("/ipfs/<cid>")
        sequence: Must exceed the sequence of the last published record
        lifetime_ms: Validity window from `now`
        ttl_ns: Cache TTL hint
        now: Creation time (defaults to the current UTC time)
        legacy_signature: Also emit the legacy signature

    Raises:
        InvalidInput: On a negative sequence, lifetime or TTL
        SigningFailed: If the key is not 32 bytes
    """
    if not isinstance(sequence, int) or sequence < 0:
        raise InvalidInput("Invalid sequence number")
    if lifetime_ms < 0 or ttl_ns < 0:
        raise InvalidInput("Invalid record lifetime")

    value_bytes = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    now = now or datetime.now(timezone.utc)
    validity = format_validity(now + timedelta(milliseconds=lifetime_ms))

    data = encode_body(value_bytes, validity, sequence, ttl_ns, RECORD_DEFAULTS.validity_type)
    signature_v2 = sign(RECORD_DEFAULTS.signature_prefix + data, signing_private_key)
    signature_v1 = None
    if legacy_signature:
        signature_v1 = sign(_legacy_payload(value_bytes, validity), signing_private_key)

    logger.debug("Created record seq=%d (%d-byte body)", sequence, len(data))
    return AddressRecord(
        value=value_bytes,
        validity=validity,
        validity_type=RECORD_DEFAULTS.validity_type,
        sequence=sequence,
        ttl_ns=ttl_ns,
        signature_v2=signature_v2,
        data=data,
        signature_v1=signature_v1,
    )


def verify_record(record: AddressRecord, public_key: BytesLike) -> bool:
    """
    Check a record against the address's public key.

    Passes only if the primary signature verifies, the body decodes and
    agrees with the outer fields, any embedded public key matches, and the
    legacy signature (when present) verifies.
    """
    if record.public_key is not None and bytes(record.public_key) != bytes(public_key):
        return False

    if not verify(record.signature_v2, RECORD_DEFAULTS.signature_prefix + record.data, public_key):
        return False

    try:
        body = decode_body(record.data)
    except InvalidInput:
        return False

    if (
        body["Value"] != record.value
        or body["Validity"] != record.validity
        or body["Sequence"] != record.sequence
        or body["TTL"] != record.ttl_ns
        or body["ValidityType"] != record.validity_type
    ):
        return False

    if record.signature_v1 is not None:
        payload = _legacy_payload(record.value, record.validity)
        if not verify(record.signature_v1, payload, public_key):
            return False

    return True
