# cipherbox/naming/validator.py
"""
CipherBox Record Validator

Acceptance rules for records fetched from an untrusted store:

    1. The record decodes and its signatures verify against the public key
       embedded in the address name
    2. The record has not expired
    3. Its sequence is strictly greater than the last sequence this
       validator accepted for the same address (rollback protection)

A rejected record raises RecordRejected with a generic message; the
validator's state is only advanced by accepted records.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Optional, Union

from ..crypto.common import CryptoError, InvalidInput
from .names import public_key_from_address_name
from .record import AddressRecord, verify_record
from .wire import unmarshal_record


logger = logging.getLogger("cipherbox.validator")


class RecordRejected(CryptoError):
    code = "RECORD_REJECTED"

    def __init__(self, message: str = "Record rejected"):
        super().__init__(message)


class RecordValidator:
    """
    Stateful verifier tracking the highest accepted sequence per address.

    Thread-safe; one instance may be shared by concurrent resolvers.
    """

    def __init__(self, known_sequences: Optional[Dict[str, int]] = None):
        self._sequences: Dict[str, int] = dict(known_sequences or {})
        self._lock = threading.Lock()

    def last_sequence(self, address_name: str) -> Optional[int]:
        with self._lock:
            return self._sequences.get(address_name)

    def _verify(
        self,
        address_name: str,
        record: Union[AddressRecord, bytes],
        now: Optional[datetime],
    ) -> AddressRecord:
        try:
            if not isinstance(record, AddressRecord):
                record = unmarshal_record(record)
            public_key = public_key_from_address_name(address_name)
        except InvalidInput:
            logger.debug("Record for %s failed to decode", address_name)
            raise RecordRejected() from None

        if not verify_record(record, public_key):
            logger.debug("Record for %s failed signature check", address_name)
            raise RecordRejected()

        try:
            expired = record.is_expired(now or datetime.now(timezone.utc))
        except InvalidInput:
            raise RecordRejected() from None
        if expired:
            logger.debug("Record for %s expired", address_name)
            raise RecordRejected()
        return record

    def _check_sequence(self, address_name: str, record: AddressRecord) -> None:
        last = self._sequences.get(address_name)
        if last is not None and record.sequence <= last:
            logger.debug("Record for %s not newer (seq %d <= %d)", address_name, record.sequence, last)
            raise RecordRejected()

    def check(
        self,
        address_name: str,
        record: Union[AddressRecord, bytes],
        now: Optional[datetime] = None,
    ) -> AddressRecord:
        """
        Validate a record without advancing state.

        Raises:
            RecordRejected: If any acceptance rule fails
        """
        record = self._verify(address_name, record, now)
        with self._lock:
            self._check_sequence(address_name, record)
        return record

    def accept(
        self,
        address_name: str,
        record: Union[AddressRecord, bytes],
        now: Optional[datetime] = None,
    ) -> AddressRecord:
        """
        Validate a record and, if it passes, remember its sequence.

        Returns:
            The parsed record

        Raises:
            RecordRejected: If any acceptance rule fails
        """
        record = self._verify(address_name, record, now)
        with self._lock:
            self._check_sequence(address_name, record)
            self._sequences[address_name] = record.sequence
        return record
