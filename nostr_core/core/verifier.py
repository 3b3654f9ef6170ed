"""
Nostr Core Verification Module

Batch verification of signed events, for callers (relays, storage, the
CLI) that need more than the yes/no answer of verify_event():

1. Id verification - the stored id is the digest of the event fields
2. Signature verification - the Schnorr signature is valid for (id, pubkey)
3. Duplicate detection - the same id appearing more than once

Usage:
    >>> from nostr_core.core.verifier import EventVerifier
    >>>
    >>> verifier = EventVerifier()
    >>> result = verifier.verify(events)
    >>> print(f"All genuine: {result.is_valid}")
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from nostr_core.core.errors import IdMismatch, MalformedPayload, NostrError, SignatureInvalid
from nostr_core.core.events import Event, check_event

logger = logging.getLogger(__name__)

ID_MISMATCH = "id_mismatch"
SIGNATURE_INVALID = "signature_invalid"
MALFORMED = "malformed"


@dataclass
class EventVerificationResult:
    """
    Result of verifying one event.

    Attributes:
        is_valid: True if id and signature both check out
        event_id: The id stored on the event (may be None if unparseable)
        failure: "id_mismatch", "signature_invalid", "malformed" or None
        error_message: Description of the failure
    """
    is_valid: bool
    event_id: Optional[str] = None
    failure: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "event_id": self.event_id,
            "failure": self.failure,
            "error_message": self.error_message
        }


@dataclass
class BatchVerificationResult:
    """
    Result of verifying a sequence of events.

    Attributes:
        is_valid: True if every event is genuine and no id repeats
        events_verified: Number of events examined
        first_invalid_index: Index of the first failing event (if any)
        id_mismatches: Indices whose id does not match the fields
        invalid_signatures: Indices whose signature does not verify
        malformed: Indices that could not be parsed as events
        duplicate_ids: Ids seen more than once
        results: Per-event results in input order
    """
    is_valid: bool
    events_verified: int = 0
    first_invalid_index: Optional[int] = None
    id_mismatches: List[int] = field(default_factory=list)
    invalid_signatures: List[int] = field(default_factory=list)
    malformed: List[int] = field(default_factory=list)
    duplicate_ids: List[str] = field(default_factory=list)
    results: List[EventVerificationResult] = field(default_factory=list)

    @property
    def error_message(self) -> Optional[str]:
        issues = []
        if self.id_mismatches:
            issues.append(f"{len(self.id_mismatches)} id mismatches")
        if self.invalid_signatures:
            issues.append(f"{len(self.invalid_signatures)} invalid signatures")
        if self.malformed:
            issues.append(f"{len(self.malformed)} malformed events")
        if self.duplicate_ids:
            issues.append(f"{len(self.duplicate_ids)} duplicate ids")
        return "; ".join(issues) or None

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "events_verified": self.events_verified,
            "first_invalid_index": self.first_invalid_index,
            "id_mismatch_count": len(self.id_mismatches),
            "invalid_signature_count": len(self.invalid_signatures),
            "malformed_count": len(self.malformed),
            "duplicate_ids": self.duplicate_ids,
            "error_message": self.error_message
        }


class EventVerifier:
    """
    Verifies signed events and reports why an event was rejected.

    Accepts Event instances or wire dictionaries; dictionaries that do not
    parse are reported as malformed rather than raising.
    """

    def verify_event(self, event: Union[Event, Dict[str, Any]]) -> EventVerificationResult:
        """
        Verify a single event.

        Args:
            event: Event or wire dictionary

        Returns:
            EventVerificationResult: Outcome with failure reason
        """
        if not isinstance(event, Event):
            try:
                event = Event.from_dict(event)
            except NostrError as e:
                event_id = event.get("id") if isinstance(event, dict) else None
                return EventVerificationResult(
                    is_valid=False,
                    event_id=event_id if isinstance(event_id, str) else None,
                    failure=MALFORMED,
                    error_message=str(e)
                )
        try:
            check_event(event)
        except IdMismatch as e:
            return EventVerificationResult(False, event.id, ID_MISMATCH, str(e))
        except SignatureInvalid as e:
            return EventVerificationResult(False, event.id, SIGNATURE_INVALID, str(e))
        return EventVerificationResult(is_valid=True, event_id=event.id)

    def verify(self, events: Iterable[Union[Event, Dict[str, Any]]]) -> BatchVerificationResult:
        """
        Verify every event in ``events``.

        Returns:
            BatchVerificationResult: Aggregate and per-event outcomes
        """
        results = [self.verify_event(event) for event in events]

        id_mismatches = [i for i, r in enumerate(results) if r.failure == ID_MISMATCH]
        invalid_signatures = [i for i, r in enumerate(results) if r.failure == SIGNATURE_INVALID]
        malformed = [i for i, r in enumerate(results) if r.failure == MALFORMED]

        counts = Counter(r.event_id for r in results if r.event_id)
        duplicate_ids = sorted(event_id for event_id, n in counts.items() if n > 1)

        failing = [i for i, r in enumerate(results) if not r.is_valid]
        result = BatchVerificationResult(
            is_valid=not failing and not duplicate_ids,
            events_verified=len(results),
            first_invalid_index=failing[0] if failing else None,
            id_mismatches=id_mismatches,
            invalid_signatures=invalid_signatures,
            malformed=malformed,
            duplicate_ids=duplicate_ids,
            results=results
        )
        logger.debug(
            "verified %d events: %s", result.events_verified, result.error_message or "all valid"
        )
        return result


def load_events(data: Any) -> List[Dict[str, Any]]:
    """
    Normalize decoded JSON into a list of event dictionaries.

    Accepts a single event object, a list of events, or ``{"events": [...]}``.
    """
    if isinstance(data, dict) and "events" in data:
        data = data["events"]
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return data
    raise MalformedPayload("expected an event object or a list of events")
