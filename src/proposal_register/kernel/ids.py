"""
Identifier generation for events and commands

Proposal ids are dense integers owned by the registry; everything else in
the event log (event ids, command ids) uses UUIDv7-style strings so that the
log reads in roughly chronological order even when inspected by hand.
"""

import secrets
import time

from proposal_register.kernel.errors import InvalidArgument


def generate_id() -> str:
    """
    Generate a UUIDv7-like identifier (time-ordered UUID)

    Layout: 48 bits of Unix milliseconds, version nibble 7, 12 random bits,
    variant bits 10, then 62 random bits.

    Returns:
        Sortable UUID string (e.g., "01908e9a-3b87-7000-8000-123456789abc")
    """
    timestamp_48 = int(time.time() * 1000) & 0xFFFFFFFFFFFF

    rand_12 = secrets.randbits(12)
    rand_62 = secrets.randbits(62)

    version_and_rand = 0x7000 | rand_12
    variant_and_rand = 0x8000 | ((rand_62 >> 48) & 0x3FFF)
    node = rand_62 & 0xFFFFFFFFFFFF

    return (
        f"{(timestamp_48 >> 16) & 0xFFFFFFFF:08x}-"
        f"{timestamp_48 & 0xFFFF:04x}-"
        f"{version_and_rand:04x}-"
        f"{variant_and_rand:04x}-"
        f"{node:012x}"
    )


def stream_id_for_proposal(proposal_id: int) -> str:
    """Event stream holding the history of one proposal"""
    return f"proposal-{proposal_id}"


# Single stream for the administrator and allowlist
ACCESS_STREAM_ID = "access-control"


def validate_identity(identity: object, field: str = "identity") -> str:
    """
    Apply the one identity rule: a non-blank string

    Identities are otherwise opaque; no case folding or trimming is done.

    Raises:
        InvalidArgument: If identity is not a string or is blank
    """
    if not isinstance(identity, str) or not identity.strip():
        raise InvalidArgument(field, identity, "identity must be a non-blank string")
    return identity
