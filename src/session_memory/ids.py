"""
Identifier generation and validation.

Session ids are 24 lowercase hex characters: a 4-byte unix timestamp, 5
random bytes fixed per process and a 3-byte counter. They sort by creation
time as plain strings, which is what session listing pages on, and they are
valid vector-index collection names.

Memory ids are time-ordered UUIDs (version 7 layout), monotonic within a
process: the vector index scrolls in ascending id order, so ascending id is
creation order.
"""

import itertools
import os
import re
import threading
import time
import uuid
from typing import List, Optional

from session_memory.errors import ValidationError

_SESSION_ID_PATTERN = re.compile(r"^[0-9a-f]{24}$")
_PROCESS_RANDOM = os.urandom(5).hex()
_session_counter = itertools.count(int.from_bytes(os.urandom(3), "big"))

_memory_id_lock = threading.Lock()
_last_millis = 0
_last_sequence = -1


def new_session_id() -> str:
    """Generate a new time-ordered session id."""
    timestamp = int(time.time()) & 0xFFFFFFFF
    counter = next(_session_counter) & 0xFFFFFF
    return f"{timestamp:08x}{_PROCESS_RANDOM}{counter:06x}"


def validate_session_id(value: Optional[str]) -> str:
    """Return the session id if well formed, raise ValidationError otherwise."""
    if not isinstance(value, str) or not _SESSION_ID_PATTERN.match(value):
        raise ValidationError(f"invalid session id: {value!r}")
    return value


def new_memory_ids(count: int) -> List[str]:
    """
    Generate ``count`` new memory ids.

    Ids are monotonic within the process: the 12-bit sequence field continues
    from the previous call when the millisecond timestamp has not moved, and
    rolls into the next millisecond when it overflows. The remaining 62 bits
    are random.
    """
    global _last_millis, _last_sequence

    ids = []
    with _memory_id_lock:
        millis = max(time.time_ns() // 1_000_000, _last_millis)
        sequence = _last_sequence + 1 if millis == _last_millis else 0
        for _ in range(count):
            if sequence > 0xFFF:
                millis += 1
                sequence = 0
            random_bits = int.from_bytes(os.urandom(8), "big") & ((1 << 62) - 1)
            value = (
                ((millis & 0xFFFFFFFFFFFF) << 80)
                | (0x7 << 76)
                | (sequence << 64)
                | (0b10 << 62)
                | random_bits
            )
            ids.append(str(uuid.UUID(int=value)))
            sequence += 1
        _last_millis, _last_sequence = millis, sequence - 1
    return ids


def validate_memory_id(value: Optional[str]) -> str:
    """Return the canonical form of a memory id, raise ValidationError if malformed."""
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"invalid memory id: {value!r}") from None


def new_document_id() -> str:
    """Generate a key for a document-store memory record."""
    return uuid.uuid4().hex
