"""Translate memories to and from the vector store's scalar metadata.

The backend only stores ``str``, ``int``, ``float`` and ``bool`` metadata
values, so list-valued fields are JSON-encoded here and decoded immediately
after every read.
"""

import json
import secrets
import string
import time
from datetime import UTC, datetime
from typing import Any

from ..core.enums import MemoryType, Visibility
from ..core.exceptions import ValidationError
from ..core.schemas import Memory, MemoryCreate, MemoryMetadata, utc_now_iso
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

Scalar = str | int | float | bool

_ID_PREFIX = "mem"
_ID_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 9

# Metadata keys as stored in the backend (camelCase, compatible with existing collections)
_SCALAR_KEYS = {
    "created_at": "createdAt",
    "created_by": "createdBy",
    "responded_by": "respondedBy",
    "response": "response",
    "responded_at": "respondedAt",
    "owner": "owner",
    "visibility": "visibility",
}
_LIST_KEYS = {
    "tags": "tags",
    "references": "references",
    "shared_with": "sharedWith",
}
_TYPE_KEY = "type"
# Numeric copy of createdAt; the backend only range-compares int and float values
CREATED_AT_MS_KEY = "createdAtMs"

# Fields an update may overwrite
_MUTABLE_FIELDS = frozenset(
    {"visibility", "shared_with", "tags", "references", "responded_by", "response", "responded_at"}
)


def iso_to_epoch_ms(value: str | None) -> int | None:
    """Epoch milliseconds for an ISO 8601 string; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(parsed.timestamp() * 1000)


def generate_memory_id() -> str:
    """Return ``mem_<epoch ms>_<9 base36 chars>``. Uniqueness is by randomness only."""
    suffix = "".join(secrets.choice(_ID_SUFFIX_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"{_ID_PREFIX}_{int(time.time() * 1000)}_{suffix}"


def new_memory_metadata(record: MemoryCreate) -> MemoryMetadata:
    """Resolve creation-time metadata: timestamp, owner fallback and default visibility."""
    return MemoryMetadata(
        created_at=utc_now_iso(),
        created_by=record.created_by,
        owner=record.owner or record.created_by,
        visibility=record.visibility or Visibility.PUBLIC,
        shared_with=list(record.shared_with),
        tags=list(record.tags),
        references=list(record.references),
    )


def to_metadata(memory_type: MemoryType, metadata: MemoryMetadata) -> dict[str, Scalar]:
    """Encode metadata for the backend. Empty and unset fields are omitted."""
    out: dict[str, Scalar] = {_TYPE_KEY: MemoryType(memory_type).value}
    for field, key in _SCALAR_KEYS.items():
        value = getattr(metadata, field)
        if isinstance(value, Visibility):
            value = value.value
        if value:
            out[key] = value
    created_at_ms = iso_to_epoch_ms(metadata.created_at)
    if created_at_ms is not None:
        out[CREATED_AT_MS_KEY] = created_at_ms
    for field, key in _LIST_KEYS.items():
        values = getattr(metadata, field)
        if values:
            out[key] = json.dumps(list(values))
    return out


def _decode_list(raw: dict[str, Any], key: str) -> list[str]:
    encoded = raw.get(key)
    if not encoded:
        return []
    try:
        values = json.loads(encoded) if isinstance(encoded, str) else encoded
    except json.JSONDecodeError:
        logger.warning("metadata_list_decode_failed", key=key, value=encoded)
        return []
    if not isinstance(values, list):
        logger.warning("metadata_list_decode_failed", key=key, value=encoded)
        return []
    return [str(v) for v in values]


def from_metadata(raw: dict[str, Any] | None) -> MemoryMetadata:
    """Decode backend metadata. Absent list fields become empty lists."""
    raw = raw or {}
    fields: dict[str, Any] = {}
    for field, key in _SCALAR_KEYS.items():
        value = raw.get(key)
        if value is not None and value != "":
            fields[field] = str(value)
    for field, key in _LIST_KEYS.items():
        fields[field] = _decode_list(raw, key)
    if "created_at" not in fields:
        fields["created_at"] = ""
    return MemoryMetadata(**fields)


def to_memory(memory_id: str, document: str, raw: dict[str, Any] | None) -> Memory:
    """Build a domain ``Memory`` from a stored document and its metadata."""
    raw_type = (raw or {}).get(_TYPE_KEY) or MemoryType.INFORMATION.value
    try:
        memory_type = MemoryType(raw_type)
    except ValueError:
        logger.warning("memory_type_decode_failed", memory_id=memory_id, value=raw_type)
        memory_type = MemoryType.INFORMATION
    return Memory(
        id=memory_id,
        content=document,
        type=memory_type,
        metadata=from_metadata(raw),
    )


def merge_metadata(existing: MemoryMetadata, patch: dict[str, Any]) -> MemoryMetadata:
    """Apply ``patch`` to ``existing``, preserving every field not named in it.

    A ``None`` value clears the field. Unknown or immutable fields raise
    ``ValidationError``.
    """
    rejected = set(patch) - _MUTABLE_FIELDS
    if rejected:
        raise ValidationError(f"Cannot update fields: {', '.join(sorted(rejected))}")
    data = existing.model_dump()
    for field, value in patch.items():
        if value is None and field in _LIST_KEYS:
            value = []
        data[field] = value
    return MemoryMetadata(**data)
