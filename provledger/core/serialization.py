"""
Canonical JSON for records and history.

Keys are sorted and separators are compact, so identical content always
serializes to identical bytes. Every write path goes through encode_record();
there is no unsorted variant.
"""

import hashlib
import json
from typing import Any, Dict, Optional

from .schema import (
    ACTIVITY_TYPE,
    AGENT_TYPE,
    ENTITY_TYPE,
    Activity,
    Agent,
    Entity,
    Record,
)


def canonical_json(data: Any) -> str:
    """Serialize any JSON-compatible value deterministically."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def encode_record(record: Record) -> str:
    return canonical_json(record.to_dict())


def record_from_dict(data: Dict[str, Any]) -> Record:
    """Build the record variant named by the "Type" tag."""
    record_type = data.get("Type")
    if "ID" not in data:
        raise ValueError(f"Record of type {record_type!r} has no ID")

    if record_type == ENTITY_TYPE:
        return Entity(
            id=data["ID"],
            nom=data.get("Nom", ""),
            description=data.get("Description", ""),
        )
    elif record_type == AGENT_TYPE:
        return Agent(
            id=data["ID"],
            nom=data.get("Nom", ""),
            role=data.get("Role", ""),
        )
    elif record_type == ACTIVITY_TYPE:
        return Activity(
            id=data["ID"],
            description=data.get("Description", ""),
            timestamp=data.get("Timestamp", ""),
            was_generated_by=data.get("wasGeneratedBy"),
            was_associated_with=data.get("wasAssociatedWith"),
        )

    raise ValueError(f"Unknown record type: {record_type!r}")


def decode_record(value: Optional[str]) -> Optional[Record]:
    """Decode a stored value. Empty payloads decode to None."""
    if not value:
        return None

    data = json.loads(value)
    if not data:
        return None
    if not isinstance(data, dict):
        raise ValueError("Stored value is not a JSON object")
    return record_from_dict(data)


def compute_version_hash(key: str, version: int, timestamp: str, previous_hash: str, value: str) -> str:
    """SHA-256 link in a key's version chain."""
    hash_content = f"{key}|{version}|{timestamp}|{previous_hash}|{value}"
    return hashlib.sha256(hash_content.encode("utf-8")).hexdigest()
