"""
Record variants and store-managed version snapshots.

A record is one of Entity, Agent or Activity. The wire-level "Type" field is
the variant tag: it lives on the class, so it cannot change after creation.
"""

import json
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Union

ENTITY_TYPE = "Entité"
AGENT_TYPE = "Agent"
ACTIVITY_TYPE = "Activité"


@dataclass(frozen=True)
class Entity:
    TYPE: ClassVar[str] = ENTITY_TYPE

    id: str
    nom: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ID": self.id,
            "Type": self.TYPE,
            "Nom": self.nom,
            "Description": self.description,
        }


@dataclass(frozen=True)
class Agent:
    TYPE: ClassVar[str] = AGENT_TYPE

    id: str
    nom: str
    role: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ID": self.id,
            "Type": self.TYPE,
            "Nom": self.nom,
            "Role": self.role,
        }


@dataclass(frozen=True)
class Activity:
    TYPE: ClassVar[str] = ACTIVITY_TYPE

    id: str
    description: str
    timestamp: str
    was_generated_by: Optional[str] = None
    was_associated_with: Optional[str] = None

    @property
    def linked(self) -> bool:
        return self.was_generated_by is not None and self.was_associated_with is not None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "ID": self.id,
            "Type": self.TYPE,
            "Description": self.description,
            "Timestamp": self.timestamp,
        }
        # References only appear once the activity has been linked
        if self.was_generated_by is not None:
            data["wasGeneratedBy"] = self.was_generated_by
        if self.was_associated_with is not None:
            data["wasAssociatedWith"] = self.was_associated_with
        return data


Record = Union[Entity, Agent, Activity]


@dataclass(frozen=True)
class Version:
    """One immutable snapshot in a key's history."""
    key: str
    version: int
    tx_id: str
    timestamp: str
    value: str
    previous_hash: str
    value_hash: str

    @property
    def content(self) -> Any:
        return json.loads(self.value) if self.value else None

    def to_history_item(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "data": self.content}
