"""
Canonical serialization and record decoding tests.
"""

from dataclasses import fields

import pytest

from provledger.core.schema import Activity, Agent, Entity, Version
from provledger.core.serialization import (
    canonical_json,
    compute_version_hash,
    decode_record,
    encode_record,
    record_from_dict,
)


class TestCanonicalJson:
    """Identical content must serialize to identical bytes."""

    def test_key_order_is_normalized(self):
        assert canonical_json({"b": 1, "a": 2}) == canonical_json({"a": 2, "b": 1})
        assert canonical_json({"b": 1, "a": 2}) == '{"a":2,"b":1}'

    def test_non_ascii_kept(self):
        """Accented tags are written as UTF-8, not escaped."""
        assert canonical_json({"Type": "Activité"}) == '{"Type":"Activité"}'

    def test_activity_encoding(self):
        activity = Activity(
            id="visit1",
            description="Consultation",
            timestamp="2023-11-01T10:00:00Z",
            was_generated_by="patient1",
            was_associated_with="doc1",
        )
        assert encode_record(activity) == (
            '{"Description":"Consultation","ID":"visit1","Timestamp":"2023-11-01T10:00:00Z",'
            '"Type":"Activité","wasAssociatedWith":"doc1","wasGeneratedBy":"patient1"}'
        )


class TestDecoding:
    """The Type tag selects the record variant."""

    @pytest.mark.parametrize("record", [
        Entity(id="e1", nom="Dossier", description="Initial"),
        Agent(id="a1", nom="Dr. X", role="Médecin"),
        Activity(id="v1", description="Consultation", timestamp="2023-11-01T10:00:00Z"),
    ])
    def test_decode_restores_variant(self, record):
        decoded = decode_record(encode_record(record))
        assert decoded == record
        assert type(decoded) is type(record)

    def test_empty_payload_decodes_to_none(self):
        assert decode_record("") is None
        assert decode_record(None) is None
        assert decode_record("{}") is None

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError, match="Unknown record type"):
            record_from_dict({"ID": "x", "Type": "Dossier"})

    def test_missing_id_rejected(self):
        with pytest.raises(ValueError, match="has no ID"):
            decode_record('{"Type":"Agent","Nom":"Dr. X","Role":"Médecin"}')

    def test_non_object_rejected(self):
        with pytest.raises(ValueError):
            decode_record("[1, 2]")

    def test_type_is_not_an_instance_field(self):
        """The tag lives on the class, so it cannot be reassigned per record."""
        entity = Entity(id="e1", nom="Dossier", description="Initial")
        assert "TYPE" not in [f.name for f in fields(entity)]
        with pytest.raises(AttributeError):
            entity.nom = "Other"


class TestVersionHash:

    def test_hash_depends_on_every_field(self):
        base = compute_version_hash("e1", 1, "2023-11-01T10:00:00+00:00", "", "{}")
        assert base != compute_version_hash("e2", 1, "2023-11-01T10:00:00+00:00", "", "{}")
        assert base != compute_version_hash("e1", 2, "2023-11-01T10:00:00+00:00", "", "{}")
        assert base != compute_version_hash("e1", 1, "2023-11-01T10:00:01+00:00", "", "{}")
        assert base != compute_version_hash("e1", 1, "2023-11-01T10:00:00+00:00", "x", "{}")
        assert base != compute_version_hash("e1", 1, "2023-11-01T10:00:00+00:00", "", "[]")

    def test_version_history_item(self):
        version = Version(
            key="e1",
            version=1,
            tx_id="abc",
            timestamp="2023-11-01T10:00:00+00:00",
            value='{"ID":"e1"}',
            previous_hash="",
            value_hash="h",
        )
        assert version.to_history_item() == {
            "timestamp": "2023-11-01T10:00:00+00:00",
            "data": {"ID": "e1"},
        }
