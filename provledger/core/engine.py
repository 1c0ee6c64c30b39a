"""
Provenance engine: state transitions over an injected record store.

Every operation takes the store as its first argument and keeps no state of
its own. Operations return the canonical JSON of their result on success, or
a ProvenanceError instance on failure; precondition failures are never raised.
A failed operation writes nothing.
"""

from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Type, Union

from .errors import (
    AlreadyExists,
    BrokenReference,
    InvalidArgument,
    NotFound,
    ProvenanceError,
    StoreUnavailable,
    VersionConflict,
)
from .schema import Activity, Agent, Entity, Record
from .serialization import canonical_json, compute_version_hash, encode_record
from .store import IRecordStore
from ..util.logging import logger

Result = Union[str, ProvenanceError]

# Demo records written by init_ledger()
SEED_RECORDS = (
    Entity(id="entite1", nom="Dossier Médical A", description="Dossier de santé initial"),
    Agent(id="agent1", nom="Dr. Dupont", role="Médecin"),
)


def _fail(operation: str, error: ProvenanceError) -> ProvenanceError:
    logger.log_failure(operation, error)
    return error


def _unreadable(record_id: str, error: ValueError) -> StoreUnavailable:
    """Stored bytes that no longer decode, e.g. after tampering."""
    return StoreUnavailable(f"Stored value for {record_id} is not a readable record: {error}", record_id)


# Existence checks. IDs are unique across kinds, so all three predicates
# look at the same key space.

def _exists(store: IRecordStore, record_id: str, operation: str) -> Union[bool, ProvenanceError]:
    try:
        return store.exists(record_id)
    except StoreUnavailable as e:
        return _fail(operation, e)


def entity_exists(store: IRecordStore, entity_id: str) -> Union[bool, ProvenanceError]:
    return _exists(store, entity_id, "entity_exists")


def agent_exists(store: IRecordStore, agent_id: str) -> Union[bool, ProvenanceError]:
    return _exists(store, agent_id, "agent_exists")


def activity_exists(store: IRecordStore, activity_id: str) -> Union[bool, ProvenanceError]:
    return _exists(store, activity_id, "activity_exists")


# Creation

def _create(store: IRecordStore, operation: str, record: Record,
            exists_check: Callable[[IRecordStore, str], Union[bool, ProvenanceError]]) -> Result:
    exists = exists_check(store, record.id)
    if isinstance(exists, ProvenanceError):
        return exists
    if exists:
        return _fail(operation, AlreadyExists(f"Record {record.id} already exists", record.id))

    try:
        # expected_version=0 closes the gap between the check above and the write
        store.put(record.id, record, expected_version=0)
    except VersionConflict:
        return _fail(operation, AlreadyExists(f"Record {record.id} already exists", record.id))
    except ProvenanceError as e:
        return _fail(operation, e)

    logger.log_record_operation("create", record.id, record.TYPE)
    return encode_record(record)


def create_entity(store: IRecordStore, entity_id: str, nom: str, description: str) -> Result:
    """Create an Entity; fails with AlreadyExists if the ID is taken by any record."""
    entity = Entity(id=entity_id, nom=nom, description=description)
    return _create(store, "create_entity", entity, entity_exists)


def create_agent(store: IRecordStore, agent_id: str, nom: str, role: str) -> Result:
    """Create an Agent; fails with AlreadyExists if the ID is taken by any record."""
    agent = Agent(id=agent_id, nom=nom, role=role)
    return _create(store, "create_agent", agent, agent_exists)


def create_activity(store: IRecordStore, activity_id: str, description: str, timestamp: str) -> Result:
    """Create an unlinked Activity. The timestamp is stored verbatim."""
    activity = Activity(id=activity_id, description=description, timestamp=timestamp)
    return _create(store, "create_activity", activity, activity_exists)


# Linking and mutation

def _resolve(store: IRecordStore, record_id: str, expected: Type) -> Tuple[Optional[Record], int]:
    """Current record of the expected variant, or None if it does not resolve."""
    try:
        record, version = store.read(record_id)
    except ValueError:
        # Stored payload does not decode to a known record
        return None, 0
    if not isinstance(record, expected):
        return None, version
    return record, version


def link_activity(store: IRecordStore, entity_id: str, activity_id: str, agent_id: str) -> Result:
    """Stamp an activity with wasGeneratedBy/wasAssociatedWith.

    All three IDs are read from the store at call time. The entity and agent
    are only read; the activity gets one new version.
    """
    operation = "link_activity"
    try:
        entity, _ = _resolve(store, entity_id, Entity)
        agent, _ = _resolve(store, agent_id, Agent)
        activity, activity_version = _resolve(store, activity_id, Activity)
    except StoreUnavailable as e:
        return _fail(operation, e)

    missing = [
        record_id for record_id, record in (
            (entity_id, entity), (activity_id, activity), (agent_id, agent)
        ) if record is None
    ]
    if missing:
        logger.log_link(activity_id, entity_id, agent_id, status="failed")
        return _fail(operation, BrokenReference(
            f"Identifiers do not match an existing entity, agent and activity: {', '.join(missing)}",
            missing[0],
        ))

    linked = replace(activity, was_generated_by=entity_id, was_associated_with=agent_id)
    try:
        store.put(activity_id, linked, expected_version=activity_version)
    except ProvenanceError as e:
        return _fail(operation, e)

    logger.log_link(activity_id, entity_id, agent_id)
    return encode_record(linked)


def update_entity(store: IRecordStore, entity_id: str, new_nom: str = "", new_description: str = "") -> Result:
    """Overwrite Nom and/or Description; empty values keep the current field."""
    operation = "update_entity"
    exists = entity_exists(store, entity_id)
    if isinstance(exists, ProvenanceError):
        return exists
    if not exists:
        return _fail(operation, NotFound(f"Entity {entity_id} does not exist", entity_id))

    try:
        entity, version = _resolve(store, entity_id, Entity)
    except StoreUnavailable as e:
        return _fail(operation, e)
    if entity is None:
        return _fail(operation, NotFound(f"Record {entity_id} is not an entity", entity_id))

    updated = replace(
        entity,
        nom=new_nom or entity.nom,
        description=new_description or entity.description,
    )
    try:
        store.put(entity_id, updated, expected_version=version)
    except ProvenanceError as e:
        return _fail(operation, e)

    logger.log_record_operation("update", entity_id, Entity.TYPE)
    return encode_record(updated)


# Reads

def read_record(store: IRecordStore, record_id: str) -> Result:
    operation = "read_record"
    try:
        record = store.get(record_id)
    except StoreUnavailable as e:
        return _fail(operation, e)
    except ValueError as e:
        return _fail(operation, _unreadable(record_id, e))
    if record is None:
        return _fail(operation, NotFound(f"Record {record_id} does not exist", record_id))
    return encode_record(record)


def get_history(store: IRecordStore, record_id: str) -> Result:
    """Every committed version of record_id as [{timestamp, data}], oldest first."""
    try:
        items = [version.to_history_item() for version in store.history(record_id)]
    except StoreUnavailable as e:
        return _fail("get_history", e)
    except ValueError as e:
        return _fail("get_history", _unreadable(record_id, e))

    logger.log_operation("record.history", "success", {"record_id": record_id, "versions": len(items)})
    return canonical_json(items)


def verify_history(store: IRecordStore, record_id: str) -> Result:
    """Recompute the hash chain of record_id and report the first broken position."""
    expected_previous = ""
    versions = 0
    broken_at = None

    try:
        for version in store.history(record_id):
            versions += 1
            if broken_at is None:
                recomputed = compute_version_hash(
                    version.key, version.version, version.timestamp, version.previous_hash, version.value
                )
                if (version.version != versions
                        or version.previous_hash != expected_previous
                        or recomputed != version.value_hash):
                    broken_at = versions
            expected_previous = version.value_hash
    except StoreUnavailable as e:
        return _fail("verify_history", e)

    report = {
        "id": record_id,
        "versions": versions,
        "valid": broken_at is None,
        "broken_at": broken_at,
    }
    if broken_at is not None:
        logger.warning(f"History chain broken for '{record_id}' at version {broken_at}")
    return canonical_json(report)


def init_ledger(store: IRecordStore) -> Result:
    """Write the demo entity and agent. Seeds that already exist are left alone.

    Every seed is checked before any of them is written. The store has no
    multi-key transaction, so if a write still fails part way the seeds that
    did land are returned and the failure is logged; a failure before anything
    was written is returned as the result.
    """
    operation = "init_ledger"
    try:
        pending = [record for record in SEED_RECORDS if not store.exists(record.id)]
    except StoreUnavailable as e:
        return _fail(operation, e)

    seeded: List[dict] = []
    for record in pending:
        try:
            store.put(record.id, record, expected_version=0)
        except VersionConflict:
            continue
        except ProvenanceError as e:
            if not seeded:
                return _fail(operation, e)
            logger.log_failure(operation, e)
            break
        seeded.append(record.to_dict())

    logger.log_operation("ledger.init", "success", {"seeded": [item["ID"] for item in seeded]})
    return canonical_json(seeded)


# Named-operation boundary: positional string arguments in, JSON out

OPERATIONS: Dict[str, Tuple[Callable, int]] = {
    "InitLedger": (init_ledger, 0),
    "CreateEntity": (create_entity, 3),
    "CreateAgent": (create_agent, 3),
    "CreateActivity": (create_activity, 3),
    "LinkActivity": (link_activity, 3),
    "UpdateEntity": (update_entity, 3),
    "ReadRecord": (read_record, 1),
    "GetHistory": (get_history, 1),
    "VerifyHistory": (verify_history, 1),
    "EntityExists": (entity_exists, 1),
    "AgentExists": (agent_exists, 1),
    "ActivityExists": (activity_exists, 1),
}


def invoke(store: IRecordStore, operation: str, args: Sequence[str]) -> Result:
    """Dispatch a named operation the way a transaction would be submitted."""
    entry = OPERATIONS.get(operation)
    if entry is None:
        return _fail("invoke", InvalidArgument(f"Unknown operation: {operation}"))

    func, arity = entry
    if len(args) != arity:
        return _fail("invoke", InvalidArgument(
            f"{operation} expects {arity} arguments, got {len(args)}"
        ))
    if not all(isinstance(arg, str) for arg in args):
        return _fail("invoke", InvalidArgument(f"{operation} arguments must be strings"))

    result = func(store, *args)
    if isinstance(result, bool):
        return canonical_json(result)
    return result
