"""
Ledger core: record store, provenance engine and their shared types.
"""

from .errors import (
    ProvenanceError,
    AlreadyExists,
    NotFound,
    BrokenReference,
    StoreUnavailable,
    InvalidArgument,
    VersionConflict
)
from .schema import Entity, Agent, Activity, Record, Version
from .store import IRecordStore, SimpleInMemoryRecordStore, SQLiteRecordStore, VersionLog

__all__ = [
    'ProvenanceError',
    'AlreadyExists',
    'NotFound',
    'BrokenReference',
    'StoreUnavailable',
    'InvalidArgument',
    'VersionConflict',
    'Entity',
    'Agent',
    'Activity',
    'Record',
    'Version',
    'IRecordStore',
    'SimpleInMemoryRecordStore',
    'SQLiteRecordStore',
    'VersionLog'
]
