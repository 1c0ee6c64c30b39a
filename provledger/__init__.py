"""
Provenance ledger: PROV-style entity/agent/activity records in a versioned,
tamper-evident key-value store.
"""

from .core.config import VERSION

__version__ = VERSION
