#!/usr/bin/env python3
"""
Command-line client for the provenance ledger.

Submits named operations against the configured record store and prints the
JSON result. Exit code is 1 when an operation returns a failure.
"""

import argparse
import json
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from provledger.core import engine
from provledger.core.config import get_record_store, validate_store_config
from provledger.core.errors import ProvenanceError
from provledger.util.logging import logger

# Full create, link, update and history walkthrough
DEMO_STEPS = [
    ("InitLedger", []),
    ("CreateEntity", ["entite2", "Dossier Médical B", "Dossier de santé secondaire"]),
    ("CreateAgent", ["agent2", "Dr. Martin", "Médecin"]),
    ("CreateActivity", ["activite1", "Consultation initiale", "2023-11-01T10:00:00Z"]),
    ("LinkActivity", ["entite2", "activite1", "agent2"]),
    ("UpdateEntity", ["entite2", "Dossier Médical Modifié encore une fois", "Description mise à jour"]),
    ("GetHistory", ["entite2"]),
]


def submit(store, operation, args):
    """Submit one operation; returns the decoded result or None on failure."""
    print(f"\n--> Submit Transaction: {operation}")
    result = engine.invoke(store, operation, args)

    if isinstance(result, ProvenanceError):
        print(f"❌ {result.code}: {result.message}")
        return None

    decoded = json.loads(result)
    print("*** Result:", json.dumps(decoded, ensure_ascii=False, indent=2))
    return decoded


def build_parser():
    parser = argparse.ArgumentParser(
        description="Provenance ledger client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s create-entity patient1 Dossier Initial
  %(prog)s create-agent doc1 "Dr. X" Médecin
  %(prog)s create-activity visit1 Consultation 2023-11-01T10:00:00Z
  %(prog)s link patient1 visit1 doc1
  %(prog)s update-entity patient1 --description "new desc"
  %(prog)s history visit1

Environment variables:
- STORE_PROVIDER=sqlite|memory (default sqlite)
- DB_PATH=./data/provenance.db
        """
    )
    parser.add_argument("--db-path", help="SQLite database path (overrides DB_PATH)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Seed the demo entity and agent")

    p = subparsers.add_parser("create-entity", help="Create an entity")
    p.add_argument("id")
    p.add_argument("nom")
    p.add_argument("description")

    p = subparsers.add_parser("create-agent", help="Create an agent")
    p.add_argument("id")
    p.add_argument("nom")
    p.add_argument("role")

    p = subparsers.add_parser("create-activity", help="Create an activity")
    p.add_argument("id")
    p.add_argument("description")
    p.add_argument("timestamp", help="ISO-8601 instant, stored verbatim")

    p = subparsers.add_parser("link", help="Link an activity to an entity and an agent")
    p.add_argument("entity_id")
    p.add_argument("activity_id")
    p.add_argument("agent_id")

    p = subparsers.add_parser("update-entity", help="Update an entity's name and/or description")
    p.add_argument("id")
    p.add_argument("--nom", default="")
    p.add_argument("--description", default="")

    p = subparsers.add_parser("get", help="Read the current record")
    p.add_argument("id")

    p = subparsers.add_parser("history", help="Show every version of a record")
    p.add_argument("id")

    p = subparsers.add_parser("verify", help="Check the hash chain of a record's history")
    p.add_argument("id")

    subparsers.add_parser("demo", help="Run the full create/link/update/history flow")

    return parser


def to_invocation(args):
    """Map parsed CLI arguments to (operation, positional args)."""
    command = args.command
    if command == "init":
        return "InitLedger", []
    if command == "create-entity":
        return "CreateEntity", [args.id, args.nom, args.description]
    if command == "create-agent":
        return "CreateAgent", [args.id, args.nom, args.role]
    if command == "create-activity":
        return "CreateActivity", [args.id, args.description, args.timestamp]
    if command == "link":
        return "LinkActivity", [args.entity_id, args.activity_id, args.agent_id]
    if command == "update-entity":
        return "UpdateEntity", [args.id, args.nom, args.description]
    if command == "get":
        return "ReadRecord", [args.id]
    if command == "history":
        return "GetHistory", [args.id]
    if command == "verify":
        return "VerifyHistory", [args.id]
    raise ValueError(f"Unknown command: {command}")


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    issues = validate_store_config()
    if issues:
        for issue in issues:
            print(f"❌ ERROR: {issue}")
        return 1

    try:
        store = get_record_store(args.db_path)
    except ProvenanceError as e:
        print(f"❌ {e.code}: {e.message}")
        logger.error(f"CLI could not open record store: {e}")
        return 1

    if args.command == "demo":
        for operation, op_args in DEMO_STEPS:
            if submit(store, operation, op_args) is None:
                return 1
        return 0

    operation, op_args = to_invocation(args)
    return 0 if submit(store, operation, op_args) is not None else 1


if __name__ == "__main__":
    sys.exit(main())
