"""
Command-line client tests.
"""

import json

import pytest

from scripts.ledger_cli import DEMO_STEPS, build_parser, main, to_invocation


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    monkeypatch.setenv("STORE_PROVIDER", "sqlite")
    return str(tmp_path / "cli.db")


class TestInvocationMapping:

    @pytest.mark.parametrize("argv,expected", [
        (["init"], ("InitLedger", [])),
        (["create-entity", "p1", "Dossier", "Initial"], ("CreateEntity", ["p1", "Dossier", "Initial"])),
        (["link", "p1", "v1", "d1"], ("LinkActivity", ["p1", "v1", "d1"])),
        (["update-entity", "p1", "--description", "new"], ("UpdateEntity", ["p1", "", "new"])),
        (["history", "v1"], ("GetHistory", ["v1"])),
    ])
    def test_to_invocation(self, argv, expected):
        args = build_parser().parse_args(argv)
        assert to_invocation(args) == expected


class TestMain:

    def test_demo_flow(self, db_path, capsys):
        """The demo runs every step and ends with the entity history."""
        assert main(["--db-path", db_path, "demo"]) == 0

        output = capsys.readouterr().out
        for operation, _ in DEMO_STEPS:
            assert f"Submit Transaction: {operation}" in output
        assert "Dossier Médical Modifié encore une fois" in output

    def test_step_by_step(self, db_path, capsys):
        assert main(["--db-path", db_path, "create-entity", "patient1", "Dossier", "Initial"]) == 0
        assert main(["--db-path", db_path, "create-agent", "doc1", "Dr. X", "Médecin"]) == 0
        assert main(["--db-path", db_path, "create-activity", "visit1", "Consultation", "2023-11-01T10:00:00Z"]) == 0
        assert main(["--db-path", db_path, "link", "patient1", "visit1", "doc1"]) == 0
        capsys.readouterr()

        assert main(["--db-path", db_path, "history", "visit1"]) == 0
        output = capsys.readouterr().out
        history = json.loads(output.split("*** Result:", 1)[1])
        assert len(history) == 2

    def test_failure_exit_code(self, db_path, capsys):
        assert main(["--db-path", db_path, "update-entity", "ghost", "--nom", "X"]) == 1
        assert "NOT_FOUND" in capsys.readouterr().out

    def test_invalid_provider(self, db_path, monkeypatch, capsys):
        monkeypatch.setenv("STORE_PROVIDER", "redis")
        assert main(["--db-path", db_path, "init"]) == 1
        assert "Invalid STORE_PROVIDER" in capsys.readouterr().out
