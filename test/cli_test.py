"""
CLI tests

Test items:
1. status prints a job, --json emits its fields
2. list filters by window and limit
3. log writes to stdout or --output
4. Errors exit with status 1; a missing database is reported, not created

Run: python -m pytest test/cli_test.py -v
"""

import json

import pytest

from jobhub.cli import main
from jobhub.core.gate import PersistenceGate
from jobhub.core.store import JobStore


@pytest.fixture
def db(tmp_path):
    """Database with one finished and one pending job"""
    path = tmp_path / "cli.db"
    log_file = tmp_path / "done.log"
    log_file.write_text("line one\nline two\n")

    gate = PersistenceGate(path)
    store = JobStore(gate)
    store.init_schema()
    done = store.create("echo", b"payload")
    store.complete(done, 3, "boom", str(log_file))
    pending = store.create("echo", b"")
    gate.close()
    return {"path": path, "done": done, "pending": pending, "log": log_file}


class TestStatus:
    def test_text(self, db, capsys):
        main(["--db-path", str(db["path"]), "status", db["done"]])
        out = capsys.readouterr().out
        assert f"Job ID: {db['done']}" in out
        assert "Status: 3" in out
        assert "Error: boom" in out

    def test_json(self, db, capsys):
        main(["--db-path", str(db["path"]), "--json", "status", db["done"]])
        data = json.loads(capsys.readouterr().out)
        assert data["status"] == 3
        assert data["data"] == "payload"
        assert data["log_file"] == str(db["log"])

    def test_unknown_job(self, db, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--db-path", str(db["path"]), "status", "missing"])
        assert exc_info.value.code == 1
        assert "not found" in capsys.readouterr().err


class TestList:
    def test_json_lists_recent_jobs(self, db, capsys):
        main(["--db-path", str(db["path"]), "--json", "list"])
        ids = [job["id"] for job in json.loads(capsys.readouterr().out)]
        assert ids == [db["done"], db["pending"]]

    def test_limit(self, db, capsys):
        main(["--db-path", str(db["path"]), "--json", "list", "--limit", "1"])
        assert len(json.loads(capsys.readouterr().out)) == 1

    def test_empty_window(self, db, capsys):
        main([
            "--db-path", str(db["path"]), "list",
            "--after", "2000-01-01T00:00:00", "--before", "2000-01-02T00:00:00",
        ])
        assert "No jobs found" in capsys.readouterr().out


class TestLog:
    def test_stdout(self, db, capsysbinary):
        main(["--db-path", str(db["path"]), "log", db["done"]])
        assert capsysbinary.readouterr().out == b"line one\nline two\n"

    def test_output_file(self, db, tmp_path, capsys):
        target = tmp_path / "out.log"
        main(["--db-path", str(db["path"]), "log", db["done"], "--output", str(target)])
        assert target.read_text() == "line one\nline two\n"

    def test_pending_job_has_no_log(self, db):
        with pytest.raises(SystemExit) as exc_info:
            main(["--db-path", str(db["path"]), "log", db["pending"]])
        assert exc_info.value.code == 1


@pytest.mark.parametrize("command", [["status", "x"], ["list"], ["log", "x"]])
def test_missing_database_is_not_created(tmp_path, capsys, command):
    path = tmp_path / "typo.db"
    with pytest.raises(SystemExit) as exc_info:
        main(["--db-path", str(path)] + command)
    assert exc_info.value.code == 1
    assert "does not exist" in capsys.readouterr().err
    assert not path.exists()


def test_no_command(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 1
