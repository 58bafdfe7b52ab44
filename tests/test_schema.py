import asyncpg
import pytest
from fastapi.testclient import TestClient

from core import errors, schema
from core.settings import DEFAULT_SCHEMA_DIR, Settings
from fakes import FakePool


def _fail_for(table):
    def fail_on(sql, args):
        if f"CREATE TABLE IF NOT EXISTS {table} " in sql:
            return asyncpg.InsufficientPrivilegeError(f"permission denied to create {table}")
        return None

    return fail_on


def test_bootstrap_runs_all_scripts_in_order(run, fake_pool):
    result = run(schema.bootstrap_schema(fake_pool, DEFAULT_SCHEMA_DIR))

    assert result.ok
    assert result.created == ["caregiver", "patient", "visit"]
    scripts = [c[1] for c in fake_pool.statements("execute")]
    assert "caregiver" in scripts[0]
    assert "patient" in scripts[1]
    assert "REFERENCES caregiver" in scripts[2]


def test_bootstrap_continues_after_a_failure(run):
    pool = FakePool(fail_on=_fail_for("patient"))

    result = run(schema.bootstrap_schema(pool, DEFAULT_SCHEMA_DIR))

    assert not result.ok
    assert result.created == ["caregiver", "visit"]
    assert set(result.failed) == {"patient"}
    assert "permission denied" in result.failed["patient"]
    assert len(pool.statements("execute")) == 3


def test_bootstrap_reports_missing_script(run, fake_pool, tmp_path):
    (tmp_path / "caregiver.sql").write_text("CREATE TABLE IF NOT EXISTS caregiver (id int);")

    result = run(schema.bootstrap_schema(fake_pool, tmp_path))

    assert result.created == ["caregiver"]
    assert set(result.failed) == {"patient", "visit"}


def test_app_refuses_to_start_when_bootstrap_fails():
    from main import create_app

    pool = FakePool(fail_on=_fail_for("visit"))

    async def pool_factory(_settings):
        return pool

    app = create_app(Settings(), pool_factory=pool_factory)

    with pytest.raises(errors.SchemaBootstrapError):
        with TestClient(app):
            pass

    assert pool.closed


def test_app_skips_bootstrap_when_disabled(make_client):
    pool = FakePool()
    client = make_client(pool, bootstrap=False)

    assert client.get("/health").json()["ready"] is True
    assert pool.statements("execute") == []


def test_pool_closed_on_shutdown():
    from main import create_app

    pool = FakePool()

    async def pool_factory(_settings):
        return pool

    with TestClient(create_app(Settings(), pool_factory=pool_factory)) as client:
        assert client.get("/health").status_code == 200
        assert not pool.closed

    assert pool.closed


def test_bootstrap_continues_past_undecodable_script(run, fake_pool, tmp_path):
    for table in schema.SCHEMA_TABLES:
        (tmp_path / f"{table}.sql").write_text(f"CREATE TABLE IF NOT EXISTS {table} (id int);")
    (tmp_path / "patient.sql").write_bytes(b"CREATE TABLE \xff\xfe patient;")

    result = run(schema.bootstrap_schema(fake_pool, tmp_path))

    assert result.created == ["caregiver", "visit"]
    assert set(result.failed) == {"patient"}
    assert len(fake_pool.statements("execute")) == 2
