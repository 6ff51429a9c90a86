"""
Tests for the ckd-assessments CLI.
"""

import sqlite3

import pytest

from assessment_store import open_store
from cli.commands import build_parser, main


async def _seed(db_path, *payloads):
    store = await open_store(db_path)
    return [await store.save(p) for p in payloads]


class TestParser:

    def test_history_view_requires_integer_id(self):
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["history", "view", "abc"])

    def test_db_option(self):
        args = build_parser().parse_args(["--db", "x.db", "history", "list"])
        assert args.db == "x.db"
        assert args.history_action == "list"


@pytest.mark.asyncio
async def test_list_empty(db_path, capsys):
    await main(["--db", str(db_path), "history", "list"])
    assert "No previous assessments found." in capsys.readouterr().out


@pytest.mark.asyncio
async def test_list_newest_first(db_path, capsys, patient_a, patient_b):
    id_a, id_b = await _seed(db_path, patient_a, patient_b)

    await main(["--db", str(db_path), "history", "list"])
    out = capsys.readouterr().out

    assert "2 stored assessment(s)" in out
    assert out.index(f"[{id_b}]") < out.index(f"[{id_a}]")
    assert "HIGH" in out
    assert "Age: 45, Male" in out


@pytest.mark.asyncio
async def test_view(db_path, capsys, patient_a):
    (record_id,) = await _seed(db_path, patient_a)

    await main(["--db", str(db_path), "history", "view", str(record_id)])
    out = capsys.readouterr().out

    assert f"Assessment #{record_id}" in out
    assert "Risk level: moderate" in out
    assert 'family_diseases: ["diabetes", "hypertension"]' in out


@pytest.mark.asyncio
async def test_view_unknown_exits(db_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
        await main(["--db", str(db_path), "history", "view", "999999"])
    assert exc_info.value.code == 1
    assert "Assessment 999999 not found" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_delete(db_path, capsys, patient_a, patient_b):
    id_a, id_b = await _seed(db_path, patient_a, patient_b)

    await main(["--db", str(db_path), "history", "delete", str(id_a)])
    assert f"Assessment {id_a} deleted" in capsys.readouterr().out

    store = await open_store(db_path)
    assert [r["id"] for r in await store.list_all()] == [id_b]


@pytest.mark.asyncio
async def test_clear_with_yes(db_path, capsys, patient_a, patient_b):
    await _seed(db_path, patient_a, patient_b)

    await main(["--db", str(db_path), "history", "clear", "--yes"])
    assert "Deleted 2 assessment(s)" in capsys.readouterr().out

    store = await open_store(db_path)
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_clear_cancelled(db_path, capsys, monkeypatch, patient_a):
    await _seed(db_path, patient_a)
    monkeypatch.setattr("builtins.input", lambda _prompt: "n")

    await main(["--db", str(db_path), "history", "clear"])
    assert "Cancelled." in capsys.readouterr().out

    store = await open_store(db_path)
    assert await store.count() == 1


@pytest.mark.asyncio
async def test_store_error_exits(tmp_path, capsys):
    db_path = tmp_path / "future.db"
    conn = sqlite3.connect(str(db_path))
    conn.execute("CREATE TABLE schema_version (version INTEGER PRIMARY KEY)")
    conn.execute("INSERT INTO schema_version (version) VALUES (99)")
    conn.commit()
    conn.close()

    with pytest.raises(SystemExit) as exc_info:
        await main(["--db", str(db_path), "history", "list"])
    assert exc_info.value.code == 1
    assert "newer than supported" in capsys.readouterr().out
