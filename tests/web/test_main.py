"""
Tests for ``python -m web``.
"""

from unittest.mock import patch

from assessment_store.config import APP_NAME, DB_FILE, DB_PATH_ENV
from web.__main__ import build_parser, main


def test_defaults():
    args = build_parser().parse_args([])
    assert args.db is None
    assert args.port == 8000
    assert args.host == "127.0.0.1"
    assert not args.reload


def test_db_option_points_app_at_database(tmp_path, capsys):
    db_path = tmp_path / "clinic.db"
    with patch("web.__main__.uvicorn.run") as run, \
         patch.dict("os.environ", {}) as env:
        main(["--db", str(db_path), "--port", "9001"])
        assert env[DB_PATH_ENV] == str(db_path)

    run.assert_called_once_with("web.app:app", host="127.0.0.1", port=9001, reload=False)
    out = capsys.readouterr().out
    assert f"Database: {db_path}" in out
    assert "http://127.0.0.1:9001/api" in out


def test_default_database_announced(tmp_path, monkeypatch, capsys):
    monkeypatch.delenv(DB_PATH_ENV, raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    with patch("web.__main__.uvicorn.run"), patch.dict("os.environ", {}):
        main([])
    expected = tmp_path / APP_NAME / DB_FILE
    assert f"Database: {expected}" in capsys.readouterr().out
