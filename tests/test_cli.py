"""
Settings and Console Driver Tests

Test Scenarios:
---------------
1. EngineSettings.from_env reads paths, seed and log level
2. validate() reports missing files and unknown log levels
3. `simulate` runs against a catalog file without modifying it
4. `play` walks a scripted session to SUCCESS

Run:
----
    pytest tests/test_cli.py -v
"""

import json

import pytest

from guess_engine import settings as settings_module
from guess_engine.cli import main
from guess_engine.settings import EngineSettings, reload_settings

CATALOG = {
    "items": [
        {"id": "i1", "title": "Alpha", "author": "Ann", "classification": "MANUAL"},
        {"id": "i2", "title": "Beta", "author": "Bob", "classification": "MANUAL"},
        {"id": "i3", "title": "Gamma", "author": "Gus", "popularity_base": 100, "classification": "MANUAL"},
    ],
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in (
        "GUESS_ENGINE_CONFIG",
        "GUESS_ENGINE_CATALOG",
        "GUESS_ENGINE_SESSIONS",
        "GUESS_ENGINE_SEED",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(settings_module, "_settings", None)


@pytest.fixture
def catalog_path(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(CATALOG))
    return path


class TestSettings:
    """Environment-driven settings."""

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GUESS_ENGINE_CATALOG", "catalog.json")
        monkeypatch.setenv("GUESS_ENGINE_SEED", "42")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = reload_settings()
        assert settings.catalog_path == (tmp_path / "catalog.json").resolve()
        assert settings.config_path is None
        assert settings.seed == 42
        assert settings.log_level == "DEBUG"

    def test_validate(self, tmp_path):
        settings = EngineSettings(catalog_path=tmp_path / "missing.json", log_level="NOPE")
        ok, errors = settings.validate()
        assert not ok
        assert len(errors) == 2

    def test_engine_config_from_file(self, tmp_path):
        path = tmp_path / "engine.json"
        path.write_text(json.dumps({"algo": {"alpha": 1.0}}))
        assert EngineSettings(config_path=path).engine_config().alpha == 1.0
        assert EngineSettings().engine_config().alpha == 0.5


class TestSimulateCommand:
    """guess-engine simulate"""

    def test_writes_report_and_leaves_catalog_alone(self, catalog_path, tmp_path, capsys):
        output = tmp_path / "report.json"
        before = catalog_path.read_text()
        code = main(["--catalog", str(catalog_path), "--seed", "1", "simulate", "--output", str(output)])

        assert code == 0
        assert catalog_path.read_text() == before
        report = json.loads(output.read_text())
        assert report["total_sessions"] == 3
        assert "Success rate" in capsys.readouterr().out


class TestPlayCommand:
    """guess-engine play with scripted input."""

    def test_reveal_accepted(self, catalog_path, monkeypatch, capsys):
        replies = iter(["y"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(replies))
        code = main(["--catalog", str(catalog_path), "play"])
        assert code == 0
        out = capsys.readouterr().out
        assert "Got it!" in out
