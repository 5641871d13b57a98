"""Tests for layered configuration loading."""

import json

import pytest

from trailmark.config import TrailmarkConfig, get_local_config_path
from trailmark.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TRAILMARK_WORKER_URL", "TRAILMARK_TOKEN", "TRAILMARK_STALE_MINUTES"):
        monkeypatch.delenv(name, raising=False)


class TestTrailmarkConfig:
    def test_defaults(self, tmp_path):
        config = TrailmarkConfig.load(global_path=tmp_path / "missing")
        assert config.worker_url == ""
        assert config.stale_after_minutes == 30
        assert not config.is_configured

    def test_global_file(self, tmp_path):
        path = tmp_path / "config"
        path.write_text(json.dumps({"worker_url": "https://w.example.com/", "token": "t"}))
        config = TrailmarkConfig.load(global_path=path)
        assert config.worker_url == "https://w.example.com"
        assert config.is_configured

    def test_local_overrides_global(self, tmp_path):
        global_path = tmp_path / "global"
        global_path.write_text(json.dumps({"worker_url": "https://global", "token": "g"}))
        project = tmp_path / "project"
        local = get_local_config_path(project)
        local.parent.mkdir(parents=True)
        local.write_text(json.dumps({"worker_url": "https://local"}))

        config = TrailmarkConfig.load(project, global_path=global_path)
        assert config.worker_url == "https://local"
        assert config.token == "g"

    def test_env_overrides_files(self, tmp_path, monkeypatch):
        path = tmp_path / "config"
        path.write_text(json.dumps({"token": "file"}))
        monkeypatch.setenv("TRAILMARK_TOKEN", "env")
        monkeypatch.setenv("TRAILMARK_STALE_MINUTES", "5")

        config = TrailmarkConfig.load(global_path=path)
        assert config.token == "env"
        assert config.stale_after_minutes == 5

    def test_dotenv_in_project(self, tmp_path, monkeypatch):
        # load_dotenv writes os.environ directly; record the var so teardown removes it
        monkeypatch.setenv("TRAILMARK_WORKER_URL", "placeholder")
        monkeypatch.delenv("TRAILMARK_WORKER_URL")
        project = tmp_path / "project"
        project.mkdir()
        (project / ".env").write_text("TRAILMARK_WORKER_URL=https://from-dotenv\n")

        config = TrailmarkConfig.load(project, global_path=tmp_path / "missing")
        assert config.worker_url == "https://from-dotenv"

    def test_unreadable_file_ignored(self, tmp_path):
        path = tmp_path / "config"
        path.write_text("{broken")
        assert TrailmarkConfig.load(global_path=path).token == ""

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "config"
        path.write_text(json.dumps({"token": "t", "colour": "blue"}))
        assert TrailmarkConfig.load(global_path=path).token == "t"

    def test_bad_stale_minutes(self, tmp_path):
        path = tmp_path / "config"
        path.write_text(json.dumps({"stale_after_minutes": "soon"}))
        with pytest.raises(ConfigError):
            TrailmarkConfig.load(global_path=path)

    @pytest.mark.parametrize("key", ["worker_url", "token", "ledger_dirname"])
    def test_non_string_value(self, tmp_path, key):
        path = tmp_path / "config"
        path.write_text(json.dumps({key: 5}))
        with pytest.raises(ConfigError):
            TrailmarkConfig.load(global_path=path)

    def test_save_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "config"
        TrailmarkConfig(worker_url="https://w", token="t").save(path)
        assert TrailmarkConfig.load(global_path=path).token == "t"
