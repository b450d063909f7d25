"""Tests for topicscout.config."""

from __future__ import annotations

import topicscout.config as config_module
from topicscout.config import AppConfig, load_config, write_default_config


class TestDefaults:
    def test_default_config_values(self):
        config = AppConfig()
        assert config.database.sqlite_path == "~/.topicscout/rules.db"
        assert config.search.num_results == 20
        assert config.search.days_back == 15
        assert config.search.timeout == 30.0
        assert config.search.contents_limit == 5
        assert config.llm.model == "gpt-3.5-turbo"
        assert config.llm.concurrency == 1
        assert config.pipeline.summary_min_chars == 200
        assert config.pipeline.snippet_chars == 300
        assert config.log_level == "INFO"

    def test_database_url(self):
        config = AppConfig()
        config.database.sqlite_path = ":memory:"
        assert config.database_url == "sqlite:///:memory:"
        config.database.url = "postgresql+psycopg://u@h/db"
        assert config.database_url == "postgresql+psycopg://u@h/db"

    def test_api_keys_fall_back_to_environment(self, monkeypatch):
        monkeypatch.setenv("EXA_API_KEY", "env-exa")
        monkeypatch.setenv("OPENAI_API_KEY", "env-openai")
        config = AppConfig()
        assert config.search.resolved_api_key == "env-exa"
        assert config.llm.resolved_api_key == "env-openai"
        config.search.api_key = "file-exa"
        assert config.search.resolved_api_key == "file-exa"


class TestLoadConfig:
    def test_load_missing_file(self, tmp_path):
        config = load_config(tmp_path / "nonexistent.toml")
        assert config.database.url == ""

    def test_load_valid_config(self, tmp_path):
        cfg = tmp_path / "config.toml"
        cfg.write_text("""\
[general]
log_level = "DEBUG"

[database]
sqlite_path = "/tmp/rules.db"

[search]
num_results = 5
include_domains = ["reuters.com"]
unknown_key = 1

[llm]
model = "gpt-4o-mini"
concurrency = 4
optimize_query = false

[pipeline]
placeholder = "n/a"
""")
        config = load_config(cfg)
        assert config.log_level == "DEBUG"
        assert config.database.sqlite_path == "/tmp/rules.db"
        assert config.search.num_results == 5
        assert config.search.include_domains == ["reuters.com"]
        assert not hasattr(config.search, "unknown_key")
        assert config.llm.model == "gpt-4o-mini"
        assert config.llm.concurrency == 4
        assert config.llm.optimize_query is False
        assert config.pipeline.placeholder == "n/a"


class TestWriteDefault:
    def test_creates_config_file(self, tmp_path):
        path = write_default_config(tmp_path / "config.toml")
        assert path.exists()
        text = path.read_text()
        assert "[search]" in text
        assert "[llm]" in text
        assert load_config(path).search.num_results == 20

    def test_does_not_overwrite(self, tmp_path):
        cfg = tmp_path / "config.toml"
        cfg.write_text("custom")
        write_default_config(cfg)
        assert cfg.read_text() == "custom"

    def test_default_file_matches_defaults(self, tmp_path):
        path = write_default_config(tmp_path / "config.toml")
        assert load_config(path) == AppConfig()

    def test_no_config_writer(self):
        # config files are only ever created from the default template
        assert not hasattr(config_module, "save_config")


class TestDatabaseSection:
    def test_url_follows_sqlite_path(self, tmp_path):
        cfg = tmp_path / "config.toml"
        cfg.write_text(f'[database]\nsqlite_path = "{tmp_path / "r.db"}"\n')
        assert load_config(cfg).database_url == f"sqlite:///{tmp_path / 'r.db'}"

    def test_backend_key_is_not_a_setting(self, tmp_path):
        cfg = tmp_path / "config.toml"
        cfg.write_text('[database]\nbackend = "postgresql"\nurl = "postgresql+psycopg://u@h/db"\n')
        config = load_config(cfg)
        assert not hasattr(config.database, "backend")
        assert config.database_url == "postgresql+psycopg://u@h/db"
