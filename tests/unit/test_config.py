"""Unit tests for Settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from neuraldoc.config.loader import load_config, load_vocabulary
from neuraldoc.config.settings import Settings
from neuraldoc.utils.errors import ConfigurationError


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.embedding_dimension == 1536
        assert settings.chunk_max_size == 6000
        assert settings.file_batch_concurrency == 100
        assert settings.url_batch_concurrency == 50
        assert settings.crawl_max_pages == 10
        assert settings.chat_history_limit == 12
        assert settings.max_upload_bytes == 100 * 1024 * 1024

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHUNK_MAX_SIZE", "500")
        monkeypatch.setenv("REPOSITORY_BACKEND", "sqlite")
        settings = Settings()
        assert settings.chunk_max_size == 500
        assert settings.repository_backend == "sqlite"


class TestLoadConfig:
    def test_repo_config_loads(self, project_root: Path) -> None:
        config = load_config(str(project_root / "config" / "config.yaml"), settings=Settings())
        assert "retrieval" in config
        assert config["storage"]["backend"] == "memory"

    def test_settings_override_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("app:\n  port: 1234\n  extra: kept\n", encoding="utf-8")

        config = load_config(str(path), settings=Settings(app_port=9000))

        assert config["app"]["port"] == 9000
        assert config["app"]["extra"] == "kept"

    def test_missing_file_gives_env_sections_only(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=Settings())
        assert set(config) == {"app", "storage", "logging"}

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("app: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(str(path), settings=Settings())

    def test_non_mapping_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(str(path), settings=Settings())


class TestLoadVocabulary:
    def test_terms_are_lowercased(self) -> None:
        vocab = load_vocabulary(
            {
                "retrieval": {
                    "tracked_entities": ["Acme", "GLOBEX"],
                    "entity_synonyms": {"Globex": "GX"},
                }
            }
        )
        assert vocab.tracked_entities == ("acme", "globex")
        assert vocab.entity_synonyms == {"globex": "gx"}

    def test_missing_section_uses_defaults(self) -> None:
        vocab = load_vocabulary({})
        assert "rosemary" in vocab.tracked_entities
        assert "this" in vocab.context_keywords

    def test_repo_config_matches_defaults(self, project_root: Path) -> None:
        config = load_config(str(project_root / "config" / "config.yaml"), settings=Settings())
        vocab = load_vocabulary(config)
        assert vocab.entity_synonyms == {"barr": "rosemary", "crapharma": "cra"}
        assert vocab.tracked_entities[:2] == ("rosemary", "barr")

    def test_non_mapping_section_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            load_vocabulary({"retrieval": ["not", "a", "mapping"]})
