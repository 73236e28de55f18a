"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers, later layers winning:

  1. ``config/config.yaml`` -- static defaults checked into the repo
  2. ``.env`` file          -- local developer overrides
  3. Environment variables  -- set at deploy time

``load_config()`` reads the YAML file, then deep-merges the values from
:class:`Settings` on top.  The retrieval vocabularies (context keywords,
translation keywords, tracked entities, synonyms) only live in YAML.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from neuraldoc.config.settings import Settings
from neuraldoc.models.retrieval import RetrievalVocabulary
from neuraldoc.utils.errors import ConfigurationError


def load_config(path: str | None = None, settings: Settings | None = None) -> dict:
    """Return the YAML defaults with the deploy-time settings merged on top.

    *path* defaults to ``settings.config_path``; a missing file yields an
    empty base so the environment alone can configure the app.
    """
    settings = settings or Settings()
    resolved = _read_yaml(Path(path or settings.config_path))
    _deep_merge(resolved, _env_overrides(settings))
    return resolved


def _read_yaml(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    try:
        parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            message=f"Invalid YAML in {config_path}: {exc}", provider_name="yaml"
        ) from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ConfigurationError(message=f"{config_path} must contain a mapping")
    return parsed


def _env_overrides(settings: Settings) -> dict:
    return {
        "app": {"host": settings.app_host, "port": settings.app_port, "env": settings.app_env},
        "storage": {
            "backend": settings.repository_backend,
            "sqlite_db_path": settings.sqlite_db_path,
            "upload_dir": settings.upload_dir,
        },
        "logging": {"level": settings.log_level},
    }


def load_vocabulary(config: dict[str, Any]) -> RetrievalVocabulary:
    """Build the retrieval vocabulary from the ``retrieval`` config section.

    Missing keys fall back to the built-in defaults on
    :class:`RetrievalVocabulary`.
    """
    section = config.get("retrieval") or {}
    if not isinstance(section, dict):
        raise ConfigurationError(message="'retrieval' config section must be a mapping")

    fields: dict[str, Any] = {}
    for key in ("context_keywords", "translation_keywords", "tracked_entities"):
        if key in section:
            fields[key] = tuple(str(term).lower() for term in section[key] or [])
    if "entity_synonyms" in section:
        fields["entity_synonyms"] = {
            str(k).lower(): str(v).lower() for k, v in (section["entity_synonyms"] or {}).items()
        }
    return RetrievalVocabulary(**fields)


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
