"""Configuration module: exports Settings and the YAML loaders."""

from neuraldoc.config.loader import load_config, load_vocabulary
from neuraldoc.config.settings import Settings

__all__ = ["Settings", "load_config", "load_vocabulary"]
