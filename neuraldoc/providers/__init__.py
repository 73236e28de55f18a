"""Concrete adapters for the interfaces in ``neuraldoc/interfaces/``."""
