"""Concrete adapters for the interfaces in ``kbase.interfaces``."""
