"""MLBB counter-pick toolkit: wiki catalog enrichment and counter-pick recommendations."""

__version__ = "0.1.0"
