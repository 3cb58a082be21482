"""IRIS worker: incremental project-summary extraction from conversations."""

__version__ = "0.1.0"
