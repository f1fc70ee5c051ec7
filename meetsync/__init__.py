"""Multi-platform synchronisation and results merging for powerlifting meets."""

__version__ = "0.1.0"
