"""gripflow: single-flight pick-and-place task orchestration."""

__version__ = "0.1.0"
