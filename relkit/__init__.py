"""Release orchestration: parallel target builds, artifact pool, manifest rendering."""

__version__ = "0.1.0"
