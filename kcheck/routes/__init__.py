"""API route modules."""
from kcheck.routes import admin, catalog, results, runs, tests

__all__ = ["admin", "catalog", "results", "runs", "tests"]
