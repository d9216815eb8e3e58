"""HTTP surface for kbase (FastAPI router, schemas, middleware)."""
